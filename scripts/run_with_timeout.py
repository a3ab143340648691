"""
Run shell commands in the background and kill any that exceed a wall-clock timeout.

Example:
    python scripts/run_with_timeout.py --timeout 600 -- Rscript a.R ";;" Rscript b.R
"""
import argparse
import sys
from pathlib import Path
from typing import List

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from archnet.config.params_loader import ParamsLoader
from archnet.supervisor.timeout_runner import run_with_timeout

COMMAND_SEPARATOR = ';;'


def split_commands(argv: List[str]) -> List[List[str]]:
    """Split a flat argument list into commands on ';;'"""
    commands, current = [], []
    for arg in argv:
        if arg == COMMAND_SEPARATOR:
            if current:
                commands.append(current)
            current = []
        else:
            current.append(arg)
    if current:
        commands.append(current)
    return commands


def main():
    params = ParamsLoader()
    parser = argparse.ArgumentParser(description='Run commands in the background with a timeout')
    parser.add_argument('--timeout', type=float, default=params.get('supervisor', 'timeout_seconds'), help='Seconds before a process is killed')
    parser.add_argument('--poll', type=float, default=params.get('supervisor', 'poll_interval_seconds'), help='Polling interval in seconds')
    parser.add_argument('--log-dir', type=str, default=None, help='Write <name>.out/.err per process here')
    parser.add_argument('commands', nargs=argparse.REMAINDER, help="Commands separated by ';;' (after --)")

    args = parser.parse_args()
    argv = args.commands[1:] if args.commands and args.commands[0] == '--' else args.commands
    commands = split_commands(argv)
    if not commands:
        print("ERROR: no commands given")
        sys.exit(2)

    named = {f"proc_{i}": cmd for i, cmd in enumerate(commands)}
    results = run_with_timeout(
        named,
        timeout_seconds=args.timeout,
        poll_interval=args.poll,
        kill_grace_seconds=params.get('supervisor', 'kill_grace_seconds'),
        log_dir=args.log_dir
    )

    print()
    for r in sorted(results, key=lambda r: r.name):
        status = 'TIMEOUT' if r.timed_out else f"exit {r.returncode}"
        print(f"  {r.name}: {status} after {r.elapsed:.1f}s  ({' '.join(r.cmd)})")

    if any(r.timed_out or r.returncode != 0 for r in results):
        sys.exit(1)


if __name__ == '__main__':
    main()
