"""Background process supervisor: poll, and kill anything past its wall-clock timeout"""
import subprocess
import time
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from archnet.analysis_logging import log_event

Command = Union[str, Sequence[str]]


@dataclass
class ProcessResult:
    """Outcome of one supervised process"""
    name: str
    cmd: Command
    returncode: Optional[int]
    elapsed: float
    timed_out: bool = False


@dataclass
class _Running:
    name: str
    cmd: Command
    proc: subprocess.Popen
    started: float


class ProcessSupervisor:
    """
    Start commands in the background and poll them until they finish.

    Any process still running `timeout_seconds` after it started is
    terminated (then killed after `kill_grace_seconds`) and recorded with
    timed_out=True. No ordering between processes is implied.
    """

    def __init__(
        self,
        timeout_seconds: float,
        poll_interval: float = 1.0,
        kill_grace_seconds: float = 2.0,
        log_dir: Optional[Union[str, Path]] = None,
        sink: Optional[List[Dict]] = None,
        clock=time.monotonic,
        sleep=time.sleep
    ):
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds}")
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")

        self.timeout_seconds = timeout_seconds
        self.poll_interval = poll_interval
        self.kill_grace_seconds = kill_grace_seconds
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.sink = sink
        self._clock = clock
        self._sleep = sleep

        self._running: Dict[str, _Running] = {}
        self.results: List[ProcessResult] = []

    @property
    def running(self) -> List[str]:
        return list(self._running)

    def start(self, name: str, cmd: Command) -> subprocess.Popen:
        """Spawn `cmd` in the background. A string command runs through the shell."""
        if name in self._running:
            raise ValueError(f"Process '{name}' is already running")

        # The child holds its own copies of the file handles, ours close on exit
        with ExitStack() as stack:
            if self.log_dir is not None:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                stdout = stack.enter_context(open(self.log_dir / f"{name}.out", 'w'))
                stderr = stack.enter_context(open(self.log_dir / f"{name}.err", 'w'))
            else:
                stdout = subprocess.DEVNULL
                stderr = subprocess.DEVNULL
            proc = subprocess.Popen(cmd, shell=isinstance(cmd, str), stdout=stdout, stderr=stderr)

        self._running[name] = _Running(name=name, cmd=cmd, proc=proc, started=self._clock())
        log_event('process_started', {'name': name, 'pid': proc.pid}, sink=self.sink)
        return proc

    def _kill(self, entry: _Running):
        entry.proc.terminate()
        try:
            entry.proc.wait(timeout=self.kill_grace_seconds)
        except subprocess.TimeoutExpired:
            entry.proc.kill()
            entry.proc.wait()

    def poll_once(self, now: Optional[float] = None) -> List[ProcessResult]:
        """Check every running process once. Returns results finalised in this pass."""
        now = self._clock() if now is None else now
        finished = []

        for name, entry in list(self._running.items()):
            elapsed = now - entry.started
            returncode = entry.proc.poll()

            if returncode is not None:
                result = ProcessResult(name, entry.cmd, returncode, elapsed)
                log_event('process_finished', {'name': name, 'returncode': returncode, 'elapsed': round(elapsed, 3)}, sink=self.sink)
            elif elapsed > self.timeout_seconds:
                self._kill(entry)
                result = ProcessResult(name, entry.cmd, entry.proc.returncode, elapsed, timed_out=True)
                log_event('process_killed', {'name': name, 'elapsed': round(elapsed, 3), 'timeout': self.timeout_seconds}, sink=self.sink)
            else:
                continue

            del self._running[name]
            finished.append(result)

        self.results.extend(finished)
        return finished

    def wait_all(self) -> List[ProcessResult]:
        """Poll every `poll_interval` seconds until nothing is running"""
        while self._running:
            self.poll_once()
            if self._running:
                self._sleep(self.poll_interval)
        return list(self.results)


def run_with_timeout(
    commands: Union[Dict[str, Command], Sequence[Command]],
    timeout_seconds: float,
    poll_interval: float = 1.0,
    **kwargs
) -> List[ProcessResult]:
    """Start all commands at once and supervise them to completion"""
    if not isinstance(commands, dict):
        commands = {f"proc_{i}": cmd for i, cmd in enumerate(commands)}

    supervisor = ProcessSupervisor(timeout_seconds, poll_interval=poll_interval, **kwargs)
    for name, cmd in commands.items():
        supervisor.start(name, cmd)
    return supervisor.wait_all()
