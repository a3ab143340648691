"""
Assemblage Network Experiment Runner
Builds the weighted-Jaccard similarity network for a dataset and compares it
against networks rebuilt after random and non-random data loss.
"""
import argparse
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from archnet.config.params_loader import ParamsLoader
from archnet.data.loader import AssemblageLoader
from archnet.engine import NetworkSimilarityEngine
from archnet.reporting import validate_artifacts
from archnet.sampling.monte_carlo import compare_schemes


def build_overrides(args) -> dict:
    """Command-line flags that override base params"""
    overrides = {}
    if args.iterations is not None:
        overrides.setdefault('sampling', {})['iterations'] = args.iterations
    if args.seed is not None:
        overrides.setdefault('general', {})['seed'] = args.seed
    if args.threshold is not None:
        overrides.setdefault('network', {})['threshold'] = args.threshold
    if args.method is not None:
        overrides.setdefault('similarity', {})['method'] = args.method
    if args.plots:
        overrides.setdefault('reporting', {})['write_plots'] = True
    return overrides


def main():
    parser = argparse.ArgumentParser(description='Run the assemblage similarity network data-loss experiment')
    parser.add_argument('--data-path', type=str, required=True, help='Directory with assemblages.csv (and optional sites.csv, edges.csv)')
    parser.add_argument('--output-dir', type=str, default=None, help='Output directory (default: reporting.output_dir)')
    parser.add_argument('--params', type=str, default=None, help='Alternative base params JSON')
    parser.add_argument('--overrides', type=str, default=None, help='JSON file with param overrides')
    parser.add_argument('--iterations', type=int, default=None, help='Monte Carlo iterations per scheme and fraction')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--threshold', type=float, default=None, help='Similarity threshold for network edges')
    parser.add_argument('--method', type=str, default=None, choices=['counts', 'proportions', 'presence'], help='Similarity normalisation')
    parser.add_argument('--plots', action='store_true', help='Write network and loss-curve figures')
    parser.add_argument('--run-id', type=str, default=None, help='Run identifier')

    args = parser.parse_args()

    params = ParamsLoader(params_path=args.params, overrides_path=args.overrides, overrides=build_overrides(args))
    output_dir = args.output_dir or params.get('reporting', 'output_dir', default='reports')

    try:
        loader = AssemblageLoader.from_params(args.data_path, params)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    errors = loader.load()
    if errors:
        print(f"WARNING: {len(errors)} validation issues")
        for err in errors:
            print(f"  - {err}")

    if loader.get_counts() is None or loader.get_counts().empty:
        print("ERROR: No assemblages were loaded successfully!")
        sys.exit(1)

    summary = loader.summary()
    print(f"Loaded {summary['sites']} sites, {summary['types']} types, {summary['artifacts']} artifacts")
    print(f"Output: {output_dir}")
    print()

    engine = NetworkSimilarityEngine(loader, params)
    artifacts_dir = engine.run(output_dir=output_dir, run_id=args.run_id)

    print("\nMean similarity Spearman (fraction x scheme):")
    if not engine.mc_summary.empty:
        print(compare_schemes(engine.mc_summary, 'similarity_spearman').to_string())
    else:
        print("  (no runnable loss schemes)")

    result = validate_artifacts(artifacts_dir)
    print(f"\nArtifact validation: {'PASS' if result.passed else 'FAIL'}")
    for msg in result.failures:
        print(f"  FAIL: {msg}")
    for msg in result.warnings:
        print(f"  WARN: {msg}")

    print("\nDone!")
    if not result.passed:
        sys.exit(1)


if __name__ == '__main__':
    main()
