"""Report generation: CSV/JSON artifacts and artifact validation"""
import pandas as pd
import numpy as np
import json
import subprocess
from pathlib import Path
from typing import List, Dict, Optional, Union, Any
from dataclasses import dataclass
from datetime import datetime, UTC

import networkx as nx

from archnet.analysis_logging import read_event_log
from archnet.networks.graph import edge_frame, graph_summary

REQUIRED_ARTIFACTS = [
    'similarity.csv',
    'edges.csv',
    'node_metrics.csv',
    'graph_summary.json',
    'mc_iterations.csv',
    'mc_summary.csv',
    'run_manifest.json',
]

TOLERANCE = 1e-9


@dataclass
class ValidationResult:
    """Result of artifact validation"""
    passed: bool                     # True only if no hard failures
    failures: List[str]              # Hard violations
    warnings: List[str]              # WARN-level issues
    info: List[str]                  # Informational notes
    metrics: Dict[str, Any]          # Parsed graph_summary.json
    artifacts_dir: Path              # Where artifacts were loaded from


def validate_artifacts(artifacts_dir: Union[str, Path]) -> ValidationResult:
    """
    Validate a run's artifacts.

    Checks required files, that the similarity matrix is square, symmetric
    and within [0, 1], and that Monte Carlo statistics are within range.
    """
    artifacts_dir = Path(artifacts_dir)
    failures: List[str] = []
    warnings: List[str] = []
    info: List[str] = []

    for name in REQUIRED_ARTIFACTS:
        if not (artifacts_dir / name).exists():
            failures.append(f"Missing required artifact: {name}")
    if failures:
        return ValidationResult(False, failures, warnings, info, {}, artifacts_dir)

    try:
        sim = pd.read_csv(artifacts_dir / 'similarity.csv', index_col=0)
        mc = pd.read_csv(artifacts_dir / 'mc_iterations.csv')
        with open(artifacts_dir / 'graph_summary.json', 'r') as f:
            summary = json.load(f)
    except (OSError, ValueError) as e:
        failures.append(f"Could not load artifacts: {e}")
        return ValidationResult(False, failures, warnings, info, {}, artifacts_dir)

    # Similarity matrix
    if sim.shape[0] != sim.shape[1]:
        failures.append(f"similarity.csv is not square: {sim.shape}")
    else:
        values = sim.to_numpy(dtype=float)
        finite = values[~np.isnan(values)]
        if finite.size and (finite.min() < -TOLERANCE or finite.max() > 1 + TOLERANCE):
            failures.append("similarity.csv has values outside [0, 1]")
        asym = np.nanmax(np.abs(values - values.T)) if values.size else 0.0
        if asym > TOLERANCE:
            failures.append(f"similarity.csv is not symmetric (max diff {asym:.3g})")
        n_nan = int(np.isnan(np.diag(values)).sum())
        if n_nan:
            warnings.append(f"{n_nan} empty assemblages (nan self-similarity)")

    if summary.get('nodes') != sim.shape[0]:
        failures.append(
            f"graph_summary nodes ({summary.get('nodes')}) != similarity sites ({sim.shape[0]})"
        )

    # Monte Carlo statistics
    for col in ['similarity_spearman', 'degree_spearman', 'eigenvector_spearman']:
        if col in mc.columns:
            vals = mc[col].dropna()
            if ((vals < -1 - TOLERANCE) | (vals > 1 + TOLERANCE)).any():
                failures.append(f"mc_iterations.{col} outside [-1, 1]")
            n_missing = int(mc[col].isna().sum())
            if n_missing:
                info.append(f"mc_iterations.{col}: {n_missing} undefined correlations")
    for col in ['edge_overlap', 'density']:
        if col in mc.columns:
            vals = mc[col].dropna()
            if ((vals < -TOLERANCE) | (vals > 1 + TOLERANCE)).any():
                failures.append(f"mc_iterations.{col} outside [0, 1]")

    log_path = artifacts_dir / 'analysis_log.jsonl'
    if log_path.exists():
        try:
            info.append(f"{len(read_event_log(log_path))} events in analysis_log.jsonl")
        except ValueError as e:
            warnings.append(f"analysis_log.jsonl is not valid JSON lines: {e}")

    if mc.empty:
        warnings.append("mc_iterations.csv is empty (no runnable loss schemes)")
    else:
        info.append(f"{len(mc)} Monte Carlo iterations across {mc['scheme'].nunique()} schemes")

    return ValidationResult(
        passed=len(failures) == 0,
        failures=failures,
        warnings=warnings,
        info=info,
        metrics=summary,
        artifacts_dir=artifacts_dir
    )


class ReportGenerator:
    """Write analysis artifacts"""

    def __init__(self, output_dir: str = "reports", run_id: str = None):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.artifacts_dir = self.output_dir / "artifacts"
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)
        self.run_id = run_id

    def write_similarity(self, sim: pd.DataFrame):
        """Write similarity.csv (site x site)"""
        sim.rename_axis('site').to_csv(self.artifacts_dir / 'similarity.csv')

    def write_network(self, G: nx.Graph, metrics: pd.DataFrame):
        """Write edges.csv, node_metrics.csv and graph_summary.json"""
        edge_frame(G).to_csv(self.artifacts_dir / 'edges.csv', index=False)
        metrics.rename_axis('site').to_csv(self.artifacts_dir / 'node_metrics.csv')
        with open(self.artifacts_dir / 'graph_summary.json', 'w') as f:
            json.dump(graph_summary(G), f, indent=2, default=str)

    def write_monte_carlo(self, results: pd.DataFrame, summary: pd.DataFrame):
        """Write mc_iterations.csv and mc_summary.csv"""
        results.to_csv(self.artifacts_dir / 'mc_iterations.csv', index=False)
        summary.to_csv(self.artifacts_dir / 'mc_summary.csv', index=False)

    def write_observed_comparison(self, comparison: Dict[str, Any]):
        """Write observed_comparison.json (similarity network vs observed network)"""
        with open(self.artifacts_dir / 'observed_comparison.json', 'w') as f:
            json.dump(_nan_to_none(comparison), f, indent=2, default=_json_default)

    def save_params_snapshot(self, params: Dict):
        """Save params snapshot"""
        with open(self.artifacts_dir / 'params_snapshot.json', 'w') as f:
            json.dump(params, f, indent=2, default=str)

    def write_event_log(self, events: List[Dict]):
        """Write analysis_log.jsonl"""
        with open(self.artifacts_dir / 'analysis_log.jsonl', 'w') as f:
            for event in events:
                f.write(json.dumps(event, default=_json_default) + '\n')

    def write_run_manifest(
        self,
        run_id: str,
        created_at: str,
        params_file: Optional[str],
        data_path: str,
        data_summary: Dict[str, int],
        run_label: Optional[str] = None
    ):
        """Write run_manifest.json"""
        git_commit = None
        try:
            result = subprocess.run(['git', 'rev-parse', '--short', 'HEAD'],
                                    capture_output=True, text=True, cwd=Path(__file__).parent)
            if result.returncode == 0:
                git_commit = result.stdout.strip()
        except OSError:
            pass

        manifest = {
            'run_id': run_id,
            'run_label': run_label,
            'created_at': created_at,
            'params_file': params_file,
            'data_path': data_path,
            'data_summary': data_summary,
            'git_commit': git_commit
        }

        with open(self.artifacts_dir / 'run_manifest.json', 'w') as f:
            json.dump(manifest, f, indent=2, default=str)


def _json_default(value):
    if isinstance(value, np.generic):
        return value.item()
    return str(value)


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _nan_to_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (None if isinstance(v, float) and np.isnan(v) else v) for k, v in values.items()}
