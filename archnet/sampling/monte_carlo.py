"""Monte Carlo comparison of networks under random vs non-random data loss"""
import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Union

from archnet.analysis_logging import log_event
from archnet.config.params_loader import ParamsLoader
from archnet.similarity.jaccard import similarity_matrix
from archnet.networks.graph import graph_from_similarity, node_metrics, resolve_threshold
from archnet.networks.compare import compare_networks
from archnet.sampling.loss import apply_loss, LOSS_SCHEMES, WEIGHTED_SCHEMES

STATISTICS = ['similarity_spearman', 'degree_spearman', 'eigenvector_spearman', 'edge_overlap', 'density']


class MonteCarloExperiment:
    """Rebuild the similarity network many times from degraded data and compare to the full network"""

    def __init__(
        self,
        counts: pd.DataFrame,
        params: ParamsLoader,
        site_weights: Optional[pd.Series] = None,
        type_weights: Optional[Union[pd.Series, Dict[str, float]]] = None,
        sink: Optional[List[Dict]] = None
    ):
        self.counts = counts
        self.params = params
        self.site_weights = site_weights
        self.type_weights = type_weights if type_weights is not None and len(type_weights) > 0 else None
        self.sink = sink

        self.method = params.get('similarity', 'method', default='proportions')
        self.threshold = params.get('network', 'threshold', default=0.5)
        self.threshold_mode = params.get('network', 'threshold_mode', default='absolute')
        self.iterations = int(params.get('sampling', 'iterations', default=100))
        self.fractions = list(params.get('sampling', 'fractions', default=[0.1, 0.25, 0.5]))
        self.schemes = list(params.get('sampling', 'schemes', default=list(LOSS_SCHEMES)))
        self.min_sites = int(params.get('sampling', 'min_sites', default=2))
        self.seed = params.get('general', 'seed', default=42)

        for scheme in self.schemes:
            if scheme not in LOSS_SCHEMES:
                raise ValueError(f"Unknown loss scheme '{scheme}', expected one of {sorted(LOSS_SCHEMES)}")

        # Full network is computed once; the cutoff is fixed from it so that
        # quantile thresholds do not drift as data is removed
        self.full_sim = similarity_matrix(counts, self.method)
        self.cutoff = resolve_threshold(self.full_sim, self.threshold, self.threshold_mode)
        self.full_graph = graph_from_similarity(self.full_sim, self.cutoff, 'absolute')
        self.full_metrics = node_metrics(self.full_graph)

    def runnable_schemes(self) -> List[str]:
        """Schemes that have the bias data they need"""
        available = {
            'site_weights': self.site_weights is not None,
            'type_weights': self.type_weights is not None,
        }
        return [s for s in self.schemes if s not in WEIGHTED_SCHEMES or available[WEIGHTED_SCHEMES[s]]]

    def run_iteration(self, scheme: str, fraction: float, rng: np.random.Generator) -> Dict[str, float]:
        """Apply one loss draw and compare the rebuilt network with the full one"""
        reduced = apply_loss(
            scheme,
            self.counts,
            fraction,
            rng,
            site_weights=self.site_weights,
            type_weights=self.type_weights,
            min_sites=self.min_sites
        )
        reduced_sim = similarity_matrix(reduced, self.method)
        reduced_graph = graph_from_similarity(reduced_sim, self.cutoff, 'absolute')
        reduced_metrics = node_metrics(reduced_graph)

        stats = compare_networks(
            self.full_sim, reduced_sim,
            self.full_graph, reduced_graph,
            self.full_metrics, reduced_metrics
        )
        stats['n_sites_kept'] = int(len(reduced))
        stats['n_artifacts_kept'] = int(reduced.to_numpy().sum())
        return stats

    def run(self) -> pd.DataFrame:
        """Run every scheme x fraction x iteration. Deterministic for a given seed."""
        rng = np.random.default_rng(self.seed)
        rows = []

        skipped = [s for s in self.schemes if s not in self.runnable_schemes()]
        if skipped:
            log_event('mc_schemes_skipped', {'schemes': skipped, 'reason': 'missing bias weights'}, sink=self.sink)

        for scheme in self.runnable_schemes():
            for fraction in self.fractions:
                for iteration in range(self.iterations):
                    stats = self.run_iteration(scheme, fraction, rng)
                    rows.append({'scheme': scheme, 'fraction': fraction, 'iteration': iteration, **stats})

                log_event('mc_scheme_done', {
                    'scheme': scheme,
                    'fraction': fraction,
                    'iterations': self.iterations
                }, sink=self.sink, echo=False)

        columns = ['scheme', 'fraction', 'iteration', 'n_sites_kept', 'n_artifacts_kept'] + STATISTICS
        return pd.DataFrame(rows, columns=columns)


def summarize(results: pd.DataFrame) -> pd.DataFrame:
    """Mean, std, q05 and q95 of each statistic per scheme and fraction"""
    if results.empty:
        return pd.DataFrame(columns=['scheme', 'fraction', 'statistic', 'mean', 'std', 'q05', 'q95', 'n'])

    rows = []
    for (scheme, fraction), group in results.groupby(['scheme', 'fraction'], sort=True):
        for stat in STATISTICS:
            values = group[stat].dropna()
            rows.append({
                'scheme': scheme,
                'fraction': fraction,
                'statistic': stat,
                'mean': values.mean() if len(values) else np.nan,
                'std': values.std() if len(values) > 1 else np.nan,
                'q05': values.quantile(0.05) if len(values) else np.nan,
                'q95': values.quantile(0.95) if len(values) else np.nan,
                'n': int(len(values))
            })
    return pd.DataFrame(rows)


def compare_schemes(summary: pd.DataFrame, statistic: str = 'similarity_spearman') -> pd.DataFrame:
    """Mean statistic as a fraction x scheme table, random and biased loss side by side"""
    subset = summary[summary['statistic'] == statistic]
    return subset.pivot(index='fraction', columns='scheme', values='mean')
