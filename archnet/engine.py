"""Main analysis orchestrator: similarity network + data-loss Monte Carlo"""
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Any

import pandas as pd
import networkx as nx

from archnet.analysis_logging import log_event
from archnet.config.params_loader import ParamsLoader
from archnet.data.loader import AssemblageLoader
from archnet.similarity.jaccard import similarity_matrix
from archnet.networks.graph import (
    graph_from_similarity,
    graph_from_edges,
    graph_from_adjacency,
    graph_summary,
    node_metrics,
)
from archnet.networks.compare import edge_overlap, compare_centrality
from archnet.sampling.loss import bias_weights
from archnet.sampling.monte_carlo import MonteCarloExperiment, summarize
from archnet.reporting import ReportGenerator, now_iso


class NetworkSimilarityEngine:
    """
    Linear pipeline: load -> similarity -> network -> metrics ->
    observed-network comparison -> Monte Carlo -> reports.
    """

    def __init__(self, loader: AssemblageLoader, params: ParamsLoader):
        self.loader = loader
        self.params = params
        self.event_log: List[Dict[str, Any]] = []

        self.similarity: Optional[pd.DataFrame] = None
        self.graph: Optional[nx.Graph] = None
        self.metrics: Optional[pd.DataFrame] = None
        self.observed_comparison: Optional[Dict[str, Any]] = None
        self.mc_results: Optional[pd.DataFrame] = None
        self.mc_summary: Optional[pd.DataFrame] = None

    def _site_weights(self) -> Optional[pd.Series]:
        sites = self.loader.get_sites()
        column = self.params.get('sampling', 'bias_column')
        if sites is None or column is None or column not in sites.columns:
            return None
        return bias_weights(sites, column, invert=bool(self.params.get('sampling', 'invert_bias', default=False)))

    def build_network(self):
        """Similarity matrix, thresholded network and node metrics for the full data"""
        counts = self.loader.get_counts()
        if counts is None or counts.empty:
            raise ValueError("No assemblage counts loaded")

        method = self.params.get('similarity', 'method', default='proportions')
        self.similarity = similarity_matrix(counts, method)
        log_event('similarity_computed', {'sites': len(self.similarity), 'method': method}, sink=self.event_log)

        threshold = self.params.get('network', 'threshold', default=0.5)
        mode = self.params.get('network', 'threshold_mode', default='absolute')
        self.graph = graph_from_similarity(self.similarity, threshold, mode)
        self.metrics = node_metrics(self.graph)
        log_event('network_built', {'threshold': threshold, 'mode': mode, **graph_summary(self.graph)}, sink=self.event_log)

    def compare_observed(self) -> Optional[Dict[str, Any]]:
        """Compare the similarity network with an observed network (edge list or adjacency) when one is loaded"""
        observed = None
        source = None
        if self.loader.get_edges() is not None:
            observed = graph_from_edges(self.loader.get_edges())
            source = 'edges'
        elif self.loader.get_adjacency() is not None:
            observed = graph_from_adjacency(self.loader.get_adjacency())
            source = 'adjacency'
        if observed is None:
            return None

        observed_metrics = node_metrics(observed)
        self.observed_comparison = {
            'source': source,
            'edge_overlap': edge_overlap(self.graph, observed),
            'degree_spearman': compare_centrality(self.metrics, observed_metrics, 'degree'),
            'eigenvector_spearman': compare_centrality(self.metrics, observed_metrics, 'eigenvector'),
            'shared_nodes': len(set(self.graph.nodes) & set(observed.nodes)),
            'observed_summary': graph_summary(observed),
        }
        log_event('observed_compared', {
            'source': source,
            'edge_overlap': self.observed_comparison['edge_overlap']
        }, sink=self.event_log)
        return self.observed_comparison

    def run_monte_carlo(self):
        """Random vs non-random loss experiment against the full network"""
        type_weights = self.params.get('sampling', 'type_weights') or None
        experiment = MonteCarloExperiment(
            self.loader.get_counts(),
            self.params,
            site_weights=self._site_weights(),
            type_weights=type_weights,
            sink=self.event_log
        )
        self.mc_results = experiment.run()
        self.mc_summary = summarize(self.mc_results)
        log_event('monte_carlo_done', {
            'iterations': len(self.mc_results),
            'schemes': experiment.runnable_schemes()
        }, sink=self.event_log)

    def run(self, output_dir: Optional[str] = None, run_id: str = None) -> Path:
        """Run the full pipeline and write artifacts. Returns the artifacts directory."""
        output_dir = output_dir or self.params.get('reporting', 'output_dir', default='reports')
        run_id = run_id or uuid.uuid4().hex[:12]
        created_at = now_iso()
        log_event('run_started', {'run_id': run_id, 'data_path': str(self.loader.data_path)}, sink=self.event_log)

        if self.loader.get_counts() is None:
            errors = self.loader.load()
            if errors:
                log_event('data_validation', {'errors': errors}, sink=self.event_log)
        log_event('data_loaded', self.loader.summary(), sink=self.event_log)

        self.build_network()
        self.compare_observed()
        self.run_monte_carlo()

        report = ReportGenerator(output_dir, run_id=run_id)
        report.write_similarity(self.similarity)
        report.write_network(self.graph, self.metrics)
        report.write_monte_carlo(self.mc_results, self.mc_summary)
        if self.observed_comparison is not None:
            report.write_observed_comparison(self.observed_comparison)
        report.save_params_snapshot(self.params.snapshot())
        report.write_run_manifest(
            run_id,
            created_at,
            getattr(self.params, 'params_file', None),
            str(self.loader.data_path),
            self.loader.summary(),
            run_label=self.params.get('general', 'run_label')
        )

        if self.params.get('reporting', 'write_plots', default=False):
            self.write_plots(report.artifacts_dir)

        log_event('run_finished', {'run_id': run_id, 'artifacts_dir': str(report.artifacts_dir)}, sink=self.event_log)
        report.write_event_log(self.event_log)
        return report.artifacts_dir

    def write_plots(self, artifacts_dir: Path):
        """Network, heatmap and loss-curve figures"""
        from archnet.plotting import plot_network, plot_similarity_heatmap, plot_loss_curves

        plot_network(self.graph, artifacts_dir / 'network.png', title='Assemblage similarity network')
        plot_similarity_heatmap(self.similarity, artifacts_dir / 'similarity_heatmap.png')
        if not self.mc_summary.empty:
            plot_loss_curves(self.mc_summary, 'similarity_spearman', artifacts_dir / 'loss_similarity_spearman.png')
        log_event('plots_written', {'artifacts_dir': str(artifacts_dir)}, sink=self.event_log)
