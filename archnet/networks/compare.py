"""Compare a full network against one rebuilt from reduced data"""
import numpy as np
import pandas as pd
import networkx as nx
from typing import Dict

from archnet.similarity.jaccard import upper_triangle

MIN_PAIRS = 3


def _spearman(x: pd.Series, y: pd.Series) -> float:
    paired = pd.concat([x, y], axis=1, join='inner').dropna()
    if len(paired) < MIN_PAIRS:
        return np.nan
    # Spearman = Pearson on average ranks
    ranks = paired.rank()
    return float(ranks.iloc[:, 0].corr(ranks.iloc[:, 1]))


def compare_similarity(full: pd.DataFrame, reduced: pd.DataFrame) -> float:
    """Spearman correlation of pairwise similarities over the site pairs both matrices share"""
    shared = [s for s in full.index if s in reduced.index]
    if len(shared) < 2:
        return np.nan
    full_tri = upper_triangle(full.loc[shared, shared])
    reduced_tri = upper_triangle(reduced.loc[shared, shared])
    return _spearman(full_tri, reduced_tri)


def compare_centrality(full_metrics: pd.DataFrame, reduced_metrics: pd.DataFrame, column: str = 'degree') -> float:
    """Spearman correlation of a node metric over shared nodes"""
    if column not in full_metrics.columns or column not in reduced_metrics.columns:
        raise ValueError(f"Metric '{column}' missing from node metrics")
    return _spearman(full_metrics[column], reduced_metrics[column])


def _edge_set(G: nx.Graph, nodes: set) -> set:
    edges = set()
    for u, v in G.edges():
        if u in nodes and v in nodes:
            edges.add((u, v) if G.is_directed() else frozenset((u, v)))
    return edges


def edge_overlap(G_full: nx.Graph, G_reduced: nx.Graph) -> float:
    """Jaccard index of the two edge sets, restricted to nodes present in both graphs"""
    shared = set(G_full.nodes) & set(G_reduced.nodes)
    full_edges = _edge_set(G_full, shared)
    reduced_edges = _edge_set(G_reduced, shared)
    union = full_edges | reduced_edges
    if not union:
        return 1.0
    return len(full_edges & reduced_edges) / len(union)


def compare_networks(
    full_sim: pd.DataFrame,
    reduced_sim: pd.DataFrame,
    G_full: nx.Graph,
    G_reduced: nx.Graph,
    full_metrics: pd.DataFrame,
    reduced_metrics: pd.DataFrame
) -> Dict[str, float]:
    """Bundle of comparison statistics between a full and reduced network"""
    return {
        'similarity_spearman': compare_similarity(full_sim, reduced_sim),
        'degree_spearman': compare_centrality(full_metrics, reduced_metrics, 'degree'),
        'eigenvector_spearman': compare_centrality(full_metrics, reduced_metrics, 'eigenvector'),
        'edge_overlap': edge_overlap(G_full, G_reduced),
        'density': float(nx.density(G_reduced)) if G_reduced.number_of_nodes() > 1 else 0.0,
    }
