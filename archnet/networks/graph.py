"""Graph construction and node-level network metrics"""
import numpy as np
import pandas as pd
import networkx as nx
from typing import Dict, Any

from archnet.similarity.jaccard import upper_triangle

THRESHOLD_MODES = ('absolute', 'quantile')


def resolve_threshold(sim: pd.DataFrame, threshold: float, mode: str = 'absolute') -> float:
    """Turn a threshold setting into an absolute similarity cutoff"""
    if mode not in THRESHOLD_MODES:
        raise ValueError(f"Unknown threshold mode '{mode}', expected one of {THRESHOLD_MODES}")
    if mode == 'absolute':
        return float(threshold)
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"Quantile threshold must be in [0, 1], got {threshold}")
    values = upper_triangle(sim).dropna()
    if values.empty:
        return np.inf
    return float(values.quantile(threshold))


def graph_from_similarity(sim: pd.DataFrame, threshold: float = 0.5, mode: str = 'absolute') -> nx.Graph:
    """
    Build an undirected graph linking sites whose similarity >= threshold.

    Every site becomes a node; edges carry the similarity as 'weight'.
    """
    cutoff = resolve_threshold(sim, threshold, mode)

    G = nx.Graph()
    G.add_nodes_from(sim.index)
    for (a, b), value in upper_triangle(sim).items():
        if pd.notna(value) and value >= cutoff:
            G.add_edge(a, b, weight=float(value))
    return G


def graph_from_edges(edges: pd.DataFrame, directed: bool = False) -> nx.Graph:
    """Build a graph from a source/target[/weight] edge list"""
    G = nx.DiGraph() if directed else nx.Graph()
    has_weight = 'weight' in edges.columns
    for row in edges.itertuples(index=False):
        weight = float(row.weight) if has_weight and pd.notna(row.weight) else 1.0
        G.add_edge(str(row.source), str(row.target), weight=weight)
    return G


def graph_from_adjacency(adj: pd.DataFrame, directed: bool = False) -> nx.Graph:
    """
    Build a graph from a square adjacency table (non-zero cell = edge weight).
    """
    if adj.shape[0] != adj.shape[1]:
        raise ValueError(f"Adjacency table must be square, got {adj.shape}")
    rows = [str(i) for i in adj.index]
    cols = [str(c) for c in adj.columns]
    if rows != cols:
        raise ValueError("Adjacency table row and column labels must match")

    G = nx.DiGraph() if directed else nx.Graph()
    G.add_nodes_from(rows)
    values = adj.to_numpy(dtype=float)
    for i, source in enumerate(rows):
        start = 0 if directed else i + 1
        for j in range(start, len(cols)):
            if i == j:
                continue
            weight = values[i, j]
            if not directed:
                # Undirected tables may be filled on one side only
                weight = max(weight, values[j, i])
            if pd.notna(weight) and weight != 0:
                G.add_edge(source, cols[j], weight=float(weight))
    return G


def _eigenvector(G: nx.Graph) -> Dict[Any, float]:
    if G.number_of_edges() == 0:
        return {n: 0.0 for n in G.nodes}
    try:
        return nx.eigenvector_centrality(G, max_iter=1000, weight='weight')
    except nx.PowerIterationFailedConvergence:
        return {n: 0.0 for n in G.nodes}


def node_metrics(G: nx.Graph) -> pd.DataFrame:
    """Per-node degree, strength, betweenness, eigenvector centrality and clustering"""
    columns = ['degree', 'strength', 'betweenness', 'eigenvector', 'clustering']
    if G.number_of_nodes() == 0:
        return pd.DataFrame(columns=columns, dtype=float)

    degree = dict(G.degree())
    strength = dict(G.degree(weight='weight'))
    betweenness = nx.betweenness_centrality(G)
    eigenvector = _eigenvector(G)
    clustering = nx.clustering(G)

    df = pd.DataFrame({
        'degree': pd.Series(degree, dtype=float),
        'strength': pd.Series(strength, dtype=float),
        'betweenness': pd.Series(betweenness, dtype=float),
        'eigenvector': pd.Series(eigenvector, dtype=float),
        'clustering': pd.Series(clustering, dtype=float),
    })
    df.index.name = 'site'
    return df[columns]


def graph_summary(G: nx.Graph) -> Dict[str, Any]:
    """Whole-graph descriptive statistics"""
    n = G.number_of_nodes()
    if n == 0:
        return {
            'nodes': 0, 'edges': 0, 'density': 0.0, 'components': 0,
            'largest_component': 0, 'mean_degree': 0.0, 'mean_clustering': 0.0
        }

    if G.is_directed():
        components = list(nx.weakly_connected_components(G))
    else:
        components = list(nx.connected_components(G))

    return {
        'nodes': n,
        'edges': G.number_of_edges(),
        'density': float(nx.density(G)),
        'components': len(components),
        'largest_component': max(len(c) for c in components),
        'mean_degree': float(np.mean([d for _, d in G.degree()])),
        'mean_clustering': float(nx.average_clustering(G)),
    }


def edge_frame(G: nx.Graph) -> pd.DataFrame:
    """Edge list as a DataFrame (source, target, weight)"""
    rows = [
        {'source': u, 'target': v, 'weight': data.get('weight', 1.0)}
        for u, v, data in G.edges(data=True)
    ]
    return pd.DataFrame(rows, columns=['source', 'target', 'weight'])
