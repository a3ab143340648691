"""Weighted Jaccard similarity between assemblages"""
import numpy as np
import pandas as pd
from typing import Sequence, Union

NORMALIZATION_METHODS = ('counts', 'proportions', 'presence')

ArrayLike = Union[Sequence[float], np.ndarray, pd.Series]


def weighted_jaccard(a: ArrayLike, b: ArrayLike) -> float:
    """
    Weighted Jaccard similarity: sum(min(a_i, b_i)) / sum(max(a_i, b_i)).

    Returns nan when both vectors are all zero.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)

    if a.shape != b.shape:
        raise ValueError(f"Vectors must have the same length: {a.shape} vs {b.shape}")
    if (a < 0).any() or (b < 0).any():
        raise ValueError("Weighted Jaccard is only defined for non-negative values")

    denominator = np.maximum(a, b).sum()
    if denominator == 0:
        return np.nan

    return float(np.minimum(a, b).sum() / denominator)


def normalize_counts(counts: pd.DataFrame, method: str = 'proportions') -> pd.DataFrame:
    """
    Normalize a site x type count matrix.

    - counts: unchanged
    - proportions: each row divided by its total (all-zero rows stay zero)
    - presence: 1 where count > 0
    """
    if method not in NORMALIZATION_METHODS:
        raise ValueError(f"Unknown normalization '{method}', expected one of {NORMALIZATION_METHODS}")

    if method == 'counts':
        return counts.astype(float)

    if method == 'presence':
        return (counts > 0).astype(float)

    totals = counts.sum(axis=1).replace(0, np.nan)
    return counts.div(totals, axis=0).fillna(0.0)


def similarity_matrix(counts: pd.DataFrame, method: str = 'proportions') -> pd.DataFrame:
    """
    Pairwise weighted Jaccard similarity between all sites.

    Returns a symmetric site x site DataFrame. The diagonal is 1.0, or nan
    for empty assemblages.
    """
    values = normalize_counts(counts, method).to_numpy()
    sites = list(counts.index)
    n = len(sites)

    sim = np.full((n, n), np.nan)
    for i in range(n):
        sim[i, i] = 1.0 if values[i].sum() > 0 else np.nan
        for j in range(i + 1, n):
            s = weighted_jaccard(values[i], values[j])
            sim[i, j] = s
            sim[j, i] = s

    return pd.DataFrame(sim, index=sites, columns=sites)


def upper_triangle(matrix: pd.DataFrame) -> pd.Series:
    """Values above the diagonal, indexed by (site_a, site_b)"""
    sites = list(matrix.index)
    rows, cols = np.triu_indices(len(sites), k=1)
    index = pd.MultiIndex.from_arrays(
        [[sites[i] for i in rows], [sites[j] for j in cols]],
        names=['site_a', 'site_b']
    )
    return pd.Series(matrix.to_numpy()[rows, cols], index=index, name='similarity')
