"""Random and non-random data-loss schemes for assemblage count matrices"""
import numpy as np
import pandas as pd
from typing import Callable, Dict, Optional, Union


def _check_fraction(fraction: float):
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"Loss fraction must be in [0, 1], got {fraction}")


def _n_sites_to_remove(n_sites: int, fraction: float, min_sites: int) -> int:
    n_remove = int(round(fraction * n_sites))
    return max(0, min(n_remove, n_sites - min_sites))


def random_site_loss(
    counts: pd.DataFrame,
    fraction: float,
    rng: np.random.Generator,
    min_sites: int = 2
) -> pd.DataFrame:
    """Remove round(fraction * n) whole assemblages chosen uniformly at random"""
    _check_fraction(fraction)
    n_remove = _n_sites_to_remove(len(counts), fraction, min_sites)
    if n_remove == 0:
        return counts.copy()
    drop_idx = rng.choice(len(counts), size=n_remove, replace=False)
    return counts.drop(index=counts.index[drop_idx])


def weighted_site_loss(
    counts: pd.DataFrame,
    fraction: float,
    rng: np.random.Generator,
    weights: pd.Series,
    min_sites: int = 2
) -> pd.DataFrame:
    """
    Remove round(fraction * n) assemblages, each drawn without replacement
    with probability proportional to its weight.

    Sites missing from `weights` get the mean weight.
    """
    _check_fraction(fraction)
    n_remove = _n_sites_to_remove(len(counts), fraction, min_sites)
    if n_remove == 0:
        return counts.copy()

    w = pd.to_numeric(weights, errors='coerce').reindex(counts.index)
    fill = w.mean() if w.notna().any() else 1.0
    w = w.fillna(fill).to_numpy(dtype=float)
    if (w < 0).any():
        raise ValueError("Site loss weights must be non-negative")

    if w.sum() == 0:
        w = np.ones_like(w)
    if (w > 0).sum() < n_remove:
        # numpy needs at least n_remove non-zero probabilities
        w = np.where(w > 0, w, w[w > 0].min() * 1e-6)

    p = w / w.sum()
    drop_idx = rng.choice(len(counts), size=n_remove, replace=False, p=p)
    return counts.drop(index=counts.index[drop_idx])


def random_artifact_loss(
    counts: pd.DataFrame,
    fraction: float,
    rng: np.random.Generator,
    min_sites: int = 2
) -> pd.DataFrame:
    """Each artifact is lost independently with probability `fraction` (binomial thinning)"""
    _check_fraction(fraction)
    kept = rng.binomial(counts.to_numpy(dtype=np.int64), 1.0 - fraction)
    return pd.DataFrame(kept, index=counts.index, columns=counts.columns)


def weighted_artifact_loss(
    counts: pd.DataFrame,
    fraction: float,
    rng: np.random.Generator,
    type_weights: Union[pd.Series, Dict[str, float]],
    min_sites: int = 2
) -> pd.DataFrame:
    """
    Type-biased thinning: type t is lost with probability fraction * w_t / mean(w),
    clipped to [0, 1]. Types missing from `type_weights` get the mean weight.
    """
    _check_fraction(fraction)
    w = pd.Series(type_weights, dtype=float).reindex(counts.columns)
    fill = w.mean() if w.notna().any() else 1.0
    w = w.fillna(fill)
    if (w < 0).any():
        raise ValueError("Type loss weights must be non-negative")

    mean_w = w.mean()
    if mean_w == 0:
        loss_p = np.zeros(len(w))
    else:
        loss_p = np.clip(fraction * w.to_numpy() / mean_w, 0.0, 1.0)

    keep_p = np.broadcast_to(1.0 - loss_p, counts.shape)
    kept = rng.binomial(counts.to_numpy(dtype=np.int64), keep_p)
    return pd.DataFrame(kept, index=counts.index, columns=counts.columns)


LOSS_SCHEMES: Dict[str, Callable[..., pd.DataFrame]] = {
    'random_site': random_site_loss,
    'weighted_site': weighted_site_loss,
    'random_artifact': random_artifact_loss,
    'weighted_artifact': weighted_artifact_loss,
}

# Schemes that need a bias vector to run
WEIGHTED_SCHEMES = {'weighted_site': 'site_weights', 'weighted_artifact': 'type_weights'}


def apply_loss(
    scheme: str,
    counts: pd.DataFrame,
    fraction: float,
    rng: np.random.Generator,
    site_weights: Optional[pd.Series] = None,
    type_weights: Optional[Union[pd.Series, Dict[str, float]]] = None,
    min_sites: int = 2
) -> pd.DataFrame:
    """Dispatch to a registered loss scheme"""
    if scheme not in LOSS_SCHEMES:
        raise ValueError(f"Unknown loss scheme '{scheme}', expected one of {sorted(LOSS_SCHEMES)}")

    if scheme == 'weighted_site':
        if site_weights is None:
            raise ValueError("weighted_site loss requires site_weights")
        return weighted_site_loss(counts, fraction, rng, site_weights, min_sites=min_sites)
    if scheme == 'weighted_artifact':
        if type_weights is None or len(type_weights) == 0:
            raise ValueError("weighted_artifact loss requires type_weights")
        return weighted_artifact_loss(counts, fraction, rng, type_weights, min_sites=min_sites)

    return LOSS_SCHEMES[scheme](counts, fraction, rng, min_sites=min_sites)


def bias_weights(sites: pd.DataFrame, column: str, invert: bool = False) -> pd.Series:
    """
    Site loss weights from a site attribute.

    With invert=True small values weigh more, e.g. small excavated area
    makes an assemblage more likely to be lost.
    """
    if column not in sites.columns:
        raise ValueError(f"Site attribute '{column}' not found")
    values = pd.to_numeric(sites[column], errors='coerce')
    if (values < 0).any():
        raise ValueError(f"Site attribute '{column}' has negative values")

    if invert:
        inverse = 1.0 / values.replace(0, np.nan)
        # Zero-valued sites get the largest weight
        values = inverse.fillna(inverse.max() if inverse.notna().any() else 1.0)
        values[pd.to_numeric(sites[column], errors='coerce').isna()] = np.nan

    return values.rename('weight')
