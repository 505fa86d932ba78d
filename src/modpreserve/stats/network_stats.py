"""
Network summary statistics for module preservation.

Pure, stateless reductions over a network matrix, a scaled data matrix and a
correlation matrix, restricted to a module's node index set:

    weighted_degree       sum of edge weights to the other module nodes
    summary_profile       first principal component of the module's data
    node_contribution     correlation of each node with the summary profile
    correlation_vector    pairwise correlations (upper triangle)
    average_edge_weight   mean weighted degree
    module_coherence      mean squared node contribution
    correlation           Pearson correlation of two property vectors
    sign_aware_mean       mean(sign(reference) * value)

Index sets must be non-empty; callers branch on the empty case and record the
missing marker instead. Results aligned to an index set keep the caller's
order even though the matrix is visited in sorted index order.

Missing values:
    ``MISSING`` (NaN) marks statistics that cannot be computed, e.g. the
    correlation of a zero-variance vector. Nothing here raises on numeric
    degeneracy.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import linalg

__all__ = [
    'MISSING',
    'scale',
    'sort_nodes',
    'weighted_degree',
    'summary_profile',
    'node_contribution',
    'correlation_vector',
    'average_edge_weight',
    'module_coherence',
    'correlation',
    'sign_aware_mean',
]

MISSING = np.nan


def scale(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Standardise each column to zero mean and unit sample variance.

    Constant columns become all-NaN, matching R's ``scale()``.
    """
    data = np.asarray(data, dtype=np.float64)
    with np.errstate(divide='ignore', invalid='ignore'):
        centred = data - data.mean(axis=0)
        sd = data.std(axis=0, ddof=1)
        scaled = centred / sd
    scaled[:, ~(sd > 0)] = np.nan
    return scaled


def sort_nodes(idx: NDArray[np.intp]) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
    """
    Sort an index set for sequential matrix access.

    Returns:
        (sorted_idx, rank) where ``result_sorted[rank]`` restores the
        original order of anything computed on ``sorted_idx``.
    """
    idx = np.asarray(idx, dtype=np.intp)
    order = np.argsort(idx, kind='stable')
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    return idx[order], rank


def weighted_degree(network: NDArray[np.float64], idx: NDArray[np.intp]) -> NDArray[np.float64]:
    """Weighted degree of each node in ``idx`` within the subnetwork, self-weight excluded."""
    sorted_idx, rank = sort_nodes(idx)
    sub = network[np.ix_(sorted_idx, sorted_idx)]
    wd = sub.sum(axis=1) - np.diag(sub)
    return wd[rank]


def summary_profile(scaled_data: NDArray[np.float64], idx: NDArray[np.intp]) -> NDArray[np.float64]:
    """
    Summary profile (module eigengene) of the selected columns.

    The first principal component scores of the samples × nodes submatrix,
    oriented so the profile correlates non-negatively with the mean of the
    member columns. SVD alone leaves the sign arbitrary.

    Args:
        scaled_data: Samples × nodes, column-standardised.
        idx: Module node indices.

    Returns:
        One value per sample; all-missing if the submatrix holds non-finite
        values (e.g. a zero-variance node).
    """
    sorted_idx, _ = sort_nodes(idx)
    sub = scaled_data[:, sorted_idx]
    if not np.all(np.isfinite(sub)):
        return np.full(scaled_data.shape[0], MISSING)

    u, s, _ = linalg.svd(sub, full_matrices=False)
    profile = u[:, 0] * s[0]

    # Orient towards the module's average signal
    if correlation(profile, sub.mean(axis=1)) < 0:
        profile = -profile
    return profile


def node_contribution(
    scaled_data: NDArray[np.float64],
    idx: NDArray[np.intp],
    profile: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Correlation of each selected column with the summary profile, aligned to ``idx``."""
    sorted_idx, rank = sort_nodes(idx)
    sub = scaled_data[:, sorted_idx]

    with np.errstate(divide='ignore', invalid='ignore'):
        centred = sub - sub.mean(axis=0)
        p = profile - profile.mean()
        denom = np.sqrt((centred ** 2).sum(axis=0) * (p ** 2).sum())
        contrib = (centred.T @ p) / denom
    contrib[~np.isfinite(contrib)] = MISSING
    return contrib[rank]


def correlation_vector(corr: NDArray[np.float64], idx: NDArray[np.intp]) -> NDArray[np.float64]:
    """Upper triangle (diagonal excluded) of the module's correlation submatrix."""
    idx = np.asarray(idx, dtype=np.intp)
    sub = corr[np.ix_(idx, idx)]
    return sub[np.triu_indices(len(idx), k=1)]


def average_edge_weight(wd: NDArray[np.float64]) -> float:
    """Mean weighted degree across the module's nodes."""
    if len(wd) == 0:
        return MISSING
    return float(np.mean(wd))


def module_coherence(nc: NDArray[np.float64]) -> float:
    """Mean squared node contribution."""
    if len(nc) == 0:
        return MISSING
    return float(np.mean(np.square(nc)))


def correlation(x: NDArray[np.float64], y: NDArray[np.float64]) -> float:
    """
    Pearson correlation between two property vectors.

    Missing when the vectors differ in length, hold fewer than two values,
    contain non-finite values, or either has zero variance.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if len(x) != len(y) or len(x) < 2:
        return MISSING
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        return MISSING

    xc = x - x.mean()
    yc = y - y.mean()
    denom = np.sqrt(np.dot(xc, xc) * np.dot(yc, yc))
    if denom == 0:
        return MISSING
    # Clip rounding error so identical vectors give exactly 1
    return float(np.clip(np.dot(xc, yc) / denom, -1.0, 1.0))


def sign_aware_mean(x: NDArray[np.float64], y: NDArray[np.float64]) -> float:
    """
    Mean of ``y`` after aligning it to the sign pattern of reference ``x``.

    Computes ``mean(sign(x) * y)``: test values that keep the discovery sign
    count positively, sign flips count negatively, and opposite-signed
    relationships do not cancel out as they would in a plain mean.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if len(x) != len(y) or len(x) == 0:
        return MISSING
    return float(np.mean(np.sign(x) * y))
