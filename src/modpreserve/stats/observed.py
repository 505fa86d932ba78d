"""
Observed module preservation statistics.

The seven statistics for one module are produced by a single kernel,
``preservation_statistics``, used both here on the real test-dataset node
assignment and by the permutation workers on permuted assignments.

Column order of every statistics row:

    0 avg.weight   average edge weight of the test module
    1 coherence    coherence of the test module
    2 cor.cor      correlation of discovery and test correlation vectors
    3 cor.degree   correlation of discovery and test weighted degrees
    4 cor.contrib  correlation of discovery and test node contributions
    5 avg.cor      sign-aware mean test correlation
    6 avg.contrib  sign-aware mean test node contribution
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from modpreserve.core.index_maps import get_node_indices
from modpreserve.stats.discovery_cache import DiscoveryStatisticsCache, ModuleReference
from modpreserve.stats.network_stats import (
    MISSING,
    average_edge_weight,
    correlation,
    correlation_vector,
    module_coherence,
    node_contribution,
    sign_aware_mean,
    summary_profile,
    weighted_degree,
)
from modpreserve.stats.progress import check_interrupt

if TYPE_CHECKING:
    from modpreserve.core.dataset import Dataset

logger = logging.getLogger(__name__)

STATISTIC_NAMES: tuple[str, ...] = (
    "avg.weight",
    "coherence",
    "cor.cor",
    "cor.degree",
    "cor.contrib",
    "avg.cor",
    "avg.contrib",
)
N_STATISTICS = len(STATISTIC_NAMES)


def _never_cancelled() -> bool:
    return False


def preservation_statistics(
    test: Dataset,
    idx: NDArray[np.intp],
    reference: ModuleReference,
    cancelled: Callable[[], bool] = _never_cancelled,
) -> NDArray[np.float64] | None:
    """
    Compute the seven preservation statistics of one module.

    Args:
        test: Test dataset.
        idx: Test-dataset node indices assigned to the module. Must be
            non-empty.
        reference: Discovery-side vectors of the module.
        cancelled: Polled after each of the four property computations.

    Returns:
        Length-7 array in STATISTIC_NAMES order, or None if cancelled
        part-way through.
    """
    scaled = test.scaled_data

    cv = correlation_vector(test.correlation, idx)
    if cancelled():
        return None
    wd = weighted_degree(test.network, idx)
    if cancelled():
        return None
    sp = summary_profile(scaled, idx)
    if cancelled():
        return None
    nc = node_contribution(scaled, idx, sp)
    if cancelled():
        return None

    return np.array([
        average_edge_weight(wd),
        module_coherence(nc),
        correlation(reference.correlation_vector, cv),
        correlation(reference.weighted_degree, wd),
        correlation(reference.node_contribution, nc),
        sign_aware_mean(reference.correlation_vector, cv),
        sign_aware_mean(reference.node_contribution, nc),
    ])


def compute_observed_statistics(
    test: Dataset,
    module_map: Mapping[str, list[str]],
    modules: Sequence[str],
    cache: DiscoveryStatisticsCache,
    interrupt_check: Callable[[], bool] | None = None,
) -> NDArray[np.float64]:
    """
    Observed statistics for every module on the real test node assignment.

    Modules with no nodes in the test dataset keep an all-missing row.

    Returns:
        modules × 7 array, rows in ``modules`` order.
    """
    observed = np.full((len(modules), N_STATISTICS), MISSING)

    for row, module in enumerate(modules):
        check_interrupt(interrupt_check)
        idx = get_node_indices(module, module_map, test.index_map)
        if len(idx) == 0:
            logger.debug("Module %s has no nodes in the test dataset", module)
            continue
        observed[row] = preservation_statistics(test, idx, cache[module])

    return observed
