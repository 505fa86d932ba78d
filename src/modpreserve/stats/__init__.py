"""
Statistical core for module preservation.

Exports:
- Network summary statistics (weighted degree, summary profile, ...)
- Observed preservation statistics and the statistic names
- The threaded null distribution engine
- Cancellation and progress primitives
"""

from .network_stats import (
    MISSING,
    average_edge_weight,
    correlation,
    correlation_vector,
    module_coherence,
    node_contribution,
    scale,
    sign_aware_mean,
    summary_profile,
    weighted_degree,
)
from .observed import STATISTIC_NAMES
from .null_distribution import NullDistributionEngine, partition_permutations
from .progress import CancellationToken, ProgressCounters, ProgressMonitor

__all__ = [
    "MISSING",
    "average_edge_weight",
    "correlation",
    "correlation_vector",
    "module_coherence",
    "node_contribution",
    "scale",
    "sign_aware_mean",
    "summary_profile",
    "weighted_degree",
    "STATISTIC_NAMES",
    "NullDistributionEngine",
    "partition_permutations",
    "CancellationToken",
    "ProgressCounters",
    "ProgressMonitor",
]
