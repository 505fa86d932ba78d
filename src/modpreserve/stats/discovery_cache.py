"""
Discovery-side reference statistics, computed once per module.

Every preservation statistic compares a test-side property vector against the
same discovery-side vector. The weighted degree, node contribution and
correlation vector of each module in the discovery dataset are therefore
computed a single time before any permutation work and shared read-only by
the observed computation and all permutation workers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterator, Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from modpreserve.core.index_maps import get_node_indices
from modpreserve.stats.network_stats import (
    correlation_vector,
    node_contribution,
    summary_profile,
    weighted_degree,
)
from modpreserve.stats.progress import check_interrupt

if TYPE_CHECKING:
    from modpreserve.core.dataset import Dataset

logger = logging.getLogger(__name__)

_EMPTY = np.empty(0, dtype=np.float64)


@dataclass(frozen=True)
class ModuleReference:
    """Discovery-side property vectors of one module."""

    weighted_degree: NDArray[np.float64]
    node_contribution: NDArray[np.float64]
    correlation_vector: NDArray[np.float64]

    @property
    def n_nodes(self) -> int:
        return len(self.weighted_degree)


class DiscoveryStatisticsCache(Mapping[str, ModuleReference]):
    """
    Module label → ModuleReference for the discovery dataset.

    Built with each module's discovery-present node indices, which may differ
    in size from the module's test-present indices. Read-only after
    construction.
    """

    def __init__(self, references: dict[str, ModuleReference]):
        self._references = references

    @classmethod
    def build(
        cls,
        discovery: Dataset,
        module_map: Mapping[str, list[str]],
        modules: Sequence[str],
        interrupt_check: Callable[[], bool] | None = None,
    ) -> DiscoveryStatisticsCache:
        """
        Compute the reference vectors for every requested module.

        Raises:
            ComputationInterrupted: If ``interrupt_check`` fires between steps.
        """
        references: dict[str, ModuleReference] = {}
        scaled = discovery.scaled_data

        for module in modules:
            idx = get_node_indices(module, module_map, discovery.index_map)
            check_interrupt(interrupt_check)

            if len(idx) == 0:
                logger.debug("Module %s has no nodes in the discovery dataset", module)
                references[module] = ModuleReference(_EMPTY, _EMPTY, _EMPTY)
                continue

            cv = correlation_vector(discovery.correlation, idx)
            check_interrupt(interrupt_check)
            wd = weighted_degree(discovery.network, idx)
            check_interrupt(interrupt_check)
            sp = summary_profile(scaled, idx)
            check_interrupt(interrupt_check)
            nc = node_contribution(scaled, idx, sp)
            check_interrupt(interrupt_check)

            references[module] = ModuleReference(
                weighted_degree=wd,
                node_contribution=nc,
                correlation_vector=cv,
            )

        return cls(references)

    def __getitem__(self, module: str) -> ModuleReference:
        return self._references[module]

    def __iter__(self) -> Iterator[str]:
        return iter(self._references)

    def __len__(self) -> int:
        return len(self._references)
