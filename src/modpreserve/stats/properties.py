"""
Per-module network properties in a single dataset.

Unlike ``module_preservation`` nothing is compared or permuted: the module
properties are computed once in one dataset and returned labelled by node and
sample names. Module members absent from the dataset are kept in the output
with missing values so that results from different datasets line up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Mapping, Sequence

import numpy as np
import pandas as pd

from modpreserve.core.index_maps import get_node_indices, make_index_map, make_module_map
from modpreserve.stats.network_stats import (
    MISSING,
    average_edge_weight,
    module_coherence,
    node_contribution,
    summary_profile,
    weighted_degree,
)
from modpreserve.stats.progress import check_interrupt

if TYPE_CHECKING:
    from modpreserve.core.dataset import Dataset

logger = logging.getLogger(__name__)


@dataclass
class ModuleProperties:
    """
    Network properties of one module.

    ``summary``, ``contribution`` and ``coherence`` are None when the dataset
    has no data matrix.
    """

    degree: pd.Series
    avg_weight: float
    summary: pd.Series | None = None
    contribution: pd.Series | None = None
    coherence: float | None = None


def network_properties(
    dataset: Dataset,
    module_assignments: Mapping[str, str] | pd.Series,
    modules: Sequence[str],
    interrupt_check: Callable[[], bool] | None = None,
) -> dict[str, ModuleProperties]:
    """
    Compute weighted degree and average edge weight for each module, plus the
    summary profile, node contribution and coherence when the dataset has a
    data matrix.

    Args:
        dataset: Dataset to compute the properties in.
        module_assignments: Node name → module label; may include nodes the
            dataset does not contain.
        modules: Modules to compute properties for.
        interrupt_check: Host interrupt signal polled between steps.

    Returns:
        Module label → ModuleProperties, in ``modules`` order. ``degree`` and
        ``contribution`` are indexed by every module member; ``summary`` by
        sample name.

    Raises:
        ComputationInterrupted: If ``interrupt_check`` fires.
    """
    module_map = make_module_map(module_assignments)
    present_map = make_module_map(module_assignments, dataset.index_map)
    check_interrupt(interrupt_check)

    results: dict[str, ModuleProperties] = {}
    for module in (str(m) for m in modules):
        members = module_map.get(module, [])
        idx = get_node_indices(module, present_map, dataset.index_map)
        # Positions of the present nodes within the member list
        slots = get_node_indices(module, present_map, make_index_map(members))

        degree = pd.Series(MISSING, index=members, dtype=np.float64)
        props = ModuleProperties(degree=degree, avg_weight=MISSING)
        if dataset.has_data:
            props.contribution = pd.Series(MISSING, index=members, dtype=np.float64)
            props.summary = pd.Series(MISSING, index=dataset.sample_names, dtype=np.float64)
            props.coherence = MISSING

        if len(idx) == 0:
            logger.debug("Module %s has no nodes in the dataset", module)
            results[module] = props
            continue

        wd = weighted_degree(dataset.network, idx)
        degree.iloc[slots] = wd
        props.avg_weight = average_edge_weight(wd)
        check_interrupt(interrupt_check)

        if dataset.has_data:
            sp = summary_profile(dataset.scaled_data, idx)
            check_interrupt(interrupt_check)
            nc = node_contribution(dataset.scaled_data, idx, sp)
            props.contribution.iloc[slots] = nc
            props.summary[:] = sp
            props.coherence = module_coherence(nc)
            check_interrupt(interrupt_check)

        results[module] = props

    return results
