"""
Name → index lookup tables for nodes, modules and the permutation pool.

Every statistic in the package works on integer index sets into a dataset's
matrices, while callers describe modules by node *names*. The tables built
here bridge the two:

- node name → row/column index within one dataset
- module label → ordered member node names
- module label → row index in the output containers
- the permutable index pool used to generate null distributions

Absent names are never an error: module membership may include nodes that a
given dataset does not measure, and those nodes are simply left out of the
"present" index sets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Literal, Mapping

import numpy as np
import pandas as pd
from numpy.typing import NDArray

__all__ = [
    'NullHypothesis',
    'NULL_HYPOTHESES',
    'make_index_map',
    'make_module_map',
    'get_node_indices',
    'PermutableIndexPool',
]

NullHypothesis = Literal["overlap", "all"]
NULL_HYPOTHESES: tuple[str, ...] = ("overlap", "all")


def _assignment_items(assignment: Mapping[str, str] | pd.Series) -> Iterable[tuple[str, str]]:
    """Iterate (node name, module label) pairs from a mapping or Series."""
    if isinstance(assignment, pd.Series):
        return zip(assignment.index.astype(str), assignment.astype(str))
    return ((str(node), str(label)) for node, label in assignment.items())


def make_index_map(names: Iterable[str]) -> dict[str, int]:
    """Map each name to its 0-based position in ``names``."""
    return {str(name): i for i, name in enumerate(names)}


def make_module_map(
    assignment: Mapping[str, str] | pd.Series,
    present: Mapping[str, int] | None = None,
) -> dict[str, list[str]]:
    """
    Group node names by module label.

    Args:
        assignment: Node name → module label. A Series is read as
            index = node names, values = labels.
        present: Optional node name → index table. When given, only members
            found in it are kept.

    Returns:
        Module label → member names, in order of first appearance in
        ``assignment``.
    """
    module_map: dict[str, list[str]] = {}
    for node, label in _assignment_items(assignment):
        if present is not None and node not in present:
            continue
        module_map.setdefault(label, []).append(node)
    return module_map


def get_node_indices(
    module: str,
    module_map: Mapping[str, list[str]],
    index_map: Mapping[str, int],
) -> NDArray[np.intp]:
    """Indices of the module's members that are present in ``index_map``."""
    members = module_map.get(module, [])
    return np.fromiter(
        (index_map[node] for node in members if node in index_map),
        dtype=np.intp,
    )


@dataclass(frozen=True)
class PermutableIndexPool:
    """
    Test-dataset node indices eligible for permutation.

    ``indices`` is the ordered pool that workers shuffle; ``positions`` maps
    each eligible node name to its slot in that pool. After a shuffle, a
    module keeps its size but its members are assigned whatever test indices
    now occupy their slots.

    Attributes:
        indices: Test-dataset indices in pool order.
        positions: Node name → position in ``indices``.
        null_hypothesis: "overlap" (assignment nodes present in the test
            dataset) or "all" (every test-dataset node).
    """

    indices: NDArray[np.intp]
    positions: dict[str, int] = field(repr=False)
    null_hypothesis: NullHypothesis = "overlap"

    @classmethod
    def build(
        cls,
        null_hypothesis: NullHypothesis,
        assignment: Mapping[str, str] | pd.Series,
        test_index_map: Mapping[str, int],
        test_names: Iterable[str],
    ) -> PermutableIndexPool:
        """
        Build the pool for the requested null hypothesis.

        Raises:
            ValueError: If ``null_hypothesis`` is not "overlap" or "all".
        """
        if null_hypothesis == "overlap":
            candidates = (node for node, _ in _assignment_items(assignment))
        elif null_hypothesis == "all":
            candidates = (str(name) for name in test_names)
        else:
            raise ValueError(
                f"Unknown null hypothesis: {null_hypothesis!r}. "
                f"Expected one of {NULL_HYPOTHESES}"
            )

        positions: dict[str, int] = {}
        indices: list[int] = []
        for node in candidates:
            if node in test_index_map and node not in positions:
                positions[node] = len(indices)
                indices.append(test_index_map[node])

        return cls(
            indices=np.asarray(indices, dtype=np.intp),
            positions=positions,
            null_hypothesis=null_hypothesis,
        )

    def __len__(self) -> int:
        return len(self.indices)

    def draw(self, members: Iterable[str], shuffled: NDArray[np.intp]) -> NDArray[np.intp]:
        """
        Indices assigned to ``members`` under the shuffled pool order.

        Members outside the pool are skipped, so the result has one entry per
        eligible member, in member order.
        """
        return np.fromiter(
            (shuffled[self.positions[node]] for node in members if node in self.positions),
            dtype=np.intp,
        )
