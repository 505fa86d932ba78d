"""
Dataset container for module preservation analysis.

A Dataset bundles the three node-indexed matrices of one network (data,
correlation, network) together with the node and sample names that label
them. Row/column order of the correlation and network matrices, and column
order of the data matrix, must follow ``node_names``; this is a precondition
checked upstream, not here.

The column-standardised data matrix is computed lazily once and shared
read-only by every statistic, including all permutation workers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from modpreserve.core.index_maps import make_index_map
from modpreserve.stats.network_stats import scale


@dataclass
class Dataset:
    """
    One dataset's matrices and labels.

    Attributes:
        network: Symmetric nodes × nodes matrix of edge weights.
        node_names: Node labels in matrix order.
        correlation: Symmetric nodes × nodes correlation matrix, or None.
        data: Samples × nodes data matrix, or None.
        sample_names: Row labels of ``data``; defaults to positional labels.

    Examples:
        >>> ds = Dataset.from_frames(net_df, corr_df, data_df)
        >>> ds.index_map["GENE_00001"]
        1
    """

    network: NDArray[np.float64]
    node_names: list[str]
    correlation: NDArray[np.float64] | None = None
    data: NDArray[np.float64] | None = None
    sample_names: list[str] | None = field(default=None)

    def __post_init__(self):
        self.network = np.asarray(self.network, dtype=np.float64)
        self.node_names = [str(n) for n in self.node_names]
        if self.correlation is not None:
            self.correlation = np.asarray(self.correlation, dtype=np.float64)
        if self.data is not None:
            self.data = np.asarray(self.data, dtype=np.float64)
            if self.sample_names is None:
                self.sample_names = [f"sample.{i + 1}" for i in range(self.data.shape[0])]
            else:
                self.sample_names = [str(s) for s in self.sample_names]

    @classmethod
    def from_frames(
        cls,
        network: pd.DataFrame,
        correlation: pd.DataFrame | None = None,
        data: pd.DataFrame | None = None,
    ) -> Dataset:
        """Build a Dataset from labelled frames; node names come from ``network.columns``."""
        return cls(
            network=network.to_numpy(dtype=np.float64),
            node_names=list(network.columns),
            correlation=None if correlation is None else correlation.to_numpy(dtype=np.float64),
            data=None if data is None else data.to_numpy(dtype=np.float64),
            sample_names=None if data is None else list(data.index),
        )

    @property
    def n_nodes(self) -> int:
        return len(self.node_names)

    @property
    def has_data(self) -> bool:
        return self.data is not None

    @cached_property
    def index_map(self) -> dict[str, int]:
        """Node name → matrix index."""
        return make_index_map(self.node_names)

    @cached_property
    def scaled_data(self) -> NDArray[np.float64]:
        """Column-standardised data matrix (zero mean, unit variance)."""
        if self.data is None:
            raise ValueError("Dataset has no data matrix")
        return scale(self.data)
