"""
Core data structures for module preservation analysis.

1. Dataset: one network's data, correlation and network matrices with labels
2. Index maps: name → index tables for nodes, modules and the permutation pool
"""

from modpreserve.core.index_maps import (
    PermutableIndexPool,
    get_node_indices,
    make_index_map,
    make_module_map,
)
from modpreserve.core.dataset import Dataset

__all__ = [
    'Dataset',
    'PermutableIndexPool',
    'get_node_indices',
    'make_index_map',
    'make_module_map',
]
