"""
modpreserve - Module preservation statistics for weighted networks.

Quantifies whether modules defined in a discovery network are reproduced in
a test network, and builds permutation null distributions for the seven
preservation statistics using parallel worker threads.
"""

__version__ = "0.1.0"

from modpreserve.core.dataset import Dataset
from modpreserve.config import PreservationConfig, load_preservation_config
from modpreserve.stats.preservation import PreservationResult, module_preservation
from modpreserve.stats.progress import CancellationToken, ComputationInterrupted
from modpreserve.stats.properties import ModuleProperties, network_properties

__all__ = [
    "Dataset",
    "PreservationConfig",
    "load_preservation_config",
    "PreservationResult",
    "module_preservation",
    "CancellationToken",
    "ComputationInterrupted",
    "ModuleProperties",
    "network_properties",
]
