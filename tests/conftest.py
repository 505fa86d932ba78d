"""
Pytest configuration and shared fixtures.

This module provides synthetic discovery/test datasets with planted module
structure for all test suites.
"""

import numpy as np
import pandas as pd
import pytest

from modpreserve.core.dataset import Dataset


MODULE_SIZES = {"1": 6, "2": 5, "3": 4}
N_BACKGROUND = 5


def generate_module_dataset(
    n_samples: int = 40,
    module_sizes: dict[str, int] | None = None,
    n_background: int = N_BACKGROUND,
    noise: float = 0.6,
    seed: int = 42,
) -> tuple[Dataset, dict[str, str]]:
    """
    Generate a dataset whose nodes form correlated modules.

    Args:
        n_samples: Number of samples (rows of the data matrix)
        module_sizes: Module label -> number of member nodes
        n_background: Unassigned nodes with independent noise
        noise: Standard deviation of per-node noise around the module signal
        seed: Random seed for reproducibility

    Returns:
        (Dataset, module assignment of node name -> module label)

    Design:
        - Each module shares one latent signal; members load on it with
          random sign and strength, so weighted degrees and contributions
          vary within a module
        - Network = |correlation| ** 2, a soft-thresholded co-expression network
    """
    module_sizes = module_sizes or MODULE_SIZES
    rng = np.random.default_rng(seed)

    columns = []
    names = []
    assignment = {}
    for label, size in module_sizes.items():
        signal = rng.standard_normal(n_samples)
        for j in range(size):
            loading = rng.uniform(0.5, 1.5) * (1 if j % 3 else -1)
            columns.append(loading * signal + rng.normal(0, noise, n_samples))
            name = f"node_{len(names):02d}"
            names.append(name)
            assignment[name] = label

    for _ in range(n_background):
        columns.append(rng.standard_normal(n_samples))
        names.append(f"node_{len(names):02d}")

    data = np.column_stack(columns)
    corr = np.corrcoef(data, rowvar=False)
    net = np.abs(corr) ** 2

    dataset = Dataset(
        network=net,
        node_names=names,
        correlation=corr,
        data=data,
        sample_names=[f"S{i:03d}" for i in range(n_samples)],
    )
    return dataset, assignment


@pytest.fixture
def discovery_dataset():
    """Discovery dataset and its module assignment."""
    return generate_module_dataset(seed=42)


@pytest.fixture
def test_dataset():
    """Independent test dataset with the same node names and module structure."""
    dataset, _ = generate_module_dataset(seed=7)
    return dataset


@pytest.fixture
def four_node_network():
    """
    4-node network {A, B, C, D} with A-B=2, A-C=4, B-C=6 and a non-zero
    diagonal that weighted degree must ignore.
    """
    names = ["A", "B", "C", "D"]
    pos = {name: i for i, name in enumerate(names)}
    values = np.zeros((4, 4))
    for a, b, w in [("A", "B", 2.0), ("A", "C", 4.0), ("B", "C", 6.0)]:
        values[pos[a], pos[b]] = w
        values[pos[b], pos[a]] = w
    np.fill_diagonal(values, 1.0)
    return pd.DataFrame(values, index=names, columns=names)
