"""Tests for the network summary statistics."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from modpreserve.stats.network_stats import (
    average_edge_weight,
    correlation,
    correlation_vector,
    module_coherence,
    node_contribution,
    scale,
    sign_aware_mean,
    sort_nodes,
    summary_profile,
    weighted_degree,
)


class TestWeightedDegree:
    """Tests for weighted_degree() and average_edge_weight()."""

    def test_four_node_scenario(self, four_node_network):
        """A-B=2, A-C=4, B-C=6 gives degrees 6, 8, 10 and average 8."""
        wd = weighted_degree(four_node_network.to_numpy(), np.array([0, 1, 2]))
        assert_allclose(wd, [6.0, 8.0, 10.0])
        assert average_edge_weight(wd) == pytest.approx(8.0)

    def test_caller_order_restored(self, four_node_network):
        wd = weighted_degree(four_node_network.to_numpy(), np.array([2, 0, 1]))
        assert_allclose(wd, [10.0, 6.0, 8.0])

    def test_single_node_has_zero_degree(self, four_node_network):
        wd = weighted_degree(four_node_network.to_numpy(), np.array([3]))
        assert_allclose(wd, [0.0])

    def test_order_transparency(self, discovery_dataset):
        dataset, _ = discovery_dataset
        rng = np.random.default_rng(3)
        idx = rng.choice(dataset.n_nodes, size=8, replace=False)
        perm = rng.permutation(8)

        direct = weighted_degree(dataset.network, idx)
        permuted = weighted_degree(dataset.network, idx[perm])
        assert_allclose(permuted, direct[perm])

    def test_sort_nodes_rank_inverts_sort(self):
        idx = np.array([7, 2, 9, 4])
        sorted_idx, rank = sort_nodes(idx)
        assert_allclose(sorted_idx, [2, 4, 7, 9])
        assert_allclose(sorted_idx[rank], idx)


class TestScale:
    """Tests for scale()."""

    def test_zero_mean_unit_variance(self):
        data = np.random.default_rng(0).normal(5, 3, size=(30, 4))
        scaled = scale(data)
        assert_allclose(scaled.mean(axis=0), 0.0, atol=1e-12)
        assert_allclose(scaled.std(axis=0, ddof=1), 1.0)

    def test_constant_column_is_missing(self):
        data = np.column_stack([np.arange(5.0), np.full(5, 2.0)])
        scaled = scale(data)
        assert np.all(np.isnan(scaled[:, 1]))
        assert np.all(np.isfinite(scaled[:, 0]))


class TestSummaryProfileAndContribution:
    """Tests for summary_profile(), node_contribution(), module_coherence()."""

    def test_profile_has_one_value_per_sample(self, discovery_dataset):
        dataset, _ = discovery_dataset
        profile = summary_profile(dataset.scaled_data, np.arange(6))
        assert profile.shape == (dataset.data.shape[0],)

    def test_profile_oriented_with_module_mean(self, discovery_dataset):
        dataset, _ = discovery_dataset
        idx = np.arange(6)
        profile = summary_profile(dataset.scaled_data, idx)
        mean_profile = dataset.scaled_data[:, idx].mean(axis=1)
        assert np.corrcoef(profile, mean_profile)[0, 1] >= 0

    def test_single_node_profile_is_the_node(self, discovery_dataset):
        dataset, _ = discovery_dataset
        profile = summary_profile(dataset.scaled_data, np.array([4]))
        assert correlation(profile, dataset.scaled_data[:, 4]) == pytest.approx(1.0)

    def test_profile_missing_for_constant_node(self):
        data = np.column_stack([np.arange(6.0), np.ones(6), np.arange(6.0) ** 2])
        profile = summary_profile(scale(data), np.array([0, 1, 2]))
        assert np.all(np.isnan(profile))

    def test_perfectly_correlated_nodes_contribute_fully(self):
        base = np.random.default_rng(1).standard_normal(20)
        data = scale(np.column_stack([base, 2 * base + 1, 0.5 * base]))
        idx = np.array([0, 1, 2])
        nc = node_contribution(data, idx, summary_profile(data, idx))
        assert_allclose(nc, 1.0)
        assert module_coherence(nc) == pytest.approx(1.0)

    def test_contribution_order_transparency(self, discovery_dataset):
        dataset, _ = discovery_dataset
        idx = np.array([5, 2, 9, 0, 3])
        perm = np.array([2, 0, 4, 1, 3])
        profile = summary_profile(dataset.scaled_data, idx)

        direct = node_contribution(dataset.scaled_data, idx, profile)
        permuted = node_contribution(dataset.scaled_data, idx[perm], profile)
        assert_allclose(permuted, direct[perm])

    def test_coherence_is_mean_square(self):
        assert module_coherence(np.array([0.5, -0.5, 1.0])) == pytest.approx(0.5)


class TestCorrelationVector:
    """Tests for correlation_vector()."""

    def test_upper_triangle(self):
        corr = np.array([
            [1.0, 0.1, 0.2, 0.3],
            [0.1, 1.0, 0.4, 0.5],
            [0.2, 0.4, 1.0, 0.6],
            [0.3, 0.5, 0.6, 1.0],
        ])
        assert_allclose(correlation_vector(corr, np.array([0, 2, 3])), [0.2, 0.3, 0.6])

    def test_single_node_is_empty(self):
        assert len(correlation_vector(np.eye(3), np.array([1]))) == 0


class TestComparisonStatistics:
    """Tests for correlation() and sign_aware_mean()."""

    def test_self_correlation_is_one(self):
        x = np.random.default_rng(2).standard_normal(15)
        assert correlation(x, x) == pytest.approx(1.0)

    def test_constant_vector_is_missing(self):
        x = np.arange(5.0)
        assert np.isnan(correlation(x, np.full(5, 3.0)))
        assert np.isnan(correlation(np.full(5, 3.0), x))

    def test_length_mismatch_is_missing(self):
        assert np.isnan(correlation(np.arange(4.0), np.arange(5.0)))

    def test_too_short_is_missing(self):
        assert np.isnan(correlation(np.array([1.0]), np.array([2.0])))

    def test_anticorrelation(self):
        x = np.arange(6.0)
        assert correlation(x, -x) == pytest.approx(-1.0)

    def test_sign_aware_mean(self):
        x = np.array([1.0, -1.0, 2.0])
        y = np.array([0.5, -0.5, -1.0])
        # sign(x) * y = [0.5, 0.5, -1.0]
        assert sign_aware_mean(x, y) == pytest.approx(0.0)

    def test_sign_aware_mean_rewards_sign_agreement(self):
        x = np.array([0.8, -0.6, 0.7, -0.9])
        assert sign_aware_mean(x, x) == pytest.approx(np.mean(np.abs(x)))
        assert sign_aware_mean(x, -x) == pytest.approx(-np.mean(np.abs(x)))

    def test_sign_aware_mean_empty_is_missing(self):
        assert np.isnan(sign_aware_mean(np.array([]), np.array([])))

    def test_empty_reductions_are_missing(self):
        assert np.isnan(average_edge_weight(np.array([])))
        assert np.isnan(module_coherence(np.array([])))
