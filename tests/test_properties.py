"""Tests for network_properties()."""

import numpy as np
import pytest

from modpreserve import ComputationInterrupted, Dataset, network_properties


@pytest.fixture
def assignment_with_absent(discovery_dataset):
    _, assignment = discovery_dataset
    extended = dict(assignment)
    extended["absent_node"] = "1"
    extended.update({"ghost_0": "ghost", "ghost_1": "ghost"})
    return extended


class TestNetworkPropertiesWithData:
    """Properties computed from network and data matrix."""

    def test_all_properties_present(self, discovery_dataset, assignment_with_absent):
        dataset, _ = discovery_dataset
        props = network_properties(dataset, assignment_with_absent, ["1", "2"])

        assert list(props) == ["1", "2"]
        p1 = props["1"]
        assert list(p1.summary.index) == dataset.sample_names
        assert np.isfinite(p1.coherence)
        assert 0 < p1.coherence <= 1
        assert np.isfinite(p1.avg_weight)

    def test_absent_member_is_missing(self, discovery_dataset, assignment_with_absent):
        dataset, _ = discovery_dataset
        p1 = network_properties(dataset, assignment_with_absent, ["1"])["1"]

        assert "absent_node" in p1.degree.index
        assert np.isnan(p1.degree["absent_node"])
        assert np.isnan(p1.contribution["absent_node"])
        assert p1.degree.drop("absent_node").notna().all()
        assert p1.contribution.drop("absent_node").notna().all()

    def test_module_without_present_nodes(self, discovery_dataset, assignment_with_absent):
        dataset, _ = discovery_dataset
        ghost = network_properties(dataset, assignment_with_absent, ["ghost"])["ghost"]

        assert ghost.degree.isna().all()
        assert ghost.contribution.isna().all()
        assert ghost.summary.isna().all()
        assert np.isnan(ghost.avg_weight)
        assert np.isnan(ghost.coherence)

    def test_interrupt(self, discovery_dataset):
        dataset, assignment = discovery_dataset
        with pytest.raises(ComputationInterrupted):
            network_properties(dataset, assignment, ["1"], interrupt_check=lambda: True)


class TestNetworkPropertiesNoData:
    """Properties computed from the network matrix only."""

    def test_four_node_scenario(self, four_node_network):
        dataset = Dataset(network=four_node_network.to_numpy(), node_names=list(four_node_network.columns))
        assignment = {"A": "M1", "B": "M1", "C": "M1", "D": "M2"}

        props = network_properties(dataset, assignment, ["M1"])["M1"]
        assert props.degree.to_dict() == {"A": 6.0, "B": 8.0, "C": 10.0}
        assert props.avg_weight == pytest.approx(8.0)
        assert props.summary is None
        assert props.contribution is None
        assert props.coherence is None

    def test_module_without_present_nodes(self, four_node_network):
        dataset = Dataset(network=four_node_network.to_numpy(), node_names=list(four_node_network.columns))
        props = network_properties(dataset, {"X": "M3", "Y": "M3"}, ["M3"])["M3"]
        assert props.degree.isna().all()
        assert list(props.degree.index) == ["X", "Y"]
        assert np.isnan(props.avg_weight)
