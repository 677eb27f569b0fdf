"""Tests for callnet.graph.hubs: hub detection."""

import pytest

from callnet.graph.builder import GraphBuilder
from callnet.graph.hubs import HubDetector
from callnet.graph.model import Graph, Node
from callnet.graph.records import InteractionRecord


def _graph_with_counts(counts: list[int]) -> Graph:
    """Graph whose nodes n0..nK carry the given call counts."""
    graph = Graph()
    for i, count in enumerate(counts):
        graph.nodes_by_id[f"n{i}"] = Node(id=f"n{i}", outgoing_count=count)
    return graph


def _record(initiator: str, recipient: str, file_id: str) -> InteractionRecord:
    return InteractionRecord(
        initiator_id=initiator,
        recipient_id=recipient,
        usage_type="MOC",
        timestamp_ms=1_700_000_000_000,
        file_id=file_id,
    )


class TestHubDetector:
    def test_threshold_scenario(self):
        graph = _graph_with_counts([1, 1, 1, 1, 1, 20])
        detector = HubDetector(multiplier=3, min_nodes=5)

        assert detector.threshold(graph) == pytest.approx(12.5)
        hubs = detector.detect(graph)

        assert [h.node_id for h in hubs] == ["n5"]
        assert graph.nodes_by_id["n5"].is_hub
        assert not any(graph.nodes_by_id[f"n{i}"].is_hub for i in range(5))
        assert hubs[0].ratio_to_mean == pytest.approx(20 / (25 / 6))
        assert "n5 has 20 interactions" in hubs[0].explanation

    def test_small_graph_has_no_hubs(self):
        graph = _graph_with_counts([1, 1, 1, 50])
        detector = HubDetector(min_nodes=5)
        assert detector.threshold(graph) is None
        assert detector.detect(graph) == []
        assert not graph.nodes_by_id["n3"].is_hub

    def test_empty_graph(self):
        detector = HubDetector(min_nodes=0)
        assert detector.threshold(Graph()) is None
        assert detector.detect(Graph()) == []

    def test_uniform_graph_has_no_hubs(self):
        graph = _graph_with_counts([4] * 8)
        assert HubDetector().detect(graph) == []

    def test_threshold_is_strict(self):
        # mean 2, threshold 6: a node at exactly 6 is not a hub
        graph = _graph_with_counts([6, 0, 1, 1, 2])
        assert HubDetector(multiplier=3, min_nodes=5).threshold(graph) == pytest.approx(6)
        assert HubDetector(multiplier=3, min_nodes=5).detect(graph) == []

    def test_multiplier_is_configurable(self):
        graph = _graph_with_counts([1, 1, 1, 1, 1, 5])
        assert HubDetector(multiplier=3).detect(graph) == []
        hubs = HubDetector(multiplier=1.5).detect(graph)
        assert [h.node_id for h in hubs] == ["n5"]

    def test_detect_resets_previous_flags(self):
        graph = _graph_with_counts([1, 1, 1, 1, 1, 20])
        graph.nodes_by_id["n0"].is_hub = True
        HubDetector().detect(graph)
        assert not graph.nodes_by_id["n0"].is_hub

    def test_results_sorted_busiest_first(self):
        graph = _graph_with_counts([1] * 10 + [30, 40])
        hubs = HubDetector(multiplier=2).detect(graph)
        assert [h.node_id for h in hubs] == ["n11", "n10"]

    def test_cross_file_rule(self):
        records = [
            _record("A", "X", "f1"),
            _record("B", "X", "f2"),
            _record("A", "C", "f1"),
            _record("B", "D", "f2"),
            _record("A", "E", "f1"),
        ]
        graph, _ = GraphBuilder().build(records)

        assert HubDetector().detect(graph) == []
        hubs = HubDetector(cross_file=True).detect(graph)
        assert [h.node_id for h in hubs] == ["X"]
        assert hubs[0].cross_file
        assert "2 of the 2 analysed files" in hubs[0].explanation

    def test_cross_file_needs_several_files(self):
        records = [_record("A", "X", "f1"), _record("B", "X", "f1")]
        graph, _ = GraphBuilder().build(records)
        assert HubDetector(cross_file=True, min_nodes=0).detect(graph, analysed_file_ids=["f1"]) == []

    @pytest.mark.parametrize("kwargs", [
        {"multiplier": 0},
        {"multiplier": -1.5},
        {"multiplier": "3"},
        {"min_nodes": -1},
        {"min_nodes": 2.5},
    ])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            HubDetector(**kwargs)
