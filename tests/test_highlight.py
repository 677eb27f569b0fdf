"""Tests for callnet.graph.highlight: multi-criteria highlighting."""

import pytest

from callnet.graph.builder import GraphBuilder
from callnet.graph.highlight import (
    HighlightCriteria,
    HighlightStatus,
    evaluate_highlight,
)
from callnet.graph.model import Graph
from callnet.graph.records import InteractionRecord


T0 = 1_700_000_000_000


def _record(initiator: str, recipient: str, usage: str = "MOC", dur: int = 0,
            tower: str | None = None, file_id: str = "f1") -> InteractionRecord:
    return InteractionRecord(
        initiator_id=initiator,
        recipient_id=recipient,
        usage_type=usage,
        timestamp_ms=T0,
        duration_seconds=dur,
        file_id=file_id,
        tower_id=tower,
    )


@pytest.fixture
def graph() -> Graph:
    """Two subscriber files sharing one contact (C)."""
    records = [
        _record("A", "B", "MOC", dur=900, tower="T1"),
        _record("A", "C", "SMSMO", tower="T2"),
        _record("A", "C", "MOC", dur=30, tower="T2"),
        _record("D", "C", "MOC", dur=300, tower="T9", file_id="f2"),
        _record("D", "E", "SMSMO", file_id="f2"),
    ]
    graph, _ = GraphBuilder().build(records)
    return graph


class TestHighlightEvaluator:
    def test_no_criteria_is_inactive(self, graph):
        result = evaluate_highlight(graph, HighlightCriteria())
        assert result.status is HighlightStatus.INACTIVE
        assert result.matched_node_ids == set()
        assert result.dimmed_node_ids == set()
        assert result.dimmed_edge_ids == set()

    def test_blank_tower_is_inactive(self, graph):
        assert not HighlightCriteria(tower_id="   ").is_active
        result = evaluate_highlight(graph, HighlightCriteria(tower_id="   "))
        assert result.status is HighlightStatus.INACTIVE

    def test_usage_type_matches_edges_and_promotes_endpoints(self, graph):
        result = evaluate_highlight(graph, HighlightCriteria(usage_types={"SMSMO"}))
        assert result.status is HighlightStatus.MATCHED
        assert result.matched_edge_ids == {"A|C|SMSMO", "D|E|SMSMO"}
        assert result.matched_node_ids == {"A", "C", "D", "E"}
        assert result.dimmed_node_ids == {"B"}
        assert result.message == "4 node(s) and 2 edge(s) highlighted."

    def test_single_usage_type_string(self, graph):
        criteria = HighlightCriteria(usage_types="SMSMO")
        assert criteria.usage_types == frozenset({"SMSMO"})
        result = evaluate_highlight(graph, criteria)
        assert result.matched_edge_ids == {"A|C|SMSMO", "D|E|SMSMO"}

    def test_min_duration(self, graph):
        result = evaluate_highlight(graph, HighlightCriteria(min_edge_duration_seconds=300))
        assert result.matched_edge_ids == {"A|B|MOC", "D|C|MOC"}

    def test_max_duration(self, graph):
        result = evaluate_highlight(graph, HighlightCriteria(max_edge_duration_seconds=0))
        assert result.matched_edge_ids == {"A|C|SMSMO", "D|E|SMSMO"}

    def test_edge_criteria_are_ored(self, graph):
        criteria = HighlightCriteria(
            usage_types={"SMSMO"},
            min_edge_duration_seconds=800,
        )
        result = evaluate_highlight(graph, criteria)
        assert result.matched_edge_ids == {"A|C|SMSMO", "D|E|SMSMO", "A|B|MOC"}

    def test_tower_matches_nodes_only(self, graph):
        result = evaluate_highlight(graph, HighlightCriteria(tower_id=" T1 "))
        assert result.matched_node_ids == {"A", "B"}
        assert result.matched_edge_ids == set()
        assert result.dimmed_edge_ids == set(graph.edges_by_id)

    def test_common_across_files(self, graph):
        result = evaluate_highlight(graph, HighlightCriteria(common_across_files=True))
        assert result.matched_node_ids == {"C"}

    def test_common_across_selected_files(self, graph):
        criteria = HighlightCriteria(common_across_files=True)
        result = evaluate_highlight(graph, criteria, selected_file_ids=["f2"])
        assert result.matched_node_ids == {"C", "D", "E"}

    def test_no_matches(self, graph):
        result = evaluate_highlight(graph, HighlightCriteria(usage_types={"MTC"}))
        assert result.status is HighlightStatus.NO_MATCHES
        assert result.message == "No elements match the current highlight criteria."
        assert result.dimmed_node_ids == set()
        assert result.match_count == 0

    def test_endpoint_closure(self, graph):
        for criteria in (
            HighlightCriteria(usage_types={"MOC"}),
            HighlightCriteria(min_edge_duration_seconds=100, tower_id="T2"),
            HighlightCriteria(max_edge_duration_seconds=30, common_across_files=True),
        ):
            result = evaluate_highlight(graph, criteria)
            for edge_id in result.matched_edge_ids:
                edge = graph.edges_by_id[edge_id]
                assert edge.source_id in result.matched_node_ids
                assert edge.target_id in result.matched_node_ids

    def test_partition_is_complete(self, graph):
        result = evaluate_highlight(graph, HighlightCriteria(usage_types=["MOC"]))
        assert result.matched_node_ids | result.dimmed_node_ids == set(graph.nodes_by_id)
        assert not result.matched_node_ids & result.dimmed_node_ids
        assert result.matched_edge_ids | result.dimmed_edge_ids == set(graph.edges_by_id)

    def test_empty_graph(self):
        result = evaluate_highlight(Graph(), HighlightCriteria(usage_types={"MOC"}))
        assert result.status is HighlightStatus.NO_MATCHES
