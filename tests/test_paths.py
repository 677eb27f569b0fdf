"""Tests for callnet.graph.paths: shortest connection between parties."""

import itertools
import random
from collections import deque

import pytest

from callnet.graph.builder import GraphBuilder
from callnet.graph.model import Graph
from callnet.graph.paths import PathFinder, PathStatus, find_path
from callnet.graph.records import InteractionRecord


T0 = 1_700_000_000_000


def _record(initiator: str, recipient: str, usage: str = "MOC") -> InteractionRecord:
    return InteractionRecord(
        initiator_id=initiator,
        recipient_id=recipient,
        usage_type=usage,
        timestamp_ms=T0,
    )


def _bfs_distance(graph: Graph, source: str, target: str) -> int | None:
    """Reference hop distance, ignoring edge direction."""
    neighbours: dict[str, set[str]] = {n: set() for n in graph.nodes_by_id}
    for edge in graph.edges():
        neighbours[edge.source_id].add(edge.target_id)
        neighbours[edge.target_id].add(edge.source_id)
    seen = {source: 0}
    queue = deque([source])
    while queue:
        current = queue.popleft()
        if current == target:
            return seen[current]
        for nxt in neighbours[current]:
            if nxt not in seen:
                seen[nxt] = seen[current] + 1
                queue.append(nxt)
    return None


@pytest.fixture
def chain_graph() -> Graph:
    """subject → courier → relay ← supplier, plus an isolated pair."""
    records = [
        _record("subject", "courier"),
        _record("subject", "courier", "SMSMO"),
        _record("courier", "relay"),
        _record("supplier", "relay", "SMSMO"),
        _record("loner", "stranger"),
    ]
    graph, _ = GraphBuilder().build(records)
    return graph


class TestPathFinder:
    def test_trivial_path(self, chain_graph):
        result = find_path(chain_graph, "subject", "subject")
        assert result.found
        assert result.node_ids == ["subject"]
        assert result.edge_ids == []
        assert result.path_length == 0

    def test_path_ignores_direction(self, chain_graph):
        result = find_path(chain_graph, "subject", "supplier")
        assert result.status is PathStatus.FOUND
        assert result.node_ids == ["subject", "courier", "relay", "supplier"]
        assert result.path_length == 3
        assert "through courier → relay" in result.message

    def test_hop_edges_include_parallel_edges(self, chain_graph):
        result = find_path(chain_graph, "subject", "courier")
        assert result.hop_edge_ids == [["subject|courier|MOC", "subject|courier|SMSMO"]]

    def test_reverse_direction(self, chain_graph):
        result = find_path(chain_graph, "supplier", "subject")
        assert result.node_ids == ["supplier", "relay", "courier", "subject"]
        assert "relay|supplier|SMSMO" not in result.edge_ids
        assert "supplier|relay|SMSMO" in result.edge_ids

    def test_no_path(self, chain_graph):
        result = find_path(chain_graph, "subject", "loner")
        assert result.status is PathStatus.NO_PATH
        assert not result.found
        assert result.node_ids == []
        assert result.message == "No path found between subject and loner."

    def test_node_not_found(self, chain_graph):
        result = find_path(chain_graph, "subject", "ghost")
        assert result.status is PathStatus.NODE_NOT_FOUND
        assert result.missing_node_ids == ["ghost"]
        assert "ghost" in result.message

    def test_both_missing(self, chain_graph):
        result = find_path(chain_graph, "ghost", "phantom")
        assert result.missing_node_ids == ["ghost", "phantom"]

    def test_same_missing_node_twice(self, chain_graph):
        result = find_path(chain_graph, "ghost", "ghost")
        assert result.status is PathStatus.NODE_NOT_FOUND
        assert result.missing_node_ids == ["ghost"]

    def test_ids_are_stripped(self, chain_graph):
        assert find_path(chain_graph, " subject ", "courier ").found

    def test_empty_graph(self):
        result = find_path(Graph(), "a", "b")
        assert result.status is PathStatus.NODE_NOT_FOUND

    def test_minimality_against_bfs(self):
        rng = random.Random(11)
        parties = [f"p{i}" for i in range(12)]
        records = [
            _record(rng.choice(parties), rng.choice(parties), rng.choice(["MOC", "SMSMO"]))
            for _ in range(18)
        ]
        graph, _ = GraphBuilder().build(records)
        finder = PathFinder(graph)

        for source, target in itertools.product(graph.nodes_by_id, repeat=2):
            result = finder.find(source, target)
            expected = _bfs_distance(graph, source, target)
            if expected is None:
                assert result.status is PathStatus.NO_PATH
                continue
            assert result.found
            assert result.path_length == expected
            assert result.node_ids[0] == source and result.node_ids[-1] == target
            for hop, (u, v) in zip(result.hop_edge_ids, zip(result.node_ids, result.node_ids[1:])):
                assert hop
                for edge_id in hop:
                    edge = graph.edges_by_id[edge_id]
                    assert {edge.source_id, edge.target_id} == {u, v}

    def test_deterministic(self):
        # Two equal-length routes from a to d
        records = [_record("a", "b"), _record("b", "d"), _record("a", "c"), _record("c", "d")]
        graph, _ = GraphBuilder().build(records)
        first = find_path(graph, "a", "d").node_ids
        reversed_graph, _ = GraphBuilder().build(list(reversed(records)))
        assert find_path(reversed_graph, "a", "d").node_ids == first
