"""Shortest connection between two parties.

Investigators tracing a path care about connectivity, not about who
dialled whom, so every edge is walked in both directions. This is a
second read path over the same edge store: the graph itself stays
directed for aggregation and coloring.

Both failure modes are ordinary results, not exceptions. A party missing
from the current view (often because the time window filtered it out)
is reported differently from two present parties with no connection.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

import networkx as nx

from callnet.graph.model import Graph

logger = logging.getLogger(__name__)


class PathStatus(str, enum.Enum):
    FOUND = "found"
    NODE_NOT_FOUND = "node-not-found"
    NO_PATH = "no-path-found"


@dataclass
class PathResult:
    """Outcome of a path search between two node ids."""
    status: PathStatus
    source_id: str
    target_id: str
    node_ids: list[str] = field(default_factory=list)
    hop_edge_ids: list[list[str]] = field(default_factory=list)  # edges per consecutive pair
    missing_node_ids: list[str] = field(default_factory=list)
    message: str = ""

    @property
    def found(self) -> bool:
        return self.status is PathStatus.FOUND

    @property
    def path_length(self) -> int:
        """Number of hops; 0 for the trivial path and for failures."""
        return max(0, len(self.node_ids) - 1)

    @property
    def edge_ids(self) -> list[str]:
        return [edge_id for hop in self.hop_edge_ids for edge_id in hop]


class PathFinder:
    """Unweighted shortest-path search over a :class:`Graph`.

    The undirected view is built once per graph; reuse the finder for
    several queries against the same view.
    """

    def __init__(self, graph: Graph) -> None:
        self._graph = graph
        self._undirected = nx.Graph()
        self._pair_edges: dict[frozenset[str], list[str]] = {}

        # Sorted insertion keeps tie-breaking between equal-length paths stable
        self._undirected.add_nodes_from(sorted(graph.nodes_by_id))
        for edge_id in sorted(graph.edges_by_id):
            edge = graph.edges_by_id[edge_id]
            self._undirected.add_edge(edge.source_id, edge.target_id)
            self._pair_edges.setdefault(
                frozenset((edge.source_id, edge.target_id)), []
            ).append(edge_id)

    def find(self, source_id: str, target_id: str) -> PathResult:
        """Shortest path from ``source_id`` to ``target_id``."""
        source_id = source_id.strip()
        target_id = target_id.strip()

        missing = [n for n in (source_id, target_id) if n not in self._graph]
        if missing:
            missing = list(dict.fromkeys(missing))
            return PathResult(
                status=PathStatus.NODE_NOT_FOUND,
                source_id=source_id,
                target_id=target_id,
                missing_node_ids=missing,
                message=(
                    f"Node(s) not found in the current graph: {', '.join(missing)}. "
                    f"They may be hidden or outside the active time window."
                ),
            )

        if source_id == target_id:
            return PathResult(
                status=PathStatus.FOUND,
                source_id=source_id,
                target_id=target_id,
                node_ids=[source_id],
                message=f"{source_id} is both source and target.",
            )

        try:
            node_ids = nx.shortest_path(self._undirected, source_id, target_id)
        except nx.NetworkXNoPath:
            logger.debug("No path between %s and %s", source_id, target_id)
            return PathResult(
                status=PathStatus.NO_PATH,
                source_id=source_id,
                target_id=target_id,
                message=f"No path found between {source_id} and {target_id}.",
            )

        hops = [
            self._pair_edges[frozenset((u, v))]
            for u, v in zip(node_ids, node_ids[1:])
        ]
        intermediaries = node_ids[1:-1]
        message = (
            f"Connection from {source_id} to {target_id} in {len(hops)} hop(s)"
        )
        if intermediaries:
            message += f" through {' → '.join(intermediaries)}"
        message += "."

        return PathResult(
            status=PathStatus.FOUND,
            source_id=source_id,
            target_id=target_id,
            node_ids=list(node_ids),
            hop_edge_ids=[list(h) for h in hops],
            message=message,
        )


def find_path(graph: Graph, source_id: str, target_id: str) -> PathResult:
    """One-shot convenience wrapper around :class:`PathFinder`."""
    return PathFinder(graph).find(source_id, target_id)
