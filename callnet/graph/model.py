"""Aggregated interaction graph: nodes are parties, edges are directed,
typed bundles of interactions between two parties.

Identifiers are stable across rebuilds: a node id is the raw party
string and an edge id is ``source|target|usage_type``. Overlays such as
annotations key on these ids and survive every rebuild.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

EDGE_ID_SEPARATOR = "|"


def make_edge_id(source_id: str, target_id: str, usage_type: str) -> str:
    """Deterministic composite id for the edge keyed by ``(source, target, usage_type)``."""
    return EDGE_ID_SEPARATOR.join((source_id, target_id, usage_type))


@dataclass(frozen=True)
class TimeWindow:
    """Closed time window in epoch milliseconds."""

    start_ms: int
    end_ms: int

    def __post_init__(self) -> None:
        if self.start_ms > self.end_ms:
            raise ValueError(
                f"TimeWindow start ({self.start_ms}) is after end ({self.end_ms})"
            )

    def clamped_to(self, span: "TimeWindow") -> "TimeWindow":
        """Restrict this window to ``span``; falls back to ``span`` when they are disjoint."""
        start = max(self.start_ms, span.start_ms)
        end = min(self.end_ms, span.end_ms)
        if start > end:
            return span
        return TimeWindow(start, end)


@dataclass
class Node:
    """A party (phone number) seen in at least one record."""

    id: str
    is_a_party_node: bool = False
    is_hub: bool = False
    outgoing_count: int = 0
    incoming_count: int = 0
    total_duration_seconds: float = 0
    first_seen_ms: Optional[int] = None
    last_seen_ms: Optional[int] = None
    associated_towers: set[str] = field(default_factory=set)
    file_ids: set[str] = field(default_factory=set)
    last_known_device_id: Optional[str] = None

    @property
    def call_count(self) -> int:
        return self.outgoing_count + self.incoming_count

    @property
    def stats_label(self) -> str:
        return f"O:{self.outgoing_count} | I:{self.incoming_count}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "is_a_party_node": self.is_a_party_node,
            "is_hub": self.is_hub,
            "outgoing_count": self.outgoing_count,
            "incoming_count": self.incoming_count,
            "call_count": self.call_count,
            "total_duration_seconds": self.total_duration_seconds,
            "first_seen_ms": self.first_seen_ms,
            "last_seen_ms": self.last_seen_ms,
            "associated_towers": sorted(self.associated_towers),
            "file_ids": sorted(self.file_ids),
            "last_known_device_id": self.last_known_device_id,
        }


@dataclass
class Edge:
    """Directed bundle of interactions of one usage type between two parties."""

    source_id: str
    target_id: str
    usage_type: str
    call_count: int = 0
    duration_sum_seconds: float = 0
    first_call_ms: Optional[int] = None
    last_call_ms: Optional[int] = None
    file_ids: set[str] = field(default_factory=set)

    @property
    def id(self) -> str:
        return make_edge_id(self.source_id, self.target_id, self.usage_type)

    @property
    def label(self) -> str:
        minutes = int(self.duration_sum_seconds / 60 + 0.5)
        return f"{self.call_count} {self.usage_type}, {minutes} min"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source_id,
            "target": self.target_id,
            "usage_type": self.usage_type,
            "call_count": self.call_count,
            "duration_sum_seconds": self.duration_sum_seconds,
            "first_call_ms": self.first_call_ms,
            "last_call_ms": self.last_call_ms,
            "file_ids": sorted(self.file_ids),
            "label": self.label,
        }


@dataclass
class Graph:
    """Nodes and edges keyed by their stable ids."""

    nodes_by_id: dict[str, Node] = field(default_factory=dict)
    edges_by_id: dict[str, Edge] = field(default_factory=dict)

    @property
    def node_count(self) -> int:
        return len(self.nodes_by_id)

    @property
    def edge_count(self) -> int:
        return len(self.edges_by_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes_by_id

    def nodes(self) -> Iterator[Node]:
        return iter(self.nodes_by_id.values())

    def edges(self) -> Iterator[Edge]:
        return iter(self.edges_by_id.values())

    def incident_edges(self, node_id: str) -> list[Edge]:
        """Edges where ``node_id`` is source or target, in insertion order."""
        return [
            e for e in self.edges_by_id.values()
            if e.source_id == node_id or e.target_id == node_id
        ]

    def full_time_span(self) -> Optional[TimeWindow]:
        """Min/max timestamp across all nodes and edges, or None for an empty graph."""
        instants: list[int] = []
        for node in self.nodes_by_id.values():
            if node.first_seen_ms is not None and node.last_seen_ms is not None:
                instants.extend((node.first_seen_ms, node.last_seen_ms))
        for edge in self.edges_by_id.values():
            if edge.first_call_ms is not None and edge.last_call_ms is not None:
                instants.extend((edge.first_call_ms, edge.last_call_ms))
        if not instants:
            return None
        return TimeWindow(min(instants), max(instants))

    def usage_types(self) -> list[str]:
        """Sorted distinct usage types, for populating highlight choices."""
        return sorted({e.usage_type for e in self.edges_by_id.values()})

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes_by_id.values()],
            "edges": [e.to_dict() for e in self.edges_by_id.values()],
        }
