"""Multi-criteria highlighting.

Criteria are OR'd within each element type, never AND'd: an edge lights
up if *any* edge criterion holds, a node if *any* node criterion holds.
Endpoints of a matched edge are always promoted to matched nodes, so a
highlighted link is never drawn between two dimmed parties.

Three outcomes are kept apart, because the UI treats them differently:

- ``INACTIVE``: no criteria supplied. Nothing is dimmed.
- ``NO_MATCHES``: criteria supplied, nothing matched. Also nothing dimmed,
  but the investigator is told so.
- ``MATCHED``: matched elements render distinctly, everything else dims.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from callnet.graph.model import Edge, Graph, Node

logger = logging.getLogger(__name__)


class HighlightStatus(str, enum.Enum):
    INACTIVE = "inactive"
    NO_MATCHES = "no-matches"
    MATCHED = "matched"


@dataclass(frozen=True)
class HighlightCriteria:
    """Optional, OR-combined highlight conditions. The default is a no-op."""

    usage_types: frozenset[str] = frozenset()
    min_edge_duration_seconds: Optional[float] = None
    max_edge_duration_seconds: Optional[float] = None
    tower_id: Optional[str] = None
    common_across_files: bool = False

    def __post_init__(self) -> None:
        # Accept a single usage type or any iterable of them
        if isinstance(self.usage_types, str):
            object.__setattr__(self, "usage_types", frozenset({self.usage_types}))
        elif not isinstance(self.usage_types, frozenset):
            object.__setattr__(self, "usage_types", frozenset(self.usage_types))

    @property
    def is_active(self) -> bool:
        return bool(
            self.usage_types
            or self.min_edge_duration_seconds is not None
            or self.max_edge_duration_seconds is not None
            or (self.tower_id and self.tower_id.strip())
            or self.common_across_files
        )


@dataclass
class HighlightResult:
    """Partition of a graph into matched and dimmed elements."""
    status: HighlightStatus
    matched_node_ids: set[str] = field(default_factory=set)
    matched_edge_ids: set[str] = field(default_factory=set)
    dimmed_node_ids: set[str] = field(default_factory=set)
    dimmed_edge_ids: set[str] = field(default_factory=set)
    message: str = ""

    @property
    def match_count(self) -> int:
        return len(self.matched_node_ids) + len(self.matched_edge_ids)


def evaluate_highlight(
    graph: Graph,
    criteria: HighlightCriteria,
    selected_file_ids: Optional[Iterable[str]] = None,
) -> HighlightResult:
    """Evaluate ``criteria`` against ``graph``.

    Parameters
    ----------
    graph:
        Usually the time-filtered graph currently on screen.
    criteria:
        Conditions to match.
    selected_file_ids:
        Files under analysis, for ``common_across_files``. Defaults to
        every file id present in the graph.
    """
    if not criteria.is_active:
        return HighlightResult(status=HighlightStatus.INACTIVE)

    if selected_file_ids is None:
        selected: set[str] = set()
        for node in graph.nodes():
            selected |= node.file_ids
    else:
        selected = set(selected_file_ids)

    tower_id = criteria.tower_id.strip() if criteria.tower_id else ""

    matched_nodes = {
        node.id for node in graph.nodes()
        if _node_matches(node, tower_id, criteria.common_across_files, selected)
    }
    matched_edges: set[str] = set()
    for edge in graph.edges():
        if _edge_matches(edge, criteria):
            matched_edges.add(edge.id)
            matched_nodes.add(edge.source_id)
            matched_nodes.add(edge.target_id)

    if not matched_nodes and not matched_edges:
        logger.debug("Highlight criteria matched nothing: %s", criteria)
        return HighlightResult(
            status=HighlightStatus.NO_MATCHES,
            message="No elements match the current highlight criteria.",
        )

    return HighlightResult(
        status=HighlightStatus.MATCHED,
        matched_node_ids=matched_nodes,
        matched_edge_ids=matched_edges,
        dimmed_node_ids=set(graph.nodes_by_id) - matched_nodes,
        dimmed_edge_ids=set(graph.edges_by_id) - matched_edges,
        message=f"{len(matched_nodes)} node(s) and {len(matched_edges)} edge(s) highlighted.",
    )


def _node_matches(node: Node, tower_id: str, common_across_files: bool, selected: set[str]) -> bool:
    if tower_id and tower_id in node.associated_towers:
        return True
    if common_across_files and selected and selected <= node.file_ids:
        return True
    return False


def _edge_matches(edge: Edge, criteria: HighlightCriteria) -> bool:
    if criteria.usage_types and edge.usage_type in criteria.usage_types:
        return True
    if (
        criteria.min_edge_duration_seconds is not None
        and edge.duration_sum_seconds >= criteria.min_edge_duration_seconds
    ):
        return True
    if (
        criteria.max_edge_duration_seconds is not None
        and edge.duration_sum_seconds <= criteria.max_edge_duration_seconds
    ):
        return True
    return False
