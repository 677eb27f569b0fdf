"""Interaction graph engine, the high-level orchestrator.

Wires the builder, hub detector, temporal filter, highlight evaluator
and path finder together with the session's annotation overlays.

Usage::

    engine = GraphEngine()

    # Build from normalized records
    result = engine.build(records, subject="01711000000")
    print(result.summary())

    # Narrow to a time window, then query
    view = engine.filter(result.graph, TimeWindow(start_ms, end_ms))
    highlight = engine.highlight(view, HighlightCriteria(usage_types={"MOC"}))
    path = engine.find_path(view, "01711000000", "01822000000")

    # Export
    GraphExporter(view, highlight=highlight, path=path).to_gexf("network.gexf")
"""

from __future__ import annotations

import copy
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from callnet.config.settings import settings
from callnet.graph.annotations import AnnotationStore
from callnet.graph.builder import BuildStats, GraphBuilder, RecordLike, SubjectSpec
from callnet.graph.exporters import GraphExporter
from callnet.graph.highlight import HighlightCriteria, HighlightResult, evaluate_highlight
from callnet.graph.hubs import HubDetector, HubResult
from callnet.graph.model import Graph, TimeWindow
from callnet.graph.paths import PathFinder, PathResult
from callnet.graph.temporal import filter_by_window

logger = logging.getLogger(__name__)


@dataclass
class GraphResult:
    """Result of a graph build: the graph, its hubs and the build stats."""

    graph: Graph
    stats: BuildStats
    hubs: list[HubResult] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return self.graph.node_count

    @property
    def edge_count(self) -> int:
        return self.graph.edge_count

    @property
    def truncated(self) -> bool:
        return self.stats.truncated

    @property
    def exporter(self) -> GraphExporter:
        return GraphExporter(self.graph)

    def summary(self) -> dict[str, Any]:
        """Combined summary of graph shape and build stats."""
        span = self.graph.full_time_span()
        return {
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "hub_count": len(self.hubs),
            "hubs": [h.node_id for h in self.hubs],
            "a_party_nodes": sorted(n.id for n in self.graph.nodes() if n.is_a_party_node),
            "time_span": (
                {"start_ms": span.start_ms, "end_ms": span.end_ms} if span else None
            ),
            "usage_types": self.graph.usage_types(),
            "truncated": self.truncated,
            "build_stats": {
                "records_received": self.stats.records_received,
                "records_used": self.stats.records_used,
                "records_skipped": self.stats.records_skipped,
                "nodes_loaded": self.stats.nodes_loaded,
                "edges_loaded": self.stats.edges_loaded,
                "usage_type_counts": dict(self.stats.usage_type_counts),
            },
        }


class NodeLocation(str, enum.Enum):
    """Outcome of a focus request for one node id."""

    FOUND = "found"
    HIDDEN = "hidden"
    NOT_FOUND = "not-found"


# -- Views over a graph ------------------------------------------------------


def visible_graph(graph: Graph, annotations: Optional[AnnotationStore]) -> Graph:
    """Copy of ``graph`` without hidden nodes, their edges, or hidden edges."""
    if annotations is None:
        return graph
    hidden_nodes = annotations.hidden_node_ids
    hidden_edges = annotations.hidden_edge_ids
    view = Graph()
    for node_id, node in graph.nodes_by_id.items():
        if node_id not in hidden_nodes:
            view.nodes_by_id[node_id] = copy.deepcopy(node)
    for edge_id, edge in graph.edges_by_id.items():
        if edge_id in hidden_edges:
            continue
        if edge.source_id in view.nodes_by_id and edge.target_id in view.nodes_by_id:
            view.edges_by_id[edge_id] = copy.deepcopy(edge)
    return view


def search_nodes(
    graph: Graph,
    term: str,
    annotations: Optional[AnnotationStore] = None,
) -> list[str]:
    """Node ids whose id or custom label contains ``term`` (case-insensitive)."""
    needle = (term or "").strip().lower()
    if not needle:
        return []
    matches = []
    for node_id in graph.nodes_by_id:
        custom = annotations.label(node_id) if annotations else None
        if needle in node_id.lower() or (custom and needle in custom.lower()):
            matches.append(node_id)
    return sorted(matches)


def locate_node(
    graph: Graph,
    node_id: str,
    annotations: Optional[AnnotationStore] = None,
) -> NodeLocation:
    node_id = (node_id or "").strip()
    if node_id not in graph:
        return NodeLocation.NOT_FOUND
    if annotations is not None and annotations.is_node_hidden(node_id):
        return NodeLocation.HIDDEN
    return NodeLocation.FOUND


# -- Engine ------------------------------------------------------------------


class GraphEngine:
    """Build and query interaction graphs.

    Parameters
    ----------
    record_cap:
        Records beyond this many are dropped before building.
    hub_multiplier, hub_min_nodes, hub_cross_file:
        Hub detection rule, see :class:`HubDetector`.

    Unset parameters fall back to :data:`callnet.config.settings.settings`.
    """

    def __init__(
        self,
        record_cap: int | None = None,
        hub_multiplier: float | None = None,
        hub_min_nodes: int | None = None,
        hub_cross_file: bool | None = None,
    ) -> None:
        self._builder = GraphBuilder(
            record_cap=settings.GRAPH_RECORD_CAP if record_cap is None else record_cap,
        )
        self._hubs = HubDetector(
            multiplier=settings.GRAPH_HUB_MULTIPLIER if hub_multiplier is None else hub_multiplier,
            min_nodes=settings.GRAPH_HUB_MIN_NODES if hub_min_nodes is None else hub_min_nodes,
            cross_file=settings.GRAPH_HUB_CROSS_FILE if hub_cross_file is None else hub_cross_file,
        )
        # Single-entry memo: (records object, key, result)
        self._last_build: Optional[tuple[object, tuple, GraphResult]] = None

    @property
    def record_cap(self) -> int:
        return self._builder.record_cap

    @property
    def hub_detector(self) -> HubDetector:
        return self._hubs

    def build(
        self,
        records: Iterable[RecordLike],
        subject: SubjectSpec = None,
        analysed_file_ids: Optional[Iterable[str]] = None,
    ) -> GraphResult:
        """Build a graph from ``records`` and flag its hubs.

        Calling again with the same record sequence object and the same
        arguments returns the previous result without rebuilding.
        """
        if subject is not None and not isinstance(subject, str):
            subject = list(subject)
        if analysed_file_ids is not None:
            analysed_file_ids = list(analysed_file_ids)
        key = (_freeze(subject), _freeze(analysed_file_ids))
        if self._last_build is not None:
            cached_records, cached_key, cached_result = self._last_build
            if cached_records is records and cached_key == key:
                logger.debug("Reusing memoized graph build")
                return cached_result

        graph, stats = self._builder.build(records, subject=subject)
        hubs = self._hubs.detect(graph, analysed_file_ids=analysed_file_ids)

        logger.info(
            "Graph built: %d nodes, %d edges, %d hubs (%d records used, %d skipped%s)",
            stats.nodes_loaded, stats.edges_loaded, len(hubs),
            stats.records_used, stats.records_skipped,
            ", truncated" if stats.truncated else "",
        )

        result = GraphResult(graph=graph, stats=stats, hubs=hubs)
        self._last_build = (records, key, result)
        return result

    def clear_cache(self) -> None:
        self._last_build = None

    def filter(self, graph: Graph, window: Optional[TimeWindow]) -> Graph:
        """Time-window copy of ``graph``; ``None`` means the full span.

        The result never shares nodes or edges with ``graph``.
        """
        if window is None:
            return copy.deepcopy(graph)
        return filter_by_window(graph, window)

    def highlight(
        self,
        graph: Graph,
        criteria: HighlightCriteria,
        selected_file_ids: Optional[Iterable[str]] = None,
    ) -> HighlightResult:
        return evaluate_highlight(graph, criteria, selected_file_ids=selected_file_ids)

    def find_path(
        self,
        graph: Graph,
        source_id: str,
        target_id: str,
        annotations: Optional[AnnotationStore] = None,
    ) -> PathResult:
        """Shortest path over the visible part of ``graph``."""
        return PathFinder(visible_graph(graph, annotations)).find(source_id, target_id)


def _freeze(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    return tuple(sorted(value))


# -- Session -----------------------------------------------------------------


class AnalysisSession:
    """One investigator's working state over a record set.

    Holds the records, the active window and highlight criteria, and the
    annotation overlays. The overlays outlive every rebuild.
    """

    def __init__(
        self,
        records: Iterable[RecordLike],
        subject: SubjectSpec = None,
        analysed_file_ids: Optional[Iterable[str]] = None,
        engine: GraphEngine | None = None,
    ) -> None:
        self.engine = engine or GraphEngine()
        self.annotations = AnnotationStore()
        self.subject = subject
        self.analysed_file_ids = list(analysed_file_ids) if analysed_file_ids is not None else None
        self.window: Optional[TimeWindow] = None
        self.criteria = HighlightCriteria()
        self._records = tuple(records)

    @property
    def records(self) -> tuple[RecordLike, ...]:
        """Snapshot of the record set; assign a new sequence to change it."""
        return self._records

    @records.setter
    def records(self, records: Iterable[RecordLike]) -> None:
        self._records = tuple(records)
        self.window = None

    def build(self) -> GraphResult:
        return self.engine.build(
            self._records, subject=self.subject, analysed_file_ids=self.analysed_file_ids,
        )

    def current_graph(self) -> Graph:
        """Built graph narrowed to the active window."""
        return self.engine.filter(self.build().graph, self.window)

    def set_window(self, window: Optional[TimeWindow]) -> None:
        self.window = window

    def highlight(self) -> HighlightResult:
        return self.engine.highlight(
            self.current_graph(), self.criteria, selected_file_ids=self.analysed_file_ids,
        )

    def find_path(self, source_id: str, target_id: str) -> PathResult:
        return self.engine.find_path(
            self.current_graph(), source_id, target_id, annotations=self.annotations,
        )

    def search(self, term: str) -> list[str]:
        return search_nodes(self.current_graph(), term, self.annotations)

    def locate(self, node_id: str) -> NodeLocation:
        return locate_node(self.current_graph(), node_id, self.annotations)

    def exporter(self, path: PathResult | None = None) -> GraphExporter:
        graph = self.current_graph()
        highlight = evaluate_highlight(graph, self.criteria, selected_file_ids=self.analysed_file_ids)
        return GraphExporter(graph, annotations=self.annotations, highlight=highlight, path=path)
