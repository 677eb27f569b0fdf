"""callnet interaction graph engine.

Aggregates normalized call and SMS records into a directed party graph
and answers the questions an investigator asks of it: who are the hubs,
what was active in a given window, which links match some criteria, and
how are two parties connected.

Usage::

    from callnet.graph import GraphEngine, HighlightCriteria, TimeWindow

    engine = GraphEngine()
    result = engine.build(records, subject="01711000000")

    view = engine.filter(result.graph, TimeWindow(start_ms, end_ms))
    highlight = engine.highlight(view, HighlightCriteria(tower_id="4701-1203"))
    path = engine.find_path(view, "01711000000", "01822000000")
"""

from callnet.graph.annotations import AnnotationStore
from callnet.graph.builder import BuildStats, GraphBuilder
from callnet.graph.engine import (
    AnalysisSession,
    GraphEngine,
    GraphResult,
    NodeLocation,
    locate_node,
    search_nodes,
    visible_graph,
)
from callnet.graph.exporters import GraphExporter
from callnet.graph.highlight import (
    HighlightCriteria,
    HighlightResult,
    HighlightStatus,
    evaluate_highlight,
)
from callnet.graph.hubs import HubDetector, HubResult
from callnet.graph.model import Edge, Graph, Node, TimeWindow
from callnet.graph.paths import PathFinder, PathResult, PathStatus, find_path
from callnet.graph.records import Direction, InteractionRecord, classify_usage_type
from callnet.graph.temporal import filter_by_window

__all__ = [
    "AnalysisSession",
    "AnnotationStore",
    "BuildStats",
    "Direction",
    "Edge",
    "Graph",
    "GraphBuilder",
    "GraphEngine",
    "GraphExporter",
    "GraphResult",
    "HighlightCriteria",
    "HighlightResult",
    "HighlightStatus",
    "HubDetector",
    "HubResult",
    "InteractionRecord",
    "Node",
    "NodeLocation",
    "PathFinder",
    "PathResult",
    "PathStatus",
    "TimeWindow",
    "classify_usage_type",
    "evaluate_highlight",
    "filter_by_window",
    "find_path",
    "locate_node",
    "search_nodes",
    "visible_graph",
]
