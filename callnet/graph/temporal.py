"""Time-window subgraphs.

A node survives when its ``[first_seen, last_seen]`` activity interval
touches the window; an edge survives when its own interval touches the
window and both endpoints survived. The source graph is never touched:
surviving nodes and edges are copies, so later passes (hub flags,
highlighting) on the filtered graph cannot leak back into the original.
"""

from __future__ import annotations

import copy
import logging

from callnet.graph.intervals import intervals_overlap
from callnet.graph.model import Graph, TimeWindow

logger = logging.getLogger(__name__)


def filter_by_window(graph: Graph, window: TimeWindow) -> Graph:
    """Return the subgraph of ``graph`` active within ``window``.

    Idempotent, and filtering with ``graph.full_time_span()`` returns a
    graph equal to the input.
    """
    filtered = Graph()

    for node_id, node in graph.nodes_by_id.items():
        if intervals_overlap(node.first_seen_ms, node.last_seen_ms, window.start_ms, window.end_ms):
            filtered.nodes_by_id[node_id] = copy.deepcopy(node)

    for edge_id, edge in graph.edges_by_id.items():
        if edge.source_id not in filtered.nodes_by_id or edge.target_id not in filtered.nodes_by_id:
            continue
        if intervals_overlap(edge.first_call_ms, edge.last_call_ms, window.start_ms, window.end_ms):
            filtered.edges_by_id[edge_id] = copy.deepcopy(edge)

    logger.debug(
        "Window [%d, %d]: kept %d/%d nodes, %d/%d edges",
        window.start_ms, window.end_ms,
        filtered.node_count, graph.node_count,
        filtered.edge_count, graph.edge_count,
    )
    return filtered
