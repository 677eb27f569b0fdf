"""Graph export for visualization tools.

Supported formats:
  - NetworkX MultiDiGraph: for ad-hoc analysis in a notebook
  - Cytoscape JSON: for the web graph view (Cytoscape.js)
  - GEXF: Gephi

Exports resolve display attributes (labels, colors, icons, visibility,
highlight and path classes) from the session overlays, so a renderer
only has to apply them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import networkx as nx

from callnet.graph.annotations import AnnotationStore
from callnet.graph.highlight import HighlightResult, HighlightStatus
from callnet.graph.model import Graph
from callnet.graph.paths import PathResult
from callnet.graph.styles import (
    PATH_EDGE_COLOR,
    PATH_NODE_COLOR,
    edge_display_color,
    node_display_color,
    node_display_label,
)

logger = logging.getLogger(__name__)


class GraphExporter:
    """Export an interaction graph in various formats.

    Parameters
    ----------
    graph:
        The graph to export, usually the time-filtered view.
    annotations:
        Optional session overlays (custom labels, colors, icons, hidden ids).
    highlight:
        Optional highlight outcome; adds ``highlighted``/``dimmed`` classes.
    path:
        Optional path search outcome; adds ``path-node``/``path-edge`` classes.
    """

    def __init__(
        self,
        graph: Graph,
        annotations: AnnotationStore | None = None,
        highlight: HighlightResult | None = None,
        path: PathResult | None = None,
    ) -> None:
        self._graph = graph
        self._annotations = annotations or AnnotationStore()
        self._highlight = highlight
        self._path = path

    # -- NetworkX ------------------------------------------------------------

    def to_networkx(self) -> nx.MultiDiGraph:
        """Directed multigraph, one edge per ``(source, target, usage_type)``."""
        export_graph = nx.MultiDiGraph()
        for node in self._graph.nodes():
            data = node.to_dict()
            data.pop("id")
            data["label"] = self._node_label(node.id)
            data["color"] = self._node_color(node.id)
            export_graph.add_node(node.id, **data)

        for edge in self._graph.edges():
            data = edge.to_dict()
            for key in ("id", "source", "target"):
                data.pop(key)
            data["edge_id"] = edge.id
            data["color"] = self._edge_color(edge.id)
            export_graph.add_edge(edge.source_id, edge.target_id, key=edge.usage_type, **data)
        return export_graph

    # -- Cytoscape JSON ------------------------------------------------------

    def to_cytoscape_json(self) -> dict[str, Any]:
        """Export to Cytoscape.js JSON format for the web graph view."""
        elements: list[dict[str, Any]] = []
        path_nodes = set(self._path.node_ids) if self._path and self._path.found else set()
        path_edges = set(self._path.edge_ids) if self._path and self._path.found else set()
        highlighting = (
            self._highlight is not None
            and self._highlight.status is HighlightStatus.MATCHED
        )

        for node in self._graph.nodes():
            classes = []
            if self._annotations.is_node_hidden(node.id):
                classes.append("hidden-by-user")
            if highlighting:
                classes.append(
                    "highlighted" if node.id in self._highlight.matched_node_ids else "dimmed"
                )
            if node.id in path_nodes:
                classes.append("path-node")

            elements.append({
                "group": "nodes",
                "data": {
                    "id": node.id,
                    "label": self._node_label(node.id),
                    "color": PATH_NODE_COLOR if node.id in path_nodes else self._node_color(node.id),
                    "icon": self._annotations.node_icon(node.id),
                    "is_a_party_node": node.is_a_party_node,
                    "is_hub": node.is_hub,
                    "call_count": node.call_count,
                    "outgoing_count": node.outgoing_count,
                    "incoming_count": node.incoming_count,
                    "total_duration_seconds": node.total_duration_seconds,
                    "first_seen_ms": node.first_seen_ms,
                    "last_seen_ms": node.last_seen_ms,
                    "associated_towers": sorted(node.associated_towers),
                    "file_ids": sorted(node.file_ids),
                    "last_known_device_id": node.last_known_device_id,
                },
                "classes": " ".join(classes),
            })

        for edge in self._graph.edges():
            classes = []
            if self._annotations.is_edge_hidden(edge.id):
                classes.append("hidden-by-user")
            if highlighting:
                classes.append(
                    "highlighted" if edge.id in self._highlight.matched_edge_ids else "dimmed"
                )
            if edge.id in path_edges:
                classes.append("path-edge")

            elements.append({
                "group": "edges",
                "data": {
                    "id": edge.id,
                    "source": edge.source_id,
                    "target": edge.target_id,
                    "label": edge.label,
                    "usage_type": edge.usage_type,
                    "color": PATH_EDGE_COLOR if edge.id in path_edges else self._edge_color(edge.id),
                    "call_count": edge.call_count,
                    "duration_sum_seconds": edge.duration_sum_seconds,
                    "first_call_ms": edge.first_call_ms,
                    "last_call_ms": edge.last_call_ms,
                },
                "classes": " ".join(classes),
            })

        return {"elements": elements}

    # -- GEXF (Gephi) --------------------------------------------------------

    def to_gexf(self, path: str | Path) -> None:
        """Export to GEXF format for Gephi.

        Parallel edges of different usage types are merged into one
        directed edge per party pair, with summed counts and durations.
        """
        export_graph = self._prepare_simple_graph()
        nx.write_gexf(export_graph, str(path))
        logger.info("Exported GEXF to %s (%d nodes, %d edges)",
                    path, export_graph.number_of_nodes(), export_graph.number_of_edges())

    # -- Helpers -------------------------------------------------------------

    def _prepare_simple_graph(self) -> nx.DiGraph:
        """Collapse to a DiGraph with GEXF-safe scalar attributes."""
        simple = nx.DiGraph()
        max_count = max((n.call_count for n in self._graph.nodes()), default=1) or 1

        for node in self._graph.nodes():
            data: dict[str, Any] = {
                "label": self._node_label(node.id).replace("\n", " "),
                "color": self._node_color(node.id),
                "size": max(5.0, node.call_count / max_count * 50),
                "is_a_party_node": node.is_a_party_node,
                "is_hub": node.is_hub,
                "call_count": node.call_count,
                "total_duration_seconds": float(node.total_duration_seconds),
                "associated_towers": ",".join(sorted(node.associated_towers)),
                "file_ids": ",".join(sorted(node.file_ids)),
                "hidden": self._annotations.is_node_hidden(node.id),
            }
            if node.last_known_device_id:
                data["last_known_device_id"] = node.last_known_device_id
            simple.add_node(node.id, **data)

        for edge in self._graph.edges():
            u, v = edge.source_id, edge.target_id
            if simple.has_edge(u, v):
                data = simple[u][v]
                data["call_count"] += edge.call_count
                data["duration_sum_seconds"] += float(edge.duration_sum_seconds)
                data["usage_types"] = ",".join(sorted(set(data["usage_types"].split(",")) | {edge.usage_type}))
                data["weight"] = data["call_count"]
                continue
            simple.add_edge(
                u, v,
                usage_types=edge.usage_type,
                call_count=edge.call_count,
                duration_sum_seconds=float(edge.duration_sum_seconds),
                weight=edge.call_count,
                color=self._edge_color(edge.id),
            )
        return simple

    def _node_label(self, node_id: str) -> str:
        return node_display_label(self._graph.nodes_by_id[node_id], self._annotations.label(node_id))

    def _node_color(self, node_id: str) -> str:
        return node_display_color(self._graph.nodes_by_id[node_id], self._annotations.node_color(node_id))

    def _edge_color(self, edge_id: str) -> str:
        return edge_display_color(self._graph.edges_by_id[edge_id], self._annotations.edge_color(edge_id))
