"""Investigator annotations layered over the graph.

Custom labels, colors, icons and visibility toggles belong to the
session, not to a graph. The graph is rebuilt on every input change;
the overlays are keyed by stable node and edge ids, so they reapply to
each new graph as long as the parties are still there. Nothing here
checks that an id currently exists.
"""

from __future__ import annotations

import logging
from typing import Optional

from callnet.graph.model import Graph

logger = logging.getLogger(__name__)


def _require_id(value: object) -> str:
    if not isinstance(value, str):
        raise TypeError(f"annotation ids must be strings, got {type(value).__name__}")
    return value


class AnnotationStore:
    """Key-value overlays for nodes and edges."""

    def __init__(self) -> None:
        self._node_labels: dict[str, str] = {}
        self._node_colors: dict[str, str] = {}
        self._node_icons: dict[str, str] = {}
        self._edge_colors: dict[str, str] = {}
        self._hidden_node_ids: set[str] = set()
        self._hidden_edge_ids: set[str] = set()

    # -- labels --------------------------------------------------------------

    def set_label(self, node_id: str, label: str) -> None:
        """Set a custom label; a blank label removes it."""
        node_id = _require_id(node_id)
        label = (label or "").strip()
        if label:
            self._node_labels[node_id] = label
        else:
            self._node_labels.pop(node_id, None)

    def remove_label(self, node_id: str) -> None:
        self._node_labels.pop(_require_id(node_id), None)

    def label(self, node_id: str) -> Optional[str]:
        return self._node_labels.get(node_id)

    def reset_all_labels(self) -> None:
        self._node_labels.clear()

    # -- node colors and icons -----------------------------------------------

    def set_node_color(self, node_id: str, color: str) -> None:
        self._node_colors[_require_id(node_id)] = color

    def remove_node_color(self, node_id: str) -> None:
        self._node_colors.pop(_require_id(node_id), None)

    def node_color(self, node_id: str) -> Optional[str]:
        return self._node_colors.get(node_id)

    def reset_all_node_colors(self) -> None:
        self._node_colors.clear()

    def set_node_icon(self, node_id: str, icon: str) -> None:
        self._node_icons[_require_id(node_id)] = icon

    def remove_node_icon(self, node_id: str) -> None:
        self._node_icons.pop(_require_id(node_id), None)

    def node_icon(self, node_id: str) -> Optional[str]:
        return self._node_icons.get(node_id)

    def reset_all_node_icons(self) -> None:
        self._node_icons.clear()

    # -- edge colors ---------------------------------------------------------

    def set_edge_color(self, edge_id: str, color: str) -> None:
        self._edge_colors[_require_id(edge_id)] = color

    def remove_edge_color(self, edge_id: str) -> None:
        self._edge_colors.pop(_require_id(edge_id), None)

    def edge_color(self, edge_id: str) -> Optional[str]:
        return self._edge_colors.get(edge_id)

    def reset_all_edge_colors(self) -> None:
        self._edge_colors.clear()

    # -- visibility ----------------------------------------------------------

    def hide_node(self, node_id: str) -> None:
        self._hidden_node_ids.add(_require_id(node_id))

    def show_node(self, node_id: str) -> None:
        self._hidden_node_ids.discard(_require_id(node_id))

    def is_node_hidden(self, node_id: str) -> bool:
        return node_id in self._hidden_node_ids

    def reset_hidden_nodes(self) -> None:
        self._hidden_node_ids.clear()

    def hide_edge(self, edge_id: str) -> None:
        self._hidden_edge_ids.add(_require_id(edge_id))

    def show_edge(self, edge_id: str) -> None:
        self._hidden_edge_ids.discard(_require_id(edge_id))

    def is_edge_hidden(self, edge_id: str) -> bool:
        return edge_id in self._hidden_edge_ids

    def reset_hidden_edges(self) -> None:
        self._hidden_edge_ids.clear()

    # Graph-aware variants: keep endpoint visibility consistent with edges

    def hide_edge_cascading(self, edge_id: str, graph: Graph) -> None:
        """Hide an edge, and any endpoint whose edges are now all hidden."""
        self.hide_edge(edge_id)
        edge = graph.edges_by_id.get(edge_id)
        if edge is None:
            return
        for node_id in {edge.source_id, edge.target_id}:
            incident = graph.incident_edges(node_id)
            if incident and all(e.id in self._hidden_edge_ids for e in incident):
                self._hidden_node_ids.add(node_id)

    def show_edge_cascading(self, edge_id: str, graph: Graph) -> None:
        """Show an edge and both of its endpoints."""
        self.show_edge(edge_id)
        edge = graph.edges_by_id.get(edge_id)
        if edge is not None:
            self._hidden_node_ids.discard(edge.source_id)
            self._hidden_node_ids.discard(edge.target_id)

    def show_all_edges_cascading(self, graph: Graph) -> None:
        """Show every hidden edge and unhide the endpoints of those in ``graph``."""
        for edge_id in list(self._hidden_edge_ids):
            self.show_edge_cascading(edge_id, graph)

    # -- bulk ----------------------------------------------------------------

    def reset_all(self) -> None:
        self.reset_all_labels()
        self.reset_all_node_colors()
        self.reset_all_node_icons()
        self.reset_all_edge_colors()
        self.reset_hidden_nodes()
        self.reset_hidden_edges()
        logger.debug("All annotations cleared")

    # -- read access ---------------------------------------------------------

    @property
    def node_labels(self) -> dict[str, str]:
        return dict(self._node_labels)

    @property
    def node_colors(self) -> dict[str, str]:
        return dict(self._node_colors)

    @property
    def node_icons(self) -> dict[str, str]:
        return dict(self._node_icons)

    @property
    def edge_colors(self) -> dict[str, str]:
        return dict(self._edge_colors)

    @property
    def hidden_node_ids(self) -> frozenset[str]:
        return frozenset(self._hidden_node_ids)

    @property
    def hidden_edge_ids(self) -> frozenset[str]:
        return frozenset(self._hidden_edge_ids)
