"""Display conventions for rendering interaction graphs.

Colors, icon keys and label formats shared by the exporters. A custom
annotation always wins over a derived default.
"""

from __future__ import annotations

from typing import Optional

from callnet.graph.model import Edge, Node

# Usage type → edge color
USAGE_TYPE_COLORS = {
    "MOC": "#3b82f6",
    "MTC": "#10b981",
    "SMSMO": "#f59e0b",
    "SMSMT": "#8b5cf6",
    "DEFAULT": "#a1a1aa",
}

# Node role → fill color, in precedence order
NODE_ROLE_COLORS = {
    "a_party": "#f59e0b",
    "hub": "#ef4444",
    "default": "#3b82f6",
}

PATH_NODE_COLOR = "#fcd34d"
PATH_EDGE_COLOR = "#f59e0b"

# Palette offered for custom node and edge colors
ANNOTATION_PALETTE = (
    "#ef4444", "#f97316", "#eab308", "#22c55e", "#0ea5e9", "#6366f1", "#ec4899", "#78716c",
    "#dc2626", "#d97706", "#ca8a04", "#16a34a", "#0284c7", "#4f46e5", "#db2777", "#57534e",
    "#a16207", "#047857", "#0369a1", "#3730a3", "#86198f", "#7f1d1d", "#7c2d12", "#713f12",
)

NODE_ICONS = (
    "phone", "bank", "sms", "mail", "male", "female",
    "suspect", "police", "robber", "courier", "car", "motorcycle",
)


def edge_display_color(edge: Edge, custom_color: Optional[str] = None) -> str:
    if custom_color:
        return custom_color
    if not edge.usage_type:
        return USAGE_TYPE_COLORS["DEFAULT"]
    return USAGE_TYPE_COLORS.get(edge.usage_type.upper(), USAGE_TYPE_COLORS["DEFAULT"])


def node_display_color(node: Node, custom_color: Optional[str] = None) -> str:
    if custom_color:
        return custom_color
    if node.is_a_party_node:
        return NODE_ROLE_COLORS["a_party"]
    if node.is_hub:
        return NODE_ROLE_COLORS["hub"]
    return NODE_ROLE_COLORS["default"]


def node_display_label(node: Node, custom_label: Optional[str] = None) -> str:
    """Multi-line node label.

    ``"<custom> (<id>)"`` or ``<id>``, then ``IMEI: <device>`` for subject
    nodes with a known device, then the ``O:<out> | I:<in>`` counts.
    """
    custom_label = (custom_label or "").strip()
    lines = [f"{custom_label} ({node.id})" if custom_label else node.id]
    if node.is_a_party_node and node.last_known_device_id:
        lines.append(f"IMEI: {node.last_known_device_id}")
    lines.append(node.stats_label)
    return "\n".join(lines)
