"""Interaction records → aggregated graph.

One pass over the records, in input order. Every aggregate is a sum,
a set union or a min/max, so the resulting graph does not depend on
record order. The pass is tolerant: rows with blank party ids or no
usable timestamp are counted and skipped rather than aborting the build.

Direction matters for attribution. For an outgoing usage type the
record's initiator is the source; for an incoming one the nominal
recipient placed the call, so source and target swap. Records whose
direction cannot be determined keep their nominal order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from callnet.graph.intervals import extend_interval
from callnet.graph.model import Edge, Graph, Node, make_edge_id
from callnet.graph.records import (
    Direction,
    InteractionRecord,
    classify_usage_type,
    parse_duration,
)

logger = logging.getLogger(__name__)

DEFAULT_RECORD_CAP = 15_000

RecordLike = Union[InteractionRecord, Mapping[str, Any]]
SubjectSpec = Union[str, Iterable[str], None]


@dataclass
class BuildStats:
    """Statistics from a graph build."""

    records_received: int = 0
    records_used: int = 0
    records_skipped: int = 0
    truncated: bool = False
    nodes_loaded: int = 0
    edges_loaded: int = 0
    usage_type_counts: dict[str, int] = field(default_factory=dict)


class GraphBuilder:
    """Aggregate interaction records into a :class:`Graph`.

    Parameters
    ----------
    record_cap:
        Only the first ``record_cap`` input rows are used. Larger inputs
        are truncated, never rejected, and the stats carry
        ``truncated=True`` so the caller can warn that the view is partial.
    classifier:
        Maps a usage type to a :class:`Direction` for records whose
        normalizer did not set ``direction``.
    """

    def __init__(
        self,
        record_cap: int = DEFAULT_RECORD_CAP,
        classifier: Callable[[Optional[str]], Direction] = classify_usage_type,
    ) -> None:
        if isinstance(record_cap, bool) or not isinstance(record_cap, int) or record_cap < 1:
            raise ValueError(f"record_cap must be a positive integer, got {record_cap!r}")
        self._record_cap = record_cap
        self._classifier = classifier

    @property
    def record_cap(self) -> int:
        return self._record_cap

    def build(
        self,
        records: Iterable[RecordLike],
        subject: SubjectSpec = None,
    ) -> tuple[Graph, BuildStats]:
        """Build a graph from ``records``.

        Parameters
        ----------
        records:
            :class:`InteractionRecord` values or normalizer dicts (see
            :meth:`InteractionRecord.from_dict`).
        subject:
            Id, or ids, of the entity under investigation. Matching nodes
            get ``is_a_party_node=True``.

        Returns
        -------
        Tuple of (graph, build_stats).
        """
        rows = list(records)
        stats = BuildStats(records_received=len(rows))

        if len(rows) > self._record_cap:
            stats.truncated = True
            logger.warning(
                "Record cap reached (%d of %d records). Graph shows a partial view.",
                self._record_cap, len(rows),
            )
            rows = rows[: self._record_cap]

        subjects = _subject_set(subject)
        graph = Graph()
        # node id -> (timestamp, device id) of the latest record carrying a device
        latest_device: dict[str, tuple[int, str]] = {}

        for row in rows:
            record = self._coerce(row)
            if record is None:
                stats.records_skipped += 1
                continue
            self._add_record(graph, record, latest_device)
            stats.records_used += 1
            stats.usage_type_counts[record.usage_type or "N/A"] = (
                stats.usage_type_counts.get(record.usage_type or "N/A", 0) + 1
            )

        for node_id, (_, device_id) in latest_device.items():
            graph.nodes_by_id[node_id].last_known_device_id = device_id
        for node_id in subjects:
            node = graph.nodes_by_id.get(node_id)
            if node is not None:
                node.is_a_party_node = True

        stats.nodes_loaded = graph.node_count
        stats.edges_loaded = graph.edge_count
        return graph, stats

    # -- internals -----------------------------------------------------------

    def _coerce(self, row: RecordLike) -> Optional[InteractionRecord]:
        """Return a usable record or None for rows the graph cannot place."""
        if isinstance(row, Mapping):
            record = InteractionRecord.from_dict(row)
            if record is None:
                logger.debug("Skipping unusable record row: %r", row)
            return record

        if not isinstance(row, InteractionRecord):
            logger.debug("Skipping unsupported record type %s", type(row).__name__)
            return None

        initiator = row.initiator_id.strip() if isinstance(row.initiator_id, str) else ""
        recipient = row.recipient_id.strip() if isinstance(row.recipient_id, str) else ""
        timestamp = row.timestamp_ms
        if (
            not initiator
            or not recipient
            or timestamp is None
            or isinstance(timestamp, bool)
            or not isinstance(timestamp, (int, float))
            or not math.isfinite(timestamp)
        ):
            logger.debug("Skipping unusable record: %r", row)
            return None

        if (
            initiator != row.initiator_id
            or recipient != row.recipient_id
            or not isinstance(timestamp, int)
        ):
            row = replace(
                row,
                initiator_id=initiator,
                recipient_id=recipient,
                timestamp_ms=int(timestamp),
            )
        return row

    def _direction(self, record: InteractionRecord) -> Direction:
        if record.direction is not None:
            return record.direction
        return self._classifier(record.usage_type)

    def _add_record(
        self,
        graph: Graph,
        record: InteractionRecord,
        latest_device: dict[str, tuple[int, str]],
    ) -> None:
        if self._direction(record) is Direction.INCOMING:
            source_id, target_id = record.recipient_id, record.initiator_id
        else:
            source_id, target_id = record.initiator_id, record.recipient_id

        timestamp = record.timestamp_ms
        duration = parse_duration(record.duration_seconds)
        usage_type = record.usage_type or "N/A"

        source = self._upsert_node(graph, source_id)
        target = self._upsert_node(graph, target_id)
        source.outgoing_count += 1
        target.incoming_count += 1
        for node in (source, target):
            node.total_duration_seconds += duration
            node.first_seen_ms, node.last_seen_ms = extend_interval(
                node.first_seen_ms, node.last_seen_ms, timestamp
            )
            if record.tower_id:
                node.associated_towers.add(record.tower_id)
            if record.file_id:
                node.file_ids.add(record.file_id)

        edge_id = make_edge_id(source_id, target_id, usage_type)
        edge = graph.edges_by_id.get(edge_id)
        if edge is None:
            edge = Edge(source_id=source_id, target_id=target_id, usage_type=usage_type)
            graph.edges_by_id[edge_id] = edge
        edge.call_count += 1
        edge.duration_sum_seconds += duration
        edge.first_call_ms, edge.last_call_ms = extend_interval(
            edge.first_call_ms, edge.last_call_ms, timestamp
        )
        if record.file_id:
            edge.file_ids.add(record.file_id)

        # The handset belongs to the subscriber whose CDR this is: the nominal initiator
        if record.device_id:
            candidate = (timestamp, record.device_id)
            current = latest_device.get(record.initiator_id)
            if current is None or candidate > current:
                latest_device[record.initiator_id] = candidate

    @staticmethod
    def _upsert_node(graph: Graph, node_id: str) -> Node:
        node = graph.nodes_by_id.get(node_id)
        if node is None:
            node = Node(id=node_id)
            graph.nodes_by_id[node_id] = node
        return node


def _subject_set(subject: SubjectSpec) -> set[str]:
    if subject is None:
        return set()
    if isinstance(subject, str):
        return {subject.strip()} if subject.strip() else set()
    return {s.strip() for s in subject if isinstance(s, str) and s.strip()}
