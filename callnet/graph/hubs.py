"""Hub detection: flag parties whose interaction volume dwarfs the rest.

The rule is a plain ratio test against the graph's mean activity:

    is_hub  <=>  call_count > multiplier * mean(call_count)

and only on graphs with at least ``min_nodes`` nodes, because an
average over two or three numbers says nothing about who stands out.
Both knobs are configuration, not constants.

Optionally (``cross_file``), when several files are under analysis a
party seen in more than one of them is also a hub: a number that shows
up in two subscribers' records is a link between investigations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from callnet.graph.model import Graph

logger = logging.getLogger(__name__)

DEFAULT_HUB_MULTIPLIER = 3.0
DEFAULT_HUB_MIN_NODES = 5


@dataclass
class HubResult:
    """A node flagged as a hub, with the numbers behind the call."""
    node_id: str
    call_count: int
    threshold: float
    ratio_to_mean: float
    cross_file: bool
    explanation: str


class HubDetector:
    """Set ``is_hub`` on the nodes of a built graph.

    Parameters
    ----------
    multiplier:
        A node is a hub when its call count exceeds this multiple of the
        mean call count. Default 3.
    min_nodes:
        Graphs smaller than this get no hubs. Default 5.
    cross_file:
        Also flag nodes seen in more than one analysed file.
    """

    def __init__(
        self,
        multiplier: float = DEFAULT_HUB_MULTIPLIER,
        min_nodes: int = DEFAULT_HUB_MIN_NODES,
        cross_file: bool = False,
    ) -> None:
        if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)) or multiplier <= 0:
            raise ValueError(f"multiplier must be a positive number, got {multiplier!r}")
        if isinstance(min_nodes, bool) or not isinstance(min_nodes, int) or min_nodes < 0:
            raise ValueError(f"min_nodes must be a non-negative integer, got {min_nodes!r}")
        self._multiplier = float(multiplier)
        self._min_nodes = min_nodes
        self._cross_file = cross_file

    @property
    def multiplier(self) -> float:
        return self._multiplier

    @property
    def min_nodes(self) -> int:
        return self._min_nodes

    def threshold(self, graph: Graph) -> Optional[float]:
        """Call count a node must exceed, or None when the graph is too small."""
        if graph.node_count == 0 or graph.node_count < self._min_nodes:
            return None
        total = sum(node.call_count for node in graph.nodes())
        return self._multiplier * (total / graph.node_count)

    def detect(
        self,
        graph: Graph,
        analysed_file_ids: Optional[Iterable[str]] = None,
    ) -> list[HubResult]:
        """Flag hubs in place and return them, busiest first.

        Every node's ``is_hub`` is reset first, so detecting twice on the
        same graph is safe.
        """
        for node in graph.nodes():
            node.is_hub = False

        if analysed_file_ids is None:
            files: set[str] = set()
            for node in graph.nodes():
                files |= node.file_ids
        else:
            files = set(analysed_file_ids)
        check_cross_file = self._cross_file and len(files) > 1

        threshold = self.threshold(graph)
        mean = threshold / self._multiplier if threshold is not None else 0.0

        results: list[HubResult] = []
        for node in graph.nodes():
            by_volume = threshold is not None and node.call_count > threshold
            by_files = check_cross_file and len(node.file_ids & files) > 1
            if not (by_volume or by_files):
                continue

            node.is_hub = True
            ratio = node.call_count / mean if mean else 0.0
            if by_volume:
                explanation = (
                    f"{node.id} has {node.call_count} interactions, {ratio:.1f}x the "
                    f"graph average (threshold {threshold:.1f})."
                )
            else:
                explanation = (
                    f"{node.id} appears in {len(node.file_ids & files)} of the "
                    f"{len(files)} analysed files."
                )
            results.append(HubResult(
                node_id=node.id,
                call_count=node.call_count,
                threshold=threshold if threshold is not None else 0.0,
                ratio_to_mean=ratio,
                cross_file=by_files,
                explanation=explanation,
            ))

        results.sort(key=lambda r: (-r.call_count, r.node_id))
        logger.debug(
            "Hub detection: %d of %d nodes flagged (threshold %s)",
            len(results), graph.node_count, threshold,
        )
        return results
