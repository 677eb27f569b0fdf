"""Time interval helpers used by the temporal filter.

All intervals are closed ``[start, end]`` in epoch milliseconds. A node
seen by exactly one record has ``first == last`` and must still match
any window containing that instant, so a zero-length interval is valid.
"""

from __future__ import annotations

from typing import Optional


def intervals_overlap(
    start_a: Optional[int],
    end_a: Optional[int],
    start_b: int,
    end_b: int,
) -> bool:
    """Return True when ``[start_a, end_a]`` and ``[start_b, end_b]`` share an instant.

    A missing bound on the first interval means the element never had a
    usable timestamp and cannot intersect any window.
    """
    if start_a is None or end_a is None:
        return False
    return end_a >= start_b and start_a <= end_b


def extend_interval(
    start: Optional[int],
    end: Optional[int],
    instant: int,
) -> tuple[int, int]:
    """Widen ``[start, end]`` so that it covers ``instant``."""
    if start is None or instant < start:
        start = instant
    if end is None or instant > end:
        end = instant
    return start, end
