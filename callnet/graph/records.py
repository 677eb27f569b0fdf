"""Normalized interaction records, the engine's input.

Records arrive from an upstream normalizer that has already parsed the
operator exports (CDR spreadsheets, SMS logs). The engine trusts their
shape but not their completeness: any field may be blank on a partial
row, and the builder skips rows it cannot place on the graph.

Usage-type codes vary between operators. ``classify_usage_type`` maps
the common ones onto a call direction for normalizers that do not set
``direction`` themselves.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)


class Direction(str, enum.Enum):
    """Who initiated an interaction, relative to the record's nominal order."""

    OUTGOING = "outgoing"   # initiator_id placed the call / sent the SMS
    INCOMING = "incoming"   # recipient_id is the true initiator
    UNKNOWN = "unknown"


# Operator codes that name a direction outright
_OUTGOING_CODES = ("MOC", "VOICEOUT", "CALL OUT", "OGCALL", "SMSMO")
_INCOMING_CODES = ("MTC", "VOICEIN", "CALL IN", "ICCALL", "SMSMT")


def is_sms(usage_type: Optional[str]) -> bool:
    """True for SMS usage types (``SMSMO``, ``SMSMT``, ``SMO``, ``SMT``, ...)."""
    if not usage_type:
        return False
    upper = usage_type.strip().upper()
    return "SMS" in upper or upper in ("SMO", "SMT")


def is_call(usage_type: Optional[str]) -> bool:
    """True for voice usage types (``MOC``, ``MTC``, ``VOICE``, ...)."""
    if not usage_type or is_sms(usage_type):
        return False
    upper = usage_type.strip().upper()
    return (
        any(code in upper for code in _OUTGOING_CODES + _INCOMING_CODES)
        or "CALL" in upper
        or "VOICE" in upper
    )


def classify_usage_type(usage_type: Optional[str]) -> Direction:
    """Map an operator usage-type code onto a call direction.

    Explicit incoming markers are checked before the generic call and
    voice fallbacks, so ``VOICEIN`` is incoming even though it contains
    ``VOICE``. SMS checks look for ``OUT`` before ``IN`` because
    ``OUTGOING`` itself contains ``IN``.
    """
    if not usage_type:
        return Direction.UNKNOWN
    upper = usage_type.strip().upper()

    if is_sms(upper):
        if "SMSMO" in upper or upper == "SMO" or "OUT" in upper:
            return Direction.OUTGOING
        if "SMSMT" in upper or upper == "SMT" or "IN" in upper:
            return Direction.INCOMING
        return Direction.UNKNOWN

    if any(code in upper for code in _INCOMING_CODES):
        return Direction.INCOMING
    if ("CALL" in upper or "VOICE" in upper) and "INC" in upper:
        return Direction.INCOMING
    if any(code in upper for code in _OUTGOING_CODES):
        return Direction.OUTGOING
    if "CALL" in upper or "VOICE" in upper:
        return Direction.OUTGOING
    return Direction.UNKNOWN


@dataclass(frozen=True)
class InteractionRecord:
    """One normalized call or SMS event."""

    initiator_id: str
    recipient_id: str
    usage_type: str
    timestamp_ms: Optional[int]
    duration_seconds: float = 0
    file_id: str = ""
    tower_id: Optional[str] = None
    direction: Optional[Direction] = None  # None: classify from usage_type
    device_id: Optional[str] = None        # IMEI of the initiator's handset

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Optional["InteractionRecord"]:
        """Build a record from a loosely-typed normalizer row.

        Accepts camelCase or snake_case keys, numeric strings and
        ISO-8601 timestamps. Returns None when the row has no usable
        party ids or timestamp.
        """
        initiator = _clean_str(_pick(data, "initiator_id", "initiatorId", "aparty"))
        recipient = _clean_str(_pick(data, "recipient_id", "recipientId", "bparty"))
        if not initiator or not recipient:
            return None

        timestamp = parse_timestamp_ms(
            _pick(data, "timestamp_ms", "timestampMs", "timestamp")
        )
        if timestamp is None:
            return None

        raw_direction = _pick(data, "direction")
        direction: Optional[Direction] = None
        if raw_direction:
            try:
                direction = Direction(str(raw_direction).strip().lower())
            except ValueError:
                logger.debug("Ignoring unknown direction %r", raw_direction)

        return cls(
            initiator_id=initiator,
            recipient_id=recipient,
            usage_type=_clean_str(_pick(data, "usage_type", "usageType")) or "N/A",
            timestamp_ms=timestamp,
            duration_seconds=parse_duration(
                _pick(data, "duration_seconds", "durationSeconds", "duration")
            ),
            file_id=_clean_str(_pick(data, "file_id", "fileId")),
            tower_id=_clean_str(_pick(data, "tower_id", "towerId")) or None,
            direction=direction,
            device_id=_clean_str(_pick(data, "device_id", "deviceId", "imei")) or None,
        )


def parse_timestamp_ms(value: Any) -> Optional[int]:
    """Coerce an epoch-ms number, numeric string, datetime or ISO string.

    Naive datetimes are taken as UTC. Returns None for anything that
    does not yield a finite instant.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            pass
        else:
            return int(number) if math.isfinite(number) else None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parse_timestamp_ms(parsed)
    return None


def parse_duration(value: Any) -> float:
    """Duration in seconds; blank, unparseable or negative values count as 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(seconds) or seconds < 0:
        return 0
    return int(seconds) if seconds.is_integer() else seconds


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _clean_str(value: Any) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    if text.lower() == "n/a":
        return ""
    return text
