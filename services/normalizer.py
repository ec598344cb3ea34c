"""Conversion of untyped CSV rows into validated sensor readings."""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Mapping, Optional, Union
from zoneinfo import ZoneInfo

from models.records import (
    LOCATION_SENTINEL,
    SERIAL_NUMBER_SENTINEL,
    RawField,
    SensorReading,
    resolve_header,
)
from services.errors import NoUsableDataError

logger = logging.getLogger(__name__)

# Tried in order after ISO 8601 parsing fails.
_TIMESTAMP_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%Y.%m.%d %H:%M:%S",
    "%Y.%m.%d %H:%M",
    "%Y.%m.%d",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S.%f",
)

_NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

TimezoneLike = Union[tzinfo, str, None]


def parse_timestamp(value: str, tz: Optional[tzinfo] = None) -> datetime:
    """Parse a timestamp into a naive local datetime.

    Offset-aware values are converted to ``tz`` when given, otherwise to UTC,
    so every aware value lands on one clock. Raises ``ValueError`` when
    nothing matches or the date does not exist on the calendar.
    """
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        for layout in _TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(candidate, layout)
            except ValueError:
                continue
            break

    if parsed is None:
        raise ValueError(f"Invalid timestamp format: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz if tz is not None else timezone.utc).replace(tzinfo=None)
    return parsed


def parse_number(value: Optional[str]) -> float:
    """Read the leading decimal literal of ``value``; ``0.0`` when there is none."""
    if value is None:
        return 0.0
    match = _NUMBER_PREFIX.match(value.strip())
    if match is None:
        return 0.0
    number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


def canonical_row(row: Mapping[str, Optional[str]]) -> Dict[RawField, str]:
    """Key a raw row by canonical field; unknown columns are ignored."""
    resolved: Dict[RawField, str] = {}
    for header, value in row.items():
        if header is None:
            continue
        field = resolve_header(header)
        if field is None or field in resolved:
            continue
        resolved[field] = value if isinstance(value, str) else ""
    return resolved


def _resolve_tz(tz: TimezoneLike) -> Optional[tzinfo]:
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def normalize_row(
    row: Mapping[str, Optional[str]], tz: Optional[tzinfo] = None
) -> Optional[SensorReading]:
    """Build a reading from one raw row, or ``None`` if its timestamp is unusable."""
    fields = canonical_row(row)
    try:
        timestamp = parse_timestamp(fields.get(RawField.timestamp, ""), tz)
    except ValueError:
        return None

    return SensorReading(
        serial_number=fields.get(RawField.serial_number, "").strip() or SERIAL_NUMBER_SENTINEL,
        location=fields.get(RawField.location, "").strip() or LOCATION_SENTINEL,
        battery=parse_number(fields.get(RawField.battery)),
        timestamp=timestamp,
        moisture=parse_number(fields.get(RawField.moisture)),
        ec=parse_number(fields.get(RawField.ec)),
        temperature=parse_number(fields.get(RawField.temperature)),
    )


def normalize(
    raw_rows: Iterable[Mapping[str, Optional[str]]], tz: TimezoneLike = None
) -> List[SensorReading]:
    """Validate raw rows, dropping those without a usable timestamp."""
    zone = _resolve_tz(tz)
    readings: List[SensorReading] = []
    dropped = 0
    for row in raw_rows:
        reading = normalize_row(row, zone)
        if reading is None:
            dropped += 1
            continue
        readings.append(reading)

    logger.debug(
        "Normalized sensor rows",
        extra={"row_count": len(readings), "dropped_count": dropped},
    )
    return readings


def normalize_or_raise(
    raw_rows: Iterable[Mapping[str, Optional[str]]], tz: TimezoneLike = None
) -> List[SensorReading]:
    """Like :func:`normalize`, but an empty result raises ``NoUsableDataError``."""
    readings = normalize(raw_rows, tz)
    if not readings:
        raise NoUsableDataError()
    return readings
