"""Time-bucketed, per-location aggregation of sensor readings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from models.records import Metric, SensorReading

logger = logging.getLogger(__name__)

DAILY_THRESHOLD_DAYS = 7
WEEKLY_THRESHOLD_DAYS = 31


class Granularity(str, Enum):
    """Bucket sizes, chosen from the span of the requested date range."""

    hourly = "hourly"
    daily = "daily"
    weekly = "weekly"

    @property
    def summary_label(self) -> str:
        return f"{self.value} average"


@dataclass(frozen=True)
class MetricAverages:
    """Rounded per-metric means for one location within one bucket."""

    moisture: float
    ec: float
    temperature: float
    count: int

    def value(self, metric: Metric) -> float:
        return getattr(self, metric.value)


@dataclass(frozen=True)
class AggregatedBucket:
    """One point of the trend table.

    ``locations`` only holds locations that had readings in the bucket.
    """

    bucket_key: str
    display_label: str
    locations: Mapping[str, MetricAverages] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "locations", MappingProxyType(dict(self.locations)))

    def __hash__(self) -> int:
        return hash((self.bucket_key, self.display_label, tuple(self.locations.items())))

    def count(self, location: str) -> int:
        averages = self.locations.get(location)
        return averages.count if averages is not None else 0

    def value(self, location: str, metric: Metric) -> Optional[float]:
        averages = self.locations.get(location)
        if averages is None:
            return None
        return averages.value(metric)

    def series(self, metrics: Sequence[Metric] = tuple(Metric)) -> List[Tuple[str, Metric]]:
        return [(location, metric) for location in self.locations for metric in metrics]

    def as_chart_row(self, metrics: Sequence[Metric] = tuple(Metric)) -> Dict[str, object]:
        """Flatten into the ``<location>_<metric>`` row shape charting tools consume."""
        row: Dict[str, object] = {"date": self.bucket_key, "displayDate": self.display_label}
        for location, averages in self.locations.items():
            for metric in metrics:
                row[f"{location}_{metric.value}"] = averages.value(metric)
        return row


@dataclass
class _Accumulator:
    moisture: float = 0.0
    ec: float = 0.0
    temperature: float = 0.0
    count: int = 0

    def add(self, reading: SensorReading) -> None:
        self.moisture += reading.moisture
        self.ec += reading.ec
        self.temperature += reading.temperature
        self.count += 1

    def averages(self) -> MetricAverages:
        return MetricAverages(
            moisture=round(self.moisture / self.count, 2),
            ec=round(self.ec / self.count, 2),
            temperature=round(self.temperature / self.count, 2),
            count=self.count,
        )


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def select_granularity(start_date: date, end_date: date) -> Granularity:
    span = (_as_date(end_date) - _as_date(start_date)).days
    if span > WEEKLY_THRESHOLD_DAYS:
        return Granularity.weekly
    if span > DAILY_THRESHOLD_DAYS:
        return Granularity.daily
    return Granularity.hourly


def bucket_key(timestamp: datetime, granularity: Granularity) -> str:
    """Canonical, lexicographically sortable key of the bucket holding ``timestamp``."""
    if granularity is Granularity.weekly:
        day = timestamp.date()
        return (day - timedelta(days=day.weekday())).isoformat()
    if granularity is Granularity.daily:
        return timestamp.date().isoformat()
    return timestamp.strftime("%Y-%m-%d %H:00")


def display_label(key: str, granularity: Granularity) -> str:
    if granularity is Granularity.hourly:
        return datetime.strptime(key, "%Y-%m-%d %H:%M").strftime("%m/%d %H:%M")
    label = date.fromisoformat(key).strftime("%m/%d")
    if granularity is Granularity.weekly:
        return f"{label} (week)"
    return label


def distinct_locations(readings: Iterable[SensorReading]) -> List[str]:
    """Locations in first-seen order."""
    return list(dict.fromkeys(reading.location for reading in readings))


def date_bounds(readings: Iterable[SensorReading]) -> Optional[Tuple[date, date]]:
    """Earliest and latest calendar date present, or ``None`` for no readings."""
    days = [reading.timestamp.date() for reading in readings]
    if not days:
        return None
    return min(days), max(days)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(
        self,
        readings: Iterable[SensorReading],
        start_date: Optional[date],
        end_date: Optional[date],
        location_filter: Optional[Iterable[str]] = None,
    ) -> List[AggregatedBucket]:
        if readings is None:
            raise TypeError("readings must be an iterable of SensorReading, not None")
        if start_date is None or end_date is None:
            return []

        start = _as_date(start_date)
        end = _as_date(end_date)
        if start > end:
            return []

        granularity = select_granularity(start, end)
        wanted = frozenset(location_filter or ())

        groups: Dict[str, Dict[str, _Accumulator]] = {}
        for reading in readings:
            if not start <= reading.timestamp.date() <= end:
                continue
            if wanted and reading.location not in wanted:
                continue
            key = bucket_key(reading.timestamp, granularity)
            per_location = groups.setdefault(key, {})
            per_location.setdefault(reading.location, _Accumulator()).add(reading)

        buckets = [
            AggregatedBucket(
                bucket_key=key,
                display_label=display_label(key, granularity),
                locations={
                    location: per_location[location].averages()
                    for location in sorted(per_location)
                },
            )
            for key, per_location in sorted(groups.items())
        ]

        logger.debug(
            "Aggregated sensor readings",
            extra={"bucket_count": len(buckets), "granularity": granularity.value},
        )
        return buckets


def aggregate(
    readings: Iterable[SensorReading],
    start_date: Optional[date],
    end_date: Optional[date],
    location_filter: Optional[Iterable[str]] = None,
) -> List[AggregatedBucket]:
    """Module-level shortcut for :meth:`Aggregator.aggregate`."""
    return Aggregator().aggregate(readings, start_date, end_date, location_filter)
