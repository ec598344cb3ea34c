"""Dataset holder and the report payload built from it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from models.records import Metric, SensorReading
from models.schemas import ReadingRecord, ReportPayload, SeriesKey
from services.aggregator import (
    AggregatedBucket,
    Aggregator,
    date_bounds,
    distinct_locations,
    select_granularity,
)
from services.normalizer import TimezoneLike, normalize_or_raise

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensorDataset:
    """An ingested reading set. Replaced wholesale, never patched."""

    readings: Tuple[SensorReading, ...]

    @classmethod
    def from_rows(
        cls, rows: Iterable[Mapping[str, Optional[str]]], tz: TimezoneLike = None
    ) -> "SensorDataset":
        dataset = cls(readings=tuple(normalize_or_raise(rows, tz)))
        logger.info(
            "Loaded sensor dataset",
            extra={"row_count": len(dataset), "location_count": len(dataset.locations)},
        )
        return dataset

    def __len__(self) -> int:
        return len(self.readings)

    @property
    def locations(self) -> List[str]:
        return distinct_locations(self.readings)

    @property
    def date_range(self) -> Optional[Tuple[date, date]]:
        return date_bounds(self.readings)

    def preview(self, limit: int) -> List[SensorReading]:
        return list(self.readings[:limit])

    def aggregate(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        locations: Iterable[str] = (),
    ) -> List[AggregatedBucket]:
        return Aggregator().aggregate(self.readings, start_date, end_date, locations)


def _series(
    buckets: Sequence[AggregatedBucket], locations: Sequence[str], metrics: Sequence[Metric]
) -> List[SeriesKey]:
    present = {location for bucket in buckets for location in bucket.locations}
    return [
        SeriesKey(location=location, metric=metric, column=f"{location}_{metric.value}")
        for location in locations
        if location in present
        for metric in metrics
    ]


def build_report(
    dataset: SensorDataset,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    locations: Iterable[str] = (),
    metrics: Iterable[Metric] = (),
    include_readings: bool = True,
) -> ReportPayload:
    """Aggregate ``dataset`` and package the result for a renderer.

    With neither bound given the dataset's own date range is used. Metric
    selection only trims the serialized columns.
    """
    if start_date is None and end_date is None and dataset.date_range is not None:
        start_date, end_date = dataset.date_range

    selected_locations = list(dict.fromkeys(locations))
    selected_metrics = list(dict.fromkeys(metrics)) or list(Metric)
    buckets = dataset.aggregate(start_date, end_date, selected_locations)

    granularity = None
    if start_date is not None and end_date is not None and start_date <= end_date:
        granularity = select_granularity(start_date, end_date)

    all_locations = dataset.locations
    return ReportPayload(
        granularity=granularity,
        start_date=start_date,
        end_date=end_date,
        locations=all_locations,
        selected_locations=selected_locations,
        metrics=selected_metrics,
        point_count=len(buckets),
        series=_series(buckets, selected_locations or all_locations, selected_metrics),
        buckets=[bucket.as_chart_row(selected_metrics) for bucket in buckets],
        readings=(
            [ReadingRecord.from_reading(reading) for reading in dataset.readings]
            if include_readings
            else []
        ),
    )
