"""Pydantic schemas for the payload handed to chart and table renderers."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from models.records import Metric, SensorReading
from services.aggregator import Granularity


class ReadingRecord(BaseModel):
    """A validated reading as shown in the raw-record table."""

    serial_number: str
    location: str
    battery: float
    timestamp: datetime
    moisture: float
    ec: float
    temperature: float

    @classmethod
    def from_reading(cls, reading: SensorReading) -> "ReadingRecord":
        return cls(
            serial_number=reading.serial_number,
            location=reading.location,
            battery=reading.battery,
            timestamp=reading.timestamp,
            moisture=reading.moisture,
            ec=reading.ec,
            temperature=reading.temperature,
        )


class SeriesKey(BaseModel):
    """One plotted line: a metric at a location."""

    location: str
    metric: Metric
    column: str = Field(..., description="Key of this series in each chart row.")


class ReportPayload(BaseModel):
    """Everything a renderer needs to draw the trend chart and its filters."""

    granularity: Optional[Granularity] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    locations: List[str] = Field(
        default_factory=list, description="All distinct locations in the dataset."
    )
    selected_locations: List[str] = Field(default_factory=list)
    metrics: List[Metric] = Field(default_factory=list)
    point_count: int = Field(0, ge=0)
    series: List[SeriesKey] = Field(default_factory=list)
    buckets: List[Dict[str, Union[str, float]]] = Field(default_factory=list)
    readings: List[ReadingRecord] = Field(default_factory=list)
