"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Tuple

SERIAL_NUMBER_SENTINEL = "N/A"
LOCATION_SENTINEL = "Unknown"


class RawField(str, Enum):
    """The seven named fields a raw row may carry."""

    serial_number = "serial_number"
    location = "location"
    battery = "battery"
    timestamp = "timestamp"
    moisture = "moisture"
    ec = "ec"
    temperature = "temperature"


# Header spellings seen in field exports, matched case-insensitively.
_FIELD_ALIASES: Dict[RawField, Tuple[str, ...]] = {
    RawField.serial_number: ("serial_number", "serialnumber", "serial", "device_id", "시리얼넘버"),
    RawField.location: ("location", "site", "멀칭 장소", "멀칭장소"),
    RawField.battery: ("battery", "베터리", "배터리"),
    RawField.timestamp: ("timestamp", "datetime", "date", "일시"),
    RawField.moisture: ("moisture", "soil_moisture", "토양수분"),
    RawField.ec: ("ec",),
    RawField.temperature: ("temperature", "soil_temperature", "지온"),
}

HEADER_ALIASES: Dict[str, RawField] = {
    alias.casefold(): field for field, aliases in _FIELD_ALIASES.items() for alias in aliases
}


def resolve_header(name: str) -> RawField | None:
    """Map a column header onto its canonical field, or ``None`` if unknown."""
    return HEADER_ALIASES.get(name.strip().casefold())


class Metric(str, Enum):
    """Averaged metrics, in the column order renderers use."""

    moisture = "moisture"
    ec = "ec"
    temperature = "temperature"

    @property
    def label(self) -> str:
        return _METRIC_LABELS[self][0]

    @property
    def unit(self) -> str:
        return _METRIC_LABELS[self][1]


_METRIC_LABELS: Dict[Metric, Tuple[str, str]] = {
    Metric.moisture: ("Soil moisture", "%"),
    Metric.ec: ("EC", "dS/m"),
    Metric.temperature: ("Soil temperature", "°C"),
}


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single validated soil-sensor reading.

    ``timestamp`` is a naive wall-clock datetime in the deployment's local time.
    """

    serial_number: str
    location: str
    battery: float
    timestamp: datetime
    moisture: float
    ec: float
    temperature: float

    def metric(self, metric: Metric) -> float:
        return getattr(self, metric.value)
