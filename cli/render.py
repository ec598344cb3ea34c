from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

import typer

from models.records import SensorReading
from models.schemas import ReportPayload
from services.report import SensorDataset


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_value(value: Optional[object]) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def echo_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
    widths = [len(header) for header in headers]
    for row in rows:
        widths = [max(width, len(cell)) for width, cell in zip(widths, row)]
    typer.echo("  ".join(header.ljust(width) for header, width in zip(headers, widths)))
    typer.echo("  ".join("-" * width for width in widths))
    for row in rows:
        typer.echo("  ".join(cell.ljust(width) for cell, width in zip(row, widths)))


def render_summary(dataset: SensorDataset) -> None:
    echo_heading("Dataset")
    bounds = dataset.date_range
    echo_key_values(
        [
            ("rows", len(dataset)),
            ("start_date", bounds[0].isoformat() if bounds else None),
            ("end_date", bounds[1].isoformat() if bounds else None),
        ]
    )
    typer.echo("locations:")
    for location in dataset.locations:
        typer.echo(f"  - {location}")


def render_readings(readings: Sequence[SensorReading]) -> None:
    echo_heading("Readings")
    echo_table(
        ["timestamp", "serial_number", "location", "battery", "moisture", "ec", "temperature"],
        [
            [
                reading.timestamp.strftime("%Y-%m-%d %H:%M"),
                reading.serial_number,
                reading.location,
                _format_value(reading.battery),
                _format_value(reading.moisture),
                _format_value(reading.ec),
                _format_value(reading.temperature),
            ]
            for reading in readings
        ],
    )


def render_report(payload: ReportPayload) -> None:
    echo_heading("Trend")
    echo_key_values(
        [
            ("start_date", payload.start_date),
            ("end_date", payload.end_date),
            ("granularity", payload.granularity.summary_label if payload.granularity else None),
            ("points", payload.point_count),
        ]
    )
    typer.echo()
    if not payload.buckets:
        typer.echo("No data matches the selected filters.")
        return

    headers = ["bucket"] + [
        f"{series.location} {series.metric.label} ({series.metric.unit})"
        for series in payload.series
    ]
    rows = [
        [str(bucket["displayDate"])]
        + [_format_value(bucket.get(series.column)) for series in payload.series]
        for bucket in payload.buckets
    ]
    echo_table(headers, rows)
