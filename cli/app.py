from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

import typer

from cli.config import CLIConfig, load_config
from cli.render import render_readings, render_report, render_summary
from logging_config import configure_logging
from models.records import Metric
from services.errors import SensorDataError
from services.ingest import read_file
from services.report import SensorDataset, build_report


@dataclass
class CLIState:
    config: CLIConfig


app = typer.Typer(
    help="Summarize soil-sensor CSV exports as time-bucketed trends.",
    context_settings={"help_option_names": ["-h", "--help"]},
)

_DATE_FORMATS = ["%Y-%m-%d"]


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _load_dataset(path: Path, config: CLIConfig) -> SensorDataset:
    try:
        rows = read_file(path, max_bytes=config.max_upload_bytes)
        return SensorDataset.from_rows(rows, tz=config.timezone)
    except SensorDataError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def _to_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


@app.callback()
def main(
    ctx: typer.Context,
    timezone: Optional[str] = typer.Option(
        None,
        "--timezone",
        "-z",
        help="IANA zone that offset-aware timestamps are converted to (defaults to SOIL_TIMEZONE).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None)
    try:
        config = load_config(timezone=timezone)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--timezone") from exc
    ctx.obj = CLIState(config=config)


@app.command("summary")
def summary_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
) -> None:
    """Show row count, date range and locations of a CSV export."""
    state = _get_state(ctx)
    dataset = _load_dataset(file, state.config)
    render_summary(dataset)


@app.command("preview")
def preview_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        min=1,
        help="Number of readings to show (defaults to SOIL_PREVIEW_ROWS or 10).",
    ),
) -> None:
    """Print the first validated readings."""
    state = _get_state(ctx)
    dataset = _load_dataset(file, state.config)
    render_readings(dataset.preview(limit or state.config.preview_rows))


@app.command("trend")
def trend_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
    start: Optional[datetime] = typer.Option(
        None, "--start", "-s", formats=_DATE_FORMATS, help="First day (inclusive)."
    ),
    end: Optional[datetime] = typer.Option(
        None, "--end", "-e", formats=_DATE_FORMATS, help="Last day (inclusive)."
    ),
    locations: Optional[List[str]] = typer.Option(
        None, "--location", "-l", help="Location to include; repeat for several. Omit for all."
    ),
    metrics: Optional[List[Metric]] = typer.Option(
        None, "--metric", "-m", help="Metric column to show; repeat for several. Omit for all."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report payload as JSON."),
) -> None:
    """Aggregate readings into hourly, daily or weekly averages per location."""
    state = _get_state(ctx)
    dataset = _load_dataset(file, state.config)

    start_date = _to_date(start)
    end_date = _to_date(end)
    bounds = dataset.date_range
    if bounds is not None:
        start_date = start_date or bounds[0]
        end_date = end_date or bounds[1]

    payload = build_report(
        dataset,
        start_date=start_date,
        end_date=end_date,
        locations=locations or (),
        metrics=metrics or (),
        include_readings=as_json,
    )
    if as_json:
        typer.echo(payload.model_dump_json(indent=2))
        return
    render_report(payload)
