from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from settings import DEFAULT_MAX_UPLOAD_BYTES, DEFAULT_PREVIEW_ROWS, get_settings


@dataclass(frozen=True)
class CLIConfig:
    timezone: Optional[str] = None
    preview_rows: int = DEFAULT_PREVIEW_ROWS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES


def validate_timezone(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    candidate = name.strip()
    if not candidate:
        return None
    try:
        ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone {candidate!r}.") from exc
    return candidate


def load_config(
    timezone: Optional[str] = None,
    preview_rows: Optional[int] = None,
) -> CLIConfig:
    settings = get_settings()
    zone = timezone if timezone is not None else settings.timezone
    rows = preview_rows if preview_rows is not None and preview_rows > 0 else settings.preview_rows
    return CLIConfig(
        timezone=validate_timezone(zone),
        preview_rows=rows,
        max_upload_bytes=settings.max_upload_bytes,
    )
