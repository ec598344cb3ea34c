from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_LOG_LEVEL_ENV = "LOG_LEVEL"
_MAX_UPLOAD_ENV = "SOIL_MAX_UPLOAD_BYTES"
_TIMEZONE_ENV = "SOIL_TIMEZONE"
_PREVIEW_ROWS_ENV = "SOIL_PREVIEW_ROWS"

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_PREVIEW_ROWS = 10


@dataclass(frozen=True)
class Settings:
    log_level: str
    max_upload_bytes: int
    timezone: Optional[str]
    preview_rows: int


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        log_level=_read_log_level("INFO"),
        max_upload_bytes=_read_positive_int(_MAX_UPLOAD_ENV, DEFAULT_MAX_UPLOAD_BYTES),
        timezone=_read_optional_env(_TIMEZONE_ENV, None),
        preview_rows=_read_positive_int(_PREVIEW_ROWS_ENV, DEFAULT_PREVIEW_ROWS),
    )
