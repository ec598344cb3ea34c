"""Reading raw rows out of uploaded sensor CSV exports."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Dict, List, Optional

from models.records import RawField, resolve_header
from services.errors import MalformedFileError, UploadTooLargeError
from settings import get_settings

logger = logging.getLogger(__name__)

# Legacy Korean loggers export CP949 rather than UTF-8.
_ENCODINGS = ("utf-8-sig", "cp949")


def _decode(payload: bytes) -> str:
    for encoding in _ENCODINGS:
        try:
            return payload.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise MalformedFileError("CSV file is not valid UTF-8 or CP949 text.")


def read_rows(payload: bytes, max_bytes: Optional[int] = None) -> List[Dict[str, str]]:
    """Split a CSV payload into header-keyed rows, skipping blank lines."""
    limit = max_bytes if max_bytes is not None else get_settings().max_upload_bytes
    if len(payload) > limit:
        raise UploadTooLargeError(size=len(payload), limit=limit)
    if not payload.strip():
        raise MalformedFileError("Uploaded file is empty.")

    reader = csv.DictReader(io.StringIO(_decode(payload)))
    if not reader.fieldnames:
        raise MalformedFileError("CSV file is missing a header row.")

    known = {resolve_header(name) for name in reader.fieldnames if name}
    if RawField.timestamp not in known:
        raise MalformedFileError("CSV missing required column: timestamp")

    rows: List[Dict[str, str]] = []
    for row in reader:
        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
            continue
        rows.append(row)

    logger.info(
        "Read sensor CSV",
        extra={"size_bytes": len(payload), "row_count": len(rows)},
    )
    return rows


def read_file(path: Path, max_bytes: Optional[int] = None) -> List[Dict[str, str]]:
    """Read rows from a CSV file on disk, checking its size before loading it."""
    limit = max_bytes if max_bytes is not None else get_settings().max_upload_bytes
    size = path.stat().st_size
    if size > limit:
        raise UploadTooLargeError(size=size, limit=limit)
    return read_rows(path.read_bytes(), max_bytes=limit)
