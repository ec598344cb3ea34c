"""Dataset-level failures surfaced to callers."""

from __future__ import annotations


class SensorDataError(ValueError):
    """Base class for problems the user can fix by supplying other data."""


class NoUsableDataError(SensorDataError):
    """No row survived validation."""

    def __init__(self, message: str = "No valid sensor readings found. Check the CSV format.") -> None:
        super().__init__(message)


class UploadTooLargeError(SensorDataError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"File is too large ({size} bytes, limit {limit} bytes).")
        self.size = size
        self.limit = limit


class MalformedFileError(SensorDataError):
    """The delimited text could not be read as a sensor export."""
