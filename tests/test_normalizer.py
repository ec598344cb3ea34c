from __future__ import annotations

from datetime import datetime
from typing import Dict

import pytest

from models.records import LOCATION_SENTINEL, SERIAL_NUMBER_SENTINEL
from services.errors import NoUsableDataError
from services.normalizer import (
    normalize,
    normalize_or_raise,
    parse_number,
    parse_timestamp,
)


def _row(**overrides: str) -> Dict[str, str]:
    row = {
        "serial_number": "SN-001",
        "location": "North field",
        "battery": "87.5",
        "timestamp": "2024-01-01T01:00:00",
        "moisture": "31.2",
        "ec": "0.45",
        "temperature": "12.3",
    }
    row.update(overrides)
    return row


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-01-01T01:00", datetime(2024, 1, 1, 1, 0)),
        ("2024-01-01 01:00:30", datetime(2024, 1, 1, 1, 0, 30)),
        ("2024-01-01", datetime(2024, 1, 1)),
        ("2024/01/02 03:04", datetime(2024, 1, 2, 3, 4)),
        ("2024.01.02 03:04:05", datetime(2024, 1, 2, 3, 4, 5)),
        ("2024-01-01T01:00:00Z", datetime(2024, 1, 1, 1, 0)),
        ("2024-01-01T10:00:00+09:00", datetime(2024, 1, 1, 1, 0)),
        ("2024-01-01T01:00:00.5", datetime(2024, 1, 1, 1, 0, 0, 500000)),
    ],
)
def test_parse_timestamp_accepts_common_layouts(raw: str, expected: datetime) -> None:
    assert parse_timestamp(raw) == expected


def test_parse_timestamp_converts_aware_values_to_zone() -> None:
    from zoneinfo import ZoneInfo

    parsed = parse_timestamp("2024-01-01T00:30:00Z", ZoneInfo("Asia/Seoul"))

    assert parsed == datetime(2024, 1, 1, 9, 30)
    assert parsed.tzinfo is None


@pytest.mark.parametrize("raw", ["", "   ", "yesterday", "2024-02-30 10:00", "2024-13-01", "01/02/2024"])
def test_parse_timestamp_rejects_invalid(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_timestamp(raw)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12.5", 12.5),
        (" -3 ", -3.0),
        ("35.2%", 35.2),
        (".5", 0.5),
        ("1e2", 100.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        ("nan", 0.0),
        ("1e999", 0.0),
    ],
)
def test_parse_number(raw, expected: float) -> None:
    assert parse_number(raw) == expected


def test_normalize_drops_rows_with_bad_timestamps() -> None:
    rows = [
        _row(),
        _row(timestamp="not a date"),
        _row(timestamp="2023-02-29 12:00"),
        _row(timestamp=""),
    ]

    readings = normalize(rows)

    assert len(readings) == 1
    assert readings[0].timestamp == datetime(2024, 1, 1, 1, 0)


def test_normalize_substitutes_zero_for_bad_numbers() -> None:
    rows = [_row(battery="low", moisture="", ec="n/a", temperature="--")]

    (reading,) = normalize(rows)

    assert reading.battery == 0
    assert reading.moisture == 0
    assert reading.ec == 0
    assert reading.temperature == 0
    assert reading.location == "North field"


def test_normalize_uses_sentinels_for_missing_identifiers() -> None:
    row = _row(location="  ")
    del row["serial_number"]

    (reading,) = normalize([row])

    assert reading.serial_number == SERIAL_NUMBER_SENTINEL
    assert reading.location == LOCATION_SENTINEL


def test_normalize_resolves_export_headers() -> None:
    row = {
        "시리얼넘버": "SN-77",
        "멀칭 장소": "비닐하우스 1",
        "베터리": "95",
        "일시": "2024-05-01 06:00:00",
        "토양수분": "22.4",
        "EC": "1.1",
        "지온": "18.0",
    }

    (reading,) = normalize([row])

    assert reading.serial_number == "SN-77"
    assert reading.location == "비닐하우스 1"
    assert reading.battery == 95.0
    assert reading.timestamp == datetime(2024, 5, 1, 6, 0)
    assert (reading.moisture, reading.ec, reading.temperature) == (22.4, 1.1, 18.0)


def test_normalize_accepts_zone_name() -> None:
    (reading,) = normalize([_row(timestamp="2024-01-01T23:00:00Z")], tz="Asia/Seoul")

    assert reading.timestamp == datetime(2024, 1, 2, 8, 0)


def test_normalize_or_raise_on_empty_result() -> None:
    with pytest.raises(NoUsableDataError):
        normalize_or_raise([_row(timestamp="garbage")])

    assert normalize([]) == []


def test_offsets_for_the_same_moment_share_one_bucket() -> None:
    from datetime import date

    from services.aggregator import aggregate

    readings = normalize(
        [
            _row(timestamp="2024-01-01T00:30:00Z", moisture="10"),
            _row(timestamp="2024-01-01T09:30:00+09:00", moisture="20"),
        ]
    )

    assert [reading.timestamp for reading in readings] == [datetime(2024, 1, 1, 0, 30)] * 2
    (bucket,) = aggregate(readings, date(2024, 1, 1), date(2024, 1, 1))
    assert bucket.bucket_key == "2024-01-01 00:00"
    assert bucket.as_chart_row()["North field_moisture"] == 15.0
