from __future__ import annotations

import pytest

from services.errors import MalformedFileError, UploadTooLargeError
from services.ingest import read_file, read_rows
from services.normalizer import normalize

EXPORT_CSV = (
    "시리얼넘버,멀칭 장소,베터리,일시,토양수분,EC,지온\n"
    "SN-1,A,90,2024-01-01 01:00:00,10,0.5,12\n"
    "\n"
    "SN-1,A,90,2024-01-01 02:00:00,20,0.7,13\n"
    "SN-2,B,80,broken,30,0.9,14\n"
)


def test_read_rows_skips_blank_lines() -> None:
    rows = read_rows(EXPORT_CSV.encode("utf-8"))

    assert len(rows) == 3
    assert rows[0]["멀칭 장소"] == "A"
    assert len(normalize(rows)) == 2


def test_read_rows_tolerates_bom_and_cp949() -> None:
    with_bom = read_rows(EXPORT_CSV.encode("utf-8-sig"))
    legacy = read_rows(EXPORT_CSV.encode("cp949"))

    assert with_bom == legacy
    assert "시리얼넘버" in with_bom[0]


def test_read_rows_accepts_english_headers() -> None:
    body = "Serial_Number, Location ,Battery,Timestamp,Moisture,EC,Temperature\nS,A,1,2024-01-01T00:00,1,2,3\n"

    (reading,) = normalize(read_rows(body.encode("utf-8")))

    assert reading.location == "A"
    assert reading.temperature == 3.0


def test_read_rows_rejects_oversized_payload() -> None:
    with pytest.raises(UploadTooLargeError) as excinfo:
        read_rows(EXPORT_CSV.encode("utf-8"), max_bytes=10)

    assert excinfo.value.limit == 10


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        (b"", "empty"),
        (b"  \n", "empty"),
        (b"serial_number,location,moisture\nS,A,1\n", "timestamp"),
        (b"\xff\xfe\xfa\x00\x81", "UTF-8"),
    ],
)
def test_read_rows_rejects_malformed_files(payload: bytes, message: str) -> None:
    with pytest.raises(MalformedFileError) as excinfo:
        read_rows(payload)

    assert message in str(excinfo.value)


def test_read_file_checks_size_before_reading(tmp_path) -> None:
    path = tmp_path / "export.csv"
    path.write_text(EXPORT_CSV, encoding="utf-8")

    assert len(read_file(path)) == 3
    with pytest.raises(UploadTooLargeError):
        read_file(path, max_bytes=5)
