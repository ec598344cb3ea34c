from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.normalizer",
        level=logging.DEBUG,
        pathname=__file__,
        lineno=1,
        msg="Normalized sensor rows",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_extra_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    message = formatter.format(_record(row_count=3, dropped_count=1, unrelated="x"))

    assert message == "Normalized sensor rows | row_count=3 dropped_count=1"


def test_formatter_skips_missing_and_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["granularity"])

    assert formatter.format(_record(granularity=None)) == "Normalized sensor rows"
    assert formatter.format(_record(granularity="daily")) == "Normalized sensor rows | granularity=daily"
