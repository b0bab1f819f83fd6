from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("services.writer", logging.INFO, __file__, 1, "Created log", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_keys() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    line = formatter.format(_record(log_path="/tmp/Keys.csv", device_id="A", unrelated="x"))

    assert line == "INFO Created log | device_id=A log_path=/tmp/Keys.csv"


def test_formatter_without_context_is_plain() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["device_id"])

    assert formatter.format(_record(device_id=None)) == "Created log"
