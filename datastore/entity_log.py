"""Append-only CSV history for a single tracked device."""

from __future__ import annotations

import csv
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

from models.records import LocationFix

logger = logging.getLogger(__name__)

LOG_HEADER = (
    "time",
    "latitude",
    "longitude",
    "horizontalAccuracy",
    "street",
    "number",
    "city",
    "country",
)
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_BLOCK_SIZE = 4096


class LogCorruptedError(ValueError):
    """Raised when the last row of an existing log cannot be interpreted."""


def format_event_time(epoch_seconds: int) -> str:
    return datetime.fromtimestamp(epoch_seconds).strftime(TIME_FORMAT)


def parse_event_time(text: str) -> int:
    """Parse a local ``time`` column value back to epoch seconds.

    A wall time repeated by a daylight-saving fall-back resolves to the later
    instant, so a recovered value is never earlier than the row it came from.
    """
    parsed = datetime.strptime(text.strip(), TIME_FORMAT)
    return max(
        int(parsed.replace(fold=0).timestamp()),
        int(parsed.replace(fold=1).timestamp()),
    )


def read_last_line(path: Path, block_size: int = _BLOCK_SIZE) -> str:
    """Return the final non-empty line of ``path`` without reading the whole file.

    Blocks are read backwards from end-of-file until a line terminator is found
    ahead of the trailing one, or the start of the file is reached.
    """
    with path.open("rb") as handle:
        handle.seek(0, os.SEEK_END)
        position = handle.tell()
        tail = b""
        while position > 0:
            step = min(block_size, position)
            position -= step
            handle.seek(position)
            tail = handle.read(step) + tail
            body = tail.rstrip(b"\r\n")
            if b"\n" in body or b"\r" in body:
                break

    body = tail.rstrip(b"\r\n")
    start = max(body.rfind(b"\n"), body.rfind(b"\r")) + 1
    return body[start:].decode("utf-8")


def read_last_timestamp(path: Path) -> Optional[int]:
    """Recover the epoch seconds of the last recorded row, if any."""
    line = read_last_line(path)
    if not line:
        return None
    first_field = line.split(",", 1)[0]
    if first_field == LOG_HEADER[0]:
        return None
    try:
        return parse_event_time(first_field)
    except ValueError as exc:
        raise LogCorruptedError(
            f"Cannot parse last recorded time {first_field!r} in {path}"
        ) from exc


class EntityLog:
    """Owns the open handle of one device's CSV file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.last_recorded: Optional[int] = None
        self._handle: Optional[TextIO] = None
        self._writer = None

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> "EntityLog":
        """Create the file with a header, or reopen it and recover its tail."""
        if self.path.exists():
            self.last_recorded = read_last_timestamp(self.path)
            needs_header = self.path.stat().st_size == 0
        else:
            needs_header = True

        self._handle = self.path.open("a", encoding="utf-8", newline="")
        self._writer = csv.writer(self._handle, lineterminator="\n")
        if needs_header:
            self._writer.writerow(LOG_HEADER)
            self._handle.flush()
            logger.info("Created log", extra={"log_path": str(self.path)})
        else:
            logger.info(
                "Resuming log",
                extra={
                    "log_path": str(self.path),
                    "last_seen": (
                        format_event_time(self.last_recorded)
                        if self.last_recorded is not None
                        else None
                    ),
                },
            )
        return self

    def append(self, fix: LocationFix) -> None:
        if self._handle is None or self._writer is None:
            raise RuntimeError(f"Log {self.path} is not open.")
        self._writer.writerow(
            [
                format_event_time(fix.epoch_seconds),
                f"{fix.latitude:f}",
                f"{fix.longitude:f}",
                f"{fix.horizontal_accuracy:f}",
                fix.street,
                fix.number,
                fix.city,
                fix.country,
            ]
        )
        self._handle.flush()
        self.last_recorded = fix.epoch_seconds

    def close(self) -> None:
        if self._handle is None:
            return
        self._handle.close()
        self._handle = None
        self._writer = None
