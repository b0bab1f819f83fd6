"""Per-device duplicate suppression and appending of location fixes."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Optional

from datastore.entity_log import EntityLog, format_event_time
from models.records import LocationFix

logger = logging.getLogger(__name__)

_APOSTROPHES = re.compile(r"’")
_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


class FilenameCollisionError(ValueError):
    """Two devices map to the same log file."""


def log_filename(name: str, fallback: str) -> str:
    """Turn a device display name into a safe ``.csv`` filename."""
    stem = _APOSTROPHES.sub("", name.strip())
    stem = _WHITESPACE.sub("_", stem)
    stem = _UNSAFE.sub("_", stem).strip(".")
    if not stem:
        stem = _UNSAFE.sub("_", fallback)
    return f"{stem}.csv"


class FixWriter:
    """Appends fixes that are newer than the last one recorded for each device.

    Owned by a single thread: the last-seen map and the open logs are not
    shared, so no locking is done here.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self._last_seen: Dict[str, int] = {}
        self._logs: Dict[str, EntityLog] = {}
        self._owners: Dict[str, str] = {}

    def last_seen(self, device_id: str) -> Optional[int]:
        return self._last_seen.get(device_id)

    def log_path(self, device_id: str) -> Optional[Path]:
        log = self._logs.get(device_id)
        return log.path if log is not None else None

    def write(self, fix: LocationFix) -> bool:
        """Append ``fix`` unless it is not strictly newer than the last one.

        Returns True when a row was written.
        """
        if fix.device_id not in self._logs:
            self._open_log(fix)

        previous = self._last_seen.get(fix.device_id)
        if previous is not None and fix.epoch_seconds <= previous:
            logger.debug(
                "Discarding stale fix",
                extra={
                    "device_id": fix.device_id,
                    "fix_time": format_event_time(fix.epoch_seconds),
                    "last_seen": format_event_time(previous),
                },
            )
            return False

        self._logs[fix.device_id].append(fix)
        self._last_seen[fix.device_id] = fix.epoch_seconds
        return True

    def close(self) -> None:
        for log in self._logs.values():
            log.close()

    def _open_log(self, fix: LocationFix) -> EntityLog:
        filename = log_filename(fix.name, fallback=fix.device_id)
        owner = self._owners.get(filename)
        if owner is not None and owner != fix.device_id:
            raise FilenameCollisionError(
                f"Devices {owner!r} and {fix.device_id!r} both map to {filename!r}; "
                "rename one of them or track a single device with --device."
            )

        log = EntityLog(self.output_dir / filename).open()
        self._owners[filename] = fix.device_id
        self._logs[fix.device_id] = log
        if log.last_recorded is not None:
            self._last_seen[fix.device_id] = log.last_recorded
        return log
