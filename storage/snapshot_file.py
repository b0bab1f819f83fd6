from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from models.records import LocationFix
from models.snapshot import SnapshotDevice, snapshot_adapter

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when the snapshot file holds malformed or unexpected content."""


class SnapshotFile:
    """Read-only view of the items cache written by the Find My app."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def read_devices(self) -> List[SnapshotDevice]:
        raw = self.read_bytes()
        try:
            return snapshot_adapter.validate_json(raw)
        except ValidationError as exc:
            raise SnapshotError(
                f"Could not decode snapshot {self.path}: {exc.error_count()} error(s); "
                f"first: {exc.errors()[0]['msg']}"
            ) from exc

    def read(self) -> List[LocationFix]:
        """Return one fix per device that currently reports a location."""
        fixes: list[LocationFix] = []
        for device in self.read_devices():
            fix = device.to_fix()
            if fix is None:
                logger.debug(
                    "Skipping device without a location",
                    extra={"device_id": device.identifier, "device_name": device.name},
                )
                continue
            fixes.append(fix)
        return fixes

