"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class LocationFix:
    """A single device location observation taken from the snapshot."""

    device_id: str
    name: str
    latitude: float
    longitude: float
    horizontal_accuracy: float
    timestamp_ms: int
    street: str = ""
    number: str = ""
    city: str = ""
    country: str = ""
    full_address: str = ""

    @property
    def epoch_seconds(self) -> int:
        """Fix time truncated to the one-second resolution of the logs."""

        return self.timestamp_ms // 1000

    @property
    def event_time(self) -> datetime:
        """Fix time as a naive local datetime."""

        return datetime.fromtimestamp(self.epoch_seconds)
