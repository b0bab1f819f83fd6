"""Pydantic schemas for the cached Find My items snapshot."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from models.records import LocationFix


class SnapshotLocation(BaseModel):
    """Position block of a snapshot entry."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    latitude: float = 0.0
    longitude: float = 0.0
    horizontal_accuracy: float = Field(default=0.0, alias="horizontalAccuracy")
    timestamp_ms: int = Field(..., alias="timeStamp", ge=0)


class SnapshotAddress(BaseModel):
    """Reverse-geocoded address block of a snapshot entry."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    street_name: Optional[str] = Field(default=None, alias="streetName")
    street_address: Optional[str] = Field(default=None, alias="streetAddress")
    locality: Optional[str] = None
    country: Optional[str] = None
    full_address: Optional[str] = Field(default=None, alias="mapItemFullAddress")


class SnapshotDevice(BaseModel):
    """One tracked item. Passthrough fields of the cache file are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    identifier: str
    name: Optional[str] = None
    location: Optional[SnapshotLocation] = None
    address: Optional[SnapshotAddress] = None

    def to_fix(self) -> Optional[LocationFix]:
        """Return the device's current fix, or None if it has no location yet."""
        if self.location is None:
            return None
        address = self.address or SnapshotAddress()
        return LocationFix(
            device_id=self.identifier,
            name=self.name or "",
            latitude=self.location.latitude,
            longitude=self.location.longitude,
            horizontal_accuracy=self.location.horizontal_accuracy,
            timestamp_ms=self.location.timestamp_ms,
            street=address.street_name or "",
            number=address.street_address or "",
            city=address.locality or "",
            country=address.country or "",
            full_address=address.full_address or "",
        )


snapshot_adapter: TypeAdapter[List[SnapshotDevice]] = TypeAdapter(List[SnapshotDevice])
