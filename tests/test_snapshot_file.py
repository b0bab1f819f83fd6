"""Decoding of the cached Find My items file."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from storage.snapshot_file import SnapshotError, SnapshotFile


def _write(path: Path, payload) -> SnapshotFile:
    path.write_text(json.dumps(payload))
    return SnapshotFile(path)


def test_read_decodes_fixes_and_ignores_passthrough_fields(tmp_path: Path) -> None:
    source = _write(
        tmp_path / "Items.data",
        [
            {
                "identifier": "ABC-123",
                "name": "Keys",
                "serialNumber": "XYZ",
                "batteryStatus": 1,
                "productType": {"type": "b389", "productInformation": {"modelName": "AirTag"}},
                "role": {"name": "Keys", "emoji": "🔑", "identifier": 4},
                "location": {
                    "latitude": 52.5,
                    "longitude": 13.4,
                    "horizontalAccuracy": 7.2,
                    "timeStamp": 1700000000123,
                    "positionType": "crowdsourced",
                    "isOld": False,
                },
                "address": {
                    "streetName": "Unter den Linden",
                    "streetAddress": "77",
                    "locality": "Berlin",
                    "country": "Germany",
                    "mapItemFullAddress": "Unter den Linden 77, 10117 Berlin, Germany",
                    "formattedAddressLines": ["Unter den Linden 77"],
                },
            }
        ],
    )

    fixes = source.read()

    assert len(fixes) == 1
    fix = fixes[0]
    assert fix.device_id == "ABC-123"
    assert fix.name == "Keys"
    assert (fix.latitude, fix.longitude, fix.horizontal_accuracy) == (52.5, 13.4, 7.2)
    assert fix.timestamp_ms == 1700000000123
    assert fix.epoch_seconds == 1700000000
    assert (fix.street, fix.number, fix.city, fix.country) == (
        "Unter den Linden",
        "77",
        "Berlin",
        "Germany",
    )
    assert fix.full_address.startswith("Unter den Linden 77")


def test_missing_or_null_address_yields_blank_columns(tmp_path: Path) -> None:
    source = _write(
        tmp_path / "Items.data",
        [
            {"identifier": "A", "name": "Keys", "location": {"timeStamp": 1000}, "address": None},
            {
                "identifier": "B",
                "name": "Wallet",
                "location": {"timeStamp": 2000},
                "address": {"streetName": None, "locality": "Paris"},
            },
        ],
    )

    keys, wallet = source.read()

    assert (keys.street, keys.number, keys.city, keys.country) == ("", "", "", "")
    assert wallet.street == ""
    assert wallet.city == "Paris"


def test_devices_without_location_are_skipped(tmp_path: Path) -> None:
    source = _write(
        tmp_path / "Items.data",
        [
            {"identifier": "A", "name": "Keys"},
            {"identifier": "B", "name": "Wallet", "location": None},
            {"identifier": "C", "name": "Bag", "location": {"timeStamp": 5000}},
        ],
    )

    assert [fix.device_id for fix in source.read()] == ["C"]


def test_malformed_json_raises_snapshot_error(tmp_path: Path) -> None:
    path = tmp_path / "Items.data"
    path.write_text('[{"identifier": "A",')

    with pytest.raises(SnapshotError):
        SnapshotFile(path).read()


def test_unexpected_shape_raises_snapshot_error(tmp_path: Path) -> None:
    source = _write(tmp_path / "Items.data", {"identifier": "A"})

    with pytest.raises(SnapshotError):
        source.read()


def test_missing_file_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        SnapshotFile(tmp_path / "missing.data").read()


def test_null_name_decodes_to_blank(tmp_path: Path) -> None:
    source = _write(
        tmp_path / "Items.data",
        [{"identifier": "A", "name": None, "location": {"timeStamp": 1000}}],
    )

    (fix,) = source.read()

    assert fix.device_id == "A"
    assert fix.name == ""
