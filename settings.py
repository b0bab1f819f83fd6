from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


_SNAPSHOT_PATH_ENV = "FINDMY_SNAPSHOT_PATH"
_OUTPUT_DIR_ENV = "FINDMY_OUTPUT_DIR"
_POLL_INTERVAL_ENV = "FINDMY_POLL_INTERVAL"
_PRODUCER_BACKOFF_ENV = "FINDMY_PRODUCER_BACKOFF"
_PRODUCER_PROCESS_ENV = "FINDMY_PROCESS_NAME"
_DEVICE_ENV = "DEVICE"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_DEFAULT_SNAPSHOT = Path("Library/Caches/com.apple.findmy.fmipcore/Items.data")
_DEFAULT_OUTPUT_DIR = Path("AirTag_History_Data")


@dataclass(frozen=True)
class Settings:
    snapshot_path: Path
    output_dir: Path
    poll_interval: float
    producer_backoff: float
    producer_process: str
    device: Optional[str]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_path_env(name: str, default: Path) -> Path:
    value = _read_optional_env(name, None)
    if value is None:
        return default
    return Path(value).expanduser()


def _read_seconds(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    home = Path.home()
    return Settings(
        snapshot_path=_read_path_env(_SNAPSHOT_PATH_ENV, home / _DEFAULT_SNAPSHOT),
        output_dir=_read_path_env(_OUTPUT_DIR_ENV, home / _DEFAULT_OUTPUT_DIR),
        poll_interval=_read_seconds(_POLL_INTERVAL_ENV, 1.0),
        producer_backoff=_read_seconds(_PRODUCER_BACKOFF_ENV, 5.0),
        producer_process=_read_str_env(_PRODUCER_PROCESS_ENV, "FindMy"),
        device=_read_optional_env(_DEVICE_ENV, None),
        log_level=_read_log_level("INFO"),
    )
