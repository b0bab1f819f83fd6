from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from settings import get_settings


@dataclass(frozen=True)
class TrackerConfig:
    snapshot_path: Path
    output_dir: Path
    poll_interval: float
    producer_backoff: float
    producer_process: str
    device: Optional[str] = None


def _normalize_device(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def load_config(
    snapshot_path: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    poll_interval: Optional[float] = None,
    device: Optional[str] = None,
) -> TrackerConfig:
    settings = get_settings()
    if poll_interval is None or poll_interval <= 0:
        poll_interval = settings.poll_interval
    return TrackerConfig(
        snapshot_path=(snapshot_path or settings.snapshot_path).expanduser(),
        output_dir=(output_dir or settings.output_dir).expanduser(),
        poll_interval=poll_interval,
        producer_backoff=settings.producer_backoff,
        producer_process=settings.producer_process,
        device=_normalize_device(device) or _normalize_device(settings.device),
    )
