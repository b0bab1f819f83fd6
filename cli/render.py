from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import typer

from datastore.entity_log import format_event_time
from models.records import LocationFix


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_error(text: str) -> None:
    typer.secho(text, fg=typer.colors.RED, err=True)


def render_banner(device: Optional[str]) -> None:
    typer.echo("Starting to track...")
    if device:
        typer.echo(f"Only tracking devices named {device!r}.")
    typer.echo("Please keep `Find My` app open on your device.")
    typer.echo("Press Ctrl+C to stop tracking.")
    typer.echo()


def render_fix(fix: LocationFix) -> None:
    typer.echo(f"[{format_event_time(fix.epoch_seconds)}] {fix.name}: {fix.full_address}")


def render_status(rows: Iterable[tuple[Path, str]]) -> None:
    echo_heading("Device logs")
    rows = list(rows)
    if not rows:
        typer.echo("No logs recorded yet.")
        return
    for path, detail in rows:
        typer.echo(f"  - {path.stem}: {detail}")
