from __future__ import annotations

import signal
from contextlib import contextmanager
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, Iterator, Optional

import typer

from cli.config import TrackerConfig, load_config
from cli.render import echo_error, render_banner, render_fix, render_status
from datastore.entity_log import format_event_time, read_last_timestamp
from logging_config import configure_logging
from services.host import KeepAwake, is_process_running
from services.poller import Poller
from services.writer import FixWriter
from storage.snapshot_file import SnapshotFile


@dataclass
class CLIState:
    config: TrackerConfig


app = typer.Typer(
    help="Record Find My item locations into per-device CSV history files.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@contextmanager
def _stop_on_signals(callback: Callable[[], None]) -> Iterator[None]:
    def handler(signum, frame) -> None:
        callback()

    previous = {
        signum: signal.signal(signum, handler) for signum in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield
    finally:
        for signum, original in previous.items():
            signal.signal(signum, original)


@app.callback()
def main(
    ctx: typer.Context,
    snapshot: Optional[Path] = typer.Option(
        None,
        "--snapshot",
        help="Items cache to read (defaults to FINDMY_SNAPSHOT_PATH or the Find My cache).",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for per-device CSV logs (defaults to FINDMY_OUTPUT_DIR or ~/AirTag_History_Data).",
    ),
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        help="Seconds between snapshot reads.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    config = load_config(
        snapshot_path=snapshot,
        output_dir=output_dir,
        poll_interval=interval,
    )
    ctx.obj = CLIState(config=config)


@app.command("track")
def track_command(
    ctx: typer.Context,
    device: Optional[str] = typer.Option(
        None,
        "--device",
        "-d",
        help="Device name to track, case-insensitive (defaults to DEVICE env).",
    ),
    keep_awake: bool = typer.Option(
        True,
        "--keep-awake/--no-keep-awake",
        help="Prevent system sleep while tracking.",
    ),
) -> None:
    """Poll the snapshot and append new fixes until interrupted."""
    config = _get_state(ctx).config
    selected = device.strip() if device and device.strip() else config.device
    producer_running = partial(is_process_running, config.producer_process)

    if not producer_running():
        echo_error(
            f"🛑 {config.producer_process} is not running. "
            "You must run Find My in the background to use this tool."
        )
        raise typer.Exit(code=1)

    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        echo_error(f"Error creating data directory {config.output_dir}: {exc}")
        raise typer.Exit(code=1) from exc

    render_banner(selected)

    poller = Poller(
        source=SnapshotFile(config.snapshot_path),
        writer=FixWriter(config.output_dir),
        producer_running=producer_running,
        device=selected,
        interval=config.poll_interval,
        backoff=config.producer_backoff,
        on_record=render_fix,
        producer_name=config.producer_process,
    )
    helper = KeepAwake() if keep_awake else None
    if helper is not None:
        try:
            helper.start()
        except OSError as exc:
            echo_error(f"Error starting caffeinate: {exc}")
            raise typer.Exit(code=1) from exc

    with _stop_on_signals(poller.stop):
        try:
            poller.start()
            poller.wait()
        finally:
            poller.stop()
            poller.wait()
            poller.close()
            if helper is not None:
                helper.stop()

    if poller.error is not None:
        echo_error(f"Fatal: {poller.error}")
        raise typer.Exit(code=1)
    typer.echo("Stopped by user")


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show the last recorded time of every device log."""
    config = _get_state(ctx).config
    rows: list[tuple[Path, str]] = []
    if config.output_dir.is_dir():
        for path in sorted(config.output_dir.glob("*.csv")):
            try:
                last = read_last_timestamp(path)
            except (OSError, ValueError) as exc:
                rows.append((path, f"unreadable ({exc})"))
                continue
            detail = format_event_time(last) if last is not None else "no fixes recorded"
            rows.append((path, detail))
    render_status(rows)
