"""Background polling of the items snapshot."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from models.records import LocationFix
from services.writer import FixWriter
from storage.snapshot_file import SnapshotFile

logger = logging.getLogger(__name__)


class Poller:
    """Reads the snapshot on a fixed period and hands new fixes to the writer.

    All polling and writing happens on one background thread. ``stop`` is only
    observed between cycles; a cycle that has started always runs to the end.
    Any exception raised by a cycle ends the loop and is kept in ``error``.
    """

    def __init__(
        self,
        source: SnapshotFile,
        writer: FixWriter,
        producer_running: Callable[[], bool],
        device: Optional[str] = None,
        interval: float = 1.0,
        backoff: float = 5.0,
        on_record: Optional[Callable[[LocationFix], None]] = None,
        producer_name: str = "FindMy",
    ) -> None:
        self.source = source
        self.writer = writer
        self.producer_running = producer_running
        self.device = device.strip().lower() if device and device.strip() else None
        self.interval = interval
        self.backoff = backoff
        self.on_record = on_record
        self.producer_name = producer_name
        self.error: Optional[BaseException] = None
        self._producer_missing = False
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def selects(self, fix: LocationFix) -> bool:
        return self.device is None or fix.name.lower() == self.device

    def check_producer(self) -> bool:
        """Report producer liveness, warning once per outage."""
        if self.producer_running():
            if self._producer_missing:
                logger.info("Producer is running again", extra={"producer": self.producer_name})
                self._producer_missing = False
            return True

        if not self._producer_missing:
            logger.warning(
                "%s is not running. You must run Find My in the background to use this tool.",
                self.producer_name,
                extra={"producer": self.producer_name},
            )
            self._producer_missing = True
        return False

    def run_cycle(self) -> int:
        """Read one snapshot and forward it to the writer; return rows written."""
        written = 0
        for fix in self.source.read():
            if not self.selects(fix):
                continue
            if not self.writer.write(fix):
                continue
            written += 1
            if self.on_record is not None:
                self.on_record(fix)
        return written

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Poller already started.")
        self._thread = threading.Thread(target=self._run, name="snapshot-poller", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def wait(self, poll: float = 0.5) -> None:
        """Block until the polling thread exits."""
        thread = self._thread
        if thread is None:
            return
        # Join in slices so signal handlers keep running on the main thread.
        while thread.is_alive():
            thread.join(poll)

    def close(self) -> None:
        self.writer.close()

    def _run(self) -> None:
        try:
            while not self._stop.wait(self.interval):
                if not self.check_producer():
                    self._stop.wait(self.backoff)
                    continue
                self.run_cycle()
        except Exception as exc:
            self.error = exc
            logger.exception(
                "Polling stopped by fatal error",
                extra={"snapshot_path": str(self.source.path)},
            )
        finally:
            self._stop.set()
