"""Host process helpers: producer liveness and sleep prevention."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_KEEP_AWAKE_COMMAND = ("caffeinate", "-di")


def is_process_running(name: str) -> bool:
    """Return True if a process matching ``name`` shows up in ``pgrep``."""
    try:
        completed = subprocess.run(
            ["pgrep", name],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError as exc:
        logger.debug("pgrep unavailable: %s", exc, extra={"producer": name})
        return False
    return completed.returncode == 0


class KeepAwake:
    """Runs a helper that keeps the machine awake while this process lives."""

    def __init__(self, command: Sequence[str] = DEFAULT_KEEP_AWAKE_COMMAND) -> None:
        self.command = tuple(command)
        self._process: Optional[subprocess.Popen] = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def start(self) -> None:
        if self._process is not None:
            return
        # -w ties the helper's lifetime to ours in case we die without cleanup.
        argv = [*self.command, "-w", str(os.getpid())]
        self._process = subprocess.Popen(argv)
        logger.debug("Started keep-awake helper pid=%s", self._process.pid)

    def stop(self, timeout: float = 5.0) -> None:
        process = self._process
        if process is None:
            return
        self._process = None
        if process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def __enter__(self) -> "KeepAwake":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
