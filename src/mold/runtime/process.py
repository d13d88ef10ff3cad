"""
Subprocess boundary: runs one shell command and reports its exit status.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from pathlib import Path
from typing import Mapping, Optional

from ..errors import CommandCancelledError, CommandTimeoutError

logger = logging.getLogger("mold.process")

DEFAULT_POLL_INTERVAL = 0.05
DEFAULT_TERMINATE_GRACE = 3.0


class CancelToken:
    """Thread-safe flag a caller sets to interrupt a running recipe."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ProcessRunner:
    """
    Spawns commands through a shell with inherited stdio.

    Without a cancel token or deadline the call blocks until the command
    exits. Otherwise the process is polled and terminated on cancellation or
    once `deadline` (a `time.monotonic()` value) has passed.
    """

    def __init__(
        self,
        shell: Optional[str] = "/bin/sh",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        terminate_grace: float = DEFAULT_TERMINATE_GRACE,
    ) -> None:
        self.shell = shell
        self.poll_interval = poll_interval
        self.terminate_grace = terminate_grace

    def run(
        self,
        command: str,
        cwd: Path | str,
        env: Mapping[str, str],
        cancel: Optional[CancelToken] = None,
        deadline: Optional[float] = None,
    ) -> int:
        if cancel is not None and cancel.cancelled:
            raise CommandCancelledError(f"Cancelled before running: {command}")
        if deadline is not None and time.monotonic() >= deadline:
            raise CommandTimeoutError(f"Deadline passed before running: {command}")

        if self.shell:
            proc = subprocess.Popen([self.shell, "-c", command], cwd=str(cwd), env=dict(env))
        else:
            proc = subprocess.Popen(command, cwd=str(cwd), env=dict(env), shell=True)

        try:
            if cancel is None and deadline is None:
                return proc.wait()
            while True:
                try:
                    return proc.wait(timeout=self.poll_interval)
                except subprocess.TimeoutExpired:
                    pass
                if cancel is not None and cancel.cancelled:
                    raise CommandCancelledError(f"Cancelled: {command}")
                if deadline is not None and time.monotonic() >= deadline:
                    raise CommandTimeoutError(f"Deadline exceeded: {command}")
        except BaseException:
            # no child outlives the call, whatever interrupted the wait
            self._stop(proc)
            raise

    def _stop(self, proc: subprocess.Popen) -> None:
        if proc.poll() is not None:
            return
        logger.debug("terminating pid %s", proc.pid)
        proc.terminate()
        try:
            proc.wait(timeout=self.terminate_grace)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
