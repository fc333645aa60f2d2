"""
Fixed-window syslog sampling.

The live stream has no natural end, so a snapshot samples it: start the
stream, let it run for the window (or until cancelled), stop it, keep
whatever it wrote.
"""
import logging
import subprocess
import threading
import time
from pathlib import Path
from typing import Optional

from .idevice_backend import IDeviceBackend

logger = logging.getLogger(__name__)

POLL_INTERVAL_S = 0.1


def stop_process(proc, grace_s: float) -> Optional[int]:
    """Terminate ``proc``, escalating to kill after ``grace_s`` seconds."""
    if proc.poll() is not None:
        return proc.returncode
    proc.terminate()
    try:
        return proc.wait(timeout=grace_s)
    except subprocess.TimeoutExpired:
        logger.debug("process did not exit after %.1fs, killing", grace_s)
        proc.kill()
        return proc.wait(timeout=grace_s)


class SyslogSampler:
    """Cancellable fixed-duration capture of the live syslog stream."""

    def __init__(self, backend: IDeviceBackend, window_s: float = 5.0, grace_s: float = 2.0):
        if window_s < 0:
            raise ValueError("sampling window must be >= 0")
        self.backend = backend
        self.window_s = window_s
        self.grace_s = grace_s
        self.cancel_event = threading.Event()

    def cancel(self) -> None:
        """End the current sample early."""
        self.cancel_event.set()

    def sample(self, output: Path) -> Optional[int]:
        """
        Stream syslog into ``output`` for at most the sampling window.

        Returns the exit status of the stream process after it was stopped.
        Elapsed time is bounded by ``window_s + 2 * grace_s`` plus process
        start overhead.
        """
        deadline = time.monotonic() + self.window_s
        with open(output, "wb") as f:
            proc = self.backend.stream_syslog(f)
            try:
                while proc.poll() is None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    if self.cancel_event.wait(min(POLL_INTERVAL_S, remaining)):
                        logger.debug("syslog sample cancelled")
                        break
            finally:
                status = stop_process(proc, self.grace_s)
        logger.debug("syslog sample written to %s (status=%s)", output, status)
        return status
