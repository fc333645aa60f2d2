"""
Capture orchestrator.

Each operation follows the same pattern: presence check, fresh
timestamp-named location, one or more external capture commands writing
into it, then hand the session back to the caller. Absence of a device
aborts the operation before anything touches the filesystem.
"""
from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from models.config import OutputConfig, ToolsetConfig
from models.session import CaptureSession

from .exceptions import NoDeviceError, ToolsetError
from .idevice_backend import IDeviceBackend
from .paths import allocate_session_dir, allocate_session_file
from .sampler import SyslogSampler, stop_process

logger = logging.getLogger(__name__)

SYSLOG_FILE = "iphone_syslog.log"
DEVICE_INFO_FILE = "iphone_device_info.txt"
DIAGNOSTICS_FILE = "iphone_diagnostics.txt"
CRASH_REPORTS_DIR = "crash_reports"
DEVICE_INFO_STEM = "iphone_device_info"


class CaptureOrchestrator:
    def __init__(self,
                 backend: IDeviceBackend,
                 output: OutputConfig,
                 toolset: Optional[ToolsetConfig] = None,
                 console: Optional[Callable[[str], None]] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.backend = backend
        self.output = output
        self.toolset = toolset or ToolsetConfig()
        self.console = console or sys.stdout.write
        self.clock = clock

    # ------------------------------------------------------------------
    # presence check
    # ------------------------------------------------------------------

    def connected_devices(self) -> List[str]:
        """Device identifiers, or [] when the toolset is unusable."""
        try:
            return self.backend.list_devices()
        except ToolsetError as e:
            logger.debug("presence check failed: %s", e)
            return []

    def require_device(self) -> List[str]:
        devices = self.connected_devices()
        if not devices:
            raise NoDeviceError()
        logger.debug("devices present: %s", devices)
        return devices

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    def live(self, verbose: bool = False) -> CaptureSession:
        """
        Stream syslog into a new live session until the operator interrupts.

        With ``verbose`` every line is echoed to the console as well.
        """
        self.require_device()
        now = self.clock()
        session = CaptureSession(
            kind="live-verbose" if verbose else "live",
            created_at=now,
            path=allocate_session_dir(self.output.live_root, now),
        )
        log_path = session.add_artifact(session.path / SYSLOG_FILE)
        self.console(f"Streaming syslog to {log_path} (Ctrl+C to stop)\n")
        if verbose:
            self._tee_syslog(log_path)
        else:
            self._stream_syslog(log_path)
        return session

    def snapshot(self) -> CaptureSession:
        """Sample syslog, then collect info, diagnostics and crash reports."""
        self.require_device()
        now = self.clock()
        session = CaptureSession(
            kind="snapshot",
            created_at=now,
            path=allocate_session_dir(self.output.snapshot_root, now),
        )

        syslog = session.add_artifact(session.path / SYSLOG_FILE)
        sampler = SyslogSampler(self.backend,
                                window_s=self.toolset.sample_seconds,
                                grace_s=self.toolset.stop_grace_seconds)
        self.console(f"Sampling syslog for {self.toolset.sample_seconds:g}s...\n")
        try:
            sampler.sample(syslog)
        except ToolsetError as e:
            logger.warning("syslog sample failed: %s", e)
            syslog.touch()
            session.record_failure("syslog")

        info = session.add_artifact(session.path / DEVICE_INFO_FILE)
        self._run_to_file(session, "device_info", self.backend.dump_info, info)

        diagnostics = session.add_artifact(session.path / DIAGNOSTICS_FILE)
        self._run_to_file(session, "diagnostics", self.backend.run_diagnostics, diagnostics)

        crash_dir = session.add_artifact(session.path / CRASH_REPORTS_DIR)
        crash_dir.mkdir()
        self._run_step(session, "crash_reports", self.backend.extract_crash_reports, crash_dir)

        return session

    def device_info(self) -> CaptureSession:
        """Write device info to a single timestamped file."""
        self.require_device()
        now = self.clock()
        path = allocate_session_file(self.output.info_root, DEVICE_INFO_STEM, ".txt", now)
        session = CaptureSession(kind="info", created_at=now, path=path)
        session.add_artifact(path)
        self._run_to_file(session, "device_info", self.backend.dump_info, path)
        return session

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _run_to_file(self, session: CaptureSession, step: str, func, path: Path) -> None:
        with open(path, "wb") as f:
            self._run_step(session, step, func, f)

    def _run_step(self, session: CaptureSession, step: str, func, target) -> None:
        # Failures are recorded, never raised: later steps still run.
        try:
            status = func(target)
        except ToolsetError as e:
            logger.warning("%s failed: %s", step, e)
            session.record_failure(step)
            return
        if status != 0:
            logger.warning("%s exited with status %s", step, status)
            session.record_failure(step)

    def _stream_syslog(self, log_path: Path) -> None:
        with open(log_path, "wb") as f:
            proc = self.backend.stream_syslog(f)
            try:
                proc.wait()
            except KeyboardInterrupt:
                logger.debug("live stream interrupted")
            finally:
                stop_process(proc, self.toolset.stop_grace_seconds)

    def _tee_syslog(self, log_path: Path) -> None:
        with open(log_path, "w", encoding="utf-8", errors="replace") as f:
            proc = self.backend.stream_syslog(None)
            try:
                for line in proc.stdout:
                    f.write(line)
                    f.flush()
                    self.console(line)
            except KeyboardInterrupt:
                logger.debug("live stream interrupted")
            finally:
                stop_process(proc, self.toolset.stop_grace_seconds)
