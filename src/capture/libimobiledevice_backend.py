import logging
import shutil
import subprocess
from pathlib import Path
from typing import IO, List, Optional

from .exceptions import ToolsetError
from .idevice_backend import IDeviceBackend

logger = logging.getLogger(__name__)

IDEVICE_ID = "idevice_id"
IDEVICE_SYSLOG = "idevicesyslog"
IDEVICE_INFO = "ideviceinfo"
IDEVICE_DIAGNOSTICS = "idevicediagnostics"
IDEVICE_CRASHREPORT = "idevicecrashreport"

TOOLSET_EXECUTABLES = (
    IDEVICE_ID,
    IDEVICE_SYSLOG,
    IDEVICE_INFO,
    IDEVICE_DIAGNOSTICS,
    IDEVICE_CRASHREPORT,
)


class LibimobiledeviceBackend(IDeviceBackend):
    """libimobiledevice command-line utilities backend."""

    def __init__(self, bin_dir: Optional[Path] = None):
        self.bin_dir = Path(bin_dir) if bin_dir else None

    def executable(self, name: str) -> str:
        """Resolve a toolset executable to a runnable path."""
        search = str(self.bin_dir) if self.bin_dir else None
        found = shutil.which(name, path=search)
        if found is None:
            where = self.bin_dir if self.bin_dir else "PATH"
            raise ToolsetError(f"'{name}' not found in {where}")
        return found

    def list_devices(self) -> List[str]:
        cmd = [self.executable(IDEVICE_ID), "-l"]
        logger.debug("running %s", cmd)
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True,
                                  encoding="utf-8", errors="replace", check=True)
        except subprocess.CalledProcessError as e:
            logger.debug("cmd=%s stdout=%r stderr=%r", cmd, e.stdout, e.stderr)
            raise ToolsetError(f"{IDEVICE_ID} exited with status {e.returncode}") from e
        except OSError as e:
            raise ToolsetError(f"failed to run {IDEVICE_ID}: {e}") from e
        return [line.strip() for line in proc.stdout.splitlines() if line.strip()]

    def stream_syslog(self, stdout: Optional[IO]):
        cmd = [self.executable(IDEVICE_SYSLOG)]
        logger.debug("starting %s", cmd)
        if stdout is None:
            return self._spawn(cmd, stdout=subprocess.PIPE, text=True,
                               encoding="utf-8", errors="replace", bufsize=1)
        return self._spawn(cmd, stdout=stdout)

    def dump_info(self, stdout: IO) -> int:
        return self._run([self.executable(IDEVICE_INFO)], stdout)

    def run_diagnostics(self, stdout: IO) -> int:
        return self._run([self.executable(IDEVICE_DIAGNOSTICS), "diagnostics"], stdout)

    def extract_crash_reports(self, directory: Path) -> int:
        return self._run([self.executable(IDEVICE_CRASHREPORT), "-e", str(directory)], None)

    def _spawn(self, cmd: List[str], **kwargs):
        try:
            return subprocess.Popen(cmd, stderr=subprocess.STDOUT, **kwargs)
        except OSError as e:
            raise ToolsetError(f"failed to start {cmd[0]}: {e}") from e

    def _run(self, cmd: List[str], stdout: Optional[IO]) -> int:
        logger.debug("running %s", cmd)
        try:
            proc = subprocess.run(cmd, stdout=stdout, stderr=subprocess.STDOUT)
        except OSError as e:
            raise ToolsetError(f"failed to run {cmd[0]}: {e}") from e
        logger.debug("cmd=%s returncode=%s", cmd, proc.returncode)
        return proc.returncode
