"""
Device backend interface definition.

Every capability the orchestrator needs from the external toolset sits
behind this contract, so orchestration can run against a fake backend
without a real device attached.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, List, Optional


class IDeviceBackend(ABC):
    """Device toolset backend interface."""

    @abstractmethod
    def list_devices(self) -> List[str]:
        """
        Return identifiers of connected devices (possibly empty).

        Raises:
            ToolsetError: the listing command is missing or failed.
        """
        pass

    @abstractmethod
    def stream_syslog(self, stdout: Optional[IO]):
        """
        Start the live syslog stream, return the running process.

        The returned object must expose ``poll()``, ``wait(timeout)``,
        ``terminate()``, ``kill()`` and ``stdout`` like ``subprocess.Popen``.
        When ``stdout`` is None the stream is piped back to the caller.
        """
        pass

    @abstractmethod
    def dump_info(self, stdout: IO) -> int:
        """Write device info to ``stdout``, return the exit status."""
        pass

    @abstractmethod
    def run_diagnostics(self, stdout: IO) -> int:
        """Write diagnostics to ``stdout``, return the exit status."""
        pass

    @abstractmethod
    def extract_crash_reports(self, directory: Path) -> int:
        """Extract crash reports into ``directory``, return the exit status."""
        pass
