"""Startup configuration, built once and passed to every operation."""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_LIVE_ROOT = Path("logs") / "live"
DEFAULT_SNAPSHOT_ROOT = Path("logs") / "extracted"
DEFAULT_INFO_ROOT = Path("logs") / "device_info"


@dataclass(frozen=True)
class OutputConfig:
    """Base directories for the three kinds of capture output."""
    live_root: Path = DEFAULT_LIVE_ROOT
    snapshot_root: Path = DEFAULT_SNAPSHOT_ROOT
    info_root: Path = DEFAULT_INFO_ROOT

    def roots(self):
        return (Path(self.live_root), Path(self.snapshot_root), Path(self.info_root))


@dataclass(frozen=True)
class ToolsetConfig:
    """Where the toolset lives and how long a snapshot samples syslog."""
    bin_dir: Optional[Path] = None
    sample_seconds: float = 5.0
    stop_grace_seconds: float = 2.0
