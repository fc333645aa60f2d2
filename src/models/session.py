"""
Capture session record.

A session is one execution of a capture operation and the artifacts it
left behind. Artifacts are appended while the operation runs; once the
orchestrator returns the session it is not touched again.
"""
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


@dataclass
class CaptureSession:
    """Ephemeral record of a single capture operation."""

    kind: str
    """One of "live", "live-verbose", "snapshot", "info"."""

    created_at: datetime
    path: Path
    """Session directory, or the single file for device-info captures."""

    artifacts: List[Path] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    """Names of sub-steps whose command was missing or exited nonzero."""

    @property
    def timestamp(self) -> str:
        return self.created_at.strftime(TIMESTAMP_FORMAT)

    def add_artifact(self, path: Path) -> Path:
        self.artifacts.append(path)
        return path

    def record_failure(self, step: str) -> None:
        self.failures.append(step)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "created_at": self.created_at.isoformat(),
            "timestamp": self.timestamp,
            "path": str(self.path),
            "artifacts": [str(p) for p in self.artifacts],
            "failures": list(self.failures),
        }
