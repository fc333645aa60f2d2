"""Output roots and timestamp-named session locations."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from models.config import OutputConfig
from models.session import TIMESTAMP_FORMAT

from .exceptions import OutputRootError

logger = logging.getLogger(__name__)

# Upper bound on same-second collisions before giving up.
MAX_SUFFIX = 1000


def ensure_output_roots(config: OutputConfig) -> None:
    """Create every configured output root. Failure is fatal at startup."""
    for root in config.roots():
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputRootError(f"Cannot create output directory {root}: {e}") from e
        if not root.is_dir():
            raise OutputRootError(f"Output root {root} is not a directory")


def _candidates(base: str):
    yield base
    for n in range(1, MAX_SUFFIX):
        yield f"{base}_{n}"


def allocate_session_dir(root: Path, now: Optional[datetime] = None) -> Path:
    """
    Create and return ``root/<YYYYMMDD_HHMMSS>``.

    An existing directory is never reused: on collision ``_1``, ``_2``, ...
    is appended. ``mkdir`` without ``exist_ok`` makes the claim atomic.
    """
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    for name in _candidates(stamp):
        path = Path(root) / name
        try:
            path.mkdir()
        except FileExistsError:
            logger.debug("session directory %s exists, trying next suffix", path)
            continue
        return path
    raise OutputRootError(f"Too many sessions named {stamp} in {root}")


def allocate_session_file(root: Path, stem: str, suffix: str,
                          now: Optional[datetime] = None) -> Path:
    """
    Create and return an empty ``root/<stem>_<YYYYMMDD_HHMMSS><suffix>``.

    Same collision policy as :func:`allocate_session_dir`, using exclusive
    create mode.
    """
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    for name in _candidates(f"{stem}_{stamp}"):
        path = Path(root) / f"{name}{suffix}"
        try:
            with open(path, "x"):
                pass
        except FileExistsError:
            logger.debug("session file %s exists, trying next suffix", path)
            continue
        return path
    raise OutputRootError(f"Too many files named {stem}_{stamp} in {root}")
