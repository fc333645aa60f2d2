"""
Toolset provisioning.

Fetches the prebuilt libimobiledevice release archive for this host,
unpacks it and reports the directory that holds the executables.
"""
from __future__ import annotations

import logging
import os
import platform
import sys
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional
from urllib.parse import unquote, urlparse

import requests

from capture.exceptions import InstallError
from capture.libimobiledevice_backend import IDEVICE_ID, TOOLSET_EXECUTABLES

logger = logging.getLogger(__name__)

RELEASE_BASE_URL = "https://github.com/libimobiledevice-win32/imobiledevice-net/releases/download"
RELEASE_TAG = "v1.3.17"
RELEASE_BUILD = "libimobiledevice.1.2.1-r1122"

# (sys.platform prefix, normalized machine) -> archive platform suffix
_PLATFORM_SUFFIX: Dict[tuple, str] = {
    ("win32", "x64"): "win-x64",
    ("win32", "x86"): "win-x86",
    ("darwin", "x64"): "osx-x64",
}

_MACHINE_ALIASES = {
    "amd64": "x64",
    "x86_64": "x64",
    "x64": "x64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
}

DEFAULT_ARCHIVE_NAME = "libimobiledevice.zip"
CHUNK_SIZE = 64 * 1024
DOWNLOAD_TIMEOUT_S = 60


@dataclass(frozen=True)
class ReleaseAsset:
    """One downloadable toolset archive."""
    platform: str
    url: str

    @property
    def filename(self) -> str:
        name = unquote(urlparse(self.url).path).rsplit("/", 1)[-1]
        if name in ("", ".", ".."):
            return DEFAULT_ARCHIVE_NAME
        return name


def resolve_release(sys_platform: Optional[str] = None,
                    machine: Optional[str] = None,
                    tag: str = RELEASE_TAG,
                    build: str = RELEASE_BUILD) -> ReleaseAsset:
    """Pick the release archive matching the host platform."""
    sys_platform = sys_platform or sys.platform
    machine = _MACHINE_ALIASES.get((machine or platform.machine()).lower(), machine)
    key = ("win32" if sys_platform.startswith("win") else sys_platform, machine)
    suffix = _PLATFORM_SUFFIX.get(key)
    if suffix is None:
        raise InstallError(
            f"No prebuilt toolset for {sys_platform}/{machine}. "
            "Install libimobiledevice-utils with the system package manager instead."
        )
    url = f"{RELEASE_BASE_URL}/{tag}/{build}-{suffix}.zip"
    return ReleaseAsset(platform=suffix, url=url)


def _discard(path: Path) -> None:
    if path.is_file():
        path.unlink()


def download(url: str, dest: Path, session: Optional[requests.Session] = None) -> Path:
    """Stream ``url`` to ``dest``."""
    http = session or requests.Session()
    logger.debug("downloading %s -> %s", url, dest)
    try:
        with http.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT_S) as resp:
            resp.raise_for_status()
            dest.parent.mkdir(parents=True, exist_ok=True)
            with open(dest, "wb") as f:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
    except requests.RequestException as e:
        _discard(dest)
        raise InstallError(f"Download failed: {url}: {e}") from e
    except OSError as e:
        _discard(dest)
        raise InstallError(f"Cannot write {dest}: {e}") from e
    return dest


def extract(archive: Path, target: Path) -> Path:
    """Unzip ``archive`` into ``target``, refusing members outside it."""
    target.mkdir(parents=True, exist_ok=True)
    root = target.resolve()
    try:
        with zipfile.ZipFile(archive) as zf:
            for member in zf.namelist():
                dest = (root / member).resolve()
                if dest != root and root not in dest.parents:
                    raise InstallError(f"Archive member escapes target directory: {member}")
            zf.extractall(root)
    except zipfile.BadZipFile as e:
        raise InstallError(f"Not a zip archive: {archive}") from e
    return target


def find_bin_dir(target: Path) -> Path:
    """Locate the directory containing the toolset executables."""
    names = {IDEVICE_ID, IDEVICE_ID + ".exe"}
    for path in sorted(Path(target).rglob("*")):
        if path.name in names and path.is_file():
            return path.parent
    raise InstallError(f"{IDEVICE_ID} not found under {target}")


def prepend_to_path(bin_dir: Path, env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return a copy of ``env`` with ``bin_dir`` first on PATH (idempotent)."""
    result = dict(os.environ if env is None else env)
    entry = str(bin_dir)
    parts = [p for p in result.get("PATH", "").split(os.pathsep) if p]
    if entry in parts:
        parts.remove(entry)
    result["PATH"] = os.pathsep.join([entry] + parts)
    return result


def make_executable(bin_dir: Path) -> None:
    """Restore exec bits that zip archives drop on POSIX hosts."""
    if os.name == "nt":
        return
    for name in TOOLSET_EXECUTABLES:
        exe = bin_dir / name
        if exe.is_file():
            exe.chmod(exe.stat().st_mode | 0o111)


def install_toolset(target: Path,
                    asset: Optional[ReleaseAsset] = None,
                    session: Optional[requests.Session] = None,
                    keep_archive: bool = False) -> Path:
    """Download and unpack the toolset into ``target``, return its bin dir."""
    asset = asset or resolve_release()
    target = Path(target)
    archive = download(asset.url, target / asset.filename, session=session)
    try:
        extract(archive, target)
    finally:
        if not keep_archive:
            archive.unlink(missing_ok=True)
    bin_dir = find_bin_dir(target)
    make_executable(bin_dir)
    logger.info("toolset installed in %s", bin_dir)
    return bin_dir
