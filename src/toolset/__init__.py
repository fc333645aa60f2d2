"""
Toolset download and installation.
"""

from .installer import (
    ReleaseAsset,
    resolve_release,
    download,
    extract,
    find_bin_dir,
    prepend_to_path,
    install_toolset,
)

__all__ = [
    'ReleaseAsset',
    'resolve_release',
    'download',
    'extract',
    'find_bin_dir',
    'prepend_to_path',
    'install_toolset',
]
