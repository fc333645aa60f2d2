"""
Device capture subsystem.
"""

from .idevice_backend import IDeviceBackend
from .libimobiledevice_backend import LibimobiledeviceBackend
from .sampler import SyslogSampler
from .orchestrator import CaptureOrchestrator
from .exceptions import (
    CaptureError,
    OutputRootError,
    ToolsetError,
    InstallError,
    NoDeviceError,
)

__all__ = [
    'IDeviceBackend',
    'LibimobiledeviceBackend',
    'SyslogSampler',
    'CaptureOrchestrator',
    'CaptureError',
    'OutputRootError',
    'ToolsetError',
    'InstallError',
    'NoDeviceError',
]
