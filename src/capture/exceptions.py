"""
Custom exceptions for ilogcap capture orchestration.
"""

class CaptureError(Exception):
    """Base exception for all capture-related errors."""
    pass

class OutputRootError(CaptureError):
    """Raised when a configured output root cannot be created."""
    pass

class ToolsetError(CaptureError):
    """Raised when a toolset executable is missing or fails to run."""
    pass

class InstallError(CaptureError):
    """Raised when the toolset cannot be resolved, downloaded or unpacked."""
    pass

class NoDeviceError(CaptureError):
    """Raised when the presence check finds no connected device."""

    def __init__(self, message: str = "No device found"):
        super().__init__(message)
