"""
Capture data models.
"""

from .session import CaptureSession, TIMESTAMP_FORMAT
from .config import OutputConfig, ToolsetConfig

__all__ = [
    'CaptureSession',
    'TIMESTAMP_FORMAT',
    'OutputConfig',
    'ToolsetConfig',
]
