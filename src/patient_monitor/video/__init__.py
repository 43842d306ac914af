from .capture import (
    CaptureError,
    CapturePermissionError,
    CaptureSource,
    CaptureUnavailableError,
)
from .display import Dashboard, Display, HeadlessDisplay, WindowDisplay

__all__ = [
    "CaptureSource",
    "CaptureError",
    "CapturePermissionError",
    "CaptureUnavailableError",
    "Dashboard",
    "Display",
    "HeadlessDisplay",
    "WindowDisplay",
]
