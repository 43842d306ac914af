"""Privacy-aware patient monitoring client: capture, mask, sample, analyze."""

from .client import MonitorClient, MonitorClientError
from .config import MonitorConfig
from .models import Alert, AnalysisResult, SystemStatusFlag
from .scheduler import TaskScheduler
from .session import Session, SessionState

__all__ = [
    "Alert",
    "AnalysisResult",
    "MonitorClient",
    "MonitorClientError",
    "MonitorConfig",
    "Session",
    "SessionState",
    "SystemStatusFlag",
    "TaskScheduler",
]
__version__ = "0.1.0"
