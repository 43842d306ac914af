from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from .client import MonitorClient, MonitorClientError
from .models import Alert

if TYPE_CHECKING:
    from .scheduler import TaskScheduler

root_package_name = __name__.split(".")[0] if "." in __name__ else __name__
logger = logging.getLogger(root_package_name)

NO_ALERTS_TEXT = "No alerts detected"

# First match wins.
ALERT_CLASSES: Tuple[Tuple[str, str], ...] = (
    ("Fall", "critical"),
    ("Aggression", "warning"),
    ("Risky", "caution"),
)

ALERT_ICONS: Tuple[Tuple[str, str], ...] = (
    ("Fall", "⚠"),
    ("Aggression", "⚡"),
    ("Risky", "⚠"),
    ("Emotion", "\U0001F610"),
)
INFO_ICON = "ℹ"


def classify_alert(issue: str) -> str:
    """Return critical/warning/caution/info for an alert's issue text."""
    for keyword, level in ALERT_CLASSES:
        if keyword in issue:
            return level
    return "info"


def alert_icon(issue: str) -> str:
    for keyword, icon in ALERT_ICONS:
        if keyword in issue:
            return icon
    return INFO_ICON


def format_time(timestamp: Optional[str]) -> str:
    """Render an ISO-8601 timestamp as local wall-clock time ("" if unusable)."""
    if not timestamp:
        return ""
    text = timestamp[:-1] + "+00:00" if timestamp.endswith("Z") else timestamp
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return ""
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.strftime("%H:%M:%S")


@dataclass(frozen=True)
class AlertView:
    """One rendered row of the alert feed."""

    title: str
    level: str
    icon: str
    time: str
    confidence_pct: int
    action: str

    @classmethod
    def from_alert(cls, alert: Alert) -> "AlertView":
        return cls(
            title=alert.issue,
            level=classify_alert(alert.issue),
            icon=alert_icon(alert.issue),
            time=format_time(alert.timestamp),
            confidence_pct=int(round(alert.confidence * 100)),
            action=alert.action,
        )


def build_views(alerts: Sequence[Alert]) -> List[AlertView]:
    """Newest first; the service returns oldest first."""
    return [AlertView.from_alert(a) for a in reversed(alerts)]


def parse_alerts(payload: Any) -> List[Alert]:
    if not isinstance(payload, list):
        raise ValueError(f"alerts must be a list, got {payload!r}")
    return [Alert.from_dict(item) for item in payload]


class AlertFeed:
    """
    Bounded, read-only snapshot of the service's alert history.

    Parameters
    ----------
    client : MonitorClient
        Service client.
    scheduler : TaskScheduler
        Used to run the blocking requests off the event loop.
    limit : int, optional
        Maximum number of alerts requested per fetch, by default 20
    """

    def __init__(self, client: MonitorClient, scheduler: "TaskScheduler", limit: int = 20):
        self.client = client
        self.scheduler = scheduler
        self.limit = limit
        self.views: List[AlertView] = []

    @property
    def empty(self) -> bool:
        return not self.views

    @property
    def placeholder(self) -> Optional[str]:
        return NO_ALERTS_TEXT if self.empty else None

    async def refresh(self) -> bool:
        """
        Fetch and replace the snapshot.

        Returns
        -------
        bool
            True if the snapshot was updated, False if the fetch failed.
        """
        try:
            payload = await self.scheduler.run_blocking(self.client.alerts, self.limit)
            alerts = parse_alerts(payload)
        except (MonitorClientError, ValueError) as e:
            logger.error(f"Error loading alerts: {e}")
            return False

        self.views = build_views(alerts[-self.limit :] if self.limit else alerts)
        return True

    async def clear(self) -> None:
        """Ask the service to clear its history, then re-fetch."""
        try:
            await self.scheduler.run_blocking(self.client.clear_alerts)
        except MonitorClientError as e:
            logger.error(f"Error clearing alerts: {e}")
            return
        await self.refresh()
