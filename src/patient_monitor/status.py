from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .client import MonitorClient, MonitorClientError
from .models import SystemStatusFlag

if TYPE_CHECKING:
    from .scheduler import TaskScheduler

root_package_name = __name__.split(".")[0] if "." in __name__ else __name__
logger = logging.getLogger(root_package_name)

ACTIVE_LABEL = "Monitoring Active"
READY_LABEL = "System Ready"


class StatusBadge:
    """
    Local mirror of the service's monitoring flag.

    The badge is set optimistically on session start/stop and corrected by the
    periodic `refresh()`; a failed toggle notification never rolls it back.

    Parameters
    ----------
    client : MonitorClient
        Service client.
    scheduler : TaskScheduler
        Used to run the blocking requests off the event loop.
    """

    def __init__(self, client: MonitorClient, scheduler: "TaskScheduler"):
        self.client = client
        self.scheduler = scheduler
        self.active = False

    @property
    def label(self) -> str:
        return ACTIVE_LABEL if self.active else READY_LABEL

    @property
    def color(self) -> str:
        return "success" if self.active else "secondary"

    def set_local(self, active: bool) -> None:
        self.active = bool(active)

    async def refresh(self) -> bool:
        """Pull the flag from the service. Returns False if the fetch failed."""
        try:
            payload = await self.scheduler.run_blocking(self.client.status)
            flag = SystemStatusFlag.from_dict(payload)
        except (MonitorClientError, ValueError) as e:
            logger.error(f"Error updating system status: {e}")
            return False
        self.active = flag.monitoring_active
        return True

    async def notify_toggle(self) -> None:
        try:
            await self.scheduler.run_blocking(self.client.toggle_status)
        except MonitorClientError as e:
            logger.error(f"Error toggling system status: {e}")
