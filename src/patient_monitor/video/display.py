from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import numpy as np

from ..alerts import AlertView
from ..indicators import Indicators, baseline_indicators

root_package_name = __name__.split(".")[0] if "." in __name__ else __name__
logger = logging.getLogger(root_package_name)

NO_KEY = -1


@dataclass
class Dashboard:
    """Everything drawn next to the video on each refresh."""

    indicators: Indicators = field(default_factory=baseline_indicators)
    status_label: str = "System Ready"
    status_color: str = "secondary"
    alerts: List[AlertView] = field(default_factory=list)
    placeholder: Optional[str] = None


class Display:
    """Display surface the render loop presents the filtered frame buffer on."""

    def present(self, frame: np.ndarray, dashboard: Dashboard) -> int:
        """Show `frame` and return the pressed key code, or -1."""
        raise NotImplementedError

    def close(self) -> None:
        pass


class HeadlessDisplay(Display):
    """
    Keeps the last presented frame instead of opening a window.

    Used with `--no-window` and in tests.
    """

    def __init__(self):
        self.frames = 0
        self.last_frame: Optional[np.ndarray] = None
        self.last_dashboard: Optional[Dashboard] = None

    def present(self, frame: np.ndarray, dashboard: Dashboard) -> int:
        self.frames += 1
        self.last_frame = frame.copy()
        self.last_dashboard = dashboard
        return NO_KEY


class WindowDisplay(Display):
    """
    OpenCV window showing the frame and a status side panel.

    Parameters
    ----------
    window_name : str
        Title of the window.
    panel_width : int, optional
        Width of the side panel, by default 320
    """

    def __init__(self, window_name: str = "Patient Monitor", panel_width: int = 320):
        self.window_name = window_name
        self.panel_width = panel_width
        self._opened = False

    def present(self, frame: np.ndarray, dashboard: Dashboard) -> int:
        from .draw import draw_dashboard

        if not self._opened:
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
            self._opened = True
        cv2.imshow(self.window_name, draw_dashboard(frame, dashboard, self.panel_width))
        key = cv2.waitKey(1)
        return NO_KEY if key < 0 else key & 0xFF

    def close(self) -> None:
        if self._opened:
            cv2.destroyWindow(self.window_name)
            self._opened = False
