from __future__ import annotations

from typing import Dict, Tuple

import cv2
import numpy as np

from ..indicators import IndicatorState
from .display import Dashboard

# Named UI colors as BGR.
NAMED_COLORS: Dict[str, Tuple[int, int, int]] = {
    "default": (200, 200, 200),
    "success": (94, 197, 34),
    "danger": (68, 68, 239),
    "warning": (22, 115, 249),
    "amber": (8, 179, 234),
    "info": (246, 130, 59),
    "secondary": (139, 116, 100),
}

ALERT_LEVEL_COLORS: Dict[str, str] = {
    "critical": "danger",
    "warning": "warning",
    "caution": "amber",
    "info": "info",
}

PANEL_BG = (32, 24, 17)
TRACK_BG = (70, 60, 50)


def bgr(name: str) -> Tuple[int, int, int]:
    return NAMED_COLORS.get(name, NAMED_COLORS["default"])


def _text(img, text: str, org, color, scale: float = 0.5, thick: int = 1) -> None:
    cv2.putText(
        img, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thick, cv2.LINE_AA
    )


def _draw_indicator(
    panel: np.ndarray, title: str, state: IndicatorState, top: int, width: int
) -> int:
    """Draw one indicator card; returns the y coordinate below it."""
    _text(panel, title, (12, top + 16), NAMED_COLORS["default"], 0.45)
    _text(panel, state.label, (12, top + 36), bgr(state.color), 0.55, 2 if state.active else 1)

    bar_top, bar_h = top + 44, 8
    bar_w = width - 24
    cv2.rectangle(panel, (12, bar_top), (12 + bar_w, bar_top + bar_h), TRACK_BG, -1)
    fill_w = int(round(bar_w * state.fill / 100.0))
    if fill_w > 0:
        cv2.rectangle(
            panel, (12, bar_top), (12 + fill_w, bar_top + bar_h), bgr(state.bar_color), -1
        )
    return bar_top + bar_h + 14


def draw_dashboard(frame: np.ndarray, dashboard: Dashboard, panel_width: int = 320) -> np.ndarray:
    """
    Compose the display image: the frame with a status side panel.

    Parameters
    ----------
    frame : np.ndarray
        BGR or BGRA frame. Not modified.
    dashboard : Dashboard
        Indicator, status and alert state to draw.
    panel_width : int
        Side panel width in pixels.

    Returns
    -------
    np.ndarray
        New BGR image of shape (H, W + panel_width, 3).
    """
    if frame.ndim == 3 and frame.shape[2] == 4:
        view = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    else:
        view = frame.copy()

    H = view.shape[0]
    panel = np.zeros((H, panel_width, 3), dtype=np.uint8)
    panel[:] = PANEL_BG

    # Status badge
    cv2.circle(panel, (18, 20), 6, bgr(dashboard.status_color), -1, lineType=cv2.LINE_AA)
    _text(panel, dashboard.status_label, (32, 25), NAMED_COLORS["default"], 0.55)

    y = 40
    for title, state in dashboard.indicators.as_dict().items():
        y = _draw_indicator(panel, title.capitalize(), state, y, panel_width)

    _text(panel, "Alerts", (12, y + 10), NAMED_COLORS["default"], 0.5)
    y += 30
    if dashboard.placeholder:
        _text(panel, dashboard.placeholder, (12, y), bgr("success"), 0.45)
    for view_row in dashboard.alerts:
        if y > H - 10:
            break
        color = bgr(ALERT_LEVEL_COLORS.get(view_row.level, "info"))
        line = f"{view_row.time} {view_row.title} {view_row.confidence_pct}%"
        _text(panel, line.strip(), (12, y), color, 0.4)
        y += 18

    return np.hstack([view, panel])
