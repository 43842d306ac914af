from unittest.mock import patch

import numpy as np

from patient_monitor.alerts import AlertView
from patient_monitor.indicators import derive_indicators
from patient_monitor.models import AnalysisResult
from patient_monitor.video.display import NO_KEY, Dashboard, HeadlessDisplay, WindowDisplay
from patient_monitor.video.draw import bgr, draw_dashboard


def _dashboard():
    return Dashboard(
        indicators=derive_indicators(AnalysisResult(fall_detected=True, fall_confidence=1.0)),
        status_label="Monitoring Active",
        status_color="success",
        alerts=[AlertView("Fall", "critical", "!", "10:00:00", 90, "Help")],
    )


def test_draw_dashboard_appends_panel():
    """The frame is shown unchanged next to the side panel"""
    frame = np.full((240, 320, 4), 77, dtype=np.uint8)

    out = draw_dashboard(frame, _dashboard(), panel_width=200)

    assert out.shape == (240, 520, 3)
    assert np.all(out[:, :320] == 77)
    assert np.all(frame == 77)


def test_unknown_color_falls_back():
    """Unknown color names use the default color"""
    assert bgr("nope") == bgr("default")


def test_headless_display_keeps_last_frame():
    """The headless display records what it was given"""
    display = HeadlessDisplay()
    frame = np.zeros((4, 4, 4), dtype=np.uint8)

    assert display.present(frame, Dashboard()) == NO_KEY
    assert display.frames == 1
    assert np.array_equal(display.last_frame, frame)


def test_window_display_returns_key():
    """The window display shows the composed image and reports key presses"""
    display = WindowDisplay("test")
    frame = np.zeros((48, 64, 4), dtype=np.uint8)
    with patch("patient_monitor.video.display.cv2") as mock_cv2:
        mock_cv2.waitKey.return_value = ord("q")
        assert display.present(frame, Dashboard()) == ord("q")
        mock_cv2.imshow.assert_called_once()
        mock_cv2.waitKey.return_value = -1
        assert display.present(frame, Dashboard()) == NO_KEY
        display.close()
        mock_cv2.destroyWindow.assert_called_once_with("test")
