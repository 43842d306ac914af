from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass
class MonitorConfig:
    """Runtime configuration of the monitoring client.

    Attributes
    ----------
    api_base : str
        Base URL of the analysis/storage service.
    device : str or int
        Video device path or camera index.
    width, height : int
        Preferred capture resolution.
    fps : int
        Preferred capture frame rate.
    refresh_hz : float
        Display refresh rate driving the render loop.
    pixel_size : int
        Privacy filter block size.
    analysis_interval : float
        Seconds between analysis samples.
    poll_interval : float
        Seconds between alert feed / system status polls.
    alerts_limit : int
        Maximum number of alerts fetched per poll.
    snapshot_scale : float
        Downscale factor of analysis snapshots.
    jpeg_quality : int
        JPEG quality of analysis snapshots.
    request_timeout : float
        Per-request HTTP timeout in seconds.
    mask_snapshots : bool
        Pixelate the face region of analysis snapshots before sending.
    allow_overlapping_analysis : bool
        Allow a new analysis request while the previous one is in flight.
    show_window : bool
        Open an OpenCV window; headless otherwise.
    window_name : str
        Title of the display window.
    """

    api_base: str = "http://127.0.0.1:8000"
    device: Union[str, int] = "/dev/video0"
    width: int = 640
    height: int = 480
    fps: int = 30
    refresh_hz: float = 60.0
    pixel_size: int = 16
    analysis_interval: float = 0.5
    poll_interval: float = 3.0
    alerts_limit: int = 20
    snapshot_scale: float = 0.5
    jpeg_quality: int = 70
    request_timeout: float = 5.0
    mask_snapshots: bool = True
    allow_overlapping_analysis: bool = False
    show_window: bool = True
    window_name: str = "Patient Monitor"

    def __post_init__(self):
        for name in ("width", "height", "fps", "alerts_limit"):
            if int(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ("refresh_hz", "analysis_interval", "poll_interval", "request_timeout"):
            if float(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.pixel_size < 1:
            raise ValueError("pixel_size must be >= 1")
        if not 0 < self.snapshot_scale <= 1:
            raise ValueError("snapshot_scale must be in (0, 1]")
        if not 0 <= self.jpeg_quality <= 100:
            raise ValueError("jpeg_quality must be in [0, 100]")

    @property
    def refresh_interval(self) -> float:
        return 1.0 / self.refresh_hz
