"""
Monitoring session: capture -> mask -> render, sample -> analyze -> indicators.

One `Session` owns the capture source, the display surface and the service
client it is given, and schedules three independent activities on a
`TaskScheduler`:

- render   : every display refresh while Active. Reads the next capture
             frame on the device worker thread, copies it into the frame
             buffer and pixelates the face region before presenting it.
- analysis : every `analysis_interval` while Active. Snapshots the raw capture
             frame, masks/downscales/encodes it and posts it for analysis.
- poll     : every `poll_interval`, regardless of session state. Refreshes the
             alert feed and the system status badge.

Stopping bumps the scheduler generation, which cancels render/analysis in one
step and makes any analysis response still in flight land as a no-op.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Callable, Optional

import cv2
import numpy as np

from .alerts import AlertFeed
from .client import MonitorClient, MonitorClientError
from .config import MonitorConfig
from .indicators import Indicators, baseline_indicators, derive_indicators
from .models import AnalysisResult
from .privacy.pixelate import FaceRegion, pixelate_face
from .sampler import FrameSampler
from .scheduler import TaskScheduler
from .status import StatusBadge
from .video.capture import CaptureError, CapturePermissionError, CaptureSource
from .video.display import NO_KEY, Dashboard, Display

root_package_name = __name__.split(".")[0] if "." in __name__ else __name__
logger = logging.getLogger(root_package_name)

PERMISSION_DENIED_MESSAGE = (
    "Camera access was denied. Please allow camera permissions and try again."
)
DEVICE_UNAVAILABLE_MESSAGE = (
    "Could not access camera. Please check that a camera is connected and try again."
)

RENDER_TASK = "render"
ANALYSIS_TASK = "analysis"
POLL_TASK = "poll"


class SessionState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"


class Session:
    """
    The single monitoring session of the client.

    Parameters
    ----------
    config : MonitorConfig
        Runtime configuration.
    capture : CaptureSource
        Exclusive video capture handle (acquired on start, released on stop).
    client : MonitorClient
        Service client used for analysis, alerts and status.
    display : Display
        Surface the filtered frame buffer is presented on.
    scheduler : TaskScheduler, optional
        Scheduler for periodic activities; a new one is created when omitted.
    sampler : FrameSampler, optional
        Snapshot encoder; built from `config` when omitted.
    """

    def __init__(
        self,
        config: MonitorConfig,
        capture: CaptureSource,
        client: MonitorClient,
        display: Display,
        scheduler: Optional[TaskScheduler] = None,
        sampler: Optional[FrameSampler] = None,
    ):
        self.config = config
        self.capture = capture
        self.client = client
        self.display = display
        self.scheduler = scheduler or TaskScheduler()
        self.sampler = sampler or FrameSampler(
            scale=config.snapshot_scale,
            jpeg_quality=config.jpeg_quality,
            mask=config.mask_snapshots,
            pixel_size=config.pixel_size,
        )

        self.alert_feed = AlertFeed(client, self.scheduler, config.alerts_limit)
        self.status = StatusBadge(client, self.scheduler)

        self.state = SessionState.IDLE
        self.frame_buffer: Optional[np.ndarray] = None
        self.face_region: Optional[FaceRegion] = None
        self.last_error: Optional[str] = None
        self.last_result: Optional[AnalysisResult] = None
        self.on_quit: Optional[Callable[[], None]] = None

        self._indicators: Indicators = baseline_indicators()
        self._analysis_inflight: Counter = Counter()
        self._stop_requested = False
        self._reading = False
        # open/read/release run in order on one worker, off the event loop.
        self._device_executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="capture"
        )

    # ------------------------------ state ------------------------------ #
    @property
    def active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def indicators(self) -> Indicators:
        return self._indicators

    def dashboard(self) -> Dashboard:
        return Dashboard(
            indicators=self._indicators,
            status_label=self.status.label,
            status_color=self.status.color,
            alerts=list(self.alert_feed.views),
            placeholder=self.alert_feed.placeholder,
        )

    # ----------------------------- lifecycle ---------------------------- #
    def open(self) -> None:
        """Start the always-on alert/status poll with an immediate first fetch."""
        if self.scheduler.is_running(POLL_TASK):
            return
        self.scheduler.every(
            POLL_TASK, self.config.poll_interval, self.poll, scoped=False, immediate=True
        )

    async def start(self) -> bool:
        """
        Acquire the camera and start the render loop and analysis sampler.

        Returns
        -------
        bool
            True if the session became Active. False if it was not Idle or the
            camera could not be acquired (see `last_error`).
        """
        if self.state is not SessionState.IDLE:
            logger.debug("Start ignored: session is %s", self.state.value)
            return False

        self.state = SessionState.STARTING
        self.last_error = None
        self._stop_requested = False
        try:
            width, height = await self._device_call(self.capture.open)
        except CapturePermissionError as e:
            logger.error(f"Error starting monitoring: {e}")
            self.last_error = PERMISSION_DENIED_MESSAGE
            self.state = SessionState.IDLE
            return False
        except CaptureError as e:
            logger.error(f"Error starting monitoring: {e}")
            self.last_error = DEVICE_UNAVAILABLE_MESSAGE
            self.state = SessionState.IDLE
            return False
        except BaseException:
            self.state = SessionState.IDLE
            raise

        if self._stop_requested:
            await self._device_call(self.capture.release)
            self.state = SessionState.IDLE
            logger.info("Session stopped while starting")
            return False

        self.frame_buffer = np.zeros((height, width, 4), dtype=np.uint8)
        self.state = SessionState.ACTIVE
        self.status.set_local(True)

        self.scheduler.bump_generation()
        self.scheduler.every(
            RENDER_TASK, self.config.refresh_interval, self.render_frame, immediate=True
        )
        self.scheduler.every(
            ANALYSIS_TASK, self.config.analysis_interval, self.analyze_frame
        )
        self.scheduler.submit(self.status.notify_toggle(), scoped=False, name="status toggle")
        logger.info("Monitoring started (%dx%d)", width, height)
        return True

    def stop(self) -> None:
        """Release the camera, cancel render/analysis and reset the indicators."""
        if self.state is SessionState.STARTING:
            self._stop_requested = True
            return
        if self.state is not SessionState.ACTIVE:
            return

        self.state = SessionState.IDLE
        self.scheduler.bump_generation()
        self.scheduler.submit(
            self._device_call(self.capture.release), scoped=False, name="capture release"
        )
        self.display.close()

        self.status.set_local(False)
        self._indicators = baseline_indicators()
        self.last_result = None

        self.scheduler.submit(self.status.notify_toggle(), scoped=False, name="status toggle")
        logger.info("Monitoring stopped")

    async def close(self) -> None:
        """Stop the session and the poll, then wait for outstanding requests.

        A closed session cannot be started again.
        """
        self.stop()
        self.scheduler.cancel(POLL_TASK)
        await self.scheduler.drain()
        self.display.close()
        self._device_executor.shutdown(wait=False)

    async def _device_call(self, fn, *args):
        return await self.scheduler.run_blocking(
            fn, *args, executor=self._device_executor
        )

    # ------------------------------ render ------------------------------ #
    async def render_frame(self) -> None:
        """One redraw cycle: read the capture frame, copy it, mask it, present it.

        A tick that fires while the previous device read is still pending is
        skipped. A frame read under a generation that has since ended is
        discarded.
        """
        if not self.active or self.frame_buffer is None or self._reading:
            return

        generation = self.scheduler.generation
        self._reading = True
        try:
            frame = await self._device_call(self.capture.read_frame)
        finally:
            self._reading = False
        if frame is None or not self.active or not self.scheduler.is_current(generation):
            return

        H, W = self.frame_buffer.shape[:2]
        if frame.shape[:2] != (H, W):
            frame = cv2.resize(frame, (W, H), interpolation=cv2.INTER_LINEAR)
        self.frame_buffer[..., :3] = frame[..., :3]
        self.frame_buffer[..., 3] = 255

        self.face_region = pixelate_face(self.frame_buffer, self.config.pixel_size)

        key = self.display.present(self.frame_buffer, self.dashboard())
        if key != NO_KEY:
            self.handle_key(key)

    # ----------------------------- analysis ----------------------------- #
    def analyze_frame(self) -> None:
        """Sample the raw capture frame and submit it for analysis."""
        if not self.active:
            return

        generation = self.scheduler.generation
        if (
            not self.config.allow_overlapping_analysis
            and self._analysis_inflight[generation] > 0
        ):
            logger.debug("Skipping analysis tick: previous request still in flight")
            return

        frame = self.capture.snapshot()
        if frame is None:
            return
        image = self.sampler.encode(frame)
        if image is None:
            logger.warning("Failed to encode analysis snapshot")
            return

        self._analysis_inflight[generation] += 1
        self.scheduler.submit(
            self._request_analysis(image, generation),
            self.apply_result,
            name="analysis",
        )

    async def _request_analysis(
        self, image: str, generation: int
    ) -> Optional[AnalysisResult]:
        try:
            payload = await self.scheduler.run_blocking(self.client.analyze, image)
            return AnalysisResult.from_dict(payload)
        except (MonitorClientError, ValueError) as e:
            logger.error(f"Error analyzing frame: {e}")
            return None
        finally:
            self._analysis_inflight[generation] -= 1
            if self._analysis_inflight[generation] <= 0:
                del self._analysis_inflight[generation]

    def apply_result(self, result: Optional[AnalysisResult]) -> None:
        """Replace the indicators with those derived from `result`."""
        if result is None or not self.active:
            return
        self.last_result = result
        self._indicators = derive_indicators(result)

    # ------------------------------- poll ------------------------------- #
    async def poll(self) -> None:
        await asyncio.gather(self.alert_feed.refresh(), self.status.refresh())

    def clear_alerts(self) -> "asyncio.Task":
        return self.scheduler.submit(
            self.alert_feed.clear(), scoped=False, name="clear alerts"
        )

    # ------------------------------ input ------------------------------ #
    def handle_key(self, key: int) -> None:
        if key == ord("q"):
            self.stop()
            if self.on_quit is not None:
                self.on_quit()
        elif key == ord("c"):
            self.clear_alerts()
