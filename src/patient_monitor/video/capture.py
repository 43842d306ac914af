from __future__ import annotations

import logging
import os
from typing import Optional, Tuple, Union

import cv2
import numpy as np

root_package_name = __name__.split(".")[0] if "." in __name__ else __name__
logger = logging.getLogger(root_package_name)

DEFAULT_RESOLUTION: Tuple[int, int] = (640, 480)


class CaptureError(RuntimeError):
    """Raised when the video capture device cannot be acquired."""


class CapturePermissionError(CaptureError):
    """The device exists but access to it was denied."""


class CaptureUnavailableError(CaptureError):
    """No usable device could be opened."""


class CaptureSource:
    """
    Exclusive handle on a live video capture device.

    Parameters
    ----------
    device : str or int
        Video device path (e.g., '/dev/video0') or camera index.
    width : int
        Preferred frame width.
    height : int
        Preferred frame height.
    fps : int
        Preferred frames per second.
    """

    def __init__(
        self,
        device: Union[str, int] = "/dev/video0",
        width: int = DEFAULT_RESOLUTION[0],
        height: int = DEFAULT_RESOLUTION[1],
        fps: int = 30,
    ):
        self.device = device
        self.width = width
        self.height = height
        self.fps = fps

        self.cap: Optional[cv2.VideoCapture] = None
        self._last_frame: Optional[np.ndarray] = None

    def open(self) -> Tuple[int, int]:
        """
        Acquire the device at the preferred resolution.

        Returns
        -------
        Tuple[int, int]
            The resolution reported by the device, falling back to 640x480
            when the device does not report one.

        Raises
        ------
        CapturePermissionError
            If the device node exists but cannot be read.
        CaptureUnavailableError
            If the device cannot be opened for any other reason.
        """
        if self.cap is not None:
            raise CaptureError(f"Camera {self.device} is already open")

        if isinstance(self.device, str) and os.path.exists(self.device):
            if not os.access(self.device, os.R_OK):
                raise CapturePermissionError(
                    f"Permission denied for camera device {self.device}"
                )

        logger.info("Opening camera %s", self.device)
        try:
            cap = cv2.VideoCapture(self.device)
        except (cv2.error, OSError) as e:
            raise CaptureUnavailableError(
                f"Failed to open camera {self.device}: {e}"
            ) from e
        if not cap.isOpened():
            cap.release()
            raise CaptureUnavailableError(f"Failed to open camera {self.device}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        cap.set(cv2.CAP_PROP_FPS, self.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        actual_width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or DEFAULT_RESOLUTION[0]
        actual_height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or DEFAULT_RESOLUTION[1]
        logger.info(
            "Camera opened: %s (%dx%d)", self.device, actual_width, actual_height
        )
        self.cap = cap
        self.width, self.height = actual_width, actual_height
        return actual_width, actual_height

    def is_opened(self) -> bool:
        """
        Check if the camera is opened.
        Returns:
            True if the camera is opened, False otherwise.
        """
        return self.cap is not None and self.cap.isOpened()

    def read_frame(self) -> Optional[np.ndarray]:
        """
        Read the next frame from the device.

        The frame is cached as the latest raw frame; callers must not modify it.

        Returns:
            The captured BGR frame, or None if reading failed.
        """
        if not self.is_opened():
            return None

        ret, frame = self.cap.read()  # type: ignore[union-attr]
        if not ret or frame is None:
            logger.warning("Failed to read frame from camera.")
            return None

        self._last_frame = frame
        return frame

    def snapshot(self) -> Optional[np.ndarray]:
        """
        Return a private copy of the latest raw frame.

        Never touches the device, so it is safe to call from the event loop
        while `read_frame` runs on a worker thread. Returns None until a
        frame has been read.
        """
        frame = self._last_frame
        return None if frame is None else frame.copy()

    def release(self) -> None:
        """
        Release the camera resource.
        """
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            logger.info("Camera released: %s", self.device)
        self._last_frame = None
