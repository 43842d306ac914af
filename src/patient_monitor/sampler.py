from __future__ import annotations

import base64
from typing import Optional

import cv2
import numpy as np

from .privacy.pixelate import PIXEL_SIZE, pixelate_face


class FrameSampler:
    """
    Turns a raw capture frame into the compressed payload sent for analysis.

    Parameters
    ----------
    scale : float, optional
        Downscale factor applied to both dimensions, by default 0.5
    jpeg_quality : int, optional
        JPEG quality for encoding, by default 70
    mask : bool, optional
        Pixelate the face region of the snapshot before it is downscaled,
        by default True. When False the snapshot leaves the device unmasked.
    pixel_size : int, optional
        Block size used when masking, by default 16
    """

    def __init__(
        self,
        scale: float = 0.5,
        jpeg_quality: int = 70,
        mask: bool = True,
        pixel_size: int = PIXEL_SIZE,
    ):
        self.scale = scale
        self.mask = mask
        self.pixel_size = pixel_size
        self.encode_quality = [cv2.IMWRITE_JPEG_QUALITY, int(jpeg_quality)]

    def prepare(self, frame: np.ndarray) -> np.ndarray:
        """Mask (optionally) and downscale a private copy of `frame`."""
        img = frame.copy()
        if self.mask:
            pixelate_face(img, self.pixel_size)

        H, W = img.shape[:2]
        size = (max(1, int(W * self.scale)), max(1, int(H * self.scale)))
        return cv2.resize(img, size, interpolation=cv2.INTER_AREA)

    def encode(self, frame: np.ndarray) -> Optional[str]:
        """
        Build the `image` field of an analysis request.

        Returns
        -------
        str or None
            A `data:image/jpeg;base64,...` URL, or None if encoding failed.
        """
        small = self.prepare(frame)
        ok, buffer = cv2.imencode(".jpg", small, self.encode_quality)
        if not ok:
            return None
        frame_base64 = base64.b64encode(buffer.tobytes()).decode("utf-8")
        return f"data:image/jpeg;base64,{frame_base64}"
