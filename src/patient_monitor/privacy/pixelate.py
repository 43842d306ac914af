from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

PIXEL_SIZE = 16


@dataclass(frozen=True)
class FaceRegion:
    """Rectangle assumed to bound the subject's face.

    Attributes
    ----------
    x, y : int
        Top-left corner in frame pixels.
    width, height : int
        Region size in pixels.
    """

    x: int
    y: int
    width: int
    height: int

    def as_box(self) -> Tuple[int, int, int, int]:
        """Return the region as (x1, y1, x2, y2)."""
        return self.x, self.y, self.x + self.width, self.y + self.height


def face_region(width: int, height: int) -> FaceRegion:
    """Derive the face region as a fixed proportion of the frame size.

    Parameters
    ----------
    width, height : int
        Frame width/height.

    Returns
    -------
    FaceRegion
        x=0.25w, y=0.05h, width=0.5w, height=0.45h, all floored.
    """
    return FaceRegion(
        x=int(np.floor(width * 0.25)),
        y=int(np.floor(height * 0.05)),
        width=int(np.floor(width * 0.5)),
        height=int(np.floor(height * 0.45)),
    )


def _block_edges(length: int, block: int) -> np.ndarray:
    return np.arange(0, length, block, dtype=np.intp)


def pixelate_region(
    img: np.ndarray, region: FaceRegion, pixel_size: int = PIXEL_SIZE
) -> np.ndarray:
    """Replace every block of the region with its floored mean color, in-place.

    The region is split into square blocks of `pixel_size` (row-major, edge
    blocks clipped to the region). Block means are computed from a snapshot of
    the region taken before any write, so blocks never see each other's output.
    Only the first three channels are averaged; a fourth (alpha) channel is
    left untouched.

    Parameters
    ----------
    img : ndarray (H, W, C)
        Pixel buffer with C >= 3 (BGR, BGRA, RGBA). Modified in-place.
    region : FaceRegion
        Area to pixelate. Parts falling outside the image are ignored.
    pixel_size : int, default 16
        Block side in pixels.

    Returns
    -------
    ndarray
        The same `img` for chaining.
    """
    if pixel_size < 1:
        raise ValueError(f"pixel_size must be >= 1, got {pixel_size}")

    H, W = img.shape[:2]
    x1, y1, x2, y2 = region.as_box()
    x1, y1 = max(0, x1), max(0, y1)
    x2, y2 = min(W, x2), min(H, y2)
    if x2 <= x1 or y2 <= y1:
        return img

    roi = img[y1:y2, x1:x2, :3]
    h, w = roi.shape[:2]
    src = roi.astype(np.int64)

    ys = _block_edges(h, pixel_size)
    xs = _block_edges(w, pixel_size)
    sums = np.add.reduceat(np.add.reduceat(src, ys, axis=0), xs, axis=1)

    rows = np.diff(np.append(ys, h))
    cols = np.diff(np.append(xs, w))
    counts = np.outer(rows, cols)[..., None]
    means = (sums // counts).astype(img.dtype)

    roi[...] = np.repeat(np.repeat(means, rows, axis=0), cols, axis=1)
    return img


def pixelate_face(img: np.ndarray, pixel_size: int = PIXEL_SIZE) -> FaceRegion:
    """Pixelate the proportional face region of `img` in-place.

    Returns
    -------
    FaceRegion
        The region that was masked.
    """
    H, W = img.shape[:2]
    region = face_region(W, H)
    pixelate_region(img, region, pixel_size)
    return region
