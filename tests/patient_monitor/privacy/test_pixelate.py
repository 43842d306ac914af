import numpy as np
import pytest

from patient_monitor.privacy.pixelate import (
    FaceRegion,
    face_region,
    pixelate_face,
    pixelate_region,
)


@pytest.fixture
def rgba_frame():
    """Random 480x640 RGBA frame"""
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(480, 640, 4), dtype=np.uint8)


def _reference(img, region, p):
    """Block averaging computed pixel block by pixel block from the original."""
    src = img.copy()
    out = img.copy()
    for by in range(region.y, region.y + region.height, p):
        for bx in range(region.x, region.x + region.width, p):
            y2 = min(by + p, region.y + region.height)
            x2 = min(bx + p, region.x + region.width)
            block = src[by:y2, bx:x2, :3].astype(np.int64)
            count = block.shape[0] * block.shape[1]
            mean = block.reshape(-1, 3).sum(axis=0) // count
            out[by:y2, bx:x2, :3] = mean
    return out


def test_face_region_for_vga():
    """The face region of a 640x480 frame"""
    assert face_region(640, 480) == FaceRegion(x=160, y=24, width=320, height=216)


@pytest.mark.parametrize("w,h", [(1, 1), (3, 7), (17, 5), (641, 479), (1920, 1080)])
def test_face_region_stays_inside_frame(w, h):
    """The face region never leaves [0, w) x [0, h)"""
    region = face_region(w, h)
    assert 0 <= region.x and 0 <= region.y
    assert region.width >= 0 and region.height >= 0
    assert region.x + region.width <= w
    assert region.y + region.height <= h
    if region.width and region.height:
        assert region.x + region.width - 1 < w
        assert region.y + region.height - 1 < h


def test_interior_block_is_floored_mean(rgba_frame):
    """Every pixel of a full block equals the floored mean of the block"""
    original = rgba_frame.copy()
    region = face_region(640, 480)

    pixelate_region(rgba_frame, region, 16)

    block = original[24:40, 160:176, :3].astype(np.int64)
    expected = block.reshape(-1, 3).sum(axis=0) // 256
    assert np.all(rgba_frame[24:40, 160:176, :3] == expected)


def test_alpha_and_outside_pixels_untouched(rgba_frame):
    """Alpha is never changed and pixels outside the region are bit-identical"""
    original = rgba_frame.copy()
    region = face_region(640, 480)

    pixelate_region(rgba_frame, region, 16)

    assert np.array_equal(rgba_frame[..., 3], original[..., 3])
    mask = np.ones(rgba_frame.shape[:2], dtype=bool)
    mask[region.y : region.y + region.height, region.x : region.x + region.width] = False
    assert np.array_equal(rgba_frame[mask], original[mask])


def test_matches_blockwise_reference(rgba_frame):
    """Vectorized filter equals the per-block computation on pre-filter values"""
    region = FaceRegion(x=13, y=9, width=101, height=70)
    expected = _reference(rgba_frame, region, 16)

    pixelate_region(rgba_frame, region, 16)

    assert np.array_equal(rgba_frame, expected)


def test_clipped_edge_block_averages_only_its_pixels():
    """A boundary block averages exactly its clipped pixel set"""
    img = np.zeros((20, 20, 3), dtype=np.uint8)
    img[:, 16:20] = 200
    img[0, 16] = 0
    region = FaceRegion(x=0, y=0, width=20, height=20)

    pixelate_region(img, region, 16)

    # Top-right block is 16 rows x 4 cols = 64 pixels, one of them 0.
    assert np.all(img[0:16, 16:20] == (200 * 63) // 64)
    # Bottom-right block is 4x4, all 200.
    assert np.all(img[16:20, 16:20] == 200)
    # Left blocks were all zero.
    assert np.all(img[:, 0:16] == 0)


def test_idempotent_on_aligned_region(rgba_frame):
    """Filtering an aligned region twice changes nothing the second time"""
    region = FaceRegion(x=32, y=16, width=64, height=48)
    pixelate_region(rgba_frame, region, 16)
    once = rgba_frame.copy()

    pixelate_region(rgba_frame, region, 16)

    assert np.array_equal(rgba_frame, once)


def test_region_outside_frame_is_noop():
    """Regions clipped to nothing leave the frame alone"""
    img = np.full((10, 10, 3), 9, dtype=np.uint8)
    pixelate_region(img, FaceRegion(x=20, y=20, width=5, height=5), 16)
    assert np.all(img == 9)


def test_invalid_pixel_size():
    """Block size below one is rejected"""
    img = np.zeros((10, 10, 3), dtype=np.uint8)
    with pytest.raises(ValueError):
        pixelate_region(img, FaceRegion(0, 0, 5, 5), 0)


def test_pixelate_face_returns_region(rgba_frame):
    """pixelate_face masks the proportional region and reports it"""
    region = pixelate_face(rgba_frame)
    assert region == face_region(640, 480)
    block = rgba_frame[24:40, 160:176, :3].reshape(-1, 3)
    assert np.all(block == block[0])
