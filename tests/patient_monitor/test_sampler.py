import base64

import cv2
import numpy as np
import pytest

from patient_monitor.privacy.pixelate import pixelate_face
from patient_monitor.sampler import FrameSampler


@pytest.fixture
def frame():
    """Random 480x640 BGR frame"""
    rng = np.random.default_rng(11)
    return rng.integers(0, 256, size=(480, 640, 3), dtype=np.uint8)


def test_prepare_halves_resolution(frame):
    """Snapshots are downscaled by half in both dimensions"""
    small = FrameSampler(scale=0.5).prepare(frame)
    assert small.shape == (240, 320, 3)


def test_prepare_does_not_touch_source(frame):
    """Masking works on a private copy of the raw frame"""
    original = frame.copy()
    FrameSampler(mask=True).prepare(frame)
    assert np.array_equal(frame, original)


def test_masked_snapshot_is_pixelated_before_downscale(frame):
    """With masking on, the snapshot is the downscaled pixelated frame"""
    expected = frame.copy()
    pixelate_face(expected, 16)
    expected = cv2.resize(expected, (320, 240), interpolation=cv2.INTER_AREA)

    assert np.array_equal(FrameSampler(mask=True).prepare(frame), expected)


def test_unmasked_snapshot(frame):
    """With masking off, the raw frame is only downscaled"""
    expected = cv2.resize(frame, (320, 240), interpolation=cv2.INTER_AREA)
    assert np.array_equal(FrameSampler(mask=False).prepare(frame), expected)


def test_encode_returns_jpeg_data_url(frame):
    """The payload is a base64 JPEG data URL of the downscaled frame"""
    image = FrameSampler().encode(frame)

    prefix = "data:image/jpeg;base64,"
    assert image.startswith(prefix)
    raw = np.frombuffer(base64.b64decode(image[len(prefix) :]), dtype=np.uint8)
    decoded = cv2.imdecode(raw, cv2.IMREAD_COLOR)
    assert decoded.shape == (240, 320, 3)
