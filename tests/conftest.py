import numpy as np
import cv2
import pytest


def bgr_from_red(red):
    """BGR uint8 image whose red channel is ``red`` (2-D array-like)."""
    red = np.asarray(red, dtype=np.uint8)
    img = np.zeros(red.shape + (3,), dtype=np.uint8)
    img[:, :, 2] = red
    return img


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def photo():
    """A small noisy BGR photo with dark and bright regions."""
    gen = np.random.default_rng(7)
    img = gen.integers(0, 256, size=(12, 17, 3), dtype=np.uint8)
    img[:4, :, 2] = 0
    return img


@pytest.fixture
def png_path(tmp_path, photo):
    ok, data = cv2.imencode(".png", photo)
    assert ok
    path = tmp_path / "photo.png"
    path.write_bytes(data.tobytes())
    return path
