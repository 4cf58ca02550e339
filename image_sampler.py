# =============================
# Image Sampler — decode + RGBA rasterization
# =============================
"""
Turns an image file (or an array already decoded by OpenCV) into a
``SourceImage``: row-major RGBA bytes, ``width * height * 4`` long.

The source asset is authored bottom-up, so the rows are flipped while
the pixels are copied into the output buffer: output row ``r`` holds
image row ``height - 1 - r``.  This also makes row 0 the bottom row,
which is where OpenGL puts texture row 0.
"""

import logging
from dataclasses import dataclass

import numpy as np
import cv2

from errors import DecodeError

log = logging.getLogger(__name__)

# Channel count → OpenCV conversion to RGBA
_TO_RGBA = {
    1: cv2.COLOR_GRAY2RGBA,
    3: cv2.COLOR_BGR2RGBA,
    4: cv2.COLOR_BGRA2RGBA,
}


@dataclass(frozen=True)
class SourceImage:
    """Decoded, vertically flipped RGBA image.  ``pixels`` is read-only."""
    width: int
    height: int
    pixels: np.ndarray  # uint8, shape (width * height * 4,)

    @property
    def num_pixels(self):
        return self.width * self.height

    @property
    def red(self):
        """Red samples in raster order (view, no copy)."""
        return self.pixels[0::4]

    def as_rgba(self):
        """``(height, width, 4)`` view of the pixel buffer."""
        return self.pixels.reshape((self.height, self.width, 4))


def decode_image(data):
    """Decode encoded image bytes (PNG, JPEG, ...) with OpenCV."""
    buf = np.frombuffer(data, dtype=np.uint8)
    if buf.size == 0:
        raise DecodeError("Empty image data")
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise DecodeError("OpenCV could not decode image data")
    return img


def load_image(path):
    """Read and decode an image file.

    ``np.fromfile`` + ``cv2.imdecode`` instead of ``cv2.imread`` so
    non-ASCII paths work on Windows.
    """
    try:
        data = np.fromfile(str(path), dtype=np.uint8)
    except OSError as e:
        raise DecodeError(f"Cannot read image {path}: {e}") from e
    try:
        img = decode_image(data)
    except DecodeError as e:
        raise DecodeError(f"{path}: {e}") from e
    log.info("Image loaded: %s (%dx%d)", path, img.shape[1], img.shape[0])
    return img


def _to_8bit(img):
    if img.dtype == np.uint8:
        return img
    if img.dtype == np.uint16:
        # 65535 / 257 == 255
        return cv2.convertScaleAbs(img, alpha=1.0 / 257.0)
    raise DecodeError(f"Unsupported sample type: {img.dtype}")


def sample_image(img):
    """Rasterize a decoded OpenCV image into a ``SourceImage``."""
    if not isinstance(img, np.ndarray):
        raise DecodeError(f"Expected a decoded image array, got {type(img).__name__}")
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]
    if img.ndim == 2:
        channels = 1
    elif img.ndim == 3:
        channels = img.shape[2]
    else:
        raise DecodeError(f"Unsupported image shape: {img.shape}")
    if channels not in _TO_RGBA:
        raise DecodeError(f"Unsupported channel count: {channels}")

    height, width = img.shape[:2]
    if width == 0 or height == 0:
        raise DecodeError(f"Image has zero size ({width}x{height})")

    rgba = cv2.cvtColor(_to_8bit(img), _TO_RGBA[channels])

    # Vertical flip happens as the pixels are copied into the output
    out = np.empty((height, width, 4), dtype=np.uint8)
    cv2.flip(rgba, 0, dst=out)

    pixels = out.reshape(-1)
    pixels.flags.writeable = False
    return SourceImage(width=width, height=height, pixels=pixels)
