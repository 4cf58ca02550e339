# =============================
# Visibility Filter — red-channel threshold
# =============================
from dataclasses import dataclass, field

import numpy as np

from config import ParticleConfig

# Pixel indices are uint32 everywhere (sized for MAX_PIXELS)
INDEX_DTYPE = np.uint32


@dataclass(frozen=True, eq=False)
class Visibility:
    """Ascending indices of the pixels that become particles."""
    indices: np.ndarray = field(repr=False)  # (N,) u4, read-only
    num_visible: int

    def __len__(self):
        return self.num_visible


def filter_visible(image, config=None):
    """Select pixels whose red sample is strictly above ``config.threshold``.

    With discard disabled every pixel survives.  A threshold below 0
    keeps everything and one at 255 or above keeps nothing; both are
    ordinary results.
    """
    if config is None:
        config = ParticleConfig()

    n = image.num_pixels
    if not config.discard_enabled:
        indices = np.arange(n, dtype=INDEX_DTYPE)
        num_visible = n
    else:
        mask = _visible_mask(image.red, config.threshold)
        num_visible = int(np.count_nonzero(mask))
        # flatnonzero scans in raster order → already ascending
        indices = np.flatnonzero(mask).astype(INDEX_DTYPE, copy=False)

    indices.flags.writeable = False
    return Visibility(indices, num_visible)


def _visible_mask(red, threshold):
    if threshold < 0:
        return np.ones(red.shape, dtype=bool)
    if threshold >= 255:
        return np.zeros(red.shape, dtype=bool)
    return red > threshold
