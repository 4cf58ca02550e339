# =============================
# Buffer Builder — instanced quad + per-particle attributes
# =============================
"""
Packs the surviving pixels into the arrays an instanced draw consumes:

    quad template (4 verts, 6 indices)  ×  num_visible instances
        pindex : uint32   source pixel index
        offset : 3×f32    (column, row, 0)
        angle  : f32      uniform in [0, π)

Only ``angle`` is random; the generator is injectable so callers can
seed it.
"""

from dataclasses import dataclass

import numpy as np

from config import MAX_PIXELS
from errors import InvariantError
from visibility import INDEX_DTYPE

# Unit quad centred on the origin
QUAD_POSITIONS = np.array([
    [-0.5,  0.5, 0.0],
    [ 0.5,  0.5, 0.0],
    [-0.5, -0.5, 0.0],
    [ 0.5, -0.5, 0.0],
], dtype='f4')
QUAD_UVS = np.array([
    [0.0, 0.0],
    [1.0, 0.0],
    [0.0, 1.0],
    [1.0, 1.0],
], dtype='f4')
QUAD_INDICES = np.array([0, 2, 1, 2, 3, 1], dtype=np.uint16)

for _a in (QUAD_POSITIONS, QUAD_UVS, QUAD_INDICES):
    _a.flags.writeable = False


@dataclass(frozen=True)
class ParticleBuffers:
    quad_positions: np.ndarray   # (4, 3) f4, shared template
    quad_uvs: np.ndarray         # (4, 2) f4, shared template
    quad_indices: np.ndarray     # (6,) u2, shared template
    pixel_indices: np.ndarray    # (N,) u4
    offsets: np.ndarray          # (N, 3) f4
    angles: np.ndarray           # (N,) f4

    @property
    def num_visible(self):
        return len(self.pixel_indices)


def _check_visibility(visibility, num_pixels):
    indices = visibility.indices
    if indices.ndim != 1 or visibility.num_visible != len(indices):
        raise InvariantError(
            f"Visibility filter counted {visibility.num_visible} particles "
            f"but produced {len(indices)} indices")
    if len(indices) == 0:
        return
    if len(indices) > 1 and not np.all(indices[1:] > indices[:-1]):
        raise InvariantError("Visible pixel indices are not strictly ascending")
    if int(indices[-1]) >= num_pixels:
        raise InvariantError(
            f"Pixel index {int(indices[-1])} out of range for "
            f"{num_pixels} pixels")


def build_buffers(visibility, width, height, rng=None):
    """Fill ``ParticleBuffers`` for ``visibility`` on a ``width``×``height`` grid.

    Inputs are never modified and particle order follows
    ``visibility.indices`` exactly.
    """
    num_pixels = width * height
    if num_pixels > MAX_PIXELS:
        raise InvariantError(
            f"{width}x{height} image exceeds uint32 pixel indices")
    _check_visibility(visibility, num_pixels)
    if rng is None:
        rng = np.random.default_rng()

    n = visibility.num_visible
    pixel_indices = np.array(visibility.indices, dtype=INDEX_DTYPE)

    offsets = np.zeros((n, 3), dtype='f4')
    rows, cols = np.divmod(pixel_indices, width)
    offsets[:, 0] = cols
    offsets[:, 1] = rows

    angles = rng.uniform(0.0, np.pi, n).astype('f4')
    # float32(π) is slightly above π
    np.minimum(angles, np.nextafter(np.float32(np.pi), np.float32(0)),
               out=angles)

    for a in (pixel_indices, offsets, angles):
        a.flags.writeable = False

    return ParticleBuffers(
        quad_positions=QUAD_POSITIONS,
        quad_uvs=QUAD_UVS,
        quad_indices=QUAD_INDICES,
        pixel_indices=pixel_indices,
        offsets=offsets,
        angles=angles,
    )
