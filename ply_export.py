# =============================
# PLY export of a particle field
# =============================
import logging
import os
from datetime import datetime

import numpy as np

log = logging.getLogger(__name__)

_PLY_DTYPE = np.dtype([
    ('x', '<f4'), ('y', '<f4'), ('z', '<f4'),
    ('red', 'u1'), ('green', 'u1'), ('blue', 'u1'),
])


def export_ply(field, exports_dir, name=None):
    """Save particle grid positions + source colours as binary PLY.

    Returns the written path, or ``None`` when there are no particles.
    """
    buffers = field.buffers
    n_points = buffers.num_visible
    if n_points == 0:
        log.warning("PLY export: 0 particles")
        return None

    rgba = field.image.pixels.reshape((-1, 4))
    rgb = rgba[buffers.pixel_indices, :3]

    vertices = np.empty(n_points, dtype=_PLY_DTYPE)
    vertices['x'] = buffers.offsets[:, 0]
    vertices['y'] = buffers.offsets[:, 1]
    vertices['z'] = buffers.offsets[:, 2]
    vertices['red'] = rgb[:, 0]
    vertices['green'] = rgb[:, 1]
    vertices['blue'] = rgb[:, 2]

    os.makedirs(exports_dir, exist_ok=True)
    if name is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        name = f"particles_{timestamp}.ply"
    path = os.path.join(exports_dir, name)

    with open(path, "wb") as f:
        header = (
            "ply\n"
            "format binary_little_endian 1.0\n"
            f"element vertex {n_points}\n"
            "property float x\n"
            "property float y\n"
            "property float z\n"
            "property uchar red\n"
            "property uchar green\n"
            "property uchar blue\n"
            "end_header\n"
        )
        f.write(header.encode("ascii"))
        f.write(vertices.tobytes())

    log.info("PLY exported: %s (%d particles)", path, n_points)
    return path
