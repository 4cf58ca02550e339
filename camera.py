# =============================
# Image camera
# =============================
import numpy as np


class ImageCamera:
    """Perspective camera looking down -Z at the centred particle grid.

    World units are image pixels; the grid spans
    ``[-w/2, w/2] × [-h/2, h/2]`` on the z=0 plane.
    """

    def __init__(self, fov=60.0):
        self.fov = fov
        self.target = np.zeros(3, dtype='f4')
        self.distance = 100.0
        self._home_distance = 100.0
        self._tex_size = (1, 1)

    def fit(self, tex_w, tex_h, aspect=16 / 9, margin=1.1):
        """Frame a ``tex_w``×``tex_h`` grid in a viewport of ``aspect``."""
        half_tan = np.tan(np.radians(self.fov) / 2.0)
        d_h = (tex_h * 0.5) / half_tan
        d_w = (tex_w * 0.5) / (half_tan * max(aspect, 1e-6))
        self._home_distance = float(max(d_h, d_w) * margin)
        self._tex_size = (tex_w, tex_h)
        self.reset()

    def reset(self):
        """Back to the fitted framing."""
        self.target = np.zeros(3, dtype='f4')
        self.distance = self._home_distance

    def pan(self, dx, dy, win_h):
        """Pan by a cursor delta in window pixels (RMB drag)."""
        scale = self._world_per_pixel(win_h)
        self.target[0] -= dx * scale
        self.target[1] += dy * scale

    def zoom(self, delta, sensitivity=0.1):
        """Zoom (scroll).  Multiplicative so it feels the same at any scale."""
        self.distance = float(np.clip(
            self.distance * (1.0 - delta * sensitivity),
            1.0, self._home_distance * 20.0))

    def get_eye_position(self):
        return self.target + np.array([0.0, 0.0, self.distance], dtype='f4')

    def get_mvp(self, width, height):
        """Returns MVP matrix for OpenGL (column-major)."""
        aspect = max(width, 1) / max(height, 1)
        near = max(self.distance * 0.01, 0.1)
        far = self.distance * 10.0
        proj = self._perspective(np.radians(self.fov), aspect, near, far)
        view = self._look_at(self.get_eye_position(), self.target)
        mvp = proj @ view
        # numpy row-major → OpenGL column-major
        return mvp.T.astype('f4')

    def screen_to_image(self, mx, my, win_w, win_h):
        """Map a cursor position to image pixel coordinates on z=0.

        Row 0 is the bottom image row, matching the particle grid.
        """
        scale = self._world_per_pixel(win_h)
        wx = self.target[0] + (mx - win_w * 0.5) * scale
        wy = self.target[1] - (my - win_h * 0.5) * scale
        tex_w, tex_h = self._tex_size
        return float(wx + tex_w * 0.5), float(wy + tex_h * 0.5)

    def _world_per_pixel(self, win_h):
        half_tan = np.tan(np.radians(self.fov) / 2.0)
        return 2.0 * self.distance * half_tan / max(win_h, 1)

    @staticmethod
    def _perspective(fov, aspect, near, far):
        f = 1.0 / np.tan(fov / 2.0)
        nf = near - far
        return np.array([
            [f / aspect, 0.0, 0.0,                        0.0],
            [0.0,        f,   0.0,                        0.0],
            [0.0,        0.0, (far + near) / nf, 2.0 * far * near / nf],
            [0.0,        0.0, -1.0,                       0.0],
        ], dtype='f4')

    @staticmethod
    def _look_at(eye, target, up=None):
        if up is None:
            up = np.array([0, 1, 0], dtype='f4')
        f = np.float32(target - eye)
        f = f / np.linalg.norm(f)
        s = np.cross(f, up)
        s = s / np.linalg.norm(s)
        u = np.cross(s, f)
        m = np.eye(4, dtype='f4')
        m[0, :3] = s
        m[1, :3] = u
        m[2, :3] = -f
        m[0, 3] = -np.dot(s, eye)
        m[1, 3] = -np.dot(u, eye)
        m[2, 3] = np.dot(f, eye)
        return m
