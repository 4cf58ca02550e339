# =============================
# ParticleRenderer — instanced quads from a ParticleField
# =============================
"""
Owns the shader program, VBOs, index buffer, image texture and VAO for
one ``ParticleField``.

The quad template is drawn ``num_visible`` times; ``pindex``,
``offset`` and ``angle`` advance once per instance.  Calling
``upload()`` with a new field releases everything built for the
previous one.
"""

import logging
import os
from datetime import datetime

import numpy as np
import cv2
import moderngl

from config import TOUCH_RADIUS, settings
from shaders import PARTICLE_VERTEX_SHADER, PARTICLE_FRAGMENT_SHADER

log = logging.getLogger(__name__)


class ParticleRenderer:
    """OpenGL rendering of an instanced particle field."""

    def __init__(self, ctx: moderngl.Context):
        self.ctx = ctx
        self.prog = ctx.program(
            vertex_shader=PARTICLE_VERTEX_SHADER,
            fragment_shader=PARTICLE_FRAGMENT_SHADER)

        self.field = None
        self.num_instances = 0
        self._texture = None
        self._vao = None
        self._buffers = []

    # ────────────────── Upload ──────────────────

    def upload(self, field):
        """Create GPU resources for ``field`` (replaces the previous one)."""
        self._release_field()
        self.field = field

        img = field.image
        # Row 0 of the sampled image is the bottom row → no flip needed here
        self._texture = self.ctx.texture(
            (img.width, img.height), 4, data=img.pixels.tobytes())
        self._texture.filter = (moderngl.LINEAR, moderngl.LINEAR)

        b = field.buffers
        self.num_instances = b.num_visible
        if self.num_instances == 0:
            log.warning("Particle field is empty, nothing to draw")
            return

        quad = np.hstack([b.quad_positions, b.quad_uvs]).astype('f4')
        quad_vbo = self.ctx.buffer(quad.tobytes())
        ibo = self.ctx.buffer(b.quad_indices.tobytes())
        pindex_vbo = self.ctx.buffer(b.pixel_indices.tobytes())
        offset_vbo = self.ctx.buffer(b.offsets.tobytes())
        angle_vbo = self.ctx.buffer(b.angles.tobytes())
        self._buffers = [quad_vbo, ibo, pindex_vbo, offset_vbo, angle_vbo]

        self._vao = self.ctx.vertex_array(
            self.prog,
            [
                (quad_vbo, '3f 2f', 'in_position', 'in_uv'),
                (pindex_vbo, '1u/i', 'in_pindex'),
                (offset_vbo, '3f/i', 'in_offset'),
                (angle_vbo, '1f/i', 'in_angle'),
            ],
            index_buffer=ibo,
            index_element_size=2)
        log.info("Uploaded %d particle instances", self.num_instances)

    # ────────────────── Rendering ──────────────────

    def _set(self, name, value):
        # The GLSL compiler drops unused uniforms
        uniform = self.prog.get(name, None)
        if uniform is not None:
            uniform.value = value

    def render(self, w, h, camera, elapsed, touch=(0.0, 0.0, 0.0), fbo=None):
        """Draw the current field into ``fbo`` (default: the screen)."""
        target = fbo if fbo is not None else self.ctx.screen
        target.use()
        self.ctx.viewport = (0, 0, w, h)
        bg = settings["bg_color"]
        self.ctx.clear(bg[0], bg[1], bg[2])

        if self._vao is None:
            return

        self.ctx.disable(moderngl.DEPTH_TEST)
        self.ctx.enable(moderngl.BLEND)
        self.ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE_MINUS_SRC_ALPHA

        shader = self.field.shader
        self.prog['mvp'].write(camera.get_mvp(w, h).tobytes())
        self._set('uTime', float(elapsed))
        self._set('uRandom', float(shader.random))
        self._set('uDepth', float(shader.depth))
        self._set('uSize', float(shader.size))
        self._set('uTextureSize', tuple(float(v) for v in self.field.texture_size))
        self._set('uTouch', tuple(float(v) for v in touch))
        self._set('uTouchRadius', TOUCH_RADIUS)
        self._set('uTexture', 0)
        self._texture.use(0)

        self._vao.render(moderngl.TRIANGLES, instances=self.num_instances)

    # ────────────────── Screenshot ──────────────────

    def capture_screenshot(self, w, h, fbo=None):
        """Read back the framebuffer as a BGR image (top row first)."""
        target = fbo if fbo is not None else self.ctx.screen
        data = target.read(viewport=(0, 0, w, h), components=3, alignment=1)
        expected = w * h * 3
        if len(data) != expected:
            log.error("Screenshot: data size %d != %dx%dx3=%d",
                      len(data), w, h, expected)
            return None
        img = np.frombuffer(data, dtype=np.uint8).reshape((h, w, 3))
        img = np.flipud(img)
        return cv2.cvtColor(img, cv2.COLOR_RGB2BGR)

    @staticmethod
    def save_screenshot_to_disk(img, screenshots_dir):
        """Save captured pixels to PNG (call outside GL context)."""
        if img is None:
            return None
        os.makedirs(screenshots_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
        path = os.path.join(screenshots_dir, f"particles_{timestamp}.png")
        cv2.imwrite(path, img)
        log.info("Screenshot saved: %s (%dx%d)",
                 path, img.shape[1], img.shape[0])
        return path

    # ────────────────── Cleanup ──────────────────

    def _release_field(self):
        if self._vao is not None:
            self._vao.release()
            self._vao = None
        for buf in self._buffers:
            buf.release()
        self._buffers = []
        if self._texture is not None:
            self._texture.release()
            self._texture = None
        self.field = None
        self.num_instances = 0

    def release(self):
        """Release all GPU resources."""
        self._release_field()
        self.prog.release()
