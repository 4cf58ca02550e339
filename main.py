# =============================
# Photo Particles — Application
# =============================
"""
Entry point.

  ``image_sampler.py``    — decode + flipped RGBA sampling
  ``visibility.py``       — red-channel threshold filter
  ``particle_buffers.py`` — instanced quad + per-particle buffers
  ``particle_field.py``   — the three stages chained
  ``renderer.py``         — ``ParticleRenderer`` (moderngl)
  ``camera.py``           — ``ImageCamera``

This file contains the thin ``Application`` class: window creation,
event loop, input, and delegation to the modules above.  With
``--headless`` only the particle field is built (and optionally
exported), no window is opened.
"""

import argparse
import logging
import os
import sys
import threading
import time
from dataclasses import replace

import numpy as np
import glfw
import moderngl

from config import (
    WINDOW_W, WINDOW_H, TARGET_FPS, settings,
    ParticleConfig, ShaderParams, load_preset,
)
from app_state import AppState
from camera import ImageCamera
from errors import ParticleFieldError
from particle_field import load_particle_field
from ply_export import export_ply
from renderer import ParticleRenderer

log = logging.getLogger(__name__)

# ── Directories ──
_BASE_DIR = os.path.dirname(os.path.abspath(__file__))
_SCREENSHOTS_DIR = os.path.join(_BASE_DIR, "screenshots")
_EXPORTS_DIR = os.path.join(_BASE_DIR, "exports")

FRAME_TIME = 1.0 / TARGET_FPS


def parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Render a photo as a field of animated particles.")
    parser.add_argument("image", help="path to the source image")
    parser.add_argument("--preset", help="JSON preset with particle/shader options")
    parser.add_argument("--no-discard", action="store_true",
                        help="keep every pixel, ignore the threshold")
    parser.add_argument("--threshold", type=float,
                        help="red-channel cutoff (default 34)")
    parser.add_argument("--seed", type=int,
                        help="seed for the per-particle angles")
    parser.add_argument("--export-ply", metavar="DIR", nargs="?",
                        const=_EXPORTS_DIR,
                        help="write the particle grid as PLY")
    parser.add_argument("--headless", action="store_true",
                        help="build (and export) without opening a window")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def build_configs(args):
    """Merge preset file and command line into (ParticleConfig, ShaderParams)."""
    if args.preset:
        particles, shader = load_preset(args.preset)
    else:
        particles, shader = ParticleConfig(), ShaderParams()
    if args.no_discard:
        particles = replace(particles, discard_enabled=False)
    if args.threshold is not None:
        particles = replace(particles, threshold=args.threshold)
    return particles, shader


class Application:
    """Top-level viewer object.  Owns window, GL context and renderer."""

    def __init__(self, args, particles, shader):
        self.args = args
        self.particle_config = particles
        self.shader_params = shader
        self.rng = np.random.default_rng(args.seed)
        self.state = AppState(image_path=args.image)

        # Build before opening a window: a bad image should fail fast
        field = load_particle_field(
            args.image, self.particle_config, self.shader_params, self.rng)

        if not glfw.init():
            log.critical("GLFW init failed")
            raise SystemExit(1)

        glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
        glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
        glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, True)

        self.window = glfw.create_window(
            WINDOW_W, WINDOW_H, "Photo Particles", None, None)
        if not self.window:
            glfw.terminate()
            raise SystemExit(1)

        glfw.make_context_current(self.window)
        glfw.swap_interval(settings["vsync"])

        self.ctx = moderngl.create_context()

        # From this point, failures must clean up GL resources.
        try:
            self.camera = ImageCamera()
            self.renderer = ParticleRenderer(self.ctx)
            self._show_field(field)

            def _scroll(w, xoff, yoff):
                self.state.scroll_accum += yoff

            def _drop(w, paths):
                if paths:
                    self.state.pending_image_path = paths[0]

            glfw.set_scroll_callback(self.window, _scroll)
            glfw.set_drop_callback(self.window, _drop)
        except Exception:
            log.exception("Error during Application init, cleaning up")
            self._cleanup()
            raise

    # ────────────────────── Field ──────────────────────

    def _show_field(self, field):
        self.renderer.upload(field)
        w, h = glfw.get_framebuffer_size(self.window)
        self.camera.fit(*field.texture_size, aspect=max(w, 1) / max(h, 1))

    def _load_image(self, path):
        """Swap in a new image; the old field stays on failure."""
        try:
            field = load_particle_field(
                path, self.particle_config, self.shader_params, self.rng)
        except ParticleFieldError as e:
            log.error("Cannot show %s: %s", path, e)
            return
        self.state.image_path = path
        self._show_field(field)

    def _rebuild_angles(self):
        # Same pixels, fresh random angles
        if self.renderer.field is not None:
            self._load_image(self.state.image_path)

    # ────────────────────── Main loop ──────────────────────

    def run(self):
        s = self.state
        try:
            while not glfw.window_should_close(self.window):
                now = time.perf_counter()
                dt = now - s.prev_frame_time
                s.prev_frame_time = now

                # FPS
                s.fps_counter += 1
                if now - s.fps_timer >= 1.0:
                    s.current_fps = s.fps_counter
                    s.fps_counter = 0
                    s.fps_timer = now
                    glfw.set_window_title(
                        self.window,
                        f"Photo Particles | {self.renderer.num_instances:,} "
                        f"particles | {s.current_fps} FPS")

                glfw.poll_events()
                if glfw.get_key(self.window, glfw.KEY_ESCAPE) == glfw.PRESS:
                    break

                if s.pending_image_path is not None:
                    path, s.pending_image_path = s.pending_image_path, None
                    self._load_image(path)

                self._handle_hotkeys()
                self._handle_mouse(dt)

                if settings["animate"]:
                    s.anim_time += dt * settings["time_scale"]

                w, h = glfw.get_framebuffer_size(self.window)
                if w < 1 or h < 1:
                    continue
                self.renderer.render(w, h, self.camera, s.anim_time, s.touch)

                if s.screenshot_requested:
                    s.screenshot_requested = False
                    img = self.renderer.capture_screenshot(w, h)
                    threading.Thread(
                        target=self.renderer.save_screenshot_to_disk,
                        args=(img, _SCREENSHOTS_DIR),
                        daemon=True,
                    ).start()

                glfw.swap_buffers(self.window)

                if settings["frame_limiter"] and not settings["vsync"]:
                    sleep_time = now + FRAME_TIME - time.perf_counter()
                    if sleep_time > 0:
                        time.sleep(sleep_time)
        finally:
            self._cleanup()

    # ────────────────────── Hotkeys ──────────────────────

    def _key_pressed(self, key, attr):
        """Edge-triggered key check; ``attr`` holds the previous state."""
        down = glfw.get_key(self.window, key) == glfw.PRESS
        pressed = down and not getattr(self.state, attr)
        setattr(self.state, attr, down)
        return pressed

    def _handle_hotkeys(self):
        if self._key_pressed(glfw.KEY_F11, "f11_was_pressed"):
            self._toggle_fullscreen()
        if self._key_pressed(glfw.KEY_F12, "f12_was_pressed"):
            self.state.screenshot_requested = True
        if self._key_pressed(glfw.KEY_HOME, "home_was_pressed"):
            self.camera.reset()
        if self._key_pressed(glfw.KEY_SPACE, "space_was_pressed"):
            settings["animate"] = 0 if settings["animate"] else 1
        if self._key_pressed(glfw.KEY_R, "r_was_pressed"):
            self._rebuild_angles()
        if self._key_pressed(glfw.KEY_P, "p_was_pressed"):
            if self.renderer.field is not None:
                export_ply(self.renderer.field, _EXPORTS_DIR)

    # ────────────────────── Mouse ──────────────────────

    def _handle_mouse(self, dt):
        s = self.state
        mx, my = glfw.get_cursor_pos(self.window)
        win_w, win_h = glfw.get_window_size(self.window)

        if s.mouse_initialized:
            if glfw.get_mouse_button(
                    self.window, glfw.MOUSE_BUTTON_RIGHT) == glfw.PRESS:
                self.camera.pan(mx - s.last_mx, my - s.last_my, win_h)
        if s.scroll_accum != 0.0:
            self.camera.zoom(s.scroll_accum)
        s.scroll_accum = 0.0

        tx, ty = self.camera.screen_to_image(mx, my, win_w, win_h)
        hovering = (settings["touch_enabled"]
                    and 0 <= mx < win_w and 0 <= my < win_h
                    and glfw.get_window_attrib(self.window, glfw.HOVERED))
        s.update_touch(tx, ty, bool(hovering), dt)

        s.last_mx, s.last_my = mx, my
        s.mouse_initialized = True

    # ────────────────────── Fullscreen ──────────────────────

    def _toggle_fullscreen(self):
        s = self.state
        if s.is_fullscreen:
            glfw.set_window_monitor(
                self.window, None,
                s.windowed_pos[0], s.windowed_pos[1],
                s.windowed_size[0], s.windowed_size[1], 0)
            s.is_fullscreen = False
        else:
            s.windowed_pos = list(glfw.get_window_pos(self.window))
            s.windowed_size = list(glfw.get_window_size(self.window))
            monitor = glfw.get_primary_monitor()
            mode = glfw.get_video_mode(monitor)
            glfw.set_window_monitor(
                self.window, monitor, 0, 0,
                mode.size.width, mode.size.height,
                mode.refresh_rate)
            s.is_fullscreen = True

    # ────────────────────── Cleanup ──────────────────────

    def _cleanup(self):
        if hasattr(self, 'renderer'):
            self.renderer.release()
        if hasattr(self, 'ctx'):
            self.ctx.release()
        glfw.terminate()


def run_headless(args, particles, shader):
    """Build the field once, optionally export it, no window."""
    rng = np.random.default_rng(args.seed)
    field = load_particle_field(args.image, particles, shader, rng)
    if args.export_ply:
        export_ply(field, args.export_ply)
    return field


def main(argv=None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(message)s")
    try:
        particles, shader = build_configs(args)
    except (OSError, ValueError) as e:
        log.critical("Invalid configuration: %s", e)
        return 1

    try:
        if args.headless:
            run_headless(args, particles, shader)
            return 0
        app = Application(args, particles, shader)
        if args.export_ply:
            export_ply(app.renderer.field, args.export_ply)
        app.run()
    except ParticleFieldError as e:
        log.critical("%s", e)
        return 1
    return 0


# ── Entry point ──
if __name__ == "__main__":
    sys.exit(main())
