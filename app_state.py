# =============================
# Viewer state
# =============================
"""
All mutable runtime state of the viewer window, grouped logically.

One ``AppState`` instance is created in ``Application.__init__``.  The
particle field itself is not stored here; it is rebuilt from scratch
whenever a new image arrives.
"""

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class AppState:
    """All mutable runtime state, grouped logically."""

    # ── Image ──
    image_path: str = ""
    pending_image_path: Optional[str] = None   # set by drag & drop

    # ── FPS tracking ──
    fps_counter: int = 0
    fps_timer: float = field(default_factory=time.perf_counter)
    current_fps: int = 0

    # ── Animation ──
    anim_time: float = 0.0

    # ── Screenshot ──
    f12_was_pressed: bool = False
    screenshot_requested: bool = False

    # ── Fullscreen ──
    windowed_pos: list = field(default_factory=lambda: [100, 100])
    windowed_size: list = field(default_factory=lambda: [1280, 720])
    is_fullscreen: bool = False
    f11_was_pressed: bool = False

    # ── Keys ──
    home_was_pressed: bool = False
    space_was_pressed: bool = False
    r_was_pressed: bool = False
    p_was_pressed: bool = False

    # ── Mouse / touch ──
    last_mx: float = 0.0
    last_my: float = 0.0
    mouse_initialized: bool = False
    scroll_accum: float = 0.0
    touch_x: float = 0.0
    touch_y: float = 0.0
    touch_strength: float = 0.0

    # ── Timing ──
    prev_frame_time: float = field(default_factory=time.perf_counter)

    def update_touch(self, x, y, active, dt, fade=4.0):
        """Follow the pointer; strength eases toward 1 (active) or 0."""
        self.touch_x = x
        self.touch_y = y
        goal = 1.0 if active else 0.0
        step = min(max(dt, 0.0) * fade, 1.0)
        self.touch_strength += (goal - self.touch_strength) * step

    @property
    def touch(self):
        return (self.touch_x, self.touch_y, self.touch_strength)
