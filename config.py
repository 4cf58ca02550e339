# =============================
# Photo Particles configuration
# =============================
import json
import math
import numbers
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import List, TypedDict

# Pixels whose red sample is at or below this value are discarded
DISCARD_THRESHOLD = 34

# Per-instance pixel indices are stored as uint32
MAX_PIXELS = 2 ** 32

# Shader defaults (pass-through, never read by the core)
DEFAULT_RANDOM = 1.0
DEFAULT_DEPTH = 2.0
DEFAULT_SIZE = 1.5

# Window
WINDOW_W, WINDOW_H = 1280, 720
TARGET_FPS = 60

# Pointer influence radius, in image pixels
TOUCH_RADIUS = 12.0


@dataclass(frozen=True)
class ParticleConfig:
    """Options that change which pixels become particles."""
    discard_enabled: bool = True
    threshold: float = DISCARD_THRESHOLD

    def __post_init__(self):
        if not isinstance(self.discard_enabled, bool):
            raise ValueError(
                f"discard_enabled must be true or false, got {self.discard_enabled!r}")
        if isinstance(self.threshold, bool) or not isinstance(
                self.threshold, numbers.Real):
            raise ValueError(f"threshold must be a number, got {self.threshold!r}")
        if not math.isfinite(self.threshold):
            raise ValueError(f"threshold must be finite, got {self.threshold!r}")


@dataclass(frozen=True)
class ShaderParams:
    """Uniform defaults handed to the renderer as-is."""
    random: float = DEFAULT_RANDOM
    depth: float = DEFAULT_DEPTH
    size: float = DEFAULT_SIZE


# =============================
# Presets (JSON)
# =============================

def _from_section(cls, data, name):
    if not isinstance(data, dict):
        raise ValueError(f"Preset section {name!r} must be a JSON object")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(
            f"Unknown {name} option(s): {', '.join(sorted(unknown))}")
    return cls(**data)


def load_preset(path):
    """Read ``{"particles": {...}, "shader": {...}}`` from a JSON file.

    Missing sections fall back to defaults.  Returns
    ``(ParticleConfig, ShaderParams)``.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Preset {path} must contain a JSON object")
    extra = set(data) - {"particles", "shader"}
    if extra:
        raise ValueError(
            f"Unknown preset section(s): {', '.join(sorted(extra))}")
    particles = _from_section(ParticleConfig, data.get("particles", {}),
                              "particles")
    shader = _from_section(ShaderParams, data.get("shader", {}), "shader")
    return particles, shader


def save_preset(path, particles, shader):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"particles": asdict(particles), "shader": asdict(shader)}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=float)
    return path


# =============================
# Runtime viewer settings
# =============================


class Settings(TypedDict):
    """Typed schema for the runtime settings dict.

    Using ``int`` for boolean toggles (0/1) to match GLSL uniform
    conventions.
    """
    bg_color: List[float]     # [r, g, b] 0‒1
    animate: int              # advance uTime
    time_scale: float
    touch_enabled: int
    frame_limiter: int
    vsync: int


settings: Settings = {
    "bg_color": [0.0, 0.0, 0.0],
    "animate": 1,
    "time_scale": 1.0,
    "touch_enabled": 1,
    "frame_limiter": 0,
    "vsync": 1,
}
