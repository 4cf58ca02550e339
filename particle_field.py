# =============================
# ParticleField — sampler → filter → builder
# =============================
"""
One-shot build of everything the renderer needs for one image::

    decoded image → SourceImage → Visibility → ParticleBuffers

Nothing is cached between calls; the returned ``ParticleField`` belongs
to the caller.  ``DecodeError`` stops the chain before any buffer is
allocated.
"""

import logging
import time
from dataclasses import dataclass, field

from config import ParticleConfig, ShaderParams
from image_sampler import SourceImage, load_image, sample_image
from particle_buffers import ParticleBuffers, build_buffers
from visibility import Visibility, filter_visible

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParticleField:
    image: SourceImage
    visibility: Visibility
    buffers: ParticleBuffers
    config: ParticleConfig = field(default_factory=ParticleConfig)
    shader: ShaderParams = field(default_factory=ShaderParams)

    @property
    def num_visible(self):
        return self.buffers.num_visible

    @property
    def texture_size(self):
        return (self.image.width, self.image.height)


def build_particle_field(img, config=None, shader=None, rng=None):
    """Build a ``ParticleField`` from an image already decoded by OpenCV."""
    config = config or ParticleConfig()
    shader = shader or ShaderParams()

    t0 = time.perf_counter()
    source = sample_image(img)
    t1 = time.perf_counter()
    visibility = filter_visible(source, config)
    t2 = time.perf_counter()
    buffers = build_buffers(visibility, source.width, source.height, rng)
    t3 = time.perf_counter()

    log.debug("sample %.2fms  filter %.2fms  build %.2fms",
              (t1 - t0) * 1000, (t2 - t1) * 1000, (t3 - t2) * 1000)
    log.info("Particle field: %dx%d, %d/%d visible (discard=%s, threshold=%s)",
             source.width, source.height, buffers.num_visible,
             source.num_pixels, config.discard_enabled, config.threshold)

    return ParticleField(source, visibility, buffers, config, shader)


def load_particle_field(path, config=None, shader=None, rng=None):
    """Decode ``path`` and build its ``ParticleField``."""
    return build_particle_field(load_image(path), config, shader, rng)
