# =============================
# Particle field errors
# =============================


class ParticleFieldError(Exception):
    """Base class for failures while building a particle field."""


class DecodeError(ParticleFieldError):
    """The image could not be decoded or rasterized."""


class InvariantError(ParticleFieldError):
    """Filter and builder disagree on the particle set.

    Always a logic defect; callers must not try to recover from it.
    """
