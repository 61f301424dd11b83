"""Exception types raised by the raytracer.

Only configuration problems are reported as exceptions. They are detected
in plain Python while a scene, camera or render request is being built,
before any Taichi field is written, so a failed build never disturbs the
scene that is currently active.

Numerically degenerate cases inside the kernels (tangent rays, zero-length
scatter directions, NaN samples) are never raised; they are resolved
locally so that every pixel always receives a color.
"""


class RaytracerError(Exception):
    """Base class for all raytracer errors."""


class ConfigError(RaytracerError, ValueError):
    """An invalid value was supplied while building render inputs.

    Subclasses ValueError so callers that only catch ValueError keep working.
    """


class SceneConfigError(ConfigError):
    """The scene description is invalid (dangling material, bad radius, ...)."""


class CameraConfigError(ConfigError):
    """The camera parameters cannot produce a valid view."""


class RenderConfigError(ConfigError):
    """Invalid render request (sample count, bounce budget, pixel range)."""
