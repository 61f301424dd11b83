"""Thin-lens camera model for primary ray generation.

The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view setting
- Aspect ratio taken from the image size
- Depth of field through a circular aperture focused at a given distance

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport is placed at the focus distance in front of the lens. Ray
origins are jittered over a disk of radius ``aperture_radius`` in the (u, v)
plane and every ray passes through its viewport point, so geometry at the
focus distance stays sharp. A zero aperture gives a pinhole camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtweekend.camera.thin_lens import CameraConfig, build_camera, setup_camera
    >>> camera = build_camera(CameraConfig(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vfov=60.0,
    ...     image_width=320,
    ...     image_height=180,
    ... ))
    >>> setup_camera(camera)
"""


import itertools
import logging
import math
from dataclasses import dataclass, field

import numpy as np
import taichi as ti

from rtweekend.core.ray import make_ray, safe_normalize
from rtweekend.core.sampler import random_in_unit_disk
from rtweekend.errors import CameraConfigError

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]

DEFAULT_VFOV = 90.0

_camera_tokens = itertools.count(1)
_active_token = 0


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class CameraConfig:
    """User-facing camera parameters.

    Attributes:
        lookfrom: Camera position in world space.
        lookat: Point the camera looks at.
        vup: Approximate up direction; only its component perpendicular to
            the view direction matters.
        vfov: Vertical field of view in degrees, in (0, 180).
        image_width: Image width in pixels.
        image_height: Image height in pixels.
        aperture_radius: Lens radius. 0 disables depth of field.
        focus_dist: Distance of the plane in focus. None means the distance
            from lookfrom to lookat.
    """

    lookfrom: Vec3 = (0.0, 0.0, 0.0)
    lookat: Vec3 = (0.0, 0.0, -1.0)
    vup: Vec3 = (0.0, 1.0, 0.0)
    vfov: float = DEFAULT_VFOV
    image_width: int = 400
    image_height: int = 225
    aperture_radius: float = 0.0
    focus_dist: float | None = None


@dataclass(frozen=True)
class Camera:
    """A camera with its derived view geometry.

    Built by :func:`build_camera`; all vectors are in world space.
    """

    config: CameraConfig
    origin: Vec3
    u: Vec3
    v: Vec3
    w: Vec3
    lower_left: Vec3
    horizontal: Vec3
    vertical: Vec3
    lens_radius: float
    focus_dist: float
    _token: int = field(default=0, compare=False, repr=False)

    @property
    def image_width(self) -> int:
        return self.config.image_width

    @property
    def image_height(self) -> int:
        return self.config.image_height

    @property
    def aspect_ratio(self) -> float:
        return self.config.image_width / self.config.image_height


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport at the focus distance
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())

# Result slots of the single-ray helper kernel
_sampled_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_sampled_direction = ti.Vector.field(3, dtype=ti.f32, shape=())


# =============================================================================
# Camera Construction (Python-side)
# =============================================================================


def _as_vector(value, name: str) -> np.ndarray:
    try:
        vec = np.array([float(c) for c in value], dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise CameraConfigError(f"{name} must be three numbers, got {value!r}") from exc
    if vec.shape != (3,) or not np.all(np.isfinite(vec)):
        raise CameraConfigError(f"{name} must be three finite numbers, got {value!r}")
    return vec


def _right_vector(vup: np.ndarray, w: np.ndarray) -> np.ndarray:
    u = np.cross(vup, w)
    norm = np.linalg.norm(u)
    if norm > 1e-6:
        return u / norm

    # vup is zero or parallel to the view direction; any perpendicular up works
    fallback = np.array([0.0, 0.0, 1.0]) if abs(w[1]) > 0.9 else np.array([0.0, 1.0, 0.0])
    logger.warning(
        "vup %s is parallel to the view direction; using %s instead",
        tuple(vup.tolist()),
        tuple(fallback.tolist()),
    )
    u = np.cross(fallback, w)
    return u / np.linalg.norm(u)


def build_camera(config: CameraConfig) -> Camera:
    """Validate camera parameters and derive the view geometry.

    Args:
        config: The camera parameters.

    Returns:
        A Camera ready to be passed to :func:`setup_camera`.

    Raises:
        CameraConfigError: If lookfrom equals lookat, the field of view is
            outside (0, 180), the image size is not positive, or the lens
            parameters are negative.
    """
    lookfrom = _as_vector(config.lookfrom, "lookfrom")
    lookat = _as_vector(config.lookat, "lookat")
    vup = _as_vector(config.vup, "vup")

    if not 0.0 < config.vfov < 180.0:
        raise CameraConfigError(f"vfov = {config.vfov} must be in (0, 180) degrees")
    if config.image_width <= 0 or config.image_height <= 0:
        raise CameraConfigError(
            f"Image size must be positive, got {config.image_width}x{config.image_height}"
        )
    if not math.isfinite(config.aperture_radius) or config.aperture_radius < 0.0:
        raise CameraConfigError(f"aperture_radius = {config.aperture_radius} must be >= 0")

    view = lookfrom - lookat
    distance = float(np.linalg.norm(view))
    if distance < 1e-9:
        raise CameraConfigError("lookfrom and lookat must be different points")

    focus_dist = distance if config.focus_dist is None else float(config.focus_dist)
    if not math.isfinite(focus_dist) or focus_dist <= 0.0:
        raise CameraConfigError(f"focus_dist = {config.focus_dist} must be positive")

    # w points from lookat toward lookfrom (backward)
    w = view / distance
    u = _right_vector(vup, w)
    v = np.cross(w, u)

    theta = math.radians(config.vfov)
    viewport_height = 2.0 * math.tan(theta / 2.0)
    viewport_width = (config.image_width / config.image_height) * viewport_height

    horizontal = focus_dist * viewport_width * u
    vertical = focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - focus_dist * w

    def as_tuple(a: np.ndarray) -> Vec3:
        return (float(a[0]), float(a[1]), float(a[2]))

    return Camera(
        config=config,
        origin=as_tuple(lookfrom),
        u=as_tuple(u),
        v=as_tuple(v),
        w=as_tuple(w),
        lower_left=as_tuple(lower_left),
        horizontal=as_tuple(horizontal),
        vertical=as_tuple(vertical),
        lens_radius=float(config.aperture_radius),
        focus_dist=focus_dist,
        _token=next(_camera_tokens),
    )


def setup_camera(camera: Camera) -> None:
    """Upload a camera to the kernel fields unless it is already there.

    Note:
        This function writes to Taichi fields and should be called from
        Python (not from within a Taichi kernel).
    """
    global _active_token

    if camera._token != 0 and camera._token == _active_token:
        return

    _camera_origin[None] = list(camera.origin)
    _camera_u[None] = list(camera.u)
    _camera_v[None] = list(camera.v)
    _camera_w[None] = list(camera.w)
    _viewport_horizontal[None] = list(camera.horizontal)
    _viewport_vertical[None] = list(camera.vertical)
    _lower_left_corner[None] = list(camera.lower_left)
    _lens_radius[None] = camera.lens_radius
    _active_token = camera._token

    logger.debug(
        "Camera set up at %s looking along %s (lens radius %.4f, focus %.4f)",
        camera.origin,
        tuple(-c for c in camera.w),
        camera.lens_radius,
        camera.focus_dist,
    )


def invalidate_active_camera() -> None:
    """Forget which camera is uploaded, forcing the next setup to upload."""
    global _active_token
    _active_token = 0


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def generate_ray(u: ti.f32, v: ti.f32, state: ti.u32):
    """Generate a primary ray through normalized image coordinates (u, v).

    The coordinates are normalized:
    - u = 0: left edge of image, u = 1: right edge
    - v = 0: bottom edge of image, v = 1: top edge

    Args:
        u: Horizontal coordinate in [0, 1].
        v: Vertical coordinate in [0, 1].
        state: RNG state used for the lens sample.

    Returns:
        A tuple (ray, rng). The ray direction is unit length.
    """
    rng = state
    disk, rng = random_in_unit_disk(rng)

    lens = _lens_radius[None] * disk
    offset = lens.x * _camera_u[None] + lens.y * _camera_v[None]
    origin = _camera_origin[None] + offset

    target = (
        _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    )
    direction = safe_normalize(target - origin, -_camera_w[None])

    return make_ray(origin, direction), rng


@ti.kernel
def _sample_ray(u: ti.f32, v: ti.f32, seed: ti.u32):
    ray, _ = generate_ray(u, v, seed)
    _sampled_origin[None] = ray.origin
    _sampled_direction[None] = ray.direction


def camera_ray(camera: Camera, u: float, v: float, seed: int = 1) -> tuple[Vec3, Vec3]:
    """Generate one primary ray from Python.

    Args:
        camera: The camera to use (set up on demand).
        u: Horizontal image coordinate in [0, 1].
        v: Vertical image coordinate in [0, 1].
        seed: Non-zero RNG state for the lens sample.

    Returns:
        A tuple (origin, unit_direction).
    """
    setup_camera(camera)
    _sample_ray(u, v, seed & 0xFFFFFFFF or 1)
    origin = _sampled_origin[None]
    direction = _sampled_direction[None]
    return (
        (float(origin[0]), float(origin[1]), float(origin[2])),
        (float(direction[0]), float(direction[1]), float(direction[2])),
    )


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, object]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius as uploaded to the kernel fields.
    """

    def read(f) -> Vec3:
        value = f[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": read(_camera_origin),
        "u": read(_camera_u),
        "v": read(_camera_v),
        "w": read(_camera_w),
        "horizontal": read(_viewport_horizontal),
        "vertical": read(_viewport_vertical),
        "lower_left": read(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }

