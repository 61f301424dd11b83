"""Path tracing integrator.

Every pixel is rendered by averaging independent camera paths. A path is
traced iteratively with a fixed bounce budget (no recursion, so the same
code runs on GPU backends):

    - Miss: the path picks up ``throughput * background(direction)`` and ends.
    - Hit with the bounce budget used up: the path ends black.
    - Hit and absorbed by the material: the path ends black.
    - Otherwise the throughput is multiplied by the material attenuation
      and the scattered ray continues from the hit point.

``max_bounces`` counts scatter events, so at most ``max_bounces + 1``
intersection tests are made per path and ``max_bounces = 0`` only shows
the background around black silhouettes.

Colors are linear throughout. Gamma correction (gamma 2, i.e. a square
root) is applied once, after averaging, by ``render_pixel`` and the image
export helpers; it is never applied inside a path.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtweekend.scene.presets import demo_camera, demo_scene
    >>> from rtweekend.core.integrator import render_pixel
    >>> scene, camera = demo_scene(), demo_camera(64, 36)
    >>> r, g, b = render_pixel(scene, camera, (32, 18), sample_count=16, max_bounces=8)
"""


import math

import numpy as np
import taichi as ti
import taichi.math as tm

from rtweekend.camera.thin_lens import Camera, generate_ray, setup_camera
from rtweekend.config import (
    Background,
    RenderSettings,
    validate_max_bounces,
    validate_sample_count,
)
from rtweekend.core.ray import Ray
from rtweekend.core.sampler import bounce_rng, random_f32, seed_rng
from rtweekend.errors import RenderConfigError
from rtweekend.materials.table import scatter_material
from rtweekend.scene.builder import Scene
from rtweekend.scene.intersection import T_MAX, T_MIN, intersect_scene

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Background
# =============================================================================

BACKGROUND_GRADIENT = 0
BACKGROUND_SOLID = 1

_background_mode = ti.field(dtype=ti.i32, shape=())
_background_horizon = ti.Vector.field(3, dtype=ti.f32, shape=())
_background_zenith = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_background(background: Background) -> None:
    """Upload the background used for escaped rays."""
    background.validate()
    _background_mode[None] = background.mode_index
    _background_horizon[None] = list(background.horizon_color)
    _background_zenith[None] = list(background.zenith_color)


@ti.func
def background_color(direction: vec3) -> vec3:
    """Radiance of a ray that escaped the scene.

    The gradient blends from the horizon color (t = 0) to the zenith color
    (t = 1) with t = y + 0.5 of the unit direction, clamped to [0, 1]. Rays
    at least 30 degrees below the horizon see the horizon color, rays at
    least 30 degrees above it see the zenith color, and a level ray sees an
    even mix of the two.
    """
    result = _background_horizon[None]
    if _background_mode[None] == BACKGROUND_GRADIENT:
        unit_direction = tm.normalize(direction)
        t = tm.clamp(unit_direction.y + 0.5, 0.0, 1.0)
        result = (1.0 - t) * _background_horizon[None] + t * _background_zenith[None]
    return result


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Last rendered frame (linear average of its samples)
_frame_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Running average of all frames since the last clear
_accum_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Frames accumulated per pixel
_frame_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        RenderConfigError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise RenderConfigError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise RenderConfigError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the frame and accumulation buffers."""
    _frame_buffer.fill(0.0)
    _accum_buffer.fill(0.0)
    _frame_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(ray: Ray, max_bounces: ti.i32, path_seed: ti.u32) -> vec3:
    """Follow one path through the scene.

    Args:
        ray: The primary ray.
        max_bounces: Number of scatter events allowed.
        path_seed: RNG state of the path; re-keyed for every bounce.

    Returns:
        The linear radiance carried back along the path.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Active flag for path continuation (no break inside the bounce loop)
    active = 1

    for bounce in range(max_bounces + 1):
        if active == 1:
            rec = intersect_scene(current.origin, current.direction, T_MIN, T_MAX)

            if rec.hit == 0:
                radiance = throughput * background_color(current.direction)
                active = 0
            elif bounce == max_bounces:
                # Budget exhausted while still inside the scene
                active = 0
            else:
                rng = bounce_rng(path_seed, bounce)
                did_scatter, attenuation, scattered, rng = scatter_material(current, rec, rng)
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = scattered

    return radiance


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace negative, NaN and infinite components with zero."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]) or result[c] < 0.0:
            result[c] = 0.0
    return result


@ti.func
def sample_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample: ti.i32,
    max_bounces: ti.i32,
    frame_seed: ti.i32,
) -> vec3:
    """Trace one jittered camera path through a pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        sample: Sample index within the pixel.
        max_bounces: Number of scatter events allowed.
        frame_seed: Seed of the current frame.

    Returns:
        The sanitized linear radiance of the path.
    """
    rng = seed_rng(pixel_i, pixel_j, sample, frame_seed)
    jitter_u, rng = random_f32(rng)
    jitter_v, rng = random_f32(rng)

    u = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width, ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height, ti.f32)

    ray, rng = generate_ray(u, v, rng)
    return _sanitize(trace_path(ray, max_bounces, rng))


@ti.func
def trace_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_count: ti.i32,
    max_bounces: ti.i32,
    frame_seed: ti.i32,
) -> vec3:
    """Average ``sample_count`` independent paths through a pixel (linear)."""
    total = vec3(0.0, 0.0, 0.0)
    for s in range(sample_count):
        total += sample_pixel(pixel_i, pixel_j, width, height, s, max_bounces, frame_seed)
    return total / ti.cast(sample_count, ti.f32)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_frame_kernel(
    width: ti.i32,
    height: ti.i32,
    sample_count: ti.i32,
    max_bounces: ti.i32,
    frame_seed: ti.i32,
):
    """Render one frame and fold it into the accumulation buffer."""
    for i, j in ti.ndrange(width, height):
        color = trace_pixel(i, j, width, height, sample_count, max_bounces, frame_seed)
        _frame_buffer[i, j] = color

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _frame_count[i, j] += 1
        n = _frame_count[i, j]
        _accum_buffer[i, j] += (color - _accum_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _trace_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_count: ti.i32,
    max_bounces: ti.i32,
    frame_seed: ti.i32,
) -> vec3:
    return trace_pixel(pixel_i, pixel_j, width, height, sample_count, max_bounces, frame_seed)


# =============================================================================
# Public Rendering API
# =============================================================================


def _activate(scene: Scene, camera: Camera, background: Background | None) -> None:
    scene.activate()
    setup_camera(camera)
    setup_background(background if background is not None else Background())


def trace(
    scene: Scene,
    camera: Camera,
    pixel: tuple[int, int],
    sample_count: int,
    max_bounces: int,
    frame_seed: int = 0,
    background: Background | None = None,
) -> tuple[float, float, float]:
    """Estimate the linear radiance arriving at one pixel.

    Args:
        scene: Scene to render.
        camera: Camera whose image contains the pixel.
        pixel: (x, y) pixel coordinates, (0, 0) being the bottom-left pixel.
        sample_count: Number of paths averaged.
        max_bounces: Number of scatter events per path.
        frame_seed: Seed selecting the noise pattern.
        background: Radiance of escaped rays (default sky gradient).

    Returns:
        The averaged linear (R, G, B) color.

    Raises:
        RenderConfigError: For a non-positive sample count, a negative
            bounce budget or a pixel outside the camera image.
    """
    validate_sample_count(sample_count)
    validate_max_bounces(max_bounces)

    width, height = camera.image_width, camera.image_height
    pixel_i, pixel_j = pixel
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise RenderConfigError(f"Pixel {pixel} is outside the {width}x{height} image")

    _activate(scene, camera, background)
    color = _trace_single_pixel(
        pixel_i, pixel_j, width, height, sample_count, max_bounces, frame_seed & 0x7FFFFFFF
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def gamma_encode(value: float) -> float:
    """Gamma 2 encoding of one linear component (negative input gives 0)."""
    return math.sqrt(max(value, 0.0))


def render_pixel(
    scene: Scene,
    camera: Camera,
    pixel: tuple[int, int],
    sample_count: int,
    max_bounces: int,
    frame_seed: int = 0,
    background: Background | None = None,
) -> tuple[float, float, float]:
    """Render one pixel and return its display (gamma-encoded) color.

    Same arguments and errors as :func:`trace`. Components are not clamped
    to 1; that happens when an image is quantized for export.
    """
    r, g, b = trace(scene, camera, pixel, sample_count, max_bounces, frame_seed, background)
    return (gamma_encode(r), gamma_encode(g), gamma_encode(b))


def render_frame(
    scene: Scene,
    camera: Camera,
    settings: RenderSettings,
    frame_index: int = 0,
) -> None:
    """Render a full frame into the render target.

    The frame replaces the frame buffer and is blended into the
    accumulation buffer. The render target must already have the camera's
    image size.

    Raises:
        RuntimeError: If the render target has not been set up.
        RenderConfigError: If the settings are invalid or the render target
            size differs from the camera image size.
    """
    _check_render_target_initialized()
    settings.validate()

    width, height = get_image_dimensions()
    if (width, height) != (camera.image_width, camera.image_height):
        raise RenderConfigError(
            f"Render target is {width}x{height} but the camera image is "
            f"{camera.image_width}x{camera.image_height}"
        )

    _activate(scene, camera, settings.background)
    _render_frame_kernel(
        width,
        height,
        settings.samples_per_pixel,
        settings.max_bounces,
        settings.frame_seed(frame_index),
    )


def get_total_frames() -> int:
    """Number of frames accumulated since the last clear.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_frame_count[0, 0])


def _to_image(field) -> np.ndarray:
    width, height = get_image_dimensions()

    # Extract active region
    image = field.to_numpy()[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (pixel (0, 0) is bottom-left, images use top-left)
    return np.flipud(image).astype(np.float32)


def get_frame_numpy() -> np.ndarray:
    """The last rendered frame as a linear (height, width, 3) float32 array.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _to_image(_frame_buffer)


def get_accumulated_numpy() -> np.ndarray:
    """The running average of all frames as a linear (height, width, 3) array.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _to_image(_accum_buffer)
