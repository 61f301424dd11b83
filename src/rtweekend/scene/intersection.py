"""Scene-level ray intersection.

The spheres of the active scene live in structure-of-arrays Taichi fields
and are tested by a linear scan in insertion order. The scan keeps the
closest hit so far and only accepts roots strictly closer than it, so when
two spheres are hit at exactly the same distance the one added first wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtweekend.scene import Lambertian, SphereDesc, build_scene
    >>> from rtweekend.scene.intersection import intersect
    >>> scene = build_scene([SphereDesc((0, 0, -1), 0.5, 0)], [Lambertian((0.5, 0.5, 0.5))])
    >>> hit = intersect(scene, (0, 0, 0), (0, 0, -1))
    >>> round(hit.t, 3)
    0.5
"""


import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import safe_normalize
from rtweekend.errors import SceneConfigError
from rtweekend.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

if TYPE_CHECKING:
    from rtweekend.scene.builder import Scene, SphereDesc

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of spheres supported in the scene
MAX_SPHERES = 256

# Scattered rays start exactly on the surface; T_MIN keeps them from
# re-hitting it because of floating point error.
T_MIN = 1e-3
T_MAX = 1e10

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Result slot of the single-ray query kernel
_query_result = HitRecord.field(shape=())


def upload_spheres(spheres: "Sequence[SphereDesc]") -> None:
    """Replace the sphere fields with the given (validated) spheres.

    Raises:
        SceneConfigError: If there are more spheres than field slots.
    """
    if len(spheres) > MAX_SPHERES:
        raise SceneConfigError(
            f"Maximum number of spheres ({MAX_SPHERES}) exceeded: {len(spheres)}"
        )
    for idx, sphere in enumerate(spheres):
        sphere_centers[idx] = vec3(sphere.center[0], sphere.center[1], sphere.center[2])
        sphere_radii[idx] = sphere.radius
        sphere_material_ids[idx] = sphere.material
    num_spheres[None] = len(spheres)


def clear_spheres() -> None:
    """Remove all spheres from the fields."""
    num_spheres[None] = 0


def get_sphere_count() -> int:
    """Get the number of spheres in the active scene."""
    return int(num_spheres[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Find the closest sphere hit inside the open interval (t_min, t_max).

    The direction is normalized first, so ``t`` of the result is the
    world-space distance from the origin.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The (non-zero) direction of the ray.
        t_min: Minimum distance of an accepted hit (exclusive).
        t_max: Maximum distance of an accepted hit (exclusive).

    Returns:
        The closest hit, or a record with ``hit == 0``.
    """
    unit_direction = safe_normalize(ray_direction, vec3(0.0, 0.0, -1.0))

    closest_t = t_max
    result = make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(
            center=sphere_centers[i],
            radius=sphere_radii[i],
            material=sphere_material_ids[i],
        )
        rec = hit_sphere(ray_origin, unit_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


@ti.kernel
def _intersect_one(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
    _query_result[None] = intersect_scene(origin, direction, t_min, t_max)


@dataclass(frozen=True)
class HitInfo:
    """Python-side copy of a hit record.

    Attributes:
        t: Distance along the normalized ray direction.
        point: Hit point.
        normal: Unit normal oriented against the ray.
        front_face: True if the ray hit the outside of the sphere.
        material: Material index of the sphere that was hit.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material: int


def intersect(
    scene: "Scene",
    origin: Sequence[float],
    direction: Sequence[float],
    t_min: float = T_MIN,
    t_max: float = T_MAX,
) -> HitInfo | None:
    """Intersect a single ray with a scene.

    Activates the scene if needed and runs a one-ray kernel. Intended for
    tools and tests; renders go through the path tracer kernels.

    Args:
        scene: The scene to query.
        origin: Ray origin.
        direction: Ray direction, any non-zero length.
        t_min: Minimum accepted distance (exclusive).
        t_max: Maximum accepted distance (exclusive).

    Returns:
        The closest hit, or None if the ray escapes.

    Raises:
        ValueError: If the direction is zero or not finite.
    """
    dx, dy, dz = (float(c) for c in direction)
    length2 = dx * dx + dy * dy + dz * dz
    if not math.isfinite(length2) or length2 <= 1e-16:
        raise ValueError(f"Ray direction must be a finite non-zero vector, got {direction!r}")

    scene.activate()
    _intersect_one(
        vec3(float(origin[0]), float(origin[1]), float(origin[2])),
        vec3(dx, dy, dz),
        t_min,
        t_max,
    )

    if _query_result.hit[None] == 0:
        return None
    point = _query_result.point[None]
    normal = _query_result.normal[None]
    return HitInfo(
        t=float(_query_result.t[None]),
        point=(float(point[0]), float(point[1]), float(point[2])),
        normal=(float(normal[0]), float(normal[1]), float(normal[2])),
        front_face=bool(_query_result.front_face[None]),
        material=int(_query_result.material[None]),
    )
