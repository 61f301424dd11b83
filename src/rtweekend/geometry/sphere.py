"""Sphere primitive with robust ray-sphere intersection.

This module provides the Sphere and HitRecord dataclasses and the analytic
ray-sphere intersection, using the robust quadratic formula from Ray Tracing
Gems to avoid catastrophic cancellation when b^2 is nearly equal to 4ac.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtweekend.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5, material=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material index.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        material: Index into the scene's material table.
    """

    center: vec3
    radius: ti.f32
    material: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    ``hit == 0`` plays the role of "no hit"; every other field is only
    meaningful when ``hit == 1``.

    Attributes:
        hit: 1 if the ray intersected a primitive, 0 if it missed.
        t: Parametric distance along the ray to the hit point.
        point: The 3D point where the ray intersected the surface.
        normal: Unit surface normal, oriented against the incoming ray
            (it always points toward the side the ray arrived from).
        front_face: 1 if the ray hit the outside of the surface, 0 if it
            hit from inside. Needed for refraction.
        material: Material index of the hit primitive (-1 on a miss).
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """A HitRecord meaning "the ray escaped"."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material=-1,
    )


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) avoids cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection inside the open interval (t_min, t_max).

    Substituting the ray into |p - center|^2 = radius^2 gives

        a*t^2 + 2*h*t + c = 0
        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2
        oc = origin - center

    A discriminant h^2 - a*c <= 0 (miss or exact tangency) is reported as no
    hit. The nearer root is preferred; if it lies outside the interval (for
    example a ray starting inside the sphere, whose nearer root is negative)
    the farther root is tried.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The (non-zero) direction vector of the ray.
        sphere: The sphere to test intersection against.
        t_min: Lower bound of the accepted interval (exclusive).
        t_max: Upper bound of the accepted interval (exclusive).

    Returns:
        A HitRecord; check ``hit`` to determine if an intersection occurred.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    # Taichi requires outer-scope declaration
    result = make_miss_record()

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            hit_point = ray_origin + t * ray_direction

            # Outward normal: points from center to hit point
            outward_normal = (hit_point - sphere.center) / sphere.radius

            is_front_face = 1
            hit_normal = outward_normal
            if tm.dot(ray_direction, outward_normal) > 0.0:
                # Ray travels from inside to outside
                is_front_face = 0
                hit_normal = -outward_normal

            result = HitRecord(
                hit=1,
                t=t,
                point=hit_point,
                normal=hit_normal,
                front_face=is_front_face,
                material=sphere.material,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material: ti.i32) -> Sphere:
    """Create a sphere from center, radius and material index."""
    return Sphere(center=center, radius=radius, material=material)
