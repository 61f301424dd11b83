"""Dielectric (glass/water) material.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when sin(theta_t) > 1

The material reflects with probability equal to the Fresnel reflectance and
refracts otherwise. Clear glass absorbs nothing, so the attenuation is white.
"""


import math
from dataclasses import dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import reflect, refract, safe_normalize, schlick_fresnel
from rtweekend.core.sampler import random_f32
from rtweekend.errors import SceneConfigError

vec3 = tm.vec3

# Index ratios closer to 1 than this are treated as an index-matched boundary.
_MATCHED_EPS = 1e-6


@dataclass(frozen=True)
class Dielectric:
    """Dielectric material description.

    Attributes:
        ior: Index of refraction. Common values:
            - Air: 1.0
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    ior: float = 1.5

    def validate(self) -> None:
        ior = float(self.ior)
        if not math.isfinite(ior) or ior <= 0.0:
            raise SceneConfigError(f"Dielectric ior = {self.ior} must be a positive number")

    def to_dict(self) -> dict[str, Any]:
        return {"type": "dielectric", "ior": float(self.ior)}


@ti.func
def _refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    # Entering the material: air / ior. Leaving it: ior / air.
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def _cos_sin(unit_direction: vec3, normal: vec3):
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))
    return cos_theta, sin_theta


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Check for total internal reflection.

    Args:
        ior: Index of refraction of the material.
        incident_direction: Incoming direction (unit length).
        normal: Unit normal facing the incoming ray.
        front_face: 1 when entering the material, 0 when leaving it.

    Returns:
        1 if no refracted direction exists, 0 otherwise.
    """
    ratio = _refraction_ratio(ior, front_face)
    _, sin_theta = _cos_sin(incident_direction, normal)
    return 1 if ratio * sin_theta > 1.0 else 0


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Schlick reflectance of the boundary for the given incidence.

    An index-matched boundary (ratio 1) reflects nothing.

    Returns:
        The reflectance in [0, 1].
    """
    ratio = _refraction_ratio(ior, front_face)
    cos_theta, _ = _cos_sin(incident_direction, normal)
    reflectance = schlick_fresnel(cos_theta, ratio)
    if ti.abs(ratio - 1.0) < _MATCHED_EPS:
        reflectance = 0.0
    return reflectance


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Reflect or refract a ray at a dielectric boundary.

    Reflects when refraction is impossible (total internal reflection) or
    when a uniform draw falls below the Fresnel reflectance; refracts
    otherwise. Exactly one draw is consumed.

    Args:
        ior: Index of refraction of the material.
        incident_direction: Incoming ray direction (any non-zero length).
        normal: Unit normal facing the incoming ray.
        front_face: 1 when entering the material, 0 when leaving it.
        state: RNG state.

    Returns:
        A tuple (direction, attenuation, did_scatter, rng). Dielectrics
        always scatter.
    """
    rng = state
    unit_direction = safe_normalize(incident_direction, -normal)

    ratio = _refraction_ratio(ior, front_face)
    cannot_refract = will_reflect(ior, unit_direction, normal, front_face)
    reflectance = fresnel_reflectance(ior, unit_direction, normal, front_face)

    u, rng = random_f32(rng)

    direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract == 1 or u < reflectance:
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)

    direction = safe_normalize(direction, unit_direction)
    return direction, vec3(1.0, 1.0, 1.0), 1, rng
