"""Lambertian (ideal diffuse) material.

A diffuse surface scatters the incoming ray around the surface normal: the
outgoing direction is ``normal + random_unit_vector``. Adding a uniform point
on the unit sphere to the unit normal yields directions distributed with the
cosine law over the hemisphere, so the attenuation is simply the albedo.

Example:
    >>> from rtweekend.materials.lambertian import Lambertian
    >>> red = Lambertian(albedo=(0.8, 0.1, 0.1))
    >>> # Inside a Taichi function:
    >>> # direction, attenuation, did_scatter, rng = scatter_lambertian(albedo, normal, rng)
"""


import math
from dataclasses import dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import near_zero, safe_normalize
from rtweekend.core.sampler import random_unit_vector
from rtweekend.errors import SceneConfigError

vec3 = tm.vec3

# Re-draws allowed when normal + random_unit_vector cancels out.
_MAX_RESAMPLES = 4


def validate_albedo(albedo: Any, owner: str) -> tuple[float, float, float]:
    """Check and normalize an RGB reflectance.

    Components only need to be finite and non-negative: values above 1 are
    accepted and make a surface amplify light, which is how the demo scene
    builds its small "lamp" sphere.

    Raises:
        SceneConfigError: If the value is not three finite, non-negative numbers.
    """
    try:
        r, g, b = (float(c) for c in albedo)
    except (TypeError, ValueError) as exc:
        raise SceneConfigError(f"{owner} albedo must be three numbers, got {albedo!r}") from exc
    for i, component in enumerate((r, g, b)):
        if not math.isfinite(component) or component < 0.0:
            raise SceneConfigError(
                f"{owner} albedo component {i} = {component} must be finite and non-negative"
            )
    return (r, g, b)


@dataclass(frozen=True)
class Lambertian:
    """Diffuse material description.

    Attributes:
        albedo: Linear RGB reflectance.
    """

    albedo: tuple[float, float, float]

    def validate(self) -> None:
        validate_albedo(self.albedo, "Lambertian")

    def to_dict(self) -> dict[str, Any]:
        return {"type": "lambertian", "albedo": list(self.albedo)}


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Sample a diffuse bounce.

    A sum that is (nearly) zero is re-drawn a bounded number of times and
    finally replaced by the normal, so the result is always a usable unit
    direction in the hemisphere around the normal.

    Args:
        albedo: Linear RGB reflectance.
        normal: Unit normal facing the incoming ray.
        state: RNG state.

    Returns:
        A tuple (direction, attenuation, did_scatter, rng). Diffuse
        surfaces always scatter.
    """
    rng = state
    offset, rng = random_unit_vector(rng)
    direction = normal + offset
    for _ in range(_MAX_RESAMPLES):
        if near_zero(direction):
            offset, rng = random_unit_vector(rng)
            direction = normal + offset

    direction = safe_normalize(direction, normal)
    return direction, albedo, 1, rng
