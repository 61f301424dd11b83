"""Metal (specular reflective) material.

Perfect metals mirror the incoming ray about the normal. A fuzz parameter in
[0, 1] perturbs the mirrored direction by a random offset of that length;
rays perturbed below the surface are absorbed.

The reflection formula is:
    R = I - 2(I . N)N
"""


import math
from dataclasses import dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import reflect, safe_normalize
from rtweekend.core.sampler import random_unit_vector
from rtweekend.errors import SceneConfigError
from rtweekend.materials.lambertian import validate_albedo

vec3 = tm.vec3


@dataclass(frozen=True)
class Metal:
    """Metal material description.

    Attributes:
        albedo: Linear RGB tint of the reflection.
        fuzz: Roughness in [0, 1]. 0 is a perfect mirror.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def validate(self) -> None:
        validate_albedo(self.albedo, "Metal")
        fuzz = float(self.fuzz)
        if not math.isfinite(fuzz) or fuzz < 0.0 or fuzz > 1.0:
            raise SceneConfigError(f"Metal fuzz = {self.fuzz} is outside [0, 1]")

    def to_dict(self) -> dict[str, Any]:
        return {"type": "metal", "albedo": list(self.albedo), "fuzz": float(self.fuzz)}


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Reflect a ray off a metal surface.

    Args:
        albedo: Linear RGB tint.
        fuzz: Roughness in [0, 1].
        incident_direction: Incoming ray direction (any non-zero length).
        normal: Unit normal facing the incoming ray.
        state: RNG state.

    Returns:
        A tuple (direction, attenuation, did_scatter, rng). did_scatter is 0
        when the fuzzed direction points into the surface; the direction is
        then meaningless.
    """
    rng = state
    reflected = reflect(safe_normalize(incident_direction, -normal), normal)

    # One draw even for perfect mirrors keeps the RNG stream independent of fuzz
    offset, rng = random_unit_vector(rng)
    scattered = reflected + fuzz * offset

    did_scatter = 1
    if tm.dot(scattered, normal) <= 0.0:
        did_scatter = 0

    direction = safe_normalize(scattered, normal)
    return direction, albedo, did_scatter, rng
