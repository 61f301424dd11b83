"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    sampler: Stateless hash-based random numbers and direction sampling
    integrator: Fixed-depth path tracer and per-pixel render entry points
    progressive: Frame accumulation for progressive noise reduction

All per-pixel work is written as Taichi functions so the same code runs on
the CPU and GPU backends. Randomness is an explicit u32 state threaded
through every call, never a shared generator.
"""

from .ray import (
    Ray,
    length_squared,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    refract,
    safe_normalize,
    schlick_fresnel,
    vec3,
)
from .sampler import (
    bounce_rng,
    next_u32,
    random_f32,
    random_in_unit_disk,
    random_unit_vector,
    seed_rng,
    wang_hash,
)

# Note: integrator and progressive are NOT imported here; they declare Taichi
# fields at import time and import the scene and camera modules.
#
# For rendering, use:
#   from rtweekend.core.integrator import render_pixel

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "near_zero",
    "safe_normalize",
    "reflect",
    "refract",
    "schlick_fresnel",
    "wang_hash",
    "seed_rng",
    "bounce_rng",
    "next_u32",
    "random_f32",
    "random_unit_vector",
    "random_in_unit_disk",
]
