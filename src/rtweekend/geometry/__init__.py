"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

The scene is a flat list of spheres tested by linear scan; there is no
acceleration structure. Intersection routines are Taichi functions:

    record = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_miss_record",
    "make_sphere",
]
