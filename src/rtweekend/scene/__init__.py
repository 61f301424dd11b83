"""Scene module: scene values, intersection queries and preset scenes.

Components:
    builder: Immutable Scene values, validation and activation
    intersection: Sphere fields and closest-hit queries
    presets: The animated demo scene and its camera

Scene data is organized for Taichi kernels:
    - Structure-of-Arrays layout for sphere data
    - One flat material table indexed by the sphere's material
"""

from ..materials import Dielectric, Lambertian, Metal
from .builder import (
    Scene,
    SphereDesc,
    activate_scene,
    build_scene,
    get_max_materials,
    get_max_spheres,
    invalidate_active_scene,
    material_from_dict,
    scene_from_dict,
    sphere_from_dict,
)
from .intersection import (
    MAX_SPHERES,
    T_MAX,
    T_MIN,
    HitInfo,
    get_sphere_count,
    intersect,
    intersect_scene,
)
from .presets import demo_camera, demo_scene

__all__ = [
    # Builder
    "Scene",
    "SphereDesc",
    "Lambertian",
    "Metal",
    "Dielectric",
    "build_scene",
    "activate_scene",
    "invalidate_active_scene",
    "scene_from_dict",
    "material_from_dict",
    "sphere_from_dict",
    "get_max_spheres",
    "get_max_materials",
    # Intersection
    "HitInfo",
    "intersect",
    "intersect_scene",
    "get_sphere_count",
    "MAX_SPHERES",
    "T_MIN",
    "T_MAX",
    # Presets
    "demo_scene",
    "demo_camera",
]
