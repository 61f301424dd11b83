"""Materials module for light scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick Fresnel)
    table: Flat material table and the kernel-side dispatch

Each material module pairs a frozen description dataclass (what scene
builders create) with a pure Taichi scatter function taking and returning
the RNG state. The path tracer only calls ``scatter_material``, which
dispatches on the tag stored in the table.
"""

from .dielectric import Dielectric, fresnel_reflectance, scatter_dielectric, will_reflect
from .lambertian import Lambertian, scatter_lambertian, validate_albedo
from .metal import Metal, scatter_metal
from .table import (
    MAX_MATERIALS,
    Material,
    MaterialKind,
    clear_materials,
    get_material_count,
    get_material_kind,
    material_kind,
    scatter_material,
    upload_materials,
)

__all__ = [
    # Descriptions
    "Lambertian",
    "Metal",
    "Dielectric",
    "Material",
    "MaterialKind",
    "validate_albedo",
    # Scatter functions
    "scatter_lambertian",
    "scatter_metal",
    "scatter_dielectric",
    "fresnel_reflectance",
    "will_reflect",
    # Table
    "MAX_MATERIALS",
    "material_kind",
    "upload_materials",
    "clear_materials",
    "get_material_count",
    "get_material_kind",
    "scatter_material",
]
