"""Flat material table shared by every kernel.

Kernels cannot dispatch on Python classes, so the material descriptions of
a scene are flattened into one table of fixed-width records, one slot per
material index:

    material_kinds[i]    MaterialKind tag
    material_albedos[i]  RGB (Lambertian, Metal)
    material_fuzz[i]     roughness (Metal)
    material_iors[i]     index of refraction (Dielectric)

The tag decides which of the other columns are meaningful.
``scatter_material`` is the single entry point the path tracer calls.
"""


from collections.abc import Sequence
from enum import IntEnum
from typing import Union

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import Ray
from rtweekend.errors import SceneConfigError
from rtweekend.geometry.sphere import HitRecord
from rtweekend.materials.dielectric import Dielectric, scatter_dielectric
from rtweekend.materials.lambertian import Lambertian, scatter_lambertian
from rtweekend.materials.metal import Metal, scatter_metal

vec3 = tm.vec3

Material = Union[Lambertian, Metal, Dielectric]


class MaterialKind(IntEnum):
    """Tag stored in ``material_kinds`` for each material slot."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


MAX_MATERIALS = 256

material_kinds = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_fuzz = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_iors = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def material_kind(material: Material) -> MaterialKind:
    """Return the table tag of a material description.

    Raises:
        SceneConfigError: If the object is not a known material description.
    """
    if isinstance(material, Lambertian):
        return MaterialKind.LAMBERTIAN
    if isinstance(material, Metal):
        return MaterialKind.METAL
    if isinstance(material, Dielectric):
        return MaterialKind.DIELECTRIC
    raise SceneConfigError(f"Unknown material description: {material!r}")


def upload_materials(materials: Sequence[Material]) -> None:
    """Write material descriptions into the table.

    The descriptions are expected to be validated already; this only
    flattens them. Slots beyond ``len(materials)`` keep stale data and are
    never read because primitives only reference valid indices.

    Raises:
        SceneConfigError: If there are more materials than table slots.
    """
    if len(materials) > MAX_MATERIALS:
        raise SceneConfigError(
            f"Maximum number of materials ({MAX_MATERIALS}) exceeded: {len(materials)}"
        )

    for idx, material in enumerate(materials):
        kind = material_kind(material)
        albedo = (0.0, 0.0, 0.0)
        fuzz = 0.0
        ior = 1.0
        if kind == MaterialKind.LAMBERTIAN:
            albedo = material.albedo
        elif kind == MaterialKind.METAL:
            albedo = material.albedo
            fuzz = material.fuzz
        else:
            ior = material.ior

        material_kinds[idx] = int(kind)
        material_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
        material_fuzz[idx] = fuzz
        material_iors[idx] = ior

    num_materials[None] = len(materials)


def clear_materials() -> None:
    """Empty the table."""
    num_materials[None] = 0


def get_material_count() -> int:
    """Number of materials currently in the table."""
    return int(num_materials[None])


@ti.func
def get_material_kind(material_idx: ti.i32) -> ti.i32:
    """Tag of a material slot, or -1 for an index outside the table."""
    result = -1
    if 0 <= material_idx < num_materials[None]:
        result = material_kinds[material_idx]
    return result


@ti.func
def scatter_material(ray: Ray, rec: HitRecord, state: ti.u32):
    """Scatter a ray off the material recorded in a hit.

    Args:
        ray: The incoming ray.
        rec: A hit record with ``hit == 1``.
        state: RNG state.

    Returns:
        A tuple (did_scatter, attenuation, scattered, rng). When
        did_scatter is 0 the path is absorbed and the other values are
        meaningless.
    """
    rng = state
    kind = get_material_kind(rec.material)

    did_scatter = 0
    attenuation = vec3(0.0, 0.0, 0.0)
    direction = rec.normal

    if kind == int(MaterialKind.LAMBERTIAN):
        direction, attenuation, did_scatter, rng = scatter_lambertian(
            material_albedos[rec.material], rec.normal, rng
        )
    elif kind == int(MaterialKind.METAL):
        direction, attenuation, did_scatter, rng = scatter_metal(
            material_albedos[rec.material],
            material_fuzz[rec.material],
            ray.direction,
            rec.normal,
            rng,
        )
    elif kind == int(MaterialKind.DIELECTRIC):
        direction, attenuation, did_scatter, rng = scatter_dielectric(
            material_iors[rec.material],
            ray.direction,
            rec.normal,
            rec.front_face,
            rng,
        )

    scattered = Ray(origin=rec.point, direction=direction)
    return did_scatter, attenuation, scattered, rng
