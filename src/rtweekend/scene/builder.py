"""Scene construction, validation and activation.

A scene is an immutable value: an ordered tuple of spheres and an ordered
tuple of material descriptions, where each sphere refers to a material by
its position in that tuple. ``build_scene`` validates everything in plain
Python before touching any Taichi field, so a rejected scene never
disturbs the one currently being rendered.

Several Scene values can exist at once. The kernels read one global set of
fields, and ``activate_scene`` uploads a scene into them only when a
different scene was uploaded last. Changing a scene means building a new
one; nothing is edited in place.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtweekend.scene.builder import (
    ...     Dielectric, Lambertian, Metal, SphereDesc, build_scene
    ... )
    >>> scene = build_scene(
    ...     spheres=[
    ...         SphereDesc(center=(0.0, 0.0, -1.0), radius=0.5, material=0),
    ...         SphereDesc(center=(0.0, -100.5, -1.0), radius=100.0, material=1),
    ...     ],
    ...     materials=[Dielectric(1.5), Lambertian((0.8, 0.8, 0.0))],
    ... )
    >>> scene.sphere_count
    2
"""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from rtweekend.errors import SceneConfigError
from rtweekend.materials.dielectric import Dielectric
from rtweekend.materials.lambertian import Lambertian
from rtweekend.materials.metal import Metal
from rtweekend.materials.table import MAX_MATERIALS, Material, upload_materials
from rtweekend.scene.intersection import MAX_SPHERES, upload_spheres

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]

_scene_tokens = itertools.count(1)

# Token of the scene whose data is currently in the Taichi fields (0 = none)
_active_token = 0


@dataclass(frozen=True)
class SphereDesc:
    """Description of one sphere.

    Attributes:
        center: Sphere center.
        radius: Sphere radius, strictly positive.
        material: Index into the scene's material list.
    """

    center: Vec3
    radius: float
    material: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"center": list(self.center), "radius": self.radius, "material": self.material}


@dataclass(frozen=True)
class Scene:
    """A validated, immutable scene.

    Build it with :func:`build_scene` rather than directly.

    Attributes:
        spheres: Spheres in intersection order.
        materials: Material descriptions indexed by ``SphereDesc.material``.
    """

    spheres: tuple[SphereDesc, ...]
    materials: tuple[Material, ...]
    _token: int = field(default=0, compare=False, repr=False)

    @property
    def sphere_count(self) -> int:
        return len(self.spheres)

    @property
    def material_count(self) -> int:
        return len(self.materials)

    def activate(self) -> None:
        """Make this scene the one the kernels read."""
        activate_scene(self)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {
            "materials": [material.to_dict() for material in self.materials],
            "spheres": [sphere.to_dict() for sphere in self.spheres],
        }


def _as_vec3(value: Any, what: str) -> Vec3:
    try:
        x, y, z = (float(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise SceneConfigError(f"{what} must be three numbers, got {value!r}") from exc
    if not all(math.isfinite(c) for c in (x, y, z)):
        raise SceneConfigError(f"{what} must be finite, got {value!r}")
    return (x, y, z)


def _as_float(value: Any, what: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise SceneConfigError(f"{what} must be a number, got {value!r}") from exc


def _validate_sphere(index: int, sphere: SphereDesc, material_count: int) -> SphereDesc:
    center = _as_vec3(sphere.center, f"Sphere {index} center")

    radius = _as_float(sphere.radius, f"Sphere {index} radius")
    if not math.isfinite(radius) or radius <= 0.0:
        raise SceneConfigError(f"Sphere {index} radius = {sphere.radius} must be positive")

    material = sphere.material
    if isinstance(material, bool) or not isinstance(material, int):
        raise SceneConfigError(f"Sphere {index} material must be an integer index")
    if material < 0 or material >= material_count:
        raise SceneConfigError(
            f"Sphere {index} refers to material {material}, "
            f"but the scene has {material_count} materials"
        )

    return SphereDesc(center=center, radius=radius, material=material)


def build_scene(
    spheres: Iterable[SphereDesc],
    materials: Iterable[Material],
) -> Scene:
    """Validate descriptions and return an activated Scene.

    Args:
        spheres: Sphere descriptions, in intersection (tie-break) order.
        materials: Material descriptions; a sphere's ``material`` is an
            index into this sequence.

    Returns:
        The new scene, already uploaded to the kernel fields.

    Raises:
        SceneConfigError: On a dangling material index, a non-positive or
            non-finite radius, invalid material parameters, or more spheres
            or materials than the fields can hold.
    """
    material_list = tuple(materials)
    sphere_list = tuple(spheres)

    if len(material_list) > MAX_MATERIALS:
        raise SceneConfigError(
            f"Maximum number of materials ({MAX_MATERIALS}) exceeded: {len(material_list)}"
        )
    if len(sphere_list) > MAX_SPHERES:
        raise SceneConfigError(
            f"Maximum number of spheres ({MAX_SPHERES}) exceeded: {len(sphere_list)}"
        )

    for index, material in enumerate(material_list):
        if not isinstance(material, (Lambertian, Metal, Dielectric)):
            raise SceneConfigError(f"Material {index} is not a material description: {material!r}")
        material.validate()

    validated = tuple(
        _validate_sphere(index, sphere, len(material_list))
        for index, sphere in enumerate(sphere_list)
    )

    scene = Scene(spheres=validated, materials=material_list, _token=next(_scene_tokens))
    logger.info(
        "Built scene with %d spheres and %d materials",
        scene.sphere_count,
        scene.material_count,
    )
    activate_scene(scene)
    return scene


def activate_scene(scene: Scene) -> None:
    """Upload a scene to the kernel fields unless it is already there."""
    global _active_token

    if scene._token != 0 and scene._token == _active_token:
        return

    upload_materials(scene.materials)
    upload_spheres(scene.spheres)
    _active_token = scene._token
    logger.debug(
        "Uploaded scene %d (%d spheres, %d materials)",
        scene._token,
        scene.sphere_count,
        scene.material_count,
    )


def invalidate_active_scene() -> None:
    """Forget which scene is uploaded, forcing the next activation to upload."""
    global _active_token
    _active_token = 0


def material_from_dict(data: Mapping[str, Any]) -> Material:
    """Create a material description from its dictionary form.

    Raises:
        SceneConfigError: If the type is unknown or a value is malformed.
    """
    mat_type = str(data.get("type", "")).lower()
    if mat_type == "lambertian":
        return Lambertian(albedo=_as_vec3(data.get("albedo", (0.5, 0.5, 0.5)), "albedo"))
    if mat_type == "metal":
        return Metal(
            albedo=_as_vec3(data.get("albedo", (0.8, 0.8, 0.8)), "albedo"),
            fuzz=_as_float(data.get("fuzz", 0.0), "fuzz"),
        )
    if mat_type == "dielectric":
        return Dielectric(ior=_as_float(data.get("ior", 1.5), "ior"))
    raise SceneConfigError(f"Unknown material type: {data.get('type')!r}")


def sphere_from_dict(data: Mapping[str, Any]) -> SphereDesc:
    """Create a sphere description from its dictionary form."""
    material = data.get("material", 0)
    if isinstance(material, bool) or not isinstance(material, int):
        raise SceneConfigError(f"Sphere material must be an integer index, got {material!r}")
    return SphereDesc(
        center=_as_vec3(data.get("center", (0.0, 0.0, 0.0)), "center"),
        radius=_as_float(data.get("radius", 1.0), "radius"),
        material=material,
    )


def scene_from_dict(data: Mapping[str, Any]) -> Scene:
    """Build a scene from the output of :meth:`Scene.to_dict`.

    Args:
        data: Dictionary with 'materials' and 'spheres' lists.

    Raises:
        SceneConfigError: If the data does not describe a valid scene.
    """
    materials = [material_from_dict(m) for m in data.get("materials", [])]
    spheres = [sphere_from_dict(s) for s in data.get("spheres", [])]
    return build_scene(spheres, materials)


def get_max_spheres() -> int:
    """Get the maximum number of spheres supported."""
    return MAX_SPHERES


def get_max_materials() -> int:
    """Get the maximum number of materials supported."""
    return MAX_MATERIALS

