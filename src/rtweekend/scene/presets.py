"""The animated demo scene.

A mirror-like gold sphere sits in front of the camera, flanked by a glass
sphere on the left and a blue metal sphere on the right that swings back and
forth. A small sphere orbits the gold one, and huge spheres act as the floor
and the red, green and white walls. All motion is a function of ``time`` in
seconds, so an interactive front end only needs to rebuild the scene with
the current time every frame.

Example:
    >>> scene = demo_scene(time=0.0)
    >>> camera = demo_camera(640, 360, time=0.0)
"""

from __future__ import annotations

import math

from rtweekend.camera.thin_lens import DEFAULT_VFOV, Camera, CameraConfig, build_camera
from rtweekend.materials import Dielectric, Lambertian, Metal
from rtweekend.scene.builder import Scene, SphereDesc, build_scene

# Point the camera looks at; also the center of the gold sphere.
TARGET = (0.0, 1.0, -3.0)

# Material indices in the order demo_materials() lists them
RED_SPHERE = 0
RED_WALL = 1
GREEN_WALL = 2
WHITE = 3
LAMP = 4
GOLD_MIRROR = 5
GOLD_BRUSHED = 6
BLUE_METAL = 7
SILVER = 8
GLASS = 9


def demo_materials(time: float = 0.0) -> list:
    """Materials of the demo scene; the first one pulses with time."""
    return [
        Lambertian((0.8 + math.sin(time * 1.7) + 0.5, 0.3, 0.3)),
        Lambertian((1.0, 0.1, 0.1)),
        Lambertian((0.1, 1.0, 0.1)),
        Lambertian((0.9, 0.9, 0.9)),
        # Albedo above 1 amplifies light: a cheap stand-in for an emitter
        Lambertian((5.0, 5.0, 5.0)),
        Metal((0.8, 0.6, 0.2), 0.0),
        Metal((0.8, 0.6, 0.2), 0.05),
        Metal((0.2, 0.6, 0.8), 0.05),
        Metal((0.9, 0.9, 0.9), 0.5),
        Dielectric(1.5),
    ]


def demo_spheres(time: float = 0.0) -> list[SphereDesc]:
    """Spheres of the demo scene at the given time."""
    tx, ty, tz = TARGET
    return [
        SphereDesc(TARGET, 0.5, GOLD_MIRROR),
        SphereDesc((tx - 1.0, 0.0, tz + 1.0), 0.5, GLASS),
        SphereDesc((1.0, 0.0, -1.0 + math.cos(time * 1.32)), 0.5, BLUE_METAL),
        # Small orbiting sphere
        SphereDesc(
            (
                tx + math.sin(time * 0.67),
                ty + math.cos(time * 0.33),
                tz + math.cos(time * 0.57),
            ),
            0.1,
            WHITE,
        ),
        # Floor
        SphereDesc((0.0, -1000.5, -1.0), 1000.0, WHITE),
        # Left wall
        SphereDesc((-22.0, 0.0, -1.0), 20.0, RED_WALL),
        # Right wall
        SphereDesc((22.0, 0.0, -1.0), 20.0, GREEN_WALL),
        # Back wall
        SphereDesc((0.0, 0.0, -24.0), 20.0, WHITE),
    ]


def demo_scene(time: float = 0.0) -> Scene:
    """Build the demo scene at the given time."""
    return build_scene(demo_spheres(time), demo_materials(time))


def demo_lookfrom(time: float = 0.0) -> tuple[float, float, float]:
    """Camera position: a slow bob above and to the right of the origin."""
    return (
        math.cos(time * 0.77) * 0.125 + 0.125,
        1.0 + math.sin(time) * 0.125 + 0.125,
        0.0,
    )


def demo_camera(
    width: int,
    height: int,
    time: float = 0.0,
    vfov: float = DEFAULT_VFOV,
    aperture_radius: float = 0.0,
) -> Camera:
    """Camera of the demo scene, focused just in front of the gold sphere.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        time: Animation time in seconds.
        vfov: Vertical field of view in degrees.
        aperture_radius: Lens radius; 0 renders everything sharp.
    """
    lookfrom = demo_lookfrom(time)
    distance = math.dist(lookfrom, TARGET)
    return build_camera(
        CameraConfig(
            lookfrom=lookfrom,
            lookat=TARGET,
            vup=(0.0, 1.0, 0.0),
            vfov=vfov,
            image_width=width,
            image_height=height,
            aperture_radius=aperture_radius,
            # The gold sphere's radius is 0.5; focus a little in front of its center
            focus_dist=distance - 0.25,
        )
    )
