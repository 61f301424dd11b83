"""Tests for the animated demo scene."""

import math

import pytest


class TestDemoScene:
    """Tests for demo_scene and demo_camera."""

    def test_contents(self):
        from rtweekend.scene import Dielectric, Metal, demo_scene
        from rtweekend.scene.presets import GLASS, GOLD_MIRROR, TARGET

        scene = demo_scene()
        assert scene.sphere_count == 8
        assert scene.material_count == 10
        assert scene.spheres[0].center == TARGET
        assert scene.spheres[0].material == GOLD_MIRROR
        assert isinstance(scene.materials[GOLD_MIRROR], Metal)
        assert isinstance(scene.materials[GLASS], Dielectric)

    def test_animation_moves_spheres(self):
        from rtweekend.scene import demo_scene

        still = demo_scene(0.0)
        later = demo_scene(1.0)
        assert still != later
        # The gold sphere and the walls stay put
        assert still.spheres[0] == later.spheres[0]
        assert still.spheres[5:] == later.spheres[5:]
        assert still.spheres[2] != later.spheres[2]

    def test_scene_is_valid_over_time(self):
        from rtweekend.scene import demo_scene

        for step in range(20):
            scene = demo_scene(step * 0.37)
            assert all(s.radius > 0.0 for s in scene.spheres)

    def test_camera_looks_at_target(self):
        from rtweekend.scene import demo_camera
        from rtweekend.scene.presets import TARGET, demo_lookfrom

        camera = demo_camera(64, 36, time=0.5, aperture_radius=0.02)
        lookfrom = demo_lookfrom(0.5)
        distance = math.dist(lookfrom, TARGET)

        expected_w = tuple((lookfrom[k] - TARGET[k]) / distance for k in range(3))
        assert camera.w == pytest.approx(expected_w)
        assert camera.focus_dist == pytest.approx(distance - 0.25)
        assert camera.lens_radius == pytest.approx(0.02)
        assert camera.config.vfov == 90.0

    def test_center_ray_hits_gold_sphere(self):
        from rtweekend.scene import demo_scene, intersect
        from rtweekend.scene.presets import GOLD_MIRROR, TARGET, demo_lookfrom

        scene = demo_scene()
        lookfrom = demo_lookfrom(0.0)
        direction = tuple(TARGET[k] - lookfrom[k] for k in range(3))

        hit = intersect(scene, lookfrom, direction)
        assert hit is not None
        assert hit.material == GOLD_MIRROR
        assert hit.t == pytest.approx(math.dist(lookfrom, TARGET) - 0.5, abs=1e-4)
