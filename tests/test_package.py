"""Tests that every module declaring Taichi functions compiles its annotations.

Taichi inspects the annotations of @ti.func and @ti.kernel functions when
they are decorated, so a module whose annotations are strings fails on
import rather than on first use.
"""

import importlib

import pytest

KERNEL_MODULES = [
    "rtweekend.core.ray",
    "rtweekend.core.sampler",
    "rtweekend.core.integrator",
    "rtweekend.geometry.sphere",
    "rtweekend.materials.lambertian",
    "rtweekend.materials.metal",
    "rtweekend.materials.dielectric",
    "rtweekend.materials.table",
    "rtweekend.scene.intersection",
    "rtweekend.camera.thin_lens",
]


class TestKernelModules:
    """Tests for importing the kernel modules."""

    @pytest.mark.parametrize("name", KERNEL_MODULES)
    def test_module_imports(self, name):
        module = importlib.import_module(name)
        assert module.__name__ == name

    @pytest.mark.parametrize("name", KERNEL_MODULES)
    def test_annotations_are_not_deferred(self, name):
        import __future__

        module = importlib.import_module(name)
        assert getattr(module, "annotations", None) is not __future__.annotations

    def test_render_pixel_on_empty_scene(self):
        from rtweekend.camera import CameraConfig, build_camera
        from rtweekend.config import Background
        from rtweekend.core.integrator import render_pixel
        from rtweekend.scene import build_scene

        scene = build_scene([], [])
        camera = build_camera(CameraConfig(image_width=4, image_height=4))
        sky = Background.solid((0.25, 0.0, 1.0))
        color = render_pixel(scene, camera, (1, 1), 2, 4, background=sky)
        assert color == pytest.approx((0.5, 0.0, 1.0), abs=1e-6)
