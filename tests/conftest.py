"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Forget the active scene and camera before and after each test.

    Scenes and cameras are uploaded lazily; without this a test could read
    fields that a previous test left behind.
    """
    # Import here so the field declarations run after ti.init
    from rtweekend.camera.thin_lens import invalidate_active_camera
    from rtweekend.materials.table import clear_materials
    from rtweekend.scene.builder import invalidate_active_scene
    from rtweekend.scene.intersection import clear_spheres

    def _clear_all():
        invalidate_active_scene()
        invalidate_active_camera()
        clear_spheres()
        clear_materials()

    _clear_all()

    yield

    _clear_all()
