"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization and setup
- Frame accumulation and the running average
- Batch rendering with progress callbacks and generators
- Reset on scene, camera and settings changes
- Image output in various formats

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest


def _renderer(width=16, height=12, settings=None, time=0.0):
    from rtweekend.core.progressive import ProgressiveRenderer
    from rtweekend.scene import demo_camera, demo_scene

    return ProgressiveRenderer(demo_scene(time), demo_camera(width, height, time=time), settings)


class TestProgressiveRendererInit:
    """Test ProgressiveRenderer initialization."""

    def test_init_creates_render_target(self):
        from rtweekend.core.integrator import get_image_dimensions

        renderer = _renderer(32, 24)

        assert renderer.width == 32
        assert renderer.height == 24
        assert renderer.frame_count == 0
        assert renderer.sample_count == 0
        assert get_image_dimensions() == (32, 24)

    def test_default_settings(self):
        renderer = _renderer()
        assert renderer.settings.samples_per_pixel == 2
        assert renderer.settings.max_bounces == 8

    def test_init_rejects_oversized_dimensions(self):
        from rtweekend.core.progressive import ProgressiveRenderer
        from rtweekend.scene import demo_camera, demo_scene

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(demo_scene(), demo_camera(4096, 100))

    def test_init_rejects_invalid_settings(self):
        from rtweekend.config import RenderSettings
        from rtweekend.errors import RenderConfigError

        with pytest.raises(RenderConfigError):
            _renderer(settings=RenderSettings(samples_per_pixel=0))


class TestProgressiveRendererRender:
    """Test frame accumulation."""

    def test_render_accumulates_frames(self):
        from rtweekend.config import RenderSettings

        renderer = _renderer(settings=RenderSettings(samples_per_pixel=3))
        renderer.render(4)

        assert renderer.frame_count == 4
        assert renderer.sample_count == 12

    def test_render_with_zero_frames_does_nothing(self):
        renderer = _renderer()
        renderer.render(0)
        renderer.render(-3)
        assert renderer.frame_count == 0

    def test_accumulation_is_mean_of_frames(self):
        renderer = _renderer()
        frames = []
        for _ in range(3):
            renderer.render(1)
            frames.append(renderer.get_frame_numpy())

        np.testing.assert_allclose(
            renderer.get_image_numpy(), np.mean(frames, axis=0), rtol=1e-4, atol=1e-5
        )

    def test_animated_noise_changes_frames(self):
        renderer = _renderer()
        renderer.render(1)
        first = renderer.get_frame_numpy()
        renderer.render(1)
        assert not np.array_equal(first, renderer.get_frame_numpy())

    def test_fixed_noise_repeats_frames(self):
        from rtweekend.config import RenderSettings

        renderer = _renderer(settings=RenderSettings(animate_noise=False))
        renderer.render(1)
        first = renderer.get_frame_numpy()
        renderer.render(1)

        np.testing.assert_array_equal(first, renderer.get_frame_numpy())
        np.testing.assert_allclose(renderer.get_image_numpy(), first, rtol=1e-6)

    def test_no_nan_or_inf(self):
        renderer = _renderer(time=2.0)
        renderer.render(4)
        image = renderer.get_image_numpy()
        assert np.isfinite(image).all()
        assert (image >= 0.0).all()


class TestProgressiveRendererCallbacks:
    """Test progress reporting."""

    def test_callback_receives_progress(self):
        renderer = _renderer()
        calls = []
        renderer.render(10, batch_size=3, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(3, 10), (6, 10), (9, 10), (10, 10)]

    def test_callback_with_existing_frames(self):
        renderer = _renderer()
        renderer.render(2)
        calls = []
        renderer.render(4, batch_size=2, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(4, 6), (6, 6)]

    def test_render_progressive_yields_progress(self):
        renderer = _renderer()
        progress = list(renderer.render_progressive(5, batch_size=2))
        assert progress == [(2, 5), (4, 5), (5, 5)]

    def test_render_progressive_interruptible(self):
        renderer = _renderer()
        for current, _target in renderer.render_progressive(10, batch_size=1):
            if current == 3:
                break
        assert renderer.frame_count == 3


class TestProgressiveRendererReset:
    """Test that changed inputs discard the accumulation."""

    def test_reset_clears_frames(self):
        renderer = _renderer()
        renderer.render(3)
        renderer.reset()
        assert renderer.frame_count == 0
        assert not renderer.get_image_numpy().any()

    def test_update_with_equal_scene_keeps_frames(self):
        from rtweekend.scene import demo_scene

        renderer = _renderer()
        renderer.render(2)
        assert renderer.update(scene=demo_scene(0.0)) is False
        assert renderer.frame_count == 2

    def test_update_with_new_scene_resets(self, caplog):
        import logging

        from rtweekend.scene import demo_scene

        renderer = _renderer()
        renderer.render(2)
        with caplog.at_level(logging.INFO):
            assert renderer.update(scene=demo_scene(1.0)) is True
        assert renderer.frame_count == 0
        assert "scene" in caplog.text

    def test_update_settings_resets(self):
        from rtweekend.config import Background, RenderSettings

        renderer = _renderer()
        renderer.render(2)
        assert renderer.update(settings=RenderSettings(background=Background.solid((0, 0, 0))))
        assert renderer.frame_count == 0

    def test_update_camera_resizes(self):
        from rtweekend.core.integrator import get_image_dimensions
        from rtweekend.scene import demo_camera

        renderer = _renderer(16, 12)
        renderer.render(1)
        assert renderer.update(camera=demo_camera(20, 10))
        assert (renderer.width, renderer.height) == (20, 10)
        assert get_image_dimensions() == (20, 10)
        renderer.render(1)
        assert renderer.get_image_numpy().shape == (10, 20, 3)

    def test_invalid_settings_leave_renderer_unchanged(self):
        from rtweekend.config import RenderSettings
        from rtweekend.errors import RenderConfigError
        from rtweekend.scene import demo_scene

        renderer = _renderer()
        old_scene, old_settings = renderer.scene, renderer.settings
        renderer.render(3)

        with pytest.raises(RenderConfigError):
            renderer.update(scene=demo_scene(1.0), settings=RenderSettings(samples_per_pixel=0))

        assert renderer.scene is old_scene
        assert renderer.settings is old_settings
        assert renderer.frame_count == 3

    def test_oversized_camera_leaves_renderer_unchanged(self):
        from rtweekend.errors import RenderConfigError
        from rtweekend.scene import demo_camera, demo_scene

        renderer = _renderer(16, 12)
        old_scene, old_camera = renderer.scene, renderer.camera
        renderer.render(2)

        with pytest.raises(RenderConfigError, match="exceed maximum"):
            renderer.update(scene=demo_scene(1.0), camera=demo_camera(4096, 100))

        assert renderer.scene is old_scene
        assert renderer.camera is old_camera
        assert renderer.frame_count == 2
        assert (renderer.width, renderer.height) == (16, 12)

    def test_resize(self):
        renderer = _renderer(16, 12)
        renderer.render(2)
        renderer.resize(8, 6)
        assert renderer.frame_count == 0
        assert renderer.camera.config.vfov == 90.0
        renderer.render(1)
        assert renderer.get_frame_numpy().shape == (6, 8, 3)


class TestProgressiveRendererImageOutput:
    """Test image retrieval and saving."""

    def test_get_image_numpy_with_gamma(self):
        renderer = _renderer()
        renderer.render(2)
        linear = renderer.get_image_numpy()
        encoded = renderer.get_image_numpy(gamma=2.0)

        expected = np.clip(np.sqrt(np.clip(linear, 0.0, None)), 0.0, 1.0)
        np.testing.assert_allclose(encoded, expected, rtol=1e-5, atol=1e-6)

    def test_get_image_uint8(self):
        renderer = _renderer()
        renderer.render(1)
        image = renderer.get_image_uint8()
        assert image.dtype == np.uint8
        assert image.shape == (12, 16, 3)

    def test_save_image(self, tmp_path):
        from PIL import Image

        renderer = _renderer()
        renderer.render(1)
        path = tmp_path / "frame.png"
        renderer.save_image(str(path))

        with Image.open(path) as img:
            assert img.size == (16, 12)
            assert img.mode == "RGB"

    def test_repr_shows_state(self):
        renderer = _renderer()
        renderer.render(2)
        assert repr(renderer) == "ProgressiveRenderer(width=16, height=12, frames=2)"
