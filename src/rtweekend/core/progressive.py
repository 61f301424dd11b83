"""Progressive renderer for frame accumulation.

This module wraps the integrator for interactive and offline use:
- Every frame renders ``samples_per_pixel`` paths per pixel
- Frames of an unchanged scene are averaged so noise drops over time
- Any change of scene, camera or settings discards the accumulation
- Progress callbacks or a generator for UI updates

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtweekend.core.progressive import ProgressiveRenderer
    >>> from rtweekend.scene.presets import demo_camera, demo_scene
    >>>
    >>> renderer = ProgressiveRenderer(demo_scene(), demo_camera(320, 180))
    >>> renderer.render(16)  # 16 frames
    >>> image = renderer.get_image_numpy()
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from rtweekend.camera.thin_lens import Camera, build_camera
from rtweekend.config import RenderSettings
from rtweekend.core.integrator import (
    clear_render_target,
    get_accumulated_numpy,
    get_frame_numpy,
    get_total_frames,
    render_frame,
    setup_render_target,
)
from rtweekend.preview.export import DEFAULT_GAMMA, gamma_correct, image_to_uint8, save_png
from rtweekend.scene.builder import Scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_frames, target_frames)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Accumulates frames of one scene, camera and settings combination.

    The renderer owns the global render target while it is in use. The
    frame counter used for seeding keeps running across resets, so with
    ``animate_noise`` every frame gets fresh noise even when the scene is
    changing every frame.

    Attributes:
        scene: The scene being rendered.
        camera: The camera being rendered from.
        settings: Per-frame render settings.
    """

    def __init__(
        self,
        scene: Scene,
        camera: Camera,
        settings: RenderSettings | None = None,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            scene: The scene to render.
            camera: The camera; its image size sets the render target size.
            settings: Render settings (defaults to RenderSettings()).

        Raises:
            RenderConfigError: If the settings are invalid or the image size
                exceeds the maximum supported size.
        """
        self.settings = settings if settings is not None else RenderSettings()
        self.settings.validate()
        self.scene = scene
        self.camera = camera
        self._frame_index = 0
        setup_render_target(camera.image_width, camera.image_height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.camera.image_width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.camera.image_height

    @property
    def frame_count(self) -> int:
        """Number of frames accumulated since the last reset."""
        return get_total_frames()

    @property
    def sample_count(self) -> int:
        """Paths per pixel accumulated since the last reset."""
        return self.frame_count * self.settings.samples_per_pixel

    def reset(self) -> None:
        """Discard the accumulated frames, keeping the image size."""
        clear_render_target()

    def update(
        self,
        scene: Scene | None = None,
        camera: Camera | None = None,
        settings: RenderSettings | None = None,
    ) -> bool:
        """Replace any of scene, camera or settings.

        The accumulation is discarded if anything actually changed, since
        frames of different inputs must not be averaged.

        Nothing is replaced unless every new value is valid.

        Returns:
            True if the accumulation was reset.

        Raises:
            RenderConfigError: If the new settings are invalid or the new
                camera image exceeds the maximum supported size.
        """
        scene_changed = scene is not None and scene != self.scene
        settings_changed = settings is not None and settings != self.settings
        camera_changed = camera is not None and camera != self.camera

        if settings_changed:
            settings.validate()
        if camera_changed:
            if (camera.image_width, camera.image_height) != (self.width, self.height):
                setup_render_target(camera.image_width, camera.image_height)

        changed = []
        if scene_changed:
            self.scene = scene
            changed.append("scene")
        if settings_changed:
            self.settings = settings
            changed.append("settings")
        if camera_changed:
            self.camera = camera
            changed.append("camera")

        if not changed:
            return False

        logger.info("Resetting accumulation after %s changed", ", ".join(changed))
        self.reset()
        return True

    def resize(self, width: int, height: int) -> None:
        """Change the image size, keeping the rest of the camera.

        Raises:
            RenderConfigError: If dimensions exceed maximum supported size.
        """
        config = dataclasses.replace(self.camera.config, image_width=width, image_height=height)
        self.update(camera=build_camera(config))

    def _render_one(self) -> None:
        render_frame(self.scene, self.camera, self.settings, self._frame_index)
        self._frame_index += 1
        logger.debug("Rendered frame %d (%d accumulated)", self._frame_index, self.frame_count)

    def render(
        self,
        num_frames: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render frames with an optional progress callback.

        Args:
            num_frames: Number of frames to add to the accumulation.
            batch_size: Number of frames to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_frames, target_frames).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} frames")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_frames, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_frames: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render frames, yielding progress after each batch.

        Args:
            num_frames: Number of frames to add.
            batch_size: Number of frames to render before each yield.

        Yields:
            Tuple of (current_frames, target_frames).
        """
        if num_frames <= 0:
            return

        target = self.frame_count + num_frames
        remaining = num_frames
        while remaining > 0:
            batch = min(max(batch_size, 1), remaining)
            for _ in range(batch):
                self._render_one()
            remaining -= batch
            yield (self.frame_count, target)

    def get_frame_numpy(self) -> npt.NDArray[np.float32]:
        """The most recent frame alone, linear, shape (height, width, 3)."""
        return get_frame_numpy()

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """The accumulated image, shape (height, width, 3).

        Args:
            gamma: 1.0 returns linear values (unclamped); any other value
                returns the encoded image clamped to [0, 1].
        """
        image = get_accumulated_numpy()
        if gamma != 1.0:
            image = gamma_correct(image, gamma)
        return image

    def get_image_uint8(self, gamma: float = DEFAULT_GAMMA) -> npt.NDArray[np.uint8]:
        """The accumulated image gamma encoded to 8 bits."""
        return image_to_uint8(get_accumulated_numpy(), gamma=gamma)

    def save_image(self, filepath: str, gamma: float = DEFAULT_GAMMA) -> None:
        """Save the accumulated image as a PNG file."""
        save_png(self, filepath, gamma=gamma)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"frames={self.frame_count})"
        )
