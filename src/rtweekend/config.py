"""Render configuration values.

These dataclasses carry the already-typed values that the orchestration
layer (a GUI panel, a CLI, a test) hands to the core: samples per pixel,
bounce budget, background and noise behaviour. The core never parses
configuration itself; ``from_dict`` helpers exist so that scene and render
settings can be stored as JSON next to a rendered image.

Defaults favour interactive frame rates: 2 samples per pixel, a bounce
limit of 8 and animated noise.

Example:
    >>> from rtweekend.config import Background, RenderSettings
    >>> settings = RenderSettings(samples_per_pixel=16, max_bounces=4)
    >>> settings.validate()
    >>> night = RenderSettings(background=Background.solid((0.02, 0.02, 0.05)))
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from rtweekend.errors import RenderConfigError

Color = tuple[float, float, float]
BackgroundMode = Literal["gradient", "solid"]

# Default sky: white looking down, light blue looking up.
DEFAULT_HORIZON_COLOR: Color = (1.0, 1.0, 1.0)
DEFAULT_ZENITH_COLOR: Color = (0.5, 0.7, 1.0)

DEFAULT_SAMPLES_PER_PIXEL = 2
DEFAULT_MAX_BOUNCES = 8

# Upper bounds for the per-pixel kernel loops.
MAX_SAMPLES_PER_PIXEL = 4096
MAX_BOUNCE_LIMIT = 64


def _as_color(value: Any, name: str) -> Color:
    try:
        r, g, b = (float(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise RenderConfigError(f"{name} must be three numbers, got {value!r}") from exc
    color = (r, g, b)
    for i, component in enumerate(color):
        if not math.isfinite(component) or component < 0.0:
            raise RenderConfigError(
                f"{name} component {i} = {component} must be finite and non-negative"
            )
    return color


@dataclass(frozen=True)
class Background:
    """Radiance returned by rays that escape the scene.

    Attributes:
        mode: "gradient" blends horizon_color into zenith_color by the
            height y of the unit ray direction, t = clamp(y + 0.5); "solid"
            always returns horizon_color.
        horizon_color: Linear RGB for rays 30 degrees or more below the
            horizon (or the solid color).
        zenith_color: Linear RGB for rays 30 degrees or more above the
            horizon. Ignored in solid mode.
    """

    mode: BackgroundMode = "gradient"
    horizon_color: Color = DEFAULT_HORIZON_COLOR
    zenith_color: Color = DEFAULT_ZENITH_COLOR

    @classmethod
    def solid(cls, color: Color) -> Background:
        """A uniform background of the given linear RGB color."""
        return cls(mode="solid", horizon_color=color, zenith_color=color)

    def validate(self) -> None:
        if self.mode not in ("gradient", "solid"):
            raise RenderConfigError(f"Unknown background mode: {self.mode!r}")
        _as_color(self.horizon_color, "horizon_color")
        _as_color(self.zenith_color, "zenith_color")

    @property
    def mode_index(self) -> int:
        """Integer tag passed to the kernels (0 = gradient, 1 = solid)."""
        return 1 if self.mode == "solid" else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "horizon_color": list(self.horizon_color),
            "zenith_color": list(self.zenith_color),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Background:
        mode = data.get("mode", "gradient")
        horizon = _as_color(data.get("horizon_color", DEFAULT_HORIZON_COLOR), "horizon_color")
        default_zenith = horizon if mode == "solid" else DEFAULT_ZENITH_COLOR
        zenith = _as_color(data.get("zenith_color", default_zenith), "zenith_color")
        background = cls(mode=mode, horizon_color=horizon, zenith_color=zenith)
        background.validate()
        return background


@dataclass(frozen=True)
class RenderSettings:
    """Per-frame render parameters.

    Attributes:
        samples_per_pixel: Independent camera paths averaged per pixel per frame.
        max_bounces: Number of scatter events a path may take before it is
            cut off and contributes black.
        background: Radiance of escaped rays.
        animate_noise: When True every frame uses a different seed, so the
            progressive renderer converges and still images flicker; when
            False the same noise pattern is reused frame after frame.
        seed: Base seed combined with the frame index.
    """

    samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL
    max_bounces: int = DEFAULT_MAX_BOUNCES
    background: Background = field(default_factory=Background)
    animate_noise: bool = True
    seed: int = 0

    def validate(self) -> None:
        """Check that the settings can be rendered.

        Raises:
            RenderConfigError: If a value is out of range.
        """
        validate_sample_count(self.samples_per_pixel)
        validate_max_bounces(self.max_bounces)
        self.background.validate()

    def frame_seed(self, frame_index: int) -> int:
        """Seed for the given frame, honouring ``animate_noise``."""
        if self.animate_noise:
            return (self.seed + frame_index) & 0x7FFFFFFF
        return self.seed & 0x7FFFFFFF

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["background"] = self.background.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderSettings:
        settings = cls(
            samples_per_pixel=int(data.get("samples_per_pixel", DEFAULT_SAMPLES_PER_PIXEL)),
            max_bounces=int(data.get("max_bounces", DEFAULT_MAX_BOUNCES)),
            background=Background.from_dict(data.get("background", {})),
            animate_noise=bool(data.get("animate_noise", True)),
            seed=int(data.get("seed", 0)),
        )
        settings.validate()
        return settings


def validate_sample_count(samples_per_pixel: int) -> None:
    if samples_per_pixel <= 0:
        raise RenderConfigError(f"samples_per_pixel must be positive, got {samples_per_pixel}")
    if samples_per_pixel > MAX_SAMPLES_PER_PIXEL:
        raise RenderConfigError(
            f"samples_per_pixel = {samples_per_pixel} exceeds maximum ({MAX_SAMPLES_PER_PIXEL})"
        )


def validate_max_bounces(max_bounces: int) -> None:
    if max_bounces < 0:
        raise RenderConfigError(f"max_bounces must be non-negative, got {max_bounces}")
    if max_bounces > MAX_BOUNCE_LIMIT:
        raise RenderConfigError(
            f"max_bounces = {max_bounces} exceeds maximum ({MAX_BOUNCE_LIMIT})"
        )
