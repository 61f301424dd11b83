"""Preview module for image output.

Components:
    export: Gamma encoding, 8-bit conversion and PNG export

Windowing and interactive display are left to the application embedding
the renderer; this package only turns linear buffers into images.
"""

from rtweekend.preview.export import (
    DEFAULT_GAMMA,
    compute_rmse,
    gamma_correct,
    image_to_uint8,
    save_png,
    save_png_from_array,
)

__all__ = [
    "DEFAULT_GAMMA",
    "gamma_correct",
    "image_to_uint8",
    "save_png",
    "save_png_from_array",
    "compute_rmse",
]
