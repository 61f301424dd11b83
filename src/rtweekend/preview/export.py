"""Image export utilities for rendered images.

Rendered buffers hold linear radiance. Before an image is shown or written
it is gamma encoded (gamma 2 by default, the square root the renderer was
tuned for), clamped to [0, 1] and quantized to 8 bits.

Supported formats:
    - PNG (8-bit via Pillow)

Example:
    >>> from rtweekend.preview.export import save_png
    >>> from rtweekend.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(scene, camera)
    >>> renderer.render(16)
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from rtweekend.core.progressive import ProgressiveRenderer

DEFAULT_GAMMA = 2.0


def gamma_correct(
    image: npt.NDArray[np.floating[npt.NBitBase]],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float32]:
    """Gamma encode a linear image and clamp it to [0, 1].

    Negative and NaN components become 0.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Encoding gamma; 2.0 is a square root, 1.0 leaves values linear.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    linear = np.nan_to_num(np.asarray(image, dtype=np.float32), nan=0.0, posinf=1.0)
    linear = np.clip(linear, 0.0, None)
    if gamma == 2.0:
        encoded = np.sqrt(linear)
    else:
        encoded = np.power(linear, 1.0 / gamma)
    return np.clip(encoded, 0.0, 1.0).astype(np.float32)


def image_to_uint8(
    image: npt.NDArray[np.floating[npt.NBitBase]],
    *,
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to gamma-encoded uint8.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Encoding gamma.

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    encoded = gamma_correct(image, gamma)
    return (encoded * 255.0 + 0.5).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.floating[npt.NBitBase]],
    filepath: str,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save a linear image array as an 8-bit PNG file.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.
        filepath: Output file path (should end in .png).
        gamma: Encoding gamma.
    """
    pil_image = PILImage.fromarray(image_to_uint8(image, gamma=gamma))
    pil_image.save(filepath)


def save_png(
    renderer: ProgressiveRenderer,
    filepath: str,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save the accumulated image of a renderer as a PNG file."""
    save_png_from_array(renderer.get_image_numpy(), filepath, gamma=gamma)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
