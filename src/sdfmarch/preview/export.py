"""Image assembly and export utilities for rendered images.

This module turns the supersampled float buffer into the final image:
- Quantize to 8 bits (optionally gamma corrected)
- Low-pass the supersampled image with a Gaussian filter of radius
  anti_aliasing / 2 and box-resize it to the output size
- Write PNG files

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from sdfmarch.preview.export import save_png
    >>> from sdfmarch.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(settings, camera.aspect)
    >>> renderer.render()
    >>> save_png(renderer, "render.png")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage
from PIL import ImageFilter

if TYPE_CHECKING:
    from sdfmarch.core.renderer import Renderer


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float32 image to uint8 for display/export.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 1.0, no correction).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")

    processed = np.clip(np.nan_to_num(image, nan=0.0), 0.0, 1.0)
    if gamma != 1.0:
        processed = np.power(processed, 1.0 / gamma)

    return (processed * 255).astype(np.uint8)


def downsample(
    image_uint8: npt.NDArray[np.uint8],
    factor: int,
    size: tuple[int, int],
) -> PILImage.Image:
    """Filter a supersampled image and resize it to the output size.

    Args:
        image_uint8: Supersampled 8-bit image of shape (H, W, 3).
        factor: The anti-aliasing factor the image was rendered with.
        size: Output (width, height).

    Returns:
        An RGB Pillow image of the given size. With factor 1 the image is
        returned as is.
    """
    pil_image = PILImage.fromarray(np.ascontiguousarray(image_uint8))
    if factor <= 1:
        return pil_image

    blurred = pil_image.filter(ImageFilter.GaussianBlur(radius=factor / 2.0))
    return blurred.resize(size, resample=PILImage.Resampling.BOX)


def save_png(
    renderer: Renderer,
    filepath: str,
    *,
    gamma: float = 1.0,
) -> None:
    """Save the rendered image as a PNG file.

    The supersampled buffer is quantized, filtered and downsampled to the
    renderer's output size before saving.

    Args:
        renderer: The Renderer instance to save.
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (default 1.0, linear output).
    """
    renderer.get_output_image(gamma=gamma).save(filepath, format="PNG")
