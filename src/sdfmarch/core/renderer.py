"""Renderer producing a supersampled image of the current scene.

This module wraps the marcher's render target with a small object that:
- Applies the RendererSettings before rendering
- Sizes the supersampled buffer from the definition, anti-aliasing factor
  and camera aspect ratio
- Renders row bands top to bottom, reporting progress through a callback
- Assembles the final, downsampled image

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.camera.perspective import setup_camera
    >>> from sdfmarch.core.renderer import Renderer
    >>> from sdfmarch.core.settings import RendererSettings
    >>> from sdfmarch.scene.demo import create_demo_scene
    >>>
    >>> scene, camera = create_demo_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(RendererSettings(definition=50), camera.aspect)
    >>> renderer.render()
    >>> renderer.save_image("render.png")
"""

import logging
import time
from collections.abc import Callable
from typing import Optional

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from sdfmarch.core.marcher import (
    apply_settings,
    clear_render_target,
    get_capped_ray_count,
    get_normalized_image_numpy,
    render_rows,
    setup_render_target,
)
from sdfmarch.core.settings import RendererSettings
from sdfmarch.preview.export import downsample, image_to_uint8

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

DEFAULT_ROWS_PER_BATCH = 16


class Renderer:
    """Renders the current scene into a supersampled buffer.

    The scene, camera and lights live in module-level Taichi fields, so a
    Renderer only holds the settings and the buffer dimensions. The camera
    must be set up (sdfmarch.camera.perspective.setup_camera) before
    render() is called.

    Attributes:
        settings: The settings used for every render.
        aspect: Width divided by height of the image.
    """

    def __init__(self, settings: RendererSettings, aspect: float) -> None:
        """Initialize the renderer.

        Args:
            settings: Resolution and quality settings.
            aspect: Image aspect ratio, normally the camera's.

        Raises:
            ValueError: If the supersampled buffer is empty or exceeds the
                maximum supported size.
        """
        if aspect <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {aspect}")
        self.settings = settings
        self.aspect = aspect
        self._width = settings.supersampled_width(aspect)
        self._height = settings.supersampled_height
        apply_settings(settings)
        setup_render_target(self._width, self._height)

    @property
    def width(self) -> int:
        """Get the supersampled image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the supersampled image height."""
        return self._height

    @property
    def output_size(self) -> tuple[int, int]:
        """Get the (width, height) of the final image."""
        return self.settings.output_size(self.aspect)

    @property
    def capped_rays(self) -> int:
        """Number of rays of the last render ended by the iteration cap."""
        return get_capped_ray_count()

    def reset(self) -> None:
        """Clear the buffer and the capped-ray counter."""
        clear_render_target()

    def render(
        self,
        callback: Optional[ProgressCallback] = None,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    ) -> None:
        """Render every pixel of the buffer.

        Args:
            callback: Optional callback called after each band of rows.
                Receives (rows_done, total_rows).
            rows_per_batch: Number of rows per kernel launch. Larger bands
                reduce launch overhead but give less frequent updates.

        Example:
            >>> def progress(done, total):
            ...     print(f"Progress: {done}/{total} rows")
            >>> renderer.render(callback=progress, rows_per_batch=32)
        """
        if rows_per_batch < 1:
            raise ValueError(f"rows_per_batch must be at least 1, got {rows_per_batch}")

        apply_settings(self.settings)
        self.reset()

        start = time.perf_counter()
        for row in range(0, self._height, rows_per_batch):
            row_end = min(row + rows_per_batch, self._height)
            render_rows(row, row_end)
            if callback is not None:
                callback(row_end, self._height)

        elapsed = time.perf_counter() - start
        logger.info("Rendered %dx%d pixels in %.2fs", self._width, self._height, elapsed)

        capped = self.capped_rays
        if capped > 0:
            logger.warning(
                "%d rays reached the %d-step cap and were treated as misses",
                capped,
                self.settings.max_steps,
            )

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the supersampled image as a NumPy array.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32,
            values in [0, 1].
        """
        image = get_normalized_image_numpy()

        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma)

        return image

    def get_image_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """Get the supersampled image as an 8-bit NumPy array."""
        return image_to_uint8(self.get_image_numpy(), gamma=gamma)

    def get_output_image(self, gamma: float = 1.0) -> PILImage.Image:
        """Get the final image, downsampled to the output size.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).

        Returns:
            An RGB Pillow image of size output_size.
        """
        return downsample(
            self.get_image_uint8(gamma=gamma),
            self.settings.anti_aliasing,
            self.output_size,
        )

    def save_image(self, filepath: str, gamma: float = 1.0) -> None:
        """Save the final image to a file.

        Args:
            filepath: Path to save the image (e.g., "render.png").
            gamma: Gamma correction value. Default 1.0 (linear).
        """
        self.get_output_image(gamma=gamma).save(filepath)
        logger.info("Saved %dx%d image to %s", *self.output_size, filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"anti_aliasing={self.settings.anti_aliasing})"
        )
