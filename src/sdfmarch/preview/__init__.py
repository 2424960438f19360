"""Preview module for image assembly and export.

Components:
    export: 8-bit quantization, Gaussian downsampling and PNG export

The renderer produces a supersampled linear float buffer; this module
converts it into the final 8-bit image at the output size.
"""

from .export import (
    downsample,
    image_to_uint8,
    save_png,
)

__all__ = [
    "image_to_uint8",
    "downsample",
    "save_png",
]
