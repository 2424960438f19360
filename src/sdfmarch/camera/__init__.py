"""Camera module for primary ray generation.

Components:
    perspective: Look-at perspective camera; rays are built by unprojecting
        the near and far clip planes through a pixel

Ray generation uses pixel coordinates with row 0 at the top of the image:
    x in [0, width): left to right
    y in [0, height): top to bottom

The ray generator is a Taichi function called once per pixel from the
render kernel.
"""

from .perspective import (
    Camera,
    get_ray,
    get_ray_info,
    inverse_view_projection,
    look_at_matrix,
    perspective_matrix,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_ray_info",
    "inverse_view_projection",
    "look_at_matrix",
    "perspective_matrix",
]
