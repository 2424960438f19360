"""Core rendering module.

This module contains the fundamental building blocks for sphere tracing:

Components:
    ray: Ray data structure and vector helpers
    settings: Resolution, epsilon and iteration-cap settings
    shading: Point-light registry and Phong-style shading
    marcher: Sphere-tracing loop and the render target
    renderer: Renderer wrapping the render target with progress callbacks

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .ray import (
    Ray,
    cross,
    dot,
    face_toward,
    from_homogeneous,
    length,
    make_ray,
    normalize,
    ray_at,
    reflect_about,
    transform_point,
    vec3,
    vec4,
)
from .settings import DEFAULT_MAX_STEPS, TRIANGLE_DEPTH_RATIO, RendererSettings

# Note: shading, marcher and renderer are NOT imported here to avoid circular imports.
# Import directly from sdfmarch.core.marcher or sdfmarch.core.renderer when needed.
#
# For rendering, use:
#   from sdfmarch.core.renderer import Renderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "vec4",
    "length",
    "normalize",
    "dot",
    "cross",
    "reflect_about",
    "face_toward",
    "transform_point",
    "from_homogeneous",
    "RendererSettings",
    "TRIANGLE_DEPTH_RATIO",
    "DEFAULT_MAX_STEPS",
]
