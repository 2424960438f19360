"""Sphere-tracing ray marcher and render target.

A ray is advanced by the scene's signed distance at its current point. No
surface can be closer than that distance in any direction, so the step never
skips over geometry. Marching stops when:

    - the distance drops below epsilon: a hit, colored flat for emitters and
      shaded otherwise
    - the travelled distance reaches the ray's max_t: a miss
    - the iteration cap is reached: counted as a miss and reported, since it
      signals a scene/epsilon combination the field cannot resolve

The march starts START_OFFSET_FACTOR * epsilon away from the origin so that a
ray leaving a surface does not immediately hit it again.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.core.marcher import apply_settings, march
    >>> from sdfmarch.core.settings import RendererSettings
    >>> apply_settings(RendererSettings(epsilon=0.001))
    >>> march((0.0, 0.0, 10.0), (0.0, 0.0, -1.0), 100.0)  # empty scene
"""

import logging
from typing import NamedTuple, Optional

import numpy as np
import taichi as ti
import taichi.math as tm

from sdfmarch.camera.perspective import get_ray
from sdfmarch.core.ray import Ray, make_ray, ray_at
from sdfmarch.core.settings import RendererSettings
from sdfmarch.core.shading import ambient_color, set_ambient, shade
from sdfmarch.materials.material import get_material
from sdfmarch.scene.distance import (
    get_leaf_material_id,
    leaf_normal,
    scene_distance,
    set_triangle_depth,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Marching Constants
# =============================================================================

# Initial travel, in units of epsilon, to step off the surface a ray starts on
START_OFFSET_FACTOR = 10.0

_epsilon = ti.field(dtype=ti.f32, shape=())
_max_steps = ti.field(dtype=ti.i32, shape=())


@ti.dataclass
class MarchResult:
    """Outcome of marching a single ray.

    Attributes:
        hit: 1 if a surface was reached, 0 on a miss.
        color: The surface color (only valid if hit == 1).
        steps: Number of distance evaluations performed.
        capped: 1 if the iteration cap ended the march.
    """

    hit: ti.i32
    color: vec3
    steps: ti.i32
    capped: ti.i32


def apply_settings(settings: RendererSettings) -> None:
    """Copy marching and shading settings into the GPU-side fields.

    Sets the hit epsilon, iteration cap, triangle slab thickness and
    ambient color. Must be called before marching.
    """
    _epsilon[None] = settings.epsilon
    _max_steps[None] = settings.max_steps
    set_triangle_depth(settings.triangle_depth, cutoff=settings.epsilon)
    set_ambient(settings.ambient)
    logger.debug(
        "Applied settings: epsilon=%g, max_steps=%d, triangle_depth=%g",
        settings.epsilon,
        settings.max_steps,
        settings.triangle_depth,
    )


# =============================================================================
# Ray Marching Core
# =============================================================================


@ti.func
def march_ray(ray: Ray) -> MarchResult:
    """March a ray through the scene distance field.

    Args:
        ray: The ray, with a unit direction and a maximum travel distance.

    Returns:
        A MarchResult with the hit color on a hit.
    """
    eps = _epsilon[None]
    t = START_OFFSET_FACTOR * eps
    hit = 0
    color = vec3(0.0, 0.0, 0.0)
    steps = 0

    # Active flag instead of break, as in the rest of the kernels
    active = 1

    for _ in range(_max_steps[None]):
        if active == 1:
            if t >= ray.max_t:
                active = 0
            else:
                point = ray_at(ray, t)
                record = scene_distance(point)
                steps += 1

                if record.distance < eps:
                    hit = 1
                    active = 0
                    material = get_material(get_leaf_material_id(record.leaf))
                    if material.emissive == 1:
                        color = material.color
                    else:
                        normal = leaf_normal(record.leaf, point)
                        color = shade(point, normal, -ray.direction, material)
                else:
                    t += record.distance

    capped = 0
    if active == 1 and t < ray.max_t:
        capped = 1

    return MarchResult(hit=hit, color=color, steps=steps, capped=capped)


class MarchOutcome(NamedTuple):
    """Python-side result of marching one ray.

    Attributes:
        color: The (R, G, B) color on a hit, None on a miss.
        steps: Number of distance evaluations performed.
        capped: Whether the iteration cap ended the march.
    """

    color: Optional[tuple[float, float, float]]
    steps: int
    capped: bool


_probe_hit = ti.field(dtype=ti.i32, shape=())
_probe_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_steps = ti.field(dtype=ti.i32, shape=())
_probe_capped = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _march_single(
    ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32, max_t: ti.f32
):
    # Single-iteration outer loop keeps the march serial
    for _ in range(1):
        result = march_ray(make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz), max_t))
        _probe_hit[None] = result.hit
        _probe_color[None] = result.color
        _probe_steps[None] = result.steps
        _probe_capped[None] = result.capped


def trace(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_distance: float,
) -> MarchOutcome:
    """March a single ray from Python and report what happened.

    Args:
        origin: Ray origin.
        direction: Ray direction; normalized before marching.
        max_distance: Travel distance after which the ray misses.

    Returns:
        A MarchOutcome with the color (None on a miss) and step statistics.

    Raises:
        ValueError: If the direction is the zero vector.
    """
    d = np.asarray(direction, dtype=np.float64)
    norm = float(np.linalg.norm(d))
    if norm == 0.0:
        raise ValueError("Ray direction must be non-zero")
    d = d / norm

    _march_single(origin[0], origin[1], origin[2], d[0], d[1], d[2], max_distance)

    color = None
    if _probe_hit[None] == 1:
        c = _probe_color[None]
        color = (float(c[0]), float(c[1]), float(c[2]))
    return MarchOutcome(
        color=color,
        steps=int(_probe_steps[None]),
        capped=bool(_probe_capped[None]),
    )


def march(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_distance: float,
) -> Optional[tuple[float, float, float]]:
    """March a single ray and return its color, or None on a miss."""
    return trace(origin, direction, max_distance).color


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color buffer indexed [x, y] with y = 0 the top row
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Rays stopped by the iteration cap during the current render
_capped_rays = ti.field(dtype=ti.i32, shape=())

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Args:
        width: Supersampled image width in pixels (max MAX_IMAGE_WIDTH).
        height: Supersampled image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffer and the capped-ray counter."""
    _color_buffer.fill(0.0)
    _capped_rays[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def get_capped_ray_count() -> int:
    """Number of rays ended by the iteration cap since the last clear."""
    return int(_capped_rays[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


@ti.kernel
def _render_rows(row_start: ti.i32, row_end: ti.i32, width: ti.i32, height: ti.i32):
    """March one ray per pixel for rows [row_start, row_end).

    Each pixel is written exactly once; misses take the ambient color.
    """
    for i, j in ti.ndrange(width, (row_start, row_end)):
        ray = get_ray(i, j, width, height)
        result = march_ray(ray)

        color = ambient_color()
        if result.hit == 1:
            color = result.color

        # Replace NaN/Inf from degenerate normals, then clamp to displayable range
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0
        color = tm.clamp(color, 0.0, 1.0)

        _color_buffer[i, j] = color
        if result.capped == 1:
            _capped_rays[None] += 1


def render_rows(row_start: int, row_end: int) -> None:
    """Render a band of rows of the render target.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    row_start = max(0, row_start)
    row_end = min(height, row_end)
    if row_start < row_end:
        _render_rows(row_start, row_end, width, height)


def get_normalized_image_numpy():
    """Get the rendered image as a NumPy array.

    Returns:
        NumPy float32 array of shape (height, width, 3), row 0 at the top,
        values in [0, 1].

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    image = np.clip(image, 0.0, 1.0)

    return image.astype(np.float32)
