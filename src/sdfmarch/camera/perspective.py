"""Look-at perspective camera with unproject-based ray generation.

The camera is described by an eye position, a target point, an up vector and
an OpenGL-style perspective frustum (vertical field of view, aspect ratio,
near and far clip planes). Setup combines the projection and view matrices
and stores the inverse; each pixel's ray is then obtained by unprojecting
the same normalized device coordinates at the near (z = -1) and far (z = +1)
clip planes:

    origin    = near point
    direction = normalize(far point - near point)
    max_t     = |far point - near point|

so a ray misses once it passes the far plane.

Pixel (x, y) maps to NDC (2x / width - 1, 1 - 2y / height): row 0 is the top
of the image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.camera.perspective import Camera, setup_camera
    >>> camera = Camera(eye=(0.0, 0.0, 10.0), target=(0.0, 0.0, 0.0))
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from sdfmarch.core.ray import Ray, from_homogeneous, make_ray, vec3, vec4

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a look-at perspective camera.

    Attributes:
        eye: Camera position in world space.
        target: Point the camera looks at.
        up: Up direction used to orient the view (not parallel to the view).
        aspect: Width divided by height of the image.
        fovy: Vertical field of view in radians, in (0, pi).
        z_near: Distance to the near clip plane (positive).
        z_far: Distance to the far clip plane (greater than z_near).
    """

    eye: tuple[float, float, float] = (0.0, 0.0, 10.0)
    target: tuple[float, float, float] = (0.0, 0.0, 0.0)
    up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    aspect: float = 3.0 / 2.0
    fovy: float = math.pi / 4.0
    z_near: float = 1.0
    z_far: float = 100.0

    def __post_init__(self) -> None:
        if self.aspect <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect}")
        if not 0.0 < self.fovy < math.pi:
            raise ValueError(f"Field of view must be in (0, pi), got {self.fovy}")
        if not 0.0 < self.z_near < self.z_far:
            raise ValueError(
                f"Clip planes must satisfy 0 < z_near < z_far, got {self.z_near}, {self.z_far}"
            )
        forward = np.subtract(self.target, self.eye)
        if np.linalg.norm(forward) == 0.0:
            raise ValueError("Camera eye and target must differ")
        if np.linalg.norm(np.cross(forward, self.up)) == 0.0:
            raise ValueError("Camera up vector must not be parallel to the view direction")


def perspective_matrix(aspect: float, fovy: float, z_near: float, z_far: float) -> npt.NDArray:
    """Right-handed OpenGL perspective projection matrix."""
    f = 1.0 / math.tan(fovy / 2.0)
    m = np.zeros((4, 4))
    m[0, 0] = f / aspect
    m[1, 1] = f
    m[2, 2] = (z_far + z_near) / (z_near - z_far)
    m[2, 3] = 2.0 * z_far * z_near / (z_near - z_far)
    m[3, 2] = -1.0
    return m


def look_at_matrix(eye, target, up) -> npt.NDArray:
    """Right-handed view matrix placing the eye at the origin looking down -z."""
    eye = np.asarray(eye, dtype=np.float64)
    forward = np.asarray(target, dtype=np.float64) - eye
    forward = forward / np.linalg.norm(forward)
    side = np.cross(forward, np.asarray(up, dtype=np.float64))
    side = side / np.linalg.norm(side)
    true_up = np.cross(side, forward)

    m = np.eye(4)
    m[0, :3] = side
    m[1, :3] = true_up
    m[2, :3] = -forward
    m[0, 3] = -np.dot(side, eye)
    m[1, 3] = -np.dot(true_up, eye)
    m[2, 3] = np.dot(forward, eye)
    return m


def inverse_view_projection(camera: Camera) -> npt.NDArray:
    """Matrix mapping normalized device coordinates back to world space."""
    projection = perspective_matrix(camera.aspect, camera.fovy, camera.z_near, camera.z_far)
    view = look_at_matrix(camera.eye, camera.target, camera.up)
    return np.linalg.inv(projection @ view)


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_inv_view_projection = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> None:
    """Store the camera's inverse view-projection for ray generation.

    This must be called before rendering.
    """
    _inv_view_projection[None] = ti.Matrix(inverse_view_projection(camera).tolist())


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(x: ti.i32, y: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the ray through pixel (x, y).

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray starting on the near plane with a unit direction and a
        max_t reaching the far plane.
    """
    ndc_x = 2.0 * ti.cast(x, ti.f32) / ti.cast(width, ti.f32) - 1.0
    ndc_y = 1.0 - 2.0 * ti.cast(y, ti.f32) / ti.cast(height, ti.f32)

    m = _inv_view_projection[None]
    near = from_homogeneous(m, vec4(ndc_x, ndc_y, -1.0, 1.0))
    far = from_homogeneous(m, vec4(ndc_x, ndc_y, 1.0, 1.0))

    span = far - near
    max_t = tm.length(span)
    return make_ray(near, span / max_t, max_t)


# =============================================================================
# Utility Functions
# =============================================================================

_probe_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_max_t = ti.field(dtype=ti.f32, shape=())


@ti.kernel
def _ray_kernel(x: ti.i32, y: ti.i32, width: ti.i32, height: ti.i32):
    ray = get_ray(x, y, width, height)
    _probe_origin[None] = ray.origin
    _probe_direction[None] = ray.direction
    _probe_max_t[None] = ray.max_t


def get_ray_info(x: int, y: int, width: int, height: int) -> dict[str, object]:
    """Get the ray of a pixel from Python, for debugging and tests.

    Returns:
        Dictionary with origin, direction and max_t.
    """
    _ray_kernel(x, y, width, height)
    o = _probe_origin[None]
    d = _probe_direction[None]
    return {
        "origin": (float(o[0]), float(o[1]), float(o[2])),
        "direction": (float(d[0]), float(d[1]), float(d[2])),
        "max_t": float(_probe_max_t[None]),
    }
