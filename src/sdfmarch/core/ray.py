"""Ray data structure and vector utilities for sphere tracing.

This module provides the Ray dataclass and the small set of vector helpers
used by the distance evaluators, the marcher and the shader. All operations
are designed to work within Taichi kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction, max_t=100.0)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type aliases for vectors and homogeneous transforms
vec3 = tm.vec3
vec4 = tm.vec4
mat4 = tm.mat4


@ti.dataclass
class Ray:
    """A ray with an origin point, unit direction and maximum travel distance.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The unit direction vector of the ray (vec3).
        max_t: The distance after which the ray is considered to miss.
    """

    origin: vec3
    direction: vec3
    max_t: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The distance travelled from the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3, max_t: ti.f32) -> Ray:
    """Create a ray from origin, direction and maximum distance."""
    return Ray(origin=origin, direction=direction, max_t=max_t)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length."""
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def reflect_about(direction: vec3, normal: vec3) -> vec3:
    """Mirror an outgoing direction about a normal.

    Unlike the incident-ray convention, ``direction`` points away from the
    surface (for example toward a light), and so does the result:

        reflected = 2 * dot(normal, direction) * normal - direction

    Args:
        direction: A direction pointing away from the surface.
        normal: The unit surface normal.

    Returns:
        The mirrored direction.
    """
    return 2.0 * tm.dot(normal, direction) * normal - direction


@ti.func
def face_toward(normal: vec3, view_direction: vec3) -> vec3:
    """Flip a normal so that it lies in the hemisphere of the viewer.

    A normal exactly perpendicular to the view direction is kept as is.
    """
    sign = ti.select(tm.dot(normal, view_direction) < 0.0, -1.0, 1.0)
    return sign * normal


@ti.func
def transform_point(m: mat4, p: vec3) -> vec3:
    """Apply an affine 4x4 transform to a point (w = 1)."""
    h = m @ vec4(p.x, p.y, p.z, 1.0)
    return vec3(h.x, h.y, h.z) / h.w


@ti.func
def from_homogeneous(m: mat4, h: vec4) -> vec3:
    """Apply a 4x4 transform to a homogeneous vector and divide by w."""
    r = m @ h
    return vec3(r.x, r.y, r.z) / r.w
