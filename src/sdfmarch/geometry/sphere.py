"""Sphere primitive with an exact signed distance.

The signed distance from a point p to a sphere with center c and radius r is

    d(p) = |p - c| - r

which is negative inside the sphere, zero on its surface and positive outside.
It is an exact distance, so sphere tracing can always step by its full value.

Example:
    >>> from sdfmarch.geometry.sphere import Sphere
    >>> sphere = Sphere(center=(0.0, 0.0, -1.0), radius=0.5)
    >>> # On the GPU side use sphere_distance/sphere_normal inside a kernel
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True, eq=False)
class Sphere:
    """A sphere defined by center point and radius.

    Instances compare by identity so that the same sphere placed in a scene
    can be recognised as the nearest geometry of a distance query.

    Attributes:
        center: The center point of the sphere (x, y, z).
        radius: The radius of the sphere (non-negative).
    """

    center: tuple[float, float, float]
    radius: float

    def __post_init__(self) -> None:
        if len(self.center) != 3:
            raise ValueError(f"Sphere center must have 3 components, got {len(self.center)}")
        if self.radius < 0.0:
            raise ValueError(f"Sphere radius must be non-negative, got {self.radius}")
        object.__setattr__(self, "center", tuple(float(c) for c in self.center))
        object.__setattr__(self, "radius", float(self.radius))


@ti.dataclass
class SphereSDF:
    """GPU-side sphere record.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere.
    """

    center: vec3
    radius: ti.f32


@ti.func
def sphere_distance(point: vec3, sphere: SphereSDF) -> ti.f32:
    """Signed distance from a point to a sphere.

    Args:
        point: The query point.
        sphere: The sphere record.

    Returns:
        |point - center| - radius (negative inside the sphere).
    """
    return tm.length(point - sphere.center) - sphere.radius


@ti.func
def sphere_normal(point: vec3, sphere: SphereSDF) -> vec3:
    """Outward unit normal of a sphere at (or near) a surface point."""
    return tm.normalize(point - sphere.center)
