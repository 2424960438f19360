"""Bounded triangle primitive with a clamp-and-project distance.

A triangle (v0, v1, v2) is evaluated in a skewed local frame whose axes are
the two edges and their cross product, with v0 at the origin:

    to_world = translate(v0) * [v1 - v0 | v2 - v0 | (v1 - v0) x (v2 - v0)]
    to_local = pinv(to_world)

In that frame the triangle is exactly {x >= 0, y >= 0, x + y <= 1, z = 0}, so
the closest point on the bounded triangle is found without classifying the
nearest feature (interior, edge or vertex):

1. Clamp x and y to be non-negative.
2. Clamp z into the slab [0, depth] (depth converted to local units).
3. Set the homogeneous w to max(x + y, 1), which pulls points beyond the
   hypotenuse back onto it once the transform divides by w.
4. Map back to world space and measure the Euclidean distance.

Far from the triangle the distance to its bounding sphere is returned
instead. It never exceeds the true distance, so sphere tracing stays safe,
and the exact path takes over once the query point is within a cutoff of
the bounding sphere. The cutoff must be at least the hit epsilon, so that a
ray never stops on the bounding sphere itself.

Example:
    >>> from sdfmarch.geometry.triangle import Triangle
    >>> tri = Triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
    >>> tri.normal
    array([0., 0., 1.])
"""

from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from sdfmarch.core.ray import from_homogeneous, mat4, transform_point, vec3, vec4

# Relative area below which three vertices are considered collinear.
# Compared against |e1 x e2| / (|e1| * |e2|), the sine of the corner angle.
DEGENERATE_TOLERANCE = 1e-9


class DegenerateTriangleError(ValueError):
    """Raised when a triangle's vertices do not span a plane."""


@dataclass(frozen=True, eq=False)
class Triangle:
    """A triangle with its local-frame transforms precomputed.

    The derived attributes are computed once in ``__post_init__`` and are part
    of the triangle's value; none of them change afterwards.

    Attributes:
        v0: First vertex; the origin of the local frame.
        v1: Second vertex; the local x axis ends here.
        v2: Third vertex; the local y axis ends here.
        bound_center: Centroid of the three vertices.
        bound_radius: Largest vertex-to-centroid distance.
        to_world: 4x4 affine map from the local frame to world space.
        to_local: 4x4 inverse of ``to_world``.
        normal: Unit face normal, (v1 - v0) x (v2 - v0) normalized.
        depth_scale: 1 / |(v1 - v0) x (v2 - v0)|; converts a world-space
            thickness along the normal into local z units.

    Raises:
        DegenerateTriangleError: If the vertices are collinear or coincide.
    """

    v0: tuple[float, float, float]
    v1: tuple[float, float, float]
    v2: tuple[float, float, float]
    bound_center: npt.NDArray[np.float64] = field(init=False, repr=False)
    bound_radius: float = field(init=False, repr=False)
    to_world: npt.NDArray[np.float64] = field(init=False, repr=False)
    to_local: npt.NDArray[np.float64] = field(init=False, repr=False)
    normal: npt.NDArray[np.float64] = field(init=False, repr=False)
    depth_scale: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        corners = []
        for name in ("v0", "v1", "v2"):
            value = getattr(self, name)
            if len(value) != 3:
                raise ValueError(f"Triangle vertex {name} must have 3 components")
            value = tuple(float(c) for c in value)
            object.__setattr__(self, name, value)
            corners.append(np.array(value, dtype=np.float64))

        x_axis = corners[1] - corners[0]
        y_axis = corners[2] - corners[0]
        z_axis = np.cross(x_axis, y_axis)

        area = float(np.linalg.norm(z_axis))
        edge_product = float(np.linalg.norm(x_axis) * np.linalg.norm(y_axis))
        if edge_product == 0.0 or area <= DEGENERATE_TOLERANCE * edge_product:
            raise DegenerateTriangleError(
                f"Degenerate triangle {self.v0}, {self.v1}, {self.v2}: vertices are collinear"
            )

        to_world = np.eye(4)
        to_world[:3, 0] = x_axis
        to_world[:3, 1] = y_axis
        to_world[:3, 2] = z_axis
        to_world[:3, 3] = corners[0]

        to_local = np.linalg.pinv(to_world)
        if not np.allclose(to_local @ to_world, np.eye(4), atol=1e-6):
            raise DegenerateTriangleError(
                f"Local frame of triangle {self.v0}, {self.v1}, {self.v2} is not invertible"
            )

        centroid = (corners[0] + corners[1] + corners[2]) / 3.0
        radius = max(float(np.linalg.norm(c - centroid)) for c in corners)

        for array in (to_world, to_local, centroid, z_axis):
            array.flags.writeable = False
        normal = z_axis / area
        normal.flags.writeable = False

        object.__setattr__(self, "bound_center", centroid)
        object.__setattr__(self, "bound_radius", radius)
        object.__setattr__(self, "to_world", to_world)
        object.__setattr__(self, "to_local", to_local)
        object.__setattr__(self, "normal", normal)
        object.__setattr__(self, "depth_scale", 1.0 / area)

    @property
    def vertices(self) -> tuple[tuple[float, float, float], ...]:
        """The three vertices in order."""
        return (self.v0, self.v1, self.v2)


@ti.dataclass
class TriangleSDF:
    """GPU-side triangle record.

    Attributes:
        to_local: World-to-local affine transform.
        to_world: Local-to-world affine transform.
        bound_center: Center of the bounding sphere.
        bound_radius: Radius of the bounding sphere.
        normal: Unit face normal.
        depth_scale: World-to-local scale along the local z axis.
    """

    to_local: mat4
    to_world: mat4
    bound_center: vec3
    bound_radius: ti.f32
    normal: vec3
    depth_scale: ti.f32


@ti.func
def triangle_distance(point: vec3, tri: TriangleSDF, depth: ti.f32, cutoff: ti.f32) -> ti.f32:
    """Distance from a point to a bounded triangle slab.

    Args:
        point: The query point.
        tri: The triangle record.
        depth: Slab thickness in world units.
        cutoff: Bounding-sphere distance below which the exact path runs.
            Must be at least the marching epsilon, or rays grazing the
            bounding sphere would stop on it.

    Returns:
        The bounding-sphere distance when it exceeds ``cutoff``, otherwise
        the distance to the clamped projection of the point onto the slab.
    """
    result = tm.length(point - tri.bound_center) - tri.bound_radius

    if result <= cutoff:
        local = transform_point(tri.to_local, point)
        x = ti.max(local.x, 0.0)
        y = ti.max(local.y, 0.0)
        z = tm.clamp(local.z, 0.0, depth * tri.depth_scale)
        w = ti.max(x + y, 1.0)
        projected = from_homogeneous(tri.to_world, vec4(x, y, z, w))
        result = tm.length(point - projected)

    return result


@ti.func
def triangle_normal(tri: TriangleSDF) -> vec3:
    """Face normal of a triangle (flat shading)."""
    return tri.normal
