"""Scene-level signed distance evaluation.

This module stores the scene's leaf primitives in Taichi fields and evaluates
the distance field of the whole scene, or of any contiguous slice of leaves,
returning the nearest leaf together with its signed distance.

Geometry trees are flattened depth-first before upload (see
sdfmarch.geometry.group), so every mesh and every group inside it occupies a
contiguous leaf range. The minimum over a range visits leaves in tree order
and keeps the first leaf on ties, which is the recursive group minimum.

Each leaf carries:
    - a kind tag (LEAF_SPHERE or LEAF_TRIANGLE) and a slot in the
      per-kind arrays
    - the material ID used for shading

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.geometry import Sphere
    >>> from sdfmarch.scene.distance import add_sphere, clear_scene, query_distance
    >>> clear_scene()
    >>> add_sphere(Sphere((0.0, 0.0, -1.0), 0.5), material_id=0)
    0
    >>> query_distance((0.0, 0.0, 0.0))
    (0, 0.5)
"""

from collections.abc import Sequence

import numpy as np
import taichi as ti
import taichi.math as tm

from sdfmarch.geometry.sphere import Sphere, SphereSDF, sphere_distance, sphere_normal
from sdfmarch.geometry.triangle import (
    Triangle,
    TriangleSDF,
    triangle_distance,
    triangle_normal,
)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class DistanceRecord:
    """Nearest leaf of a distance query.

    Attributes:
        leaf: Index of the nearest leaf, -1 when no leaf was evaluated.
        distance: Signed distance to that leaf.
    """

    leaf: ti.i32
    distance: ti.f32


# Leaf kinds
LEAF_SPHERE = 0
LEAF_TRIANGLE = 1

# Distance reported for an empty range
FAR_DISTANCE = 1e30

# Maximum number of primitives supported in the scene
MAX_SPHERES = 4096
MAX_TRIANGLES = 65536
MAX_LEAVES = MAX_SPHERES + MAX_TRIANGLES

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Triangle storage: precomputed frames and bounding spheres
triangle_to_local = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_to_world = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_bound_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_bound_radii = ti.field(dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_depth_scales = ti.field(dtype=ti.f32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())

# Leaf table
leaf_kinds = ti.field(dtype=ti.i32, shape=MAX_LEAVES)
leaf_slots = ti.field(dtype=ti.i32, shape=MAX_LEAVES)
leaf_material_ids = ti.field(dtype=ti.i32, shape=MAX_LEAVES)
num_leaves = ti.field(dtype=ti.i32, shape=())

# Triangle slab thickness in world units and bounding-sphere cutoff (set from
# the renderer settings)
triangle_depth = ti.field(dtype=ti.f32, shape=())
triangle_cutoff = ti.field(dtype=ti.f32, shape=())

# Results of Python-scope queries
_probe_leaf = ti.field(dtype=ti.i32, shape=())
_probe_distance = ti.field(dtype=ti.f32, shape=())
_probe_normal = ti.Vector.field(3, dtype=ti.f32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0
    num_triangles[None] = 0
    num_leaves[None] = 0


def set_triangle_depth(depth: float, cutoff: float = 0.0) -> None:
    """Set the triangle slab thickness used by every distance query.

    Args:
        depth: Slab thickness in world units.
        cutoff: Bounding-sphere distance below which a triangle is
            evaluated exactly; raised to ``depth`` if smaller. The marcher
            passes its hit epsilon here.

    Raises:
        ValueError: If depth or cutoff is negative.
    """
    if depth < 0.0:
        raise ValueError(f"Triangle depth must be non-negative, got {depth}")
    if cutoff < 0.0:
        raise ValueError(f"Triangle cutoff must be non-negative, got {cutoff}")
    triangle_depth[None] = depth
    triangle_cutoff[None] = max(depth, cutoff)


def check_capacity(spheres: int, triangles: int) -> None:
    """Check that the given number of new leaves fits in the storage.

    Raises:
        RuntimeError: If the sphere, triangle or leaf capacity would be
            exceeded.
    """
    if num_spheres[None] + spheres > MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    if num_triangles[None] + triangles > MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    if num_leaves[None] + spheres + triangles > MAX_LEAVES:
        raise RuntimeError(f"Maximum number of leaves ({MAX_LEAVES}) exceeded")


def _append_leaf(kind: int, slot: int, material_id: int) -> int:
    idx = num_leaves[None]
    if idx >= MAX_LEAVES:
        raise RuntimeError(f"Maximum number of leaves ({MAX_LEAVES}) exceeded")
    leaf_kinds[idx] = kind
    leaf_slots[idx] = slot
    leaf_material_ids[idx] = material_id
    num_leaves[None] = idx + 1
    return idx


def add_sphere(sphere: Sphere, material_id: int = 0) -> int:
    """Add a sphere leaf to the scene.

    Args:
        sphere: The sphere to store.
        material_id: The material ID used to shade the sphere.

    Returns:
        The leaf index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    slot = num_spheres[None]
    if slot >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[slot] = vec3(sphere.center[0], sphere.center[1], sphere.center[2])
    sphere_radii[slot] = sphere.radius
    num_spheres[None] = slot + 1
    return _append_leaf(LEAF_SPHERE, slot, material_id)


def add_triangle(triangle: Triangle, material_id: int = 0) -> int:
    """Add a triangle leaf to the scene.

    Args:
        triangle: The triangle to store, with its precomputed frame.
        material_id: The material ID used to shade the triangle.

    Returns:
        The leaf index of the added triangle.

    Raises:
        RuntimeError: If the maximum number of triangles is exceeded.
    """
    slot = num_triangles[None]
    if slot >= MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    triangle_to_local[slot] = ti.Matrix(triangle.to_local.tolist())
    triangle_to_world[slot] = ti.Matrix(triangle.to_world.tolist())
    triangle_bound_centers[slot] = triangle.bound_center.tolist()
    triangle_bound_radii[slot] = triangle.bound_radius
    triangle_normals[slot] = triangle.normal.tolist()
    triangle_depth_scales[slot] = triangle.depth_scale
    num_triangles[None] = slot + 1
    return _append_leaf(LEAF_TRIANGLE, slot, material_id)


def add_triangles(
    triangles: Sequence[Triangle],
    material_id: int = 0,
) -> tuple[int, int]:
    """Add many consecutive triangle leaves in one upload.

    Writes each field once through NumPy instead of element by element,
    which matters for meshes with thousands of faces.

    Args:
        triangles: The triangles to store, in order.
        material_id: The material ID shared by all triangles.

    Returns:
        The (start, end) leaf range of the added triangles.

    Raises:
        RuntimeError: If the triangle or leaf capacity is exceeded.
    """
    count = len(triangles)
    slot = num_triangles[None]
    leaf = num_leaves[None]
    if slot + count > MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    if leaf + count > MAX_LEAVES:
        raise RuntimeError(f"Maximum number of leaves ({MAX_LEAVES}) exceeded")
    if count == 0:
        return leaf, leaf

    def _write(target, values) -> None:
        data = target.to_numpy()
        data[slot : slot + count] = np.asarray(values, dtype=data.dtype)
        target.from_numpy(data)

    _write(triangle_to_local, [t.to_local for t in triangles])
    _write(triangle_to_world, [t.to_world for t in triangles])
    _write(triangle_bound_centers, [t.bound_center for t in triangles])
    _write(triangle_bound_radii, [t.bound_radius for t in triangles])
    _write(triangle_normals, [t.normal for t in triangles])
    _write(triangle_depth_scales, [t.depth_scale for t in triangles])
    num_triangles[None] = slot + count

    def _write_leaves(target, values) -> None:
        data = target.to_numpy()
        data[leaf : leaf + count] = values
        target.from_numpy(data)

    _write_leaves(leaf_kinds, LEAF_TRIANGLE)
    _write_leaves(leaf_slots, np.arange(slot, slot + count, dtype=np.int32))
    _write_leaves(leaf_material_ids, material_id)
    num_leaves[None] = leaf + count

    return leaf, leaf + count


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_triangle_count() -> int:
    """Get the number of triangles in the scene."""
    return int(num_triangles[None])


def get_leaf_count() -> int:
    """Get the number of leaves in the scene."""
    return int(num_leaves[None])


# =============================================================================
# Distance Evaluation (Taichi functions)
# =============================================================================


@ti.func
def _sphere_record(slot: ti.i32) -> SphereSDF:
    return SphereSDF(center=sphere_centers[slot], radius=sphere_radii[slot])


@ti.func
def _triangle_record(slot: ti.i32) -> TriangleSDF:
    return TriangleSDF(
        to_local=triangle_to_local[slot],
        to_world=triangle_to_world[slot],
        bound_center=triangle_bound_centers[slot],
        bound_radius=triangle_bound_radii[slot],
        normal=triangle_normals[slot],
        depth_scale=triangle_depth_scales[slot],
    )


@ti.func
def leaf_distance(leaf: ti.i32, point: vec3) -> ti.f32:
    """Signed distance from a point to a single leaf."""
    slot = leaf_slots[leaf]
    result = 0.0
    if leaf_kinds[leaf] == LEAF_SPHERE:
        result = sphere_distance(point, _sphere_record(slot))
    else:
        result = triangle_distance(
            point, _triangle_record(slot), triangle_depth[None], triangle_cutoff[None]
        )
    return result


@ti.func
def leaf_normal(leaf: ti.i32, point: vec3) -> vec3:
    """Unit surface normal of a leaf at a point near its surface."""
    slot = leaf_slots[leaf]
    result = vec3(0.0, 0.0, 0.0)
    if leaf_kinds[leaf] == LEAF_SPHERE:
        result = sphere_normal(point, _sphere_record(slot))
    else:
        result = triangle_normal(_triangle_record(slot))
    return result


@ti.func
def range_distance(start: ti.i32, end: ti.i32, point: vec3) -> DistanceRecord:
    """Nearest leaf in the range [start, end) and its signed distance.

    Leaves are visited in order and a later leaf only wins when it is
    strictly closer, so the earliest leaf wins ties.

    Args:
        start: First leaf index of the range.
        end: One past the last leaf index of the range.
        point: The query point.

    Returns:
        A DistanceRecord; leaf is -1 and distance FAR_DISTANCE when the
        range is empty.
    """
    best_leaf = -1
    best_distance = FAR_DISTANCE
    for leaf in range(start, end):
        d = leaf_distance(leaf, point)
        if d < best_distance:
            best_distance = d
            best_leaf = leaf
    return DistanceRecord(leaf=best_leaf, distance=best_distance)


@ti.func
def scene_distance(point: vec3) -> DistanceRecord:
    """Nearest leaf of the whole scene and its signed distance."""
    return range_distance(0, num_leaves[None], point)


@ti.func
def get_leaf_material_id(leaf: ti.i32) -> ti.i32:
    """Material ID of a leaf."""
    return leaf_material_ids[leaf]


# =============================================================================
# Python-scope Queries
# =============================================================================


@ti.kernel
def _query_range_kernel(start: ti.i32, end: ti.i32, x: ti.f32, y: ti.f32, z: ti.f32):
    # Single-iteration outer loop keeps the leaf scan serial
    for _ in range(1):
        record = range_distance(start, end, vec3(x, y, z))
        _probe_leaf[None] = record.leaf
        _probe_distance[None] = record.distance


@ti.kernel
def _query_normal_kernel(leaf: ti.i32, x: ti.f32, y: ti.f32, z: ti.f32):
    _probe_normal[None] = leaf_normal(leaf, vec3(x, y, z))


def query_range_distance(
    start: int,
    end: int,
    point: tuple[float, float, float],
) -> tuple[int, float]:
    """Evaluate the distance of a leaf range at a point from Python.

    Returns:
        Tuple of (leaf_index, signed_distance); (-1, FAR_DISTANCE) for an
        empty range.
    """
    _query_range_kernel(start, end, point[0], point[1], point[2])
    return int(_probe_leaf[None]), float(_probe_distance[None])


def query_distance(point: tuple[float, float, float]) -> tuple[int, float]:
    """Evaluate the scene distance field at a point from Python."""
    return query_range_distance(0, get_leaf_count(), point)


def query_normal(leaf: int, point: tuple[float, float, float]) -> tuple[float, float, float]:
    """Evaluate a leaf's surface normal at a point from Python."""
    if not 0 <= leaf < get_leaf_count():
        raise IndexError(f"Leaf index {leaf} out of range")
    _query_normal_kernel(leaf, point[0], point[1], point[2])
    n = _probe_normal[None]
    return (float(n[0]), float(n[1]), float(n[2]))
