"""Geometry module for signed-distance primitives.

This module provides the primitives a scene is built from:

Components:
    sphere: Sphere with an exact signed distance
    triangle: Bounded triangle with a bounding-sphere short-circuit and a
        clamp-and-project exact path in a precomputed local frame
    group: Ordered union of child nodes, flattened to leaf slices on upload

Each primitive has an immutable Python-side description used to build the
scene, and a Taichi record plus @ti.func evaluators used inside kernels:

    d = sphere_distance(point, sphere_record)
    d = triangle_distance(point, triangle_record, depth, cutoff)
"""

from .group import Geometry, Group, Leaf, is_leaf, iter_leaves
from .sphere import Sphere, SphereSDF, sphere_distance, sphere_normal
from .triangle import (
    DegenerateTriangleError,
    Triangle,
    TriangleSDF,
    triangle_distance,
    triangle_normal,
)

__all__ = [
    "Geometry",
    "Leaf",
    "Group",
    "is_leaf",
    "iter_leaves",
    "Sphere",
    "SphereSDF",
    "sphere_distance",
    "sphere_normal",
    "Triangle",
    "TriangleSDF",
    "DegenerateTriangleError",
    "triangle_distance",
    "triangle_normal",
]
