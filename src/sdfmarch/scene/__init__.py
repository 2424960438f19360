"""Scene module for scene management and distance queries.

This module handles scene representation and point-scene queries:

Components:
    distance: Leaf storage in Taichi fields and the scene distance field
    manager: SceneManager aggregating (geometry, material) meshes
    loader: Plain-text mesh loader producing a Group of Triangles
    demo: Ready-made demo scene and single-mesh scene with framing camera

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere and triangle data
    - A leaf table with kind tag, slot, material ID and mesh index
    - Contiguous leaf ranges for meshes and groups
"""

from .demo import DemoSceneParams, create_demo_scene, create_mesh_scene
from .distance import (
    LEAF_SPHERE,
    LEAF_TRIANGLE,
    MAX_LEAVES,
    MAX_SPHERES,
    MAX_TRIANGLES,
    DistanceRecord,
    add_sphere,
    add_triangle,
    add_triangles,
    clear_scene,
    get_leaf_count,
    get_sphere_count,
    get_triangle_count,
    leaf_distance,
    leaf_normal,
    query_distance,
    query_normal,
    query_range_distance,
    range_distance,
    scene_distance,
    set_triangle_depth,
)
from .loader import MeshFormatError, load_mesh, parse_mesh
from .manager import Mesh, SceneManager

__all__ = [
    # Distance module
    "DistanceRecord",
    "LEAF_SPHERE",
    "LEAF_TRIANGLE",
    "MAX_SPHERES",
    "MAX_TRIANGLES",
    "MAX_LEAVES",
    "add_sphere",
    "add_triangle",
    "add_triangles",
    "clear_scene",
    "get_sphere_count",
    "get_triangle_count",
    "get_leaf_count",
    "leaf_distance",
    "leaf_normal",
    "range_distance",
    "scene_distance",
    "set_triangle_depth",
    "query_distance",
    "query_range_distance",
    "query_normal",
    # Manager module
    "Mesh",
    "SceneManager",
    # Loader module
    "MeshFormatError",
    "load_mesh",
    "parse_mesh",
    # Demo module
    "DemoSceneParams",
    "create_demo_scene",
    "create_mesh_scene",
]
