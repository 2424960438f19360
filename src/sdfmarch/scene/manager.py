"""Scene manager coordinating meshes, materials and lights.

A scene is an ordered list of meshes, each a (geometry, material) pair. The
SceneManager uploads every mesh as it is added:

- the material goes to the material registry
- the geometry tree is flattened to leaves stored in the distance fields,
  and the leaf range of the mesh and of every group inside it is recorded
- an emissive mesh registers a point light at its sphere's center

Leaf indices returned by GPU-side queries are mapped back to the Python
geometry objects, so distance queries report which primitive is nearest.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.geometry import Sphere
    >>> from sdfmarch.materials import Material
    >>> from sdfmarch.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> ball = Sphere((0.0, 0.0, -5.0), 1.0)
    >>> scene.add_mesh(ball, Material(color=(0.8, 0.1, 0.1)))
    0
    >>> leaf, d = scene.distance((0.0, 0.0, 0.0))
    >>> leaf is ball
    True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sdfmarch.core.shading import MAX_LIGHTS, add_light, clear_lights, get_light_count
from sdfmarch.geometry.group import Geometry, Group, Leaf, iter_leaves
from sdfmarch.geometry.sphere import Sphere
from sdfmarch.geometry.triangle import Triangle
from sdfmarch.materials.material import (
    MAX_MATERIALS,
    Material,
    add_material,
    clear_materials,
    get_material_count,
)
from sdfmarch.scene.distance import (
    add_sphere,
    add_triangle,
    add_triangles,
    check_capacity,
    clear_scene,
    get_leaf_count,
    get_sphere_count,
    get_triangle_count,
    query_normal,
    query_range_distance,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Mesh:
    """A geometry with the material it is rendered with.

    Attributes:
        geometry: The geometry tree.
        material: The material of every leaf in the tree.
        material_id: The material's ID in the material registry.
        leaf_start: First leaf index of the mesh.
        leaf_end: One past the last leaf index of the mesh.
    """

    geometry: Geometry
    material: Material
    material_id: int
    leaf_start: int
    leaf_end: int


class SceneManager:
    """Ordered collection of meshes uploaded for distance evaluation.

    Attributes:
        meshes: The meshes in the order they were added.

    Example:
        >>> scene = SceneManager()
        >>> red = Material(color=(1.0, 0.0, 0.0))
        >>> scene.add_mesh(Sphere((3.0, 2.0, -10.0), 3.0), red)
        0
        >>> scene.add_mesh(Sphere((0.0, 10.0, 0.0), 0.5), Material.emitter((1.0, 1.0, 1.0)))
        1
        >>> scene.get_light_count()
        1
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.meshes: list[Mesh] = []
        self._leaves: list[Leaf] = []
        self._ranges: dict[int, tuple[int, int]] = {}
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_materials()
        clear_lights()
        self.meshes.clear()
        self._leaves.clear()
        self._ranges.clear()

    def clear(self) -> None:
        """Clear the entire scene (geometry, materials and lights)."""
        self._clear_all()

    # =========================================================================
    # Building
    # =========================================================================

    def add_mesh(self, geometry: Geometry, material: Material) -> int:
        """Add a mesh to the scene.

        Args:
            geometry: A Sphere, Triangle or Group.
            material: The material for the whole geometry. An emissive
                material turns the mesh into a point light and requires the
                geometry to be a Sphere.

        Returns:
            The index of the mesh.

        Raises:
            TypeError: If the geometry is not a geometry node, or if an
                emissive material is put on anything but a Sphere.
            RuntimeError: If a storage capacity is exceeded.
        """
        if not isinstance(geometry, (Sphere, Triangle, Group)):
            raise TypeError(f"Unsupported geometry: {type(geometry).__name__}")
        if material.emissive and not isinstance(geometry, Sphere):
            raise TypeError(
                f"Emissive materials must be attached to a Sphere, got {type(geometry).__name__}"
            )

        # Check every capacity before touching storage, so a failed add
        # leaves the scene unchanged
        leaves = list(iter_leaves(geometry))
        spheres = sum(1 for leaf in leaves if isinstance(leaf, Sphere))
        check_capacity(spheres, len(leaves) - spheres)
        if get_material_count() >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
        if material.emissive and get_light_count() >= MAX_LIGHTS:
            raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

        mesh_id = len(self.meshes)
        material_id = add_material(material)

        start = get_leaf_count()
        self._upload(geometry, material_id)
        end = get_leaf_count()

        if material.emissive:
            add_light(geometry.center, material.color)

        self.meshes.append(
            Mesh(
                geometry=geometry,
                material=material,
                material_id=material_id,
                leaf_start=start,
                leaf_end=end,
            )
        )
        logger.debug(
            "Added mesh %d: %s with %d leaves%s",
            mesh_id,
            type(geometry).__name__,
            end - start,
            " (light)" if material.emissive else "",
        )
        return mesh_id

    def _upload(self, geometry: Geometry, material_id: int) -> None:
        """Flatten a geometry tree into leaves, recording each node's range."""
        start = get_leaf_count()
        if isinstance(geometry, Sphere):
            add_sphere(geometry, material_id)
            self._leaves.append(geometry)
        elif isinstance(geometry, Triangle):
            add_triangle(geometry, material_id)
            self._leaves.append(geometry)
        elif all(isinstance(child, Triangle) for child in geometry.children):
            # Loaded meshes are flat lists of triangles: upload them in one batch
            for child in geometry.children:
                child_start = len(self._leaves)
                self._leaves.append(child)
                self._ranges[id(child)] = (child_start, child_start + 1)
            add_triangles(geometry.children, material_id)
        else:
            for child in geometry.children:
                self._upload(child, material_id)
        self._ranges[id(geometry)] = (start, get_leaf_count())

    # =========================================================================
    # Queries
    # =========================================================================

    def distance(self, point: tuple[float, float, float]) -> tuple[Leaf | None, float]:
        """Evaluate the scene distance field at a point.

        Args:
            point: The query point.

        Returns:
            Tuple of (nearest_leaf, signed_distance). The nearest leaf is the
            Sphere or Triangle object that was added to the scene; it is
            None (with a huge distance) for an empty scene.
        """
        leaf, d = query_range_distance(0, get_leaf_count(), point)
        return (self._leaves[leaf] if leaf >= 0 else None), d

    def geometry_distance(
        self,
        geometry: Geometry,
        point: tuple[float, float, float],
    ) -> tuple[Leaf, float]:
        """Evaluate the distance of one node of the scene's geometry trees.

        Args:
            geometry: A mesh geometry or any node inside one.
            point: The query point.

        Returns:
            Tuple of (nearest_leaf, signed_distance) within that node.

        Raises:
            KeyError: If the node is not part of the scene.
        """
        try:
            start, end = self._ranges[id(geometry)]
        except KeyError:
            raise KeyError(f"{type(geometry).__name__} is not part of the scene") from None
        leaf, d = query_range_distance(start, end, point)
        return self._leaves[leaf], d

    def mesh_distance(self, mesh_id: int, point: tuple[float, float, float]) -> float:
        """Signed distance from a point to one mesh."""
        mesh = self.meshes[mesh_id]
        _, d = query_range_distance(mesh.leaf_start, mesh.leaf_end, point)
        return d

    def normal(self, geometry: Leaf, point: tuple[float, float, float]):
        """Surface normal of a leaf of the scene at a point.

        Args:
            geometry: A Sphere or Triangle of the scene.
            point: A point on (or near) its surface.

        Returns:
            The unit normal as an (x, y, z) tuple.

        Raises:
            TypeError: If the geometry is a Group (groups have no normal).
            KeyError: If the leaf is not part of the scene.
        """
        if isinstance(geometry, Group):
            raise TypeError("Normals are only defined for Sphere and Triangle geometry")
        try:
            leaf, _ = self._ranges[id(geometry)]
        except KeyError:
            raise KeyError(f"{type(geometry).__name__} is not part of the scene") from None
        return query_normal(leaf, point)

    def leaf_mesh(self, leaf: Leaf) -> Mesh:
        """The mesh a leaf belongs to."""
        start, _ = self._ranges[id(leaf)]
        for mesh in self.meshes:
            if mesh.leaf_start <= start < mesh.leaf_end:
                return mesh
        raise KeyError(f"{type(leaf).__name__} is not part of the scene")

    # =========================================================================
    # Counts
    # =========================================================================

    def get_mesh_count(self) -> int:
        """Get the number of meshes in the scene."""
        return len(self.meshes)

    def get_leaf_count(self) -> int:
        """Get the number of leaf primitives uploaded."""
        return get_leaf_count()

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_triangle_count(self) -> int:
        """Get the number of triangles in the scene."""
        return get_triangle_count()

    def get_light_count(self) -> int:
        """Get the number of point lights (emissive spheres)."""
        return get_light_count()

    def __repr__(self) -> str:
        return (
            f"SceneManager(meshes={self.get_mesh_count()}, leaves={self.get_leaf_count()}, "
            f"lights={self.get_light_count()})"
        )
