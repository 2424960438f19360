"""Ready-made scenes.

create_demo_scene builds a small reference scene: a red sphere, a red
triangle and one white point light, viewed from (0, 0, 10) toward the
origin. create_mesh_scene frames a loaded mesh with a camera and a light
placed from the mesh's bounding sphere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.scene.demo import create_demo_scene
    >>> scene, camera = create_demo_scene()
    >>> scene.get_mesh_count()
    3
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from sdfmarch.camera.perspective import Camera
from sdfmarch.geometry.group import Group
from sdfmarch.geometry.sphere import Sphere
from sdfmarch.geometry.triangle import Triangle
from sdfmarch.materials.material import Material
from sdfmarch.scene.manager import SceneManager

# =============================================================================
# Demo Scene Constants
# =============================================================================

RED = (1.0, 0.0, 0.0)
WHITE = (1.0, 1.0, 1.0)

SPHERE_CENTER = (3.0, 2.0, -10.0)
SPHERE_RADIUS = 3.0

TRIANGLE_VERTICES = ((-2.0, 0.0, 0.0), (-3.0, 0.0, 0.0), (-2.0, 1.0, 0.0))

LIGHT_CENTER = (-4.0, 6.0, 4.0)
LIGHT_RADIUS = 0.25


@dataclass
class DemoSceneParams:
    """Parameters of the demo scene.

    Attributes:
        surface_color: Base color of the sphere and the triangle.
        light_color: Color of the point light.
        light_center: Position of the point light.
        diffuse: Diffuse coefficient of the surfaces.
        specular: Specular coefficient of the surfaces.
        shininess: Specular exponent of the surfaces.
    """

    surface_color: tuple[float, float, float] = RED
    light_color: tuple[float, float, float] = WHITE
    light_center: tuple[float, float, float] = LIGHT_CENTER
    diffuse: float = 0.8
    specular: float = 0.4
    shininess: float = 32.0


def create_demo_scene(params: DemoSceneParams | None = None) -> tuple[SceneManager, Camera]:
    """Create the demo scene and its camera.

    Args:
        params: Optional DemoSceneParams; defaults are used if None.

    Returns:
        A tuple of (SceneManager, Camera). The scene holds, in order, the
        sphere, the triangle and the light.
    """
    if params is None:
        params = DemoSceneParams()

    scene = SceneManager()
    surface = Material(
        color=params.surface_color,
        diffuse=params.diffuse,
        specular=params.specular,
        shininess=params.shininess,
    )

    scene.add_mesh(Sphere(SPHERE_CENTER, SPHERE_RADIUS), surface)
    scene.add_mesh(Triangle(*TRIANGLE_VERTICES), surface)
    scene.add_mesh(Sphere(params.light_center, LIGHT_RADIUS), Material.emitter(params.light_color))

    camera = Camera(
        eye=(0.0, 0.0, 10.0),
        target=(0.0, 0.0, 0.0),
        up=(0.0, 1.0, 0.0),
        aspect=3.0 / 2.0,
        fovy=3.14 / 4.0,
        z_near=1.0,
        z_far=100.0,
    )
    return scene, camera


def create_mesh_scene(
    mesh: Group,
    material: Material | None = None,
    light_color: tuple[float, float, float] = WHITE,
    aspect: float = 3.0 / 2.0,
) -> tuple[SceneManager, Camera]:
    """Create a scene showing a single mesh, with a framing camera and a light.

    The camera looks at the centroid of the mesh vertices down the -z axis
    from far enough to fit the mesh's bounding sphere in the vertical field
    of view; the light sits above and behind the camera.

    Args:
        mesh: The mesh to show.
        material: Surface material; a light grey Phong material if None.
        light_color: Color of the point light.
        aspect: Image aspect ratio.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    if material is None:
        material = Material(color=(0.8, 0.8, 0.8), diffuse=0.8, specular=0.3, shininess=16.0)

    points = np.array([v for tri in mesh.leaves() for v in tri.vertices], dtype=np.float64)
    center = points.mean(axis=0)
    radius = max(float(np.linalg.norm(points - center, axis=1).max()), 1e-3)

    fovy = math.pi / 4.0
    distance = radius / math.sin(fovy / 2.0)
    eye = center + np.array([0.0, 0.0, distance])

    scene = SceneManager()
    scene.add_mesh(mesh, material)
    light_center = center + np.array([radius, 2.0 * radius, distance + radius])
    scene.add_mesh(
        Sphere(tuple(light_center), 0.05 * radius),
        Material.emitter(light_color),
    )

    camera = Camera(
        eye=tuple(eye),
        target=tuple(center),
        up=(0.0, 1.0, 0.0),
        aspect=aspect,
        fovy=fovy,
        z_near=0.1 * radius,
        z_far=distance + 4.0 * radius,
    )
    return scene, camera
