"""Analytic shading against point lights.

Every emissive sphere in the scene is an omnidirectional point light located
at the sphere's center. A reflective surface hit at point p with normal n,
viewed along v (pointing from p back toward the ray origin), receives from
each light L with color C_L:

    l        = normalize(center_L - p)
    diffuse  = kd * max(dot(l, n), 0)
    r        = 2 * dot(n, l) * n - l
    specular = ks * max(dot(r, v), 0) ^ shininess
    color   += ambient * base + diffuse * min(C_L, base) + specular * C_L

The normal is first flipped to face the viewer, so triangles are lit on both
sides. Lights are never occluded: there are no shadow rays. With no lights
the result is black.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.core.shading import add_light, set_ambient
    >>> set_ambient((0.2, 0.2, 0.2))
    >>> add_light((0.0, 10.0, 0.0), (1.0, 1.0, 1.0))
    0
"""

import taichi as ti
import taichi.math as tm

from sdfmarch.core.ray import face_toward, reflect_about
from sdfmarch.materials.material import MaterialRecord

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Light Configuration
# =============================================================================

MAX_LIGHTS = 64

light_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())

# Ambient light color, added once per light
_ambient = ti.Vector.field(3, dtype=ti.f32, shape=())


def clear_lights() -> None:
    """Remove all point lights."""
    num_lights[None] = 0


def add_light(
    center: tuple[float, float, float],
    color: tuple[float, float, float],
) -> int:
    """Register a point light.

    Args:
        center: Light position (the center of the emissive sphere).
        color: Light color (the emissive material's base color).

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_centers[idx] = [center[0], center[1], center[2]]
    light_colors[idx] = [color[0], color[1], color[2]]
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of registered lights."""
    return int(num_lights[None])


def set_ambient(color: tuple[float, float, float]) -> None:
    """Set the ambient light color."""
    _ambient[None] = [color[0], color[1], color[2]]


def get_ambient() -> tuple[float, float, float]:
    """Get the ambient light color."""
    a = _ambient[None]
    return (float(a[0]), float(a[1]), float(a[2]))


@ti.func
def ambient_color() -> vec3:
    """Ambient light color inside a kernel."""
    return _ambient[None]


# =============================================================================
# Shading
# =============================================================================


@ti.func
def shade(hit_point: vec3, normal: vec3, view_direction: vec3, material: MaterialRecord) -> vec3:
    """Compute the color of a reflective surface point.

    Args:
        hit_point: The surface point being shaded.
        normal: The unit surface normal (either orientation).
        view_direction: Unit vector from the hit point toward the viewer.
        material: The surface material.

    Returns:
        The summed contribution of all lights (RGB, not clamped).
    """
    n = face_toward(normal, view_direction)
    ambient = _ambient[None] * material.color
    color = vec3(0.0, 0.0, 0.0)

    for i in range(num_lights[None]):
        light_color = light_colors[i]
        light_dir = tm.normalize(light_centers[i] - hit_point)

        diffuse = material.diffuse * ti.max(tm.dot(light_dir, n), 0.0)

        reflected = reflect_about(light_dir, n)
        highlight = ti.max(tm.dot(reflected, view_direction), 0.0)
        specular = material.specular * ti.pow(highlight, material.shininess)

        color += ambient + diffuse * tm.min(light_color, material.color) + specular * light_color

    return color
