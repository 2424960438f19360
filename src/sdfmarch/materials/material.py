"""Surface and emitter materials.

A material is either a reflective surface, shaded with ambient, diffuse and
specular terms, or an emitter. Emitters are drawn flat in their base color
and illuminate every other surface as omnidirectional point lights placed at
the center of their sphere.

Example:
    >>> from sdfmarch.materials.material import Material
    >>> red = Material(color=(1.0, 0.0, 0.0), diffuse=0.8, specular=0.3, shininess=16.0)
    >>> lamp = Material.emitter((1.0, 1.0, 1.0))
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Material:
    """Material parameters.

    Attributes:
        color: Base color, linear RGB with each component in [0, 1].
        emissive: Whether the material is a light source.
        diffuse: Diffuse coefficient (ignored for emitters).
        specular: Specular coefficient (ignored for emitters).
        shininess: Specular exponent (ignored for emitters).
    """

    color: tuple[float, float, float]
    emissive: bool = False
    diffuse: float = 1.0
    specular: float = 0.0
    shininess: float = 1.0

    def __post_init__(self) -> None:
        if len(self.color) != 3:
            raise ValueError(f"Material color must have 3 components, got {len(self.color)}")
        for i, component in enumerate(self.color):
            if component < 0.0 or component > 1.0:
                raise ValueError(f"Color component {i} = {component} is outside [0, 1]")
        for name in ("diffuse", "specular", "shininess"):
            value = getattr(self, name)
            if value < 0.0:
                raise ValueError(f"Material {name} must be non-negative, got {value}")
        object.__setattr__(self, "color", tuple(float(c) for c in self.color))

    @classmethod
    def emitter(cls, color: tuple[float, float, float]) -> "Material":
        """Create an emissive material (a point light when put on a sphere)."""
        return cls(color=color, emissive=True, diffuse=0.0, specular=0.0, shininess=1.0)


@ti.dataclass
class MaterialRecord:
    """GPU-side material record.

    Attributes:
        color: Base color (RGB).
        emissive: 1 for emitters, 0 for shaded surfaces.
        diffuse: Diffuse coefficient.
        specular: Specular coefficient.
        shininess: Specular exponent.
    """

    color: vec3
    emissive: ti.i32
    diffuse: ti.f32
    specular: ti.f32
    shininess: ti.f32


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_MATERIALS = 1024

material_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_emissive = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_diffuse = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_specular = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_shininess = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the registry.

    Args:
        material: The material to store.

    Returns:
        The material ID (index into the material fields).

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_colors[idx] = vec3(material.color[0], material.color[1], material.color[2])
    material_emissive[idx] = 1 if material.emissive else 0
    material_diffuse[idx] = material.diffuse
    material_specular[idx] = material.specular
    material_shininess[idx] = material.shininess
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material(material_id: ti.i32) -> MaterialRecord:
    """Look up a material record by ID inside a kernel."""
    return MaterialRecord(
        color=material_colors[material_id],
        emissive=material_emissive[material_id],
        diffuse=material_diffuse[material_id],
        specular=material_specular[material_id],
        shininess=material_shininess[material_id],
    )
