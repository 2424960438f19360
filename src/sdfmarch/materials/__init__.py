"""Materials module.

Components:
    material: Material description (reflective or emissive) and the
        GPU-side material registry indexed by material ID

Reflective materials are shaded with ambient, diffuse and specular terms by
sdfmarch.core.shading; emissive materials are drawn flat and act as point
lights when attached to a sphere.
"""

from .material import (
    MAX_MATERIALS,
    Material,
    MaterialRecord,
    add_material,
    clear_materials,
    get_material,
    get_material_count,
)

__all__ = [
    "Material",
    "MaterialRecord",
    "MAX_MATERIALS",
    "add_material",
    "clear_materials",
    "get_material",
    "get_material_count",
]
