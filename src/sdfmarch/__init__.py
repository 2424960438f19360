"""Sphere-tracing renderer for signed distance fields, built on Taichi.

This package renders still images of scenes made of implicit surfaces:
- Signed distance evaluation for spheres, bounded triangles and groups
- Sphere tracing with a bounded iteration count
- Ambient + diffuse + specular shading against point lights
- Supersampled rendering with Gaussian downsampling

Subpackages:
    core: Ray utilities, settings, ray marcher, shading and the renderer
    geometry: Sphere, Triangle and Group primitives with distance evaluators
    materials: Material description and GPU-side material storage
    scene: Scene manager, leaf storage, mesh loader and demo scene
    camera: Look-at perspective camera with ray generation
    preview: Image downsampling and PNG export
"""

__version__ = "0.1.0"
