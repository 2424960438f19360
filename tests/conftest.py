"""Pytest configuration for sdfmarch tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material and light data around each test.

    This ensures tests are isolated from each other.
    """
    # Import here to ensure Taichi is initialized before fields are created
    from sdfmarch.core.marcher import apply_settings, clear_render_target
    from sdfmarch.core.settings import RendererSettings
    from sdfmarch.core.shading import clear_lights
    from sdfmarch.materials.material import clear_materials
    from sdfmarch.scene.distance import clear_scene

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_lights()
        clear_render_target()
        apply_settings(RendererSettings())

    _clear_all()

    yield

    _clear_all()
