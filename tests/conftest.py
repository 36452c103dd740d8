"""Pytest configuration for tracer tests.

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
    """Clear scene, material and render target state around each test."""
    # Import here so that Taichi is initialized before any field is created
    from src.tracer.core.integrator import clear_render_target
    from src.tracer.materials.dielectric import clear_dielectric_materials
    from src.tracer.materials.lambertian import clear_lambertian_materials
    from src.tracer.materials.metal import clear_metal_materials
    from src.tracer.scene.intersection import clear_scene
    from src.tracer.scene.manager import reset_material_ids

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        reset_material_ids()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()
