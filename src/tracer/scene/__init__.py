"""Scene module for primitive storage, closest-hit queries and scene building.

Components:
    intersection: Sphere storage in Taichi fields and closest-hit search
    manager: Unified scene manager coordinating spheres and materials
    random_scene: Random sphere field demo scene

Scene data is kept in Structure-of-Arrays Taichi fields, written from Python
before rendering and only read by kernels.
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .random_scene import create_random_scene

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Random scene
    "create_random_scene",
]
