"""Scene module for scene storage and construction.

Components:
    intersection: Primitive storage in Taichi fields and closest-hit queries
    manager: Unified scene manager coordinating primitives and materials
    demo: Factory for the default demo scene

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays
"""

from .demo import DemoCameraParams, create_demo_scene
from .intersection import (
    MAX_PARALLELOGRAMS,
    MAX_SPHERES,
    add_parallelogram,
    add_sphere,
    clear_scene,
    get_parallelogram_count,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    ParallelogramInfo,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)

__all__ = [
    # Intersection module
    "add_sphere",
    "add_parallelogram",
    "clear_scene",
    "get_sphere_count",
    "get_parallelogram_count",
    "intersect_scene",
    "MAX_SPHERES",
    "MAX_PARALLELOGRAMS",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "ParallelogramInfo",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Demo scene
    "DemoCameraParams",
    "create_demo_scene",
]
