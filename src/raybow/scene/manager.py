"""Scene assembly: materials, primitives and the material id table.

Every material gets one scene-wide id regardless of kind. The integrator
resolves an id to a (kind, slot) pair through two Taichi fields and then
calls the matching scatter routine. Primitives only store the id, so any
number of them can share one material.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raybow.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> grey = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    >>> scene.add_sphere(center=(0, -100.5, -1), radius=100, material_id=grey)
    0
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi as ti

from raybow.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from raybow.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from raybow.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from raybow.scene.intersection import (
    add_parallelogram,
    add_sphere,
    clear_scene,
    get_parallelogram_count,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

Vec3Tuple = tuple[float, float, float]


class MaterialType(IntEnum):
    """Material kinds, stored as ints in the id table."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Three registries of 256 slots each
MAX_MATERIALS = 768

# id -> MaterialType
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# id -> slot in that kind's registry
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Kind of a material id inside a kernel, or -1 when the id is unknown."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Registry slot of a material id inside a kernel, or -1 when unknown."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Host-side record of one registered material."""

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


@dataclass
class ParallelogramInfo:
    parallelogram_index: int
    corner: Vec3Tuple
    edge1: Vec3Tuple
    edge2: Vec3Tuple
    material_id: int


class SceneManager:
    """Builds a scene in the module-level Taichi storage.

    The storage is global, so constructing a manager wipes any scene that
    was loaded before it. The ``materials``, ``spheres`` and
    ``parallelograms`` lists mirror what has been uploaded.
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.parallelograms: list[ParallelogramInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()
        self.parallelograms.clear()

    def clear(self) -> None:
        """Drop every primitive and material."""
        self._clear_all()

    # -- materials ------------------------------------------------------------

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        logger.debug("Registered %s material %d: %s", material_type.name, material_id, params)
        return material_id

    def add_lambertian_material(self, albedo: Vec3Tuple) -> int:
        """Register a diffuse material and return its id.

        Raises ValueError for an albedo channel outside [0, 1] and
        RuntimeError when the id table or the registry is full.
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)}
        )

    def add_metal_material(self, albedo: Vec3Tuple, roughness: float = 0.0) -> int:
        """Register a metal and return its id.

        ``roughness`` 0 is a perfect mirror. Both albedo channels and
        roughness must lie in [0, 1].
        """
        type_index = add_metal_material(albedo, roughness)
        return self._register_material(
            MaterialType.METAL,
            type_index,
            {"albedo": tuple(albedo), "roughness": roughness},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear refractive material (``ior`` > 0) and return its id."""
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Host-side counterpart of ``get_material_type``; None when unknown."""
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

    # -- primitives -----------------------------------------------------------

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Upload a sphere and return its slot.

        ``material_id`` must come from one of the ``add_*_material`` calls.
        """
        self._check_material_id(material_id)
        sphere_index = add_sphere(center, radius, material_id)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=tuple(center),
                radius=radius,
                material_id=material_id,
            )
        )
        return sphere_index

    def add_parallelogram(
        self,
        corner: Vec3Tuple,
        edge1: Vec3Tuple,
        edge2: Vec3Tuple,
        material_id: int,
    ) -> int:
        """Upload the parallelogram spanned by ``edge1`` and ``edge2`` at ``corner``.

        Parallel edges and unknown material ids raise ValueError.
        """
        self._check_material_id(material_id)
        parallelogram_index = add_parallelogram(corner, edge1, edge2, material_id)

        self.parallelograms.append(
            ParallelogramInfo(
                parallelogram_index=parallelogram_index,
                corner=tuple(corner),
                edge1=tuple(edge1),
                edge2=tuple(edge2),
                material_id=material_id,
            )
        )
        return parallelogram_index

    # -- queries --------------------------------------------------------------

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    def get_parallelogram_count(self) -> int:
        return get_parallelogram_count()

    def get_primitive_count(self) -> int:
        return self.get_sphere_count() + self.get_parallelogram_count()
