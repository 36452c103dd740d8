"""Scene building: material ids, sphere placement and scene dictionaries.

Every material gets one id from a single counter, whatever its kind. Kernels
resolve an id in two steps: the kind tag picks the parameter registry
(diffuse albedos, metal albedo and roughness, glass indices) and the slot
picks the entry inside it. EMPTY has no registry; hitting it ends the path.

Spheres only carry a material id, so one material may be shared by any
number of spheres. The random scene relies on this for its glass spheres.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    >>> scene.add_sphere(center=(0, -1000, 0), radius=1000, material_id=ground)
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from src.tracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.tracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.tracer.materials.metal import (
    add_metal_material,
    clamp_roughness,
    clear_metal_materials,
)
from src.tracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Kind tag stored per material id and switched on by the integrator."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    EMPTY = 3


MAX_MATERIALS = 1024

# Per-id kind tag and registry slot, read by kernels
_id_kind = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
_id_slot = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
_material_count = ti.field(dtype=ti.i32, shape=())


def reset_material_ids() -> None:
    """Forget every material id. Registries are cleared separately."""
    _material_count[None] = 0


@ti.func
def _known_id(material_id: ti.i32) -> ti.i32:
    return 0 <= material_id < _material_count[None]


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Kind tag of a material id as an int, or -1 if the id was never issued."""
    kind = -1
    if _known_id(material_id):
        kind = _id_kind[material_id]
    return kind


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Registry slot of a material id, or -1 if the id was never issued.

    The slot counts only materials of the same kind: the third metal added
    to a scene sits in slot 2 of the metal registry whatever its id.
    """
    slot = -1
    if _known_id(material_id):
        slot = _id_slot[material_id]
    return slot


def _as_triple(values: Any) -> tuple[float, float, float]:
    return (float(values[0]), float(values[1]), float(values[2]))


@dataclass
class MaterialInfo:
    """Python-side record of an issued material id.

    params holds the values as stored, so a clamped roughness shows up here
    after clamping.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]

    def to_config(self) -> dict[str, Any]:
        entry: dict[str, Any] = {"type": self.material_type.name.lower()}
        for key, value in self.params.items():
            entry[key] = list(value) if isinstance(value, tuple) else value
        return entry


@dataclass
class SphereInfo:
    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int

    def to_config(self) -> dict[str, Any]:
        return {"center": list(self.center), "radius": self.radius, "material_id": self.material_id}


@dataclass
class SceneConfig:
    """Plain-data form of a scene.

    Sphere entries name their material by its position in ``materials``,
    which is also the id it receives when the scene is loaded.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SceneConfig":
        return cls(materials=list(data.get("materials", [])), spheres=list(data.get("spheres", [])))


class SceneManager:
    """Builds a scene into the global Taichi fields.

    Creating a manager wipes whatever scene was loaded before, since there is
    only one set of scene fields per process.

    Attributes:
        materials: One MaterialInfo per issued id, indexed by id.
        spheres: One SphereInfo per sphere, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 1, 0), 1.0, glass)
        >>> scene.add_sphere((0, 1, 0), -0.9, glass)  # hollow shell
        >>> scene.add_metal_sphere((4, 1, 0), 1.0, (0.7, 0.6, 0.5), roughness=0.0)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._reset()

    def _reset(self) -> None:
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        reset_material_ids()
        self.materials = []
        self.spheres = []

    def clear(self) -> None:
        """Remove all spheres and materials."""
        self._reset()
        logger.debug("Scene cleared")

    # =========================================================================
    # Materials
    # =========================================================================

    def _issue_id(self, kind: MaterialType, slot: int, params: dict[str, Any]) -> int:
        material_id = int(_material_count[None])
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Scene already holds {MAX_MATERIALS} materials")

        _id_kind[material_id] = int(kind)
        _id_slot[material_id] = slot
        _material_count[None] = material_id + 1

        self.materials.append(MaterialInfo(material_id, kind, slot, params))
        logger.debug("Material %d is %s slot %d %s", material_id, kind.name, slot, params)
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material and return its id.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If the diffuse registry or the id space is full.
        """
        slot = add_lambertian_material(albedo)
        return self._issue_id(MaterialType.LAMBERTIAN, slot, {"albedo": tuple(albedo)})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        roughness: float = 0.0,
    ) -> int:
        """Register a metal and return its id.

        Roughness outside [0, 1] is clamped with a warning; 0 is a perfect
        mirror.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If the metal registry or the id space is full.
        """
        roughness = clamp_roughness(roughness)
        slot = add_metal_material(albedo, roughness)
        return self._issue_id(
            MaterialType.METAL, slot, {"albedo": tuple(albedo), "roughness": roughness}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear dielectric with refractive index ``ior``.

        Raises:
            ValueError: If ior is not positive.
            RuntimeError: If the dielectric registry or the id space is full.
        """
        slot = add_dielectric_material(ior)
        return self._issue_id(MaterialType.DIELECTRIC, slot, {"ior": ior})

    def add_empty_material(self) -> int:
        """Register a material that absorbs every ray reaching it."""
        return self._issue_id(MaterialType.EMPTY, 0, {})

    def get_material_count(self) -> int:
        return int(_material_count[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Kind of a material id, read from the Python-side records."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    # =========================================================================
    # Spheres
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Place a sphere using an already issued material id.

        A negative radius is accepted and turns the surface normals inward,
        which models the inner wall of a hollow glass shell.

        Returns:
            The sphere's index in the scene fields.

        Raises:
            ValueError: If radius is zero or material_id was never issued.
            RuntimeError: If the sphere storage is full.
        """
        if radius == 0.0:
            raise ValueError("Sphere radius must be nonzero")
        if not 0 <= material_id < self.get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_triple(center)
        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, center, radius, material_id))
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Place a sphere with its own new diffuse material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        roughness: float = 0.0,
    ) -> tuple[int, int]:
        material_id = self.add_metal_material(albedo, roughness)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    # =========================================================================
    # Scene dictionaries
    # =========================================================================

    def to_config(self) -> SceneConfig:
        return SceneConfig(
            materials=[info.to_config() for info in self.materials],
            spheres=[info.to_config() for info in self.spheres],
        )

    def _load_material(self, entry: dict[str, Any]) -> int:
        kind = entry.get("type", "").lower()
        if kind == "lambertian":
            return self.add_lambertian_material(_as_triple(entry.get("albedo", [0.5, 0.5, 0.5])))
        if kind == "metal":
            return self.add_metal_material(
                _as_triple(entry.get("albedo", [0.8, 0.8, 0.8])), entry.get("roughness", 0.0)
            )
        if kind == "dielectric":
            return self.add_dielectric_material(entry.get("ior", 1.5))
        if kind == "empty":
            return self.add_empty_material()
        raise ValueError(f"Unknown material type: {kind}")

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by ``config``.

        Raises:
            ValueError: On an unknown material type, a zero radius or a
                sphere naming a material that is not in the list.
        """
        self.clear()

        for entry in config.materials:
            self._load_material(entry)

        for entry in config.spheres:
            self.add_sphere(
                _as_triple(entry.get("center", [0, 0, 0])),
                entry.get("radius", 1.0),
                entry.get("material_id", 0),
            )

        logger.info("Loaded scene: %d materials, %d spheres", len(self.materials), len(self.spheres))

    def to_dict(self) -> dict[str, Any]:
        """Scene as JSON-ready lists under "materials" and "spheres"."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        self.from_config(SceneConfig.from_dict(data))

    # =========================================================================
    # Capacity
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
