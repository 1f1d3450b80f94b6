"""Scene builder: one material arena, one sphere list.

Each material type keeps its parameters in its own registry
(:mod:`pathtracer.materials`). On top of those, this module keeps an
arena of material ids: id ``k`` maps to a (type, slot) pair stored in two
Taichi fields, so a sphere only needs to carry ``k``. Spheres sharing a
material share the id, and worker threads resolve it with two field
reads.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ior=1.5)
    >>> scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    >>> scene.add_sphere((0.0, 1.0, 0.0), -0.9, glass)  # thin glass shell
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from pathtracer.materials.dielectric import add_dielectric_material, clear_dielectric_materials
from pathtracer.materials.lambertian import add_lambertian_material, clear_lambertian_materials
from pathtracer.materials.metal import add_metal_material, clamp_fuzz, clear_metal_materials
from pathtracer.scene.intersection import add_sphere, clear_scene, get_sphere_count

Vec3Tuple = tuple[float, float, float]


class MaterialType(IntEnum):
    """Material kinds understood by the integrator's scatter dispatch."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# =============================================================================
# Material Arena (Taichi storage)
# =============================================================================

MAX_MATERIALS = 2048

# Arena slot k: which registry the material lives in, and where
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def _is_valid_material(material_id: ti.i32) -> ti.i32:
    return 0 <= material_id < num_materials[None]


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Look up the MaterialType value of a material id.

    Returns:
        The type as an integer, or -1 if the id was never registered.
    """
    result = -1
    if _is_valid_material(material_id):
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Look up a material id's slot in its type registry, or -1."""
    result = -1
    if _is_valid_material(material_id):
        result = material_type_indices[material_id]
    return result


# =============================================================================
# Python-side Records
# =============================================================================


@dataclass
class MaterialInfo:
    """Host-side record of one arena entry.

    Attributes:
        material_id: Arena index, the value spheres store.
        material_type: Which registry holds the parameters.
        type_index: Slot inside that registry.
        params: Parameters as actually stored (fuzz already clamped).
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Host-side record of one sphere.

    Attributes:
        sphere_index: Slot in the sphere storage.
        center: Sphere center.
        radius: Signed radius; negative means inward-facing normals.
        material_id: Arena index of the sphere's material.
    """

    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """A scene as plain lists and dicts.

    Attributes:
        materials: One dict per arena entry, in id order. Each has a
            "type" of "lambertian", "metal" or "dielectric" and that
            type's parameters ("albedo", "fuzz", "ior").
        spheres: One dict per sphere with "center", "radius" and
            "material_id".
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_vec3_tuple(values) -> Vec3Tuple:
    return (values[0], values[1], values[2])


# =============================================================================
# Scene Manager
# =============================================================================


class SceneManager:
    """Builds the single live scene read by the render kernels.

    Every call writes straight into Taichi storage and records a host-side
    mirror in ``materials`` and ``spheres``. Constructing a manager wipes
    whatever scene was loaded before, and a scene must stay unchanged
    while a render runs.

    Attributes:
        materials: MaterialInfo per arena entry, indexed by material id.
        spheres: SphereInfo per sphere, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> _, ground = scene.add_lambertian_sphere((0, -1000, 0), 1000, albedo=(0.5, 0.5, 0.5))
        >>> scene.add_metal_sphere((4, 1, 0), 1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0)
        >>> scene.get_sphere_count()
        2
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials = []
        self.spheres = []

    # =========================================================================
    # Materials
    # =========================================================================

    def _register_material(
        self, material_type: MaterialType, store: Callable[[], int], params: dict[str, Any]
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        # The type registry validates parameters before the arena grows
        type_index = store()

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(MaterialInfo(material_id, material_type, type_index, params))
        return material_id

    def add_lambertian_material(self, albedo: Vec3Tuple) -> int:
        """Register a diffuse material.

        Args:
            albedo: Reflectance per channel, each in [0, 1].

        Returns:
            The new material id.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If the arena or the Lambertian registry is full.
        """
        return self._register_material(
            MaterialType.LAMBERTIAN,
            lambda: add_lambertian_material(albedo),
            {"albedo": _as_vec3_tuple(albedo)},
        )

    def add_metal_material(self, albedo: Vec3Tuple, fuzz: float = 0.0) -> int:
        """Register a metal. ``fuzz`` is clamped to [0, 1]; 0 is a mirror.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If the arena or the metal registry is full.
        """
        return self._register_material(
            MaterialType.METAL,
            lambda: add_metal_material(albedo, fuzz),
            {"albedo": _as_vec3_tuple(albedo), "fuzz": clamp_fuzz(fuzz)},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear refractive material such as glass (1.5).

        Raises:
            ValueError: If ior is not positive.
            RuntimeError: If the arena or the dielectric registry is full.
        """
        return self._register_material(
            MaterialType.DIELECTRIC,
            lambda: add_dielectric_material(ior),
            {"ior": ior},
        )

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Return the record for a material id, or None if it does not exist."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Host-side counterpart of the get_material_type Taichi function."""
        info = self.get_material_info(material_id)
        if info is None:
            return None
        return info.material_type

    # =========================================================================
    # Spheres
    # =========================================================================

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Place a sphere made of an already registered material.

        Args:
            center: Sphere center (x, y, z).
            radius: Signed radius. A negative radius turns the normals
                inward, which nested inside a positive sphere of the same
                material makes a hollow shell.
            material_id: Id returned by one of the add_*_material methods.

        Returns:
            The sphere's slot index.

        Raises:
            ValueError: If material_id is unknown or radius is zero.
            RuntimeError: If the sphere storage is full.
        """
        if not 0 <= material_id < num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        position = _as_vec3_tuple(center)
        sphere_index = add_sphere(tm.vec3(*position), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, position, radius, material_id))
        return sphere_index

    def add_lambertian_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple
    ) -> tuple[int, int]:
        """Add a sphere with its own new diffuse material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple, fuzz: float = 0.0
    ) -> tuple[int, int]:
        """Add a sphere with its own new metal material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self, center: Vec3Tuple, radius: float, ior: float = 1.5
    ) -> tuple[int, int]:
        """Add a sphere with its own new dielectric material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    # =========================================================================
    # Plain-data Export / Import
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Describe the current scene as a SceneConfig of lists and dicts."""
        materials = []
        for info in self.materials:
            entry: dict[str, Any] = {"type": info.material_type.name.lower()}
            entry.update(
                (key, list(value) if isinstance(value, tuple) else value)
                for key, value in info.params.items()
            )
            materials.append(entry)

        spheres = [
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        ]
        return SceneConfig(materials=materials, spheres=spheres)

    def from_config(self, config: SceneConfig) -> None:
        """Load a SceneConfig, replacing the current scene.

        Materials are registered in list order, so their ids match the
        ``material_id`` values the sphere entries refer to.

        Raises:
            ValueError: If a material type is unknown or any parameter is
                invalid.
        """
        self.clear()

        for entry in config.materials:
            type_name = str(entry.get("type", "")).lower()
            if type_name == "lambertian":
                self.add_lambertian_material(_as_vec3_tuple(entry.get("albedo", (0.5, 0.5, 0.5))))
            elif type_name == "metal":
                self.add_metal_material(
                    _as_vec3_tuple(entry.get("albedo", (0.8, 0.8, 0.8))), entry.get("fuzz", 0.0)
                )
            elif type_name == "dielectric":
                self.add_dielectric_material(entry.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {type_name!r}")

        for entry in config.spheres:
            self.add_sphere(
                _as_vec3_tuple(entry.get("center", (0.0, 0.0, 0.0))),
                entry.get("radius", 1.0),
                entry.get("material_id", 0),
            )
