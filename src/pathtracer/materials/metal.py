"""Metal (fuzzy mirror) material.

Metals mirror the incident direction about the normal, then nudge the
result by a random point in a ball of radius ``fuzz``:

    scattered = reflect(unit(incident), normal) + fuzz * random_in_unit_sphere()

With fuzz 0 this is a perfect mirror. A nudge that tips the direction
below the surface (dot(scattered, normal) <= 0) absorbs the ray, which
darkens rough metal at grazing angles.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.metal import add_metal_material
    >>> brushed_gold = add_metal_material((0.8, 0.6, 0.2), fuzz=0.3)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.color import check_albedo, color3
from pathtracer.core.vector import random_in_unit_sphere, reflect, unit_vector, vec3


@ti.func
def scatter_metal(
    albedo: color3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Reflect a ray off a metal surface.

    Args:
        albedo: Per-channel reflectance.
        fuzz: Radius of the random perturbation, in [0, 1].
        incident_direction: Incoming ray direction; need not be unit length.
        normal: Unit normal on the side the ray came from.
        stream: Random stream to draw from.

    Returns:
        (scattered_direction, attenuation, did_scatter). did_scatter is 0
        when the perturbed direction does not leave the surface.
    """
    mirrored = reflect(unit_vector(incident_direction), normal)
    direction = mirrored + fuzz * random_in_unit_sphere(stream)
    leaves_surface = 1 if tm.dot(direction, normal) > 0.0 else 0
    return direction, albedo, leaves_surface


# =============================================================================
# Metal Registry
# =============================================================================

MAX_METAL_MATERIALS = 1024

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz value into [0, 1]."""
    return min(max(fuzz, 0.0), 1.0)


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Store a metal and return its slot.

    Args:
        albedo: Per-channel reflectance, each in [0, 1].
        fuzz: Perturbation radius; clamped into [0, 1] rather than rejected.

    Raises:
        ValueError: If an albedo component is outside [0, 1].
        RuntimeError: If all MAX_METAL_MATERIALS slots are taken.
    """
    check_albedo(albedo)

    slot = num_metal_materials[None]
    if slot == MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[slot] = tm.vec3(*albedo)
    metal_fuzzes[slot] = clamp_fuzz(fuzz)
    num_metal_materials[None] = slot + 1
    return slot


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> color3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """scatter_metal with the albedo and fuzz stored in slot material_idx."""
    return scatter_metal(
        get_metal_albedo(material_idx),
        get_metal_fuzz(material_idx),
        incident_direction,
        normal,
        stream,
    )
