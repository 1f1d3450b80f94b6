"""Lambertian (ideal diffuse) material.

A diffuse surface forgets where the light came from: the scattered
direction is normal + random_unit_vector(), which spreads outgoing rays
with a cosine falloff around the normal, and the attenuation is the
albedo. Diffuse surfaces always scatter.

If the random unit vector nearly cancels the normal the sum is close to
zero; the normal itself is used in that case.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.lambertian import add_lambertian_material
    >>> slot = add_lambertian_material((0.5, 0.5, 0.5))
    >>> # In a kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian_by_id(slot, normal, stream)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.color import check_albedo, color3
from pathtracer.core.vector import near_zero, random_unit_vector, vec3


@ti.func
def scatter_lambertian(albedo: color3, normal: vec3, stream: ti.i32):
    """Diffusely scatter a ray off a surface.

    Args:
        albedo: Per-channel reflectance.
        normal: Unit normal at the hit point, on the side the ray came from.
        stream: Random stream to draw from.

    Returns:
        (scattered_direction, attenuation, did_scatter); did_scatter is 1.
    """
    direction = normal + random_unit_vector(stream)
    if near_zero(direction):
        direction = normal
    return direction, albedo, 1


# =============================================================================
# Lambertian Registry
# =============================================================================

MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse albedo and return its slot.

    Raises:
        ValueError: If a component is outside [0, 1].
        RuntimeError: If all MAX_LAMBERTIAN_MATERIALS slots are taken.
    """
    check_albedo(albedo)

    slot = num_lambertian_materials[None]
    if slot == MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[slot] = tm.vec3(*albedo)
    num_lambertian_materials[None] = slot + 1
    return slot


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> color3:
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3, stream: ti.i32):
    """scatter_lambertian with the albedo stored in slot material_idx."""
    return scatter_lambertian(get_lambertian_albedo(material_idx), normal, stream)
