"""Dielectric (glass/water) material implementation.

Dielectrics never absorb: the attenuation is always white. At each hit the
ray either reflects or refracts:

    - entering the medium (front face) the index ratio is 1 / ior,
      leaving it the ratio is ior;
    - if ratio * sin(theta) > 1 no refracted ray exists (total internal
      reflection) and the ray reflects;
    - otherwise it reflects with probability given by Schlick's
      approximation of the Fresnel reflectance and refracts otherwise.

Choosing one branch per sample, rather than splitting the ray, lets many
samples average out to the right mix of reflection and transmission.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.color import color3
from pathtracer.core.sampler import random_float
from pathtracer.core.vector import reflect, refract, unit_vector, vec3


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Approximate the Fresnel reflectance with Schlick's formula.

    R0 = ((1 - ref_idx) / (1 + ref_idx))^2
    R(cos) = R0 + (1 - R0) * (1 - cos)^5

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The reflection probability in [0, 1].
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def _refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray arrives from outside the material.

    Returns:
        1 if no refracted ray exists, 0 otherwise.
    """
    ratio = _refraction_ratio(ior, front_face)
    cos_theta = tm.min(tm.dot(-unit_vector(incident_direction), normal), 1.0)
    sin_theta = ti.sqrt(ti.max(1.0 - cos_theta * cos_theta, 0.0))
    return 1 if ratio * sin_theta > 1.0 else 0


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Compute the scattered direction for a dielectric material.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray arrives from outside the material,
            0 if it is leaving the material.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        the attenuation is white and did_scatter is always 1.
    """
    attenuation = color3(1.0, 1.0, 1.0)
    ratio = _refraction_ratio(ior, front_face)

    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(ti.max(1.0 - cos_theta * cos_theta, 0.0))

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if ratio * sin_theta > 1.0:
        # Total internal reflection
        scattered_direction = reflect(unit_direction, normal)
    elif random_float(stream) < schlick_reflectance(cos_theta, ratio):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, attenuation, 1


# =============================================================================
# Dielectric Registry
# =============================================================================

MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Store an index of refraction and return its slot.

    Args:
        ior: Index of refraction relative to the surrounding air. 1.5 is
            typical glass; 1.0 bends nothing.

    Raises:
        ValueError: If ior is not positive.
        RuntimeError: If all MAX_DIELECTRIC_MATERIALS slots are taken.
    """
    if not ior > 0.0:
        raise ValueError(f"IOR = {ior} must be positive.")

    slot = num_dielectric_materials[None]
    if slot == MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[slot] = ior
    num_dielectric_materials[None] = slot + 1
    return slot


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """scatter_dielectric with the IOR stored in slot material_idx."""
    return scatter_dielectric(
        get_dielectric_ior(material_idx),
        incident_direction,
        normal,
        front_face,
        stream,
    )
