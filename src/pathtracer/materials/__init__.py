"""Materials module for light scattering models.

This module implements the scattering contract shared by every material:
given an incoming ray and the hit it produced, either absorb the ray or
return a scattered direction together with a per-channel attenuation.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection perturbed by a fuzz radius
    dielectric: Glass-like refraction with Schlick Fresnel reflectance

Each scatter function returns (scattered_direction, attenuation, did_scatter);
the scattered ray always starts at the hit point. Material parameters live in
per-type Taichi fields indexed by a type-local id; the unified material id
space is managed by :class:`pathtracer.scene.manager.SceneManager`.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
    schlick_reflectance,
    will_reflect,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_albedo",
    "get_lambertian_material_count",
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    # Metal
    "add_metal_material",
    "clamp_fuzz",
    "clear_metal_materials",
    "get_metal_albedo",
    "get_metal_fuzz",
    "get_metal_material_count",
    "scatter_metal",
    "scatter_metal_by_id",
    # Dielectric
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_ior",
    "get_dielectric_material_count",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "schlick_reflectance",
    "will_reflect",
]
