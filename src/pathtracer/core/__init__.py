"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    vector: vec3 aliases, vector operations and random direction sampling
    sampler: Per-stream random number generation
    ray: Ray data structure
    color: Pixel finalization (averaging, gamma, 8-bit conversion)
    integrator: ray_color, the per-ray radiance estimate
    renderer: Parallel row renderer with progress reporting
"""

from .color import check_albedo, color3, color_to_string, finalize_pixels
from .ray import Ray, make_ray, ray_at
from .sampler import MAX_STREAMS, random_float, random_floats, random_range, seed_streams
from .vector import (
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    point3,
    random_in_hemisphere,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    random_vec3_range,
    reflect,
    refract,
    unit_vector,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator or pathtracer.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "point3",
    "color3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "near_zero",
    "random_vec3",
    "random_vec3_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_hemisphere",
    "random_in_unit_disk",
    "MAX_STREAMS",
    "seed_streams",
    "random_float",
    "random_range",
    "random_floats",
    "finalize_pixels",
    "color_to_string",
    "check_albedo",
]
