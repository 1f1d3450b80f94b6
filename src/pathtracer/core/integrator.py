"""Color integrator: the radiance estimate carried by one camera ray.

A ray that hits a surface asks the surface's material to scatter. A
scattered ray contributes its attenuation times the color of the
scattered ray; an absorbed ray contributes black. A ray that escapes the
scene picks up the sky gradient, white at the horizon and light blue
overhead. Once the bounce budget runs out the ray contributes black.

Taichi functions cannot recurse, so the bounce chain is unrolled into a
loop that multiplies attenuations into a running throughput:

    color = a_1 * a_2 * ... * a_k * sky(direction_k)

which is exactly the recursive definition expanded.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import trace_ray
    >>> trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=50)
    (0.5, 0.7..., 1.0)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.color import color3
from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.sampler import MAX_STREAMS
from pathtracer.core.vector import unit_vector, vec3
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum ray bounces (path length)
MAX_DEPTH = 50

# Hits closer than T_MIN are ignored so a scattered ray does not
# re-intersect the surface it leaves (shadow acne)
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints
HORIZON_COLOR = color3(1.0, 1.0, 1.0)
ZENITH_COLOR = color3(0.5, 0.7, 1.0)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the scatter function of the material's type.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the outward side was hit, 0 otherwise.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material ids absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = color3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )
    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )
    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Ray Color
# =============================================================================


@ti.func
def background_color(direction: vec3) -> color3:
    """Sky color seen along a direction that escapes the scene.

    Linear blend from white (pointing straight down) to light blue
    (pointing straight up), driven by the y component of the unit direction.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * HORIZON_COLOR + t * ZENITH_COLOR


@ti.func
def ray_color(ray: Ray, depth: ti.i32, stream: ti.i32) -> color3:
    """Estimate the color carried back along a ray.

    Args:
        ray: The ray to trace.
        depth: Maximum number of surface interactions. depth <= 0 is black.
        stream: The random stream used by every scatter along the path.

    Returns:
        The radiance estimate for this ray.
    """
    color = color3(0.0, 0.0, 0.0)
    throughput = color3(1.0, 1.0, 1.0)
    origin = ray.origin
    direction = ray.direction

    # Taichi funcs have no recursion; active stops the loop early
    active = 1
    for _ in range(depth):
        if active == 1:
            rec = intersect_scene(origin, direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(direction)
                active = 0
            else:
                scattered, attenuation, did_scatter = _scatter_material(
                    rec.material_id, direction, rec.normal, rec.front_face, stream
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered

    # Still scattering when the bounce budget ran out: no light gathered
    return color


# =============================================================================
# Host Helpers
# =============================================================================


@ti.kernel
def _trace_ray_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth: ti.i32,
    stream: ti.i32,
) -> vec3:
    ray = make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz))
    return ray_color(ray, depth, stream)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Evaluate ray_color for a single ray from Python.

    Useful for debugging and testing. Draws from the given random stream,
    advancing it.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z); need not be normalized.
        depth: Maximum number of surface interactions.
        stream: The random stream to draw from.

    Returns:
        The (r, g, b) radiance estimate.

    Raises:
        ValueError: If stream is outside [0, MAX_STREAMS).
    """
    if not 0 <= stream < MAX_STREAMS:
        raise ValueError(f"Stream {stream} is outside [0, {MAX_STREAMS})")
    result = _trace_ray_kernel(
        origin[0], origin[1], origin[2], direction[0], direction[1], direction[2], depth, stream
    )
    return (float(result[0]), float(result[1]), float(result[2]))
