"""Sphere storage and the scene-wide closest-hit query.

The scene answers the same question as a single sphere: where does this
ray first meet a surface in (t_min, t_max)? It walks the spheres in
insertion order, tightening the upper bound to each accepted hit, so the
survivor is the nearest surface and a later sphere at exactly the same
distance never displaces an earlier one.

Sphere data sits in parallel Taichi fields written from Python between
renders; kernels only read them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, get_sphere_count
    >>> add_sphere(ti.math.vec3(0.0, -100.5, -1.0), 100.0, material_id=0)
    0
    >>> get_sphere_count()
    1
"""

import taichi as ti

from pathtracer.core.vector import point3, vec3
from pathtracer.geometry.sphere import Sphere, hit_sphere


@ti.dataclass
class SceneHitRecord:
    """Closest hit of a ray against the whole scene.

    Attributes:
        hit: 1 if any sphere was hit, 0 otherwise.
        t: Ray parameter of the hit.
        point: Hit position.
        normal: Unit normal on the side the ray arrived from.
        front_face: 1 if the ray struck the outward side.
        material_id: Arena id of the sphere's material; -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: point3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# =============================================================================
# Sphere Storage
# =============================================================================

MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Forget every sphere; slots are reused by later add_sphere calls."""
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere and return its slot.

    Args:
        center: Sphere center.
        radius: Signed radius. Negative radii point the normals inward.
        material_id: Arena id of the material the sphere is made of.

    Raises:
        ValueError: If radius is zero.
        RuntimeError: If all MAX_SPHERES slots are taken.
    """
    if radius == 0.0:
        raise ValueError("Sphere radius must be non-zero")

    slot = num_spheres[None]
    if slot >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    sphere_centers[slot] = center
    sphere_radii[slot] = radius
    sphere_material_ids[slot] = material_id
    num_spheres[None] = slot + 1
    return slot


def get_sphere_count() -> int:
    return int(num_spheres[None])


# =============================================================================
# Closest-hit Query
# =============================================================================


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: point3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Nearest hit of a ray against every stored sphere.

    Args:
        ray_origin: Ray origin.
        ray_direction: Ray direction; need not be unit length.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        The nearest SceneHitRecord, or one with hit == 0.
    """
    nearest = _make_miss_record()
    bound = t_max

    for i in range(num_spheres[None]):
        rec = hit_sphere(
            ray_origin,
            ray_direction,
            Sphere(center=sphere_centers[i], radius=sphere_radii[i]),
            t_min,
            bound,
        )
        if rec.hit == 1:
            bound = rec.t
            nearest.hit = 1
            nearest.t = rec.t
            nearest.point = rec.point
            nearest.normal = rec.normal
            nearest.front_face = rec.front_face
            nearest.material_id = sphere_material_ids[i]

    return nearest
