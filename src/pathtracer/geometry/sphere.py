"""Sphere primitive and ray-sphere intersection.

Solves |O + t*D - C|^2 = r^2 with the half-b form of the quadratic:

    oc = O - C
    a = dot(D, D)
    half_b = dot(oc, D)
    c = dot(oc, oc) - r^2
    discriminant = half_b^2 - a*c

A strictly positive discriminant is required; tangent rays count as
misses. The nearer root is preferred and the farther root is the fallback,
each accepted only strictly inside (t_min, t_max).

The outward normal is (p - C) / r using the signed radius, so a sphere with
a negative radius has inward-facing normals and acts as a hollow shell
(used for the inner surface of a glass bubble).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.vector import point3, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (point3).
        radius: The signed radius. Negative values flip the normals.
    """

    center: point3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The 3D intersection point. Only valid if hit == 1.
        normal: Unit surface normal oriented against the incoming ray, so
            dot(normal, ray_direction) <= 0. Only valid if hit == 1.
        front_face: 1 if the ray struck the outward-facing side, else 0.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: point3
    normal: vec3
    front_face: ti.i32


@ti.func
def face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a geometric normal against the incoming ray.

    Args:
        ray_direction: Direction of the ray that produced the hit.
        outward_normal: The geometric normal pointing out of the surface.

    Returns:
        A tuple (front_face, normal) where front_face is 1 when the ray
        arrives from outside, and normal is the outward normal flipped if
        necessary so that it faces the ray.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def hit_sphere(
    ray_origin: point3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on accepted ray parameters.
        t_max: Exclusive upper bound on accepted ray parameters.

    Returns:
        A HitRecord for the nearest root in (t_min, t_max). Check the hit
        field to determine if an intersection occurred.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant > 0.0:
        root = ti.sqrt(discriminant)

        t = (-half_b - root) / a
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = (-half_b + root) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius
            is_front_face, hit_normal = face_normal(ray_direction, outward_normal)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


@ti.func
def make_sphere(center: point3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a Taichi scope."""
    return Sphere(center=center, radius=radius)
