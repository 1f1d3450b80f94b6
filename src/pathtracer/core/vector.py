"""Vector utilities and random direction samplers.

A single numeric type, ``tm.vec3``, plays three roles: points, directions
and RGB colors. The aliases below only document intent in signatures.
Arithmetic (+, -, component-wise *, scalar * and /, negation, indexing)
is provided natively by Taichi vectors.

Every sampler takes a ``stream`` argument selecting the random stream
(see :mod:`pathtracer.core.sampler`) so that parallel rows never share
generator state.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.vector import reflect, vec3
    >>> @ti.kernel
    ... def mirror() -> vec3:
    ...     return reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import random_float, random_range

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3
point3 = tm.vec3

# Lengths below this are treated as zero
NEAR_ZERO = 1e-8


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Equal to dot(v, v) and never negative.

    Args:
        v: The input vector.

    Returns:
        The squared Euclidean length of the vector.
    """
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        v / length(v). A (near) zero-length vector is returned unchanged
        rather than producing Inf or NaN components.
    """
    result = v
    len_v = length(v)
    if len_v > NEAR_ZERO:
        result = v / len_v
    return result


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = NEAR_ZERO
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Mirror a direction about a unit normal: v - 2 * dot(v, n) * n."""
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The result is the sum of a component parallel to the surface,
    eta * (uv + cos_theta * n), and a component along the normal,
    -sqrt(1 - |parallel|^2) * n. Callers must rule out total internal
    reflection first.

    Args:
        uv: The incident direction (unit length).
        n: The surface normal (unit length, facing the incident ray).
        etai_over_etat: Ratio of the incident to transmitted refractive index.

    Returns:
        The refracted direction.
    """
    cos_theta = tm.min(tm.dot(-uv, n), 1.0)
    r_out_parallel = etai_over_etat * (uv + cos_theta * n)
    # abs() keeps rounding error near grazing angles from producing NaN
    r_out_perp = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_parallel))) * n
    return r_out_parallel + r_out_perp


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3(stream: ti.i32) -> vec3:
    """Generate a vector with each component uniform in [0, 1)."""
    return vec3(random_float(stream), random_float(stream), random_float(stream))


@ti.func
def random_vec3_range(lo: ti.f32, hi: ti.f32, stream: ti.i32) -> vec3:
    """Generate a point uniformly distributed in the cube [lo, hi)^3."""
    return vec3(
        random_range(lo, hi, stream),
        random_range(lo, hi, stream),
        random_range(lo, hi, stream),
    )


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling: draw uniformly in [-1, 1)^3 and accept the
    first point with squared length below one.

    Args:
        stream: The random stream to draw from.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Rejection sampling loop
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            candidate = random_vec3_range(-1.0, 1.0, stream)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    Draws an azimuth a in [0, 2*pi) and a height z in [-1, 1), then maps
    them onto the sphere with radius r = sqrt(1 - z^2) at that height.

    Args:
        stream: The random stream to draw from.

    Returns:
        A random unit vector.
    """
    a = random_range(0.0, 2.0 * tm.pi, stream)
    z = random_range(-1.0, 1.0, stream)
    r = ti.sqrt(ti.max(1.0 - z * z, 0.0))
    return vec3(r * ti.cos(a), r * ti.sin(a), z)


@ti.func
def random_in_hemisphere(normal: vec3, stream: ti.i32) -> vec3:
    """Generate a random point in the unit ball on the same side as a normal.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        stream: The random stream to draw from.

    Returns:
        A random point inside the unit sphere with dot(p, normal) >= 0.
    """
    in_unit_sphere = random_in_unit_sphere(stream)
    result = in_unit_sphere
    if tm.dot(in_unit_sphere, normal) <= 0.0:
        result = -in_unit_sphere
    return result


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used to sample the lens aperture for depth of field.

    Args:
        stream: The random stream to draw from.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):
        if not found:
            candidate = vec3(
                random_range(-1.0, 1.0, stream),
                random_range(-1.0, 1.0, stream),
                0.0,
            )
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p
