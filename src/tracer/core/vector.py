"""Vector math and random sampling utilities for Monte Carlo ray tracing.

Points, directions and colors are all represented as ``taichi.math.vec3``.
Operations return new vectors; nothing here normalizes its inputs implicitly,
callers call ``normalize`` when they need a unit vector.

The sampling helpers draw from Taichi's per-thread random generator, which is
seeded through ``ti.init(random_seed=...)``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, random_seed=7)
    >>> from src.tracer.core.vector import random_in_unit_disk, vec3
    >>> # Use within a Taichi kernel:
    >>> # offset = 0.05 * random_in_unit_disk()
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Attempts made by the rejection samplers before giving up
MAX_REJECTION_ATTEMPTS = 100


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Args:
        v: The input vector.

    Returns:
        The squared Euclidean length of the vector.
    """
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the length (magnitude) of a vector."""
    return tm.sqrt(length_squared(v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale a vector to unit length.

    A zero vector has no direction; passing one is a caller bug and yields
    non-finite components.
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Mirror a direction about a normal: v - 2 (v . n) n.

    Args:
        v: The incoming direction.
        n: The surface normal (unit length).

    Returns:
        The reflected direction. Its length equals the length of v.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Bend a unit direction through an interface using Snell's law.

    The refracted direction is split into the part perpendicular to the
    normal, eta * (uv + cos_theta * n), and the part parallel to it, whose
    length follows from the result being a unit vector.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal, opposing uv (unit length).
        etai_over_etat: Ratio of refractive indices, incident over transmitted.

    Returns:
        The refracted unit direction. The caller must rule out total internal
        reflection first.
    """
    cos_theta = tm.min(tm.dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -tm.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Approximate the Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between the incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        r0 + (1 - r0) (1 - cosine)^5 with r0 = ((1 - ref_idx) / (1 + ref_idx))^2.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling
# =============================================================================


@ti.func
def random_float(lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Draw a uniform value in [lo, hi)."""
    return lo + (hi - lo) * ti.random(ti.f32)


@ti.func
def random_vec3(lo: ti.f32, hi: ti.f32) -> vec3:
    """Draw a vector whose components are independently uniform in [lo, hi)."""
    return vec3(random_float(lo, hi), random_float(lo, hi), random_float(lo, hi))


@ti.func
def sample_unit_ball():
    """Rejection-sample the unit ball, returning the point and the draws used."""
    p = vec3(0.0, 0.0, 0.0)
    attempts = 0
    while attempts < MAX_REJECTION_ATTEMPTS:
        p = random_vec3(-1.0, 1.0)
        attempts += 1
        if length_squared(p) < 1.0:
            break
    return p, attempts


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point strictly inside the unit sphere.

    Uses rejection sampling from the enclosing cube, so the points are
    uniformly distributed over the ball's volume.

    Returns:
        A random point with length < 1.
    """
    p, _ = sample_unit_ball()
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a unit vector uniformly distributed over the sphere.

    Picks the height z uniformly in [-1, 1) and an azimuth uniformly in
    [0, 2 pi); by Archimedes' hat-box theorem this is uniform on the sphere.
    """
    a = random_float(0.0, 2.0 * tm.pi)
    z = random_float(-1.0, 1.0)
    r = tm.sqrt(1.0 - z * z)
    return vec3(r * tm.cos(a), r * tm.sin(a), z)


@ti.func
def random_in_hemisphere(normal: vec3) -> vec3:
    """Generate a random point in the unit ball, flipped to the normal's side.

    Args:
        normal: Defines the hemisphere; the result has dot(result, normal) >= 0.
    """
    in_unit_sphere = random_in_unit_sphere()
    result = in_unit_sphere
    if tm.dot(in_unit_sphere, normal) <= 0.0:
        result = -in_unit_sphere
    return result


@ti.func
def sample_unit_disk():
    p = vec3(0.0, 0.0, 0.0)
    attempts = 0
    while attempts < MAX_REJECTION_ATTEMPTS:
        p = vec3(random_float(-1.0, 1.0), random_float(-1.0, 1.0), 0.0)
        attempts += 1
        if p.x * p.x + p.y * p.y < 1.0:
            break
    return p, attempts


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used to sample the camera lens for depth of field.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p, _ = sample_unit_disk()
    return p
