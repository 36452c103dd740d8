"""Sphere primitive with analytic ray-sphere intersection.

Substituting the ray p(t) = origin + t * direction into the implicit sphere
|p - center|^2 = radius^2 gives the quadratic

    a*t^2 + 2*half_b*t + c = 0

with a = |direction|^2, half_b = dot(origin - center, direction) and
c = |origin - center|^2 - radius^2. The nearer root inside the query interval
is reported together with the surface normal, oriented so that it always
opposes the incoming ray.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.tracer.core.ray import Ray, ray_at
from src.tracer.core.vector import length_squared, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (nonzero float).
        material_id: Unified id of the sphere's material in the scene registry.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The ray parameter at the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: The unit surface normal at the intersection, always facing
            against the ray direction. Only valid if hit == 1.
        front_face: 1 if the ray struck the outside of the surface, 0 if it
            struck from within. Only valid if hit == 1.
        material_id: Material of the surface that was hit, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Intersect a ray with a sphere inside the open interval (t_min, t_max).

    A non-positive discriminant is treated as a miss, so a ray that only
    grazes the sphere tangentially does not hit it. Otherwise the roots are
    tried in increasing order and the first one strictly inside the interval
    is accepted.

    Args:
        ray: The ray to test. Its direction need not be normalized.
        sphere: The sphere to test against.
        t_min: Lower bound of the accepted ray parameters (exclusive).
        t_max: Upper bound of the accepted ray parameters (exclusive).

    Returns:
        A HitRecord for the nearest admissible intersection. Check the hit
        field to determine if one was found.
    """
    oc = ray.origin - sphere.center
    a = length_squared(ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = length_squared(oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Taichi requires outer-scope declaration
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0
    hit_material = -1

    if discriminant > 0.0:
        root = tm.sqrt(discriminant)

        t = (-half_b - root) / a
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = (-half_b + root) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_at(ray, t)
            hit_material = sphere.material_id

            outward_normal = (hit_point - sphere.center) / sphere.radius
            if tm.dot(ray.direction, outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                # Ray is inside the sphere, hitting back face
                is_front_face = 0
                hit_normal = -outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
        material_id=hit_material,
    )

