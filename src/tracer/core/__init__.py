"""Core rendering module.

Components:
    vector: vec3 helpers, reflection/refraction and random direction sampling
    ray: Ray data structure
    integrator: Path integrator, render target and rendering kernels
    progressive: Progressive sample accumulation wrapper

All compute-intensive operations use Taichi kernels.
"""

from .ray import Ray, make_ray, ray_at
from .vector import (
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    normalize,
    random_float,
    random_in_hemisphere,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    reflect,
    refract,
    schlick,
    vec3,
)

# integrator and progressive are not imported here to avoid circular imports.
# Import them from src.tracer.core.integrator or src.tracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick",
    "near_zero",
    "random_float",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_hemisphere",
    "random_in_unit_disk",
]
