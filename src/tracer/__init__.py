"""Taichi-based stochastic ray tracer for sphere scenes.

This package renders scenes of spheres with diffuse, metallic and glass
materials through a thin-lens camera, estimating pixel radiance by Monte Carlo
sampling of bounced light paths.

Subpackages:
    core: Vector math, rays, the radiance integrator and the render loop
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Primitive storage, closest-hit queries and scene construction
    camera: Thin-lens camera with depth of field
    preview: Gamma correction, quantization and image export
"""

__version__ = "0.1.0"
