"""Random sphere field demo scene.

A large grey ground sphere carries a 22 x 22 grid of small spheres with
randomly chosen materials, plus three large spheres (glass, diffuse brown and
polished metal) in the middle. The camera looks at the origin from (13, 2, 3)
with a narrow field of view and a slight depth of field.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.scene.random_scene import create_random_scene
    >>> from src.tracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=7)
    >>> setup_camera(camera)
"""

import logging

import numpy as np

from src.tracer.camera.thin_lens import ThinLensCamera
from src.tracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0
GROUND_ALBEDO = (0.5, 0.5, 0.5)

# Small spheres are placed on cells a, b in [-GRID_EXTENT, GRID_EXTENT)
GRID_EXTENT = 11
SMALL_RADIUS = 0.2
JITTER = 0.9

# Small spheres closer than this to KEEP_OUT_CENTER are skipped
KEEP_OUT_CENTER = np.array([4.0, 0.2, 0.0])
KEEP_OUT_DISTANCE = 0.9

# Material choice thresholds on a uniform draw
DIFFUSE_PROBABILITY = 0.8
METAL_THRESHOLD = 0.95

GLASS_IOR = 1.5
BIG_RADIUS = 1.0


def create_random_scene(
    seed: int | None = None,
    aspect_ratio: float = 16.0 / 9.0,
    rng: np.random.Generator | None = None,
) -> tuple[SceneManager, ThinLensCamera]:
    """Build the random sphere field and its camera.

    Args:
        seed: Seed for a new numpy Generator. Ignored when rng is given.
        aspect_ratio: Aspect ratio of the camera image.
        rng: Generator to draw the scene layout from.

    Returns:
        Tuple of (scene, camera). The scene has been written to the global
        scene fields; call setup_camera(camera) before rendering.
    """
    if rng is None:
        rng = np.random.default_rng(seed)

    scene = SceneManager()
    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, GROUND_ALBEDO)

    glass = scene.add_dielectric_material(GLASS_IOR)

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array(
                [a + JITTER * rng.random(), SMALL_RADIUS, b + JITTER * rng.random()]
            )

            if np.linalg.norm(center - KEEP_OUT_CENTER) <= KEEP_OUT_DISTANCE:
                continue

            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = tuple(rng.random(3) * rng.random(3))
                scene.add_lambertian_sphere(tuple(center), SMALL_RADIUS, albedo)
            elif choose_mat > METAL_THRESHOLD:
                albedo = tuple(rng.uniform(0.5, 1.0, 3))
                roughness = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(tuple(center), SMALL_RADIUS, albedo, roughness)
            else:
                scene.add_sphere(tuple(center), SMALL_RADIUS, glass)

    scene.add_sphere((0.0, 1.0, 0.0), BIG_RADIUS, glass)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), BIG_RADIUS, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), BIG_RADIUS, (0.7, 0.6, 0.5), 0.0)

    logger.info(
        "Random scene built with %d spheres and %d materials",
        scene.get_sphere_count(),
        scene.get_material_count(),
    )

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera
