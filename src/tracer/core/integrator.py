"""Radiance integrator and render loop.

This module estimates the color seen along a camera ray by following it
through the scene. At every surface hit the material either absorbs the path
or scatters it into a new direction with an attenuation; rays that escape the
scene pick up the sky gradient. The color of a path is the product of all
attenuations along it times the sky color where it escapes:

    ray_color(ray, depth) = 0                                    if depth <= 0
                          = 0                                    if absorbed
                          = attenuation * ray_color(scattered, depth - 1)
                          = sky(ray.direction)                   if nothing hit

Taichi functions cannot recurse, so ray_color unrolls this definition into a
loop of at most max_depth bounces that carries the attenuation product.
Paths still bouncing when the budget runs out contribute black, which biases
deep multi-bounce paths slightly dark.

Key features:
    - Closed material dispatch (Lambertian, Metal, Dielectric, Empty)
    - Sky gradient background for escaped rays
    - Progressive sample accumulation with a running average per pixel

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.core.integrator import render_image, setup_render_target
    >>> from src.tracer.scene.random_scene import create_random_scene
    >>> from src.tracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
    >>> setup_render_target(384, 216)
    >>> render_image(num_samples=10)
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.tracer.camera.thin_lens import get_ray_jittered
from src.tracer.core.ray import Ray
from src.tracer.core.vector import normalize, vec3
from src.tracer.materials.dielectric import scatter_dielectric_by_id
from src.tracer.materials.lambertian import scatter_lambertian_by_id
from src.tracer.materials.metal import scatter_metal_by_id
from src.tracer.scene.intersection import intersect_scene
from src.tracer.scene.manager import MaterialType, get_material_type, get_material_type_index

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce budget per path
MAX_DEPTH = 50

# Intersection interval for every traced ray. The lower bound keeps scattered
# rays from re-hitting the surface they leave because of rounding.
T_MIN = 0.001
T_MAX = float("inf")

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running average of the samples per pixel (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug("Render target set up at %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scattering function of the hit material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, facing the ray.
        front_face: 1 if hit front face, 0 if back face.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Empty and
        unknown materials absorb the path.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(type_index, normal)

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color seen along an escaping ray.

    Blends linearly from white at y = -1 to light blue at y = 1 of the
    normalized direction.
    """
    t = 0.5 * (normalize(direction).y + 1.0)
    return (1.0 - t) * vec3(1.0, 1.0, 1.0) + t * vec3(0.5, 0.7, 1.0)


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Estimate the color carried back along a ray.

    Args:
        ray: The ray to follow.
        max_depth: Bounce budget. 0 or less returns black immediately.

    Returns:
        The color (RGB) of one sampled light path.
    """
    origin = ray.origin
    direction = ray.direction

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(Ray(origin=origin, direction=direction), T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, direction, rec.normal, rec.front_face
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered_direction

    return color


@ti.func
def render_sample_impl(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32) -> vec3:
    """Trace one jittered camera sample through a pixel."""
    return ray_color(get_ray_jittered(pixel_i, pixel_j, width, height), max_depth)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32):
    """Render one sample per pixel and fold it into the running average."""
    for i, j in ti.ndrange(width, height):
        color = render_sample_impl(i, j, width, height, max_depth)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32
) -> vec3:
    """Render a single sample for a specific pixel without accumulating it."""
    return render_sample_impl(pixel_i, pixel_j, width, height, max_depth)


@ti.kernel
def _trace_ray(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Evaluate ray_color for one explicit ray."""
    return ray_color(Ray(origin=origin, direction=direction), max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Estimate the color along a single ray against the current scene.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z), any nonzero length.
        max_depth: Bounce budget for the path.

    Returns:
        Tuple of (R, G, B) for one sampled path.
    """
    color = _trace_ray(vec3(*origin), vec3(*direction), max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(
    pixel_i: int, pixel_j: int, max_depth: int = MAX_DEPTH
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Bounce budget for the path.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH) -> None:
    """Accumulate the given number of samples into every pixel.

    Can be called repeatedly to keep refining the same image.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Bounce budget for each path.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth)
    logger.debug("Rendered %d sample(s) per pixel at max depth %d", num_samples, max_depth)


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the averaged linear image as a NumPy array.

    Values are not clamped; the output stage clamps after gamma correction.
    Row 0 is the top of the image.

    Returns:
        NumPy array of shape (height, width, 3) with dtype float32.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    image = _color_buffer.to_numpy()[:width, :height, :]

    # (width, height, 3) -> (height, width, 3), then put the top row first
    image = np.transpose(image, (1, 0, 2))
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
