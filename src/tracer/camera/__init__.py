"""Camera module for primary ray generation.

Components:
    thin_lens: Thin-lens perspective camera with depth of field

Camera responsibilities:
    - Build a look-at basis from lookfrom, lookat and the up vector
    - Map normalized image coordinates (s, t) in [0, 1] to world-space rays
    - Sample the lens disk so that out-of-focus geometry blurs
    - Jitter samples inside each pixel for anti-aliasing
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_info",
]
