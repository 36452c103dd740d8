"""Output stage: gamma correction, quantization and image export.

Example:
    >>> from src.tracer.preview import save_image
    >>> save_image(renderer.get_image_numpy(), "output.ppm")
"""

from src.tracer.preview.display import (
    MAX_DISPLAY_VALUE,
    apply_gamma,
    process_image_for_display,
)
from src.tracer.preview.export import (
    compute_rmse,
    format_ppm,
    image_to_uint8,
    save_image,
    save_png,
    save_ppm,
)

__all__ = [
    "MAX_DISPLAY_VALUE",
    "apply_gamma",
    "process_image_for_display",
    "format_ppm",
    "image_to_uint8",
    "save_ppm",
    "save_png",
    "save_image",
    "compute_rmse",
]
