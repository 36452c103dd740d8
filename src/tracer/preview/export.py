"""Image export utilities for rendered images.

Supported formats:
    - PPM (plain-text P3, written directly)
    - PNG (8-bit via Pillow)

Example:
    >>> from src.tracer.preview.export import save_image
    >>> from src.tracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(384, 216)
    >>> renderer.render(100)
    >>> save_image(renderer.get_image_numpy(), "output.png")
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.tracer.preview.display import process_image_for_display

logger = logging.getLogger(__name__)

PPM_MAX_VALUE = 255


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 2.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit display values.

    Each channel becomes int(256 * clamp(x^(1/gamma), 0, 0.999)).

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value.

    Returns:
        Image array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image_for_display(image, gamma=gamma)
    return (256.0 * processed).astype(np.uint8)


def format_ppm(image_uint8: npt.NDArray[np.uint8]) -> str:
    """Format an 8-bit RGB image as plain-text PPM.

    Rows are written top to bottom, one pixel per line.
    """
    if image_uint8.ndim != 3 or image_uint8.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image_uint8.shape}")

    height, width, _ = image_uint8.shape
    lines = [f"P3\n{width} {height}\n{PPM_MAX_VALUE}"]
    for r, g, b in image_uint8.reshape(-1, 3):
        lines.append(f"{r} {g} {b}")
    return "\n".join(lines) + "\n"


def save_ppm(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = 2.0,
) -> None:
    """Save a linear image as a plain-text PPM file."""
    Path(filepath).write_text(format_ppm(image_to_uint8(image, gamma=gamma)))
    logger.info("Wrote PPM image to %s", filepath)


def save_png(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = 2.0,
) -> None:
    """Save a linear image as an 8-bit PNG file."""
    pil_image = PILImage.fromarray(image_to_uint8(image, gamma=gamma), mode="RGB")
    pil_image.save(filepath)
    logger.info("Wrote PNG image to %s", filepath)


def save_image(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = 2.0,
) -> None:
    """Save a linear image, choosing the format from the file extension.

    Raises:
        ValueError: If the extension is neither .ppm nor .png.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".ppm":
        save_ppm(image, filepath, gamma=gamma)
    elif suffix == ".png":
        save_png(image, filepath, gamma=gamma)
    else:
        raise ValueError(f"Unsupported image format {suffix!r}, expected .ppm or .png")


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
