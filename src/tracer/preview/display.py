"""Display-space conversion of rendered images.

The integrator produces linear, averaged colors. Before quantization each
channel is gamma encoded with x^(1/gamma) and clamped to [0, 0.999] so that
int(256 * x) never reaches 256.
"""

import numpy as np
import numpy.typing as npt

# Upper clamp applied before quantization
MAX_DISPLAY_VALUE = 0.999


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.0,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value. The default of 2 takes the square root.

    Returns:
        Gamma corrected image.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma = {gamma} must be positive")

    # Clamp negatives first to avoid NaN from fractional powers
    image = np.maximum(image, 0.0)
    if gamma == 1.0:
        return image.astype(np.float32)
    if gamma == 2.0:
        return np.sqrt(image).astype(np.float32)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    gamma: float = 2.0,
) -> npt.NDArray[np.float32]:
    """Gamma encode and clamp an image to [0, MAX_DISPLAY_VALUE]."""
    result = apply_gamma(image, gamma)
    return np.clip(result, 0.0, MAX_DISPLAY_VALUE).astype(np.float32)
