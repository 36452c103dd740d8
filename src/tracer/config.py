"""Render configuration and Taichi initialization."""

import logging
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

_ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}


@dataclass
class RenderConfig:
    """Settings for one render.

    Attributes:
        image_width: Output width in pixels.
        aspect_ratio: Width divided by height.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Bounce budget per path.
        arch: Taichi backend name ("cpu", "gpu", "cuda", "vulkan" or "metal").
        random_seed: Seed for Taichi's per-thread random generators.
    """

    image_width: int = 256
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = 50
    arch: str = "cpu"
    random_seed: int = 0

    def __post_init__(self) -> None:
        if self.image_width <= 0:
            raise ValueError(f"image_width = {self.image_width} must be positive")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be positive")
        if self.max_depth < 0:
            raise ValueError(f"max_depth = {self.max_depth} must not be negative")
        if self.arch not in _ARCHES:
            raise ValueError(f"Unknown arch {self.arch!r}, expected one of {sorted(_ARCHES)}")
        if self.image_height <= 0:
            raise ValueError(
                f"image_width = {self.image_width} is too small for aspect_ratio = {self.aspect_ratio}"
            )

    @property
    def image_height(self) -> int:
        return int(self.image_width / self.aspect_ratio)


def init_taichi(config: RenderConfig) -> None:
    """Initialize Taichi for the configured backend and seed.

    Must run before any kernel is launched.
    """
    ti.init(arch=_ARCHES[config.arch], random_seed=config.random_seed)
    logger.info("Taichi initialized on %s with seed %d", config.arch, config.random_seed)
