#!/usr/bin/env python3
"""Render the random sphere field scene.

Builds the scene of small random spheres around three large ones, renders it
progressively and writes a PPM or PNG image depending on the output extension.

Usage:
    python -m examples.render_random_scene [options]

Options:
    --width WIDTH        Image width in pixels (default: 384)
    --aspect-ratio R     Width divided by height (default: 1.7778)
    --samples SAMPLES    Number of samples per pixel (default: 100)
    --max-depth DEPTH    Bounce budget per path (default: 50)
    --seed SEED          Seed for scene layout and sampling (default: 0)
    --output OUTPUT      Output file path, .ppm or .png (default: random_scene.ppm)
    --arch ARCH          Taichi backend (default: cpu)
    --batch-size SIZE    Samples per progress update (default: 10)
    --quiet              Suppress progress output

Example:
    python -m examples.render_random_scene --width 256 --samples 20 --output out.png
"""

import argparse
import logging
import sys
import time
from pathlib import Path

logger = logging.getLogger("render_random_scene")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random sphere field scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=384,
        help="Image width in pixels (default: 384)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=16.0 / 9.0,
        help="Width divided by height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Bounce budget per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for scene layout and sampling (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="random_scene.ppm",
        help="Output file path, .ppm or .png (default: random_scene.ppm)",
    )
    parser.add_argument(
        "--arch",
        type=str,
        default="cpu",
        choices=["cpu", "gpu", "cuda", "vulkan", "metal"],
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_random_scene(config, output_path: str = "random_scene.ppm", batch_size: int = 10) -> Path:
    """Render the random scene with the given RenderConfig and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so that Taichi is initialized before any field is created
    from src.tracer.camera.thin_lens import get_camera_info, setup_camera
    from src.tracer.core.progressive import ProgressiveRenderer
    from src.tracer.scene.random_scene import create_random_scene

    width, height = config.image_width, config.image_height
    logger.info("Creating random scene (%dx%d)", width, height)

    # Camera aspect follows the truncated pixel grid
    _, camera = create_random_scene(seed=config.random_seed, aspect_ratio=width / height)
    setup_camera(camera)
    logger.debug("Camera: %s", get_camera_info())

    renderer = ProgressiveRenderer(width, height, max_depth=config.max_depth)
    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0.0
        logger.info("Progress: %d/%d samples (%.1f spp/s)", current, target, samples_per_sec)

    renderer.render(
        num_samples=config.samples_per_pixel,
        batch_size=batch_size,
        callback=progress_callback,
    )

    output_file = Path(output_path)
    renderer.save_image(str(output_file))

    logger.info("Saved to %s in %.2fs", output_file.absolute(), time.time() - start_time)
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from src.tracer.config import RenderConfig, init_taichi

    try:
        config = RenderConfig(
            image_width=args.width,
            aspect_ratio=args.aspect_ratio,
            samples_per_pixel=args.samples,
            max_depth=args.max_depth,
            arch=args.arch,
            random_seed=args.seed,
        )
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    init_taichi(config)

    try:
        render_random_scene(config, output_path=args.output, batch_size=args.batch_size)
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Render failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
