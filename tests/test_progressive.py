"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization and setup
- Progressive sample accumulation
- Batch rendering
- Progress callbacks and generators
- Reset and resize
- Image output

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest


def _setup_camera(aspect_ratio=1.0):
    from src.tracer.camera.thin_lens import ThinLensCamera, setup_camera

    setup_camera(
        ThinLensCamera(
            lookfrom=(0.0, 0.0, 1.0),
            lookat=(0.0, 0.0, -1.0),
            vup=(0.0, 1.0, 0.0),
            vfov=60.0,
            aspect_ratio=aspect_ratio,
        )
    )


class TestProgressiveRendererInit:
    def test_init_creates_render_target(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(128, 96)

        assert renderer.width == 128
        assert renderer.height == 96
        assert renderer.max_depth == 50
        assert renderer.sample_count == 0

    def test_init_rejects_oversized_dimensions(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 100)

    def test_init_rejects_negative_depth(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="max_depth"):
            ProgressiveRenderer(16, 16, max_depth=-1)

    def test_repr(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 8, max_depth=5)
        assert repr(renderer) == "ProgressiveRenderer(width=16, height=8, max_depth=5, samples=0)"


class TestProgressiveRendering:
    def test_render_accumulates(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        _setup_camera()
        renderer = ProgressiveRenderer(16, 16)
        renderer.render(3)
        renderer.render(2)
        assert renderer.sample_count == 5

    def test_callback_reports_batches(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        _setup_camera()
        renderer = ProgressiveRenderer(16, 16)
        calls = []
        renderer.render(10, batch_size=4, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(4, 10), (8, 10), (10, 10)]

    def test_generator_yields_progress(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        _setup_camera()
        renderer = ProgressiveRenderer(16, 16)
        renderer.render(2)
        progress = list(renderer.render_progressive(3, batch_size=2))
        assert progress == [(4, 5), (5, 5)]

    def test_zero_samples_is_noop(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        _setup_camera()
        renderer = ProgressiveRenderer(16, 16)
        assert list(renderer.render_progressive(0)) == []
        assert renderer.sample_count == 0

    def test_invalid_batch_size(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        with pytest.raises(ValueError, match="batch_size"):
            renderer.render(4, batch_size=0)

    def test_reset_and_resize(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        _setup_camera()
        renderer = ProgressiveRenderer(16, 16)
        renderer.render(2)
        renderer.reset()
        assert renderer.sample_count == 0

        renderer.render(1)
        renderer.resize(24, 12)
        assert (renderer.width, renderer.height) == (24, 12)
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy().shape == (12, 24, 3)


class TestProgressiveImageOutput:
    def test_uint8_image(self):
        from src.tracer.core.progressive import ProgressiveRenderer

        _setup_camera(aspect_ratio=2.0)
        renderer = ProgressiveRenderer(20, 10)
        renderer.render(2)
        image = renderer.get_image_uint8()

        assert image.shape == (10, 20, 3)
        assert image.dtype == np.uint8
        # Sky: blue channel is 1.0 linear, clamped to 0.999 before quantization
        assert np.all(image[:, :, 2] == 255)

    def test_save_image(self, tmp_path):
        from src.tracer.core.progressive import ProgressiveRenderer

        _setup_camera()
        renderer = ProgressiveRenderer(8, 8)
        renderer.render(1)

        path = tmp_path / "out.ppm"
        renderer.save_image(str(path))
        assert path.read_text().startswith("P3\n8 8\n255\n")
