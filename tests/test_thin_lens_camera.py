"""Unit tests for the thin-lens camera.

Tests cover:
- Configuration validation
- Orthonormal basis construction
- Deterministic pinhole rays at zero aperture
- Lens sampling and focal plane convergence
"""

import math

import numpy as np
import pytest
import taichi as ti


def _camera(**overrides):
    from src.tracer.camera.thin_lens import ThinLensCamera

    params = dict(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=2.0,
        aperture=0.0,
        focus_dist=1.0,
    )
    params.update(overrides)
    return ThinLensCamera(**params)


def _sample_rays(s, t, n):
    from src.tracer.camera.thin_lens import get_ray

    origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
    directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

    @ti.kernel
    def test_kernel(s_: ti.f32, t_: ti.f32):
        for i in range(origins.shape[0]):
            ray = get_ray(s_, t_)
            origins[i] = ray.origin
            directions[i] = ray.direction

    test_kernel(s, t)
    return origins.to_numpy(), directions.to_numpy()


class TestCameraValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aspect_ratio": 0.0},
            {"aperture": -0.1},
            {"focus_dist": 0.0},
        ],
    )
    def test_invalid_parameters(self, overrides):
        with pytest.raises(ValueError):
            _camera(**overrides)

    def test_lens_radius(self):
        assert _camera(aperture=0.5).lens_radius == 0.25


class TestCameraSetup:
    def test_basis_is_orthonormal(self):
        from src.tracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_camera(lookfrom=(13.0, 2.0, 3.0), lookat=(0.0, 0.0, 0.0), vfov=20.0))
        info = get_camera_info()
        u, v, w = (np.array(info[k]) for k in ("u", "v", "w"))

        for vec in (u, v, w):
            assert abs(np.linalg.norm(vec) - 1.0) < 1e-5
        assert abs(np.dot(u, v)) < 1e-5
        assert abs(np.dot(v, w)) < 1e-5
        assert abs(np.dot(u, w)) < 1e-5
        # w points from lookat toward lookfrom
        expected_w = np.array([13.0, 2.0, 3.0]) / np.linalg.norm([13.0, 2.0, 3.0])
        np.testing.assert_allclose(w, expected_w, atol=1e-5)

    def test_viewport_size(self):
        from src.tracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_camera(focus_dist=2.0))
        info = get_camera_info()
        # vfov 90 gives a viewport of height 2 at unit distance, scaled by focus_dist
        np.testing.assert_allclose(info["vertical"], [0.0, 4.0, 0.0], atol=1e-5)
        np.testing.assert_allclose(info["horizontal"], [8.0, 0.0, 0.0], atol=1e-5)
        np.testing.assert_allclose(info["lower_left"], [-4.0, -2.0, -2.0], atol=1e-5)
        assert info["lens_radius"] == 0.0


class TestRayGeneration:
    def test_pinhole_is_deterministic(self):
        from src.tracer.camera.thin_lens import setup_camera

        setup_camera(_camera())
        origins, directions = _sample_rays(0.25, 0.75, 64)
        np.testing.assert_allclose(origins, 0.0, atol=1e-6)
        np.testing.assert_allclose(directions, np.tile(directions[0], (64, 1)), atol=1e-6)

    def test_center_ray_points_at_lookat(self):
        from src.tracer.camera.thin_lens import setup_camera

        setup_camera(_camera())
        _, directions = _sample_rays(0.5, 0.5, 1)
        np.testing.assert_allclose(directions[0], [0.0, 0.0, -1.0], atol=1e-5)

    def test_corners(self):
        from src.tracer.camera.thin_lens import setup_camera

        setup_camera(_camera())
        _, lower_left = _sample_rays(0.0, 0.0, 1)
        _, upper_right = _sample_rays(1.0, 1.0, 1)
        np.testing.assert_allclose(lower_left[0], [-2.0, -1.0, -1.0], atol=1e-5)
        np.testing.assert_allclose(upper_right[0], [2.0, 1.0, -1.0], atol=1e-5)

    def test_lens_origins_lie_on_disk(self):
        from src.tracer.camera.thin_lens import setup_camera

        setup_camera(_camera(aperture=0.4, focus_dist=5.0))
        origins, _ = _sample_rays(0.5, 0.5, 1000)

        # Camera looks along -z, so the lens disk lies in the xy-plane
        np.testing.assert_allclose(origins[:, 2], 0.0, atol=1e-6)
        radii = np.linalg.norm(origins[:, :2], axis=1)
        assert np.all(radii < 0.2 + 1e-6)
        assert radii.max() > 0.1

    def test_rays_converge_on_focal_plane(self):
        from src.tracer.camera.thin_lens import setup_camera

        focus_dist = 5.0
        setup_camera(_camera(aperture=0.4, focus_dist=focus_dist))
        origins, directions = _sample_rays(0.3, 0.6, 200)

        # Point where each ray crosses z = -focus_dist
        t = (-focus_dist - origins[:, 2]) / directions[:, 2]
        points = origins + t[:, None] * directions
        np.testing.assert_allclose(points, np.tile(points[0], (200, 1)), atol=1e-4)

    def test_jittered_ray_stays_inside_pixel(self):
        from src.tracer.camera.thin_lens import get_ray_jittered, setup_camera

        setup_camera(_camera(aspect_ratio=1.0))
        directions = ti.Vector.field(3, dtype=ti.f32, shape=500)

        @ti.kernel
        def test_kernel():
            for k in range(directions.shape[0]):
                directions[k] = get_ray_jittered(2, 3, 11, 11).direction

        test_kernel()
        dirs = directions.to_numpy()
        # Viewport is 2 x 2 at z = -1 with lower-left corner (-1, -1)
        s = (dirs[:, 0] + 1.0) / 2.0
        t = (dirs[:, 1] + 1.0) / 2.0
        assert np.all((s >= 2 / 10 - 1e-5) & (s <= 3 / 10 + 1e-5))
        assert np.all((t >= 3 / 10 - 1e-5) & (t <= 4 / 10 + 1e-5))
        assert not math.isclose(float(s.std()), 0.0)
