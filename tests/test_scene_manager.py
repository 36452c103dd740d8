"""Unit tests for the unified scene manager.

Tests cover:
- Material registration across the three registries
- Kernel-side material type lookup
- Sphere validation
- Dict/config serialization round trip
"""

import pytest
import taichi as ti


class TestMaterialRegistration:
    def test_unified_ids_are_sequential(self):
        from src.tracer.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        lam = scene.add_lambertian_material((0.5, 0.5, 0.5))
        met = scene.add_metal_material((0.8, 0.8, 0.8), 0.2)
        die = scene.add_dielectric_material(1.5)
        empty = scene.add_empty_material()

        assert (lam, met, die, empty) == (0, 1, 2, 3)
        assert scene.get_material_count() == 4
        assert scene.get_material_type_python(met) == MaterialType.METAL
        assert scene.get_material_type_python(empty) == MaterialType.EMPTY
        assert scene.get_material_type_python(99) is None

    def test_type_indices_are_per_registry(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_material((0.1, 0.2, 0.3))
        scene.add_metal_material((0.5, 0.5, 0.5))
        second_lam = scene.add_lambertian_material((0.4, 0.5, 0.6))

        info = scene.get_material_info(second_lam)
        assert info is not None
        assert info.type_index == 1
        assert info.params == {"albedo": (0.4, 0.5, 0.6)}

    def test_kernel_lookup(self):
        from src.tracer.scene.manager import (
            MaterialType,
            SceneManager,
            get_material_type,
            get_material_type_index,
        )

        scene = SceneManager()
        scene.add_lambertian_material((0.5, 0.5, 0.5))
        die = scene.add_dielectric_material(1.3)

        types = ti.field(dtype=ti.i32, shape=3)
        indices = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel(mid: ti.i32):
            types[0] = get_material_type(mid)
            indices[0] = get_material_type_index(mid)
            types[1] = get_material_type(-1)
            indices[1] = get_material_type_index(-1)
            types[2] = get_material_type(50)
            indices[2] = get_material_type_index(50)

        test_kernel(die)
        assert types[0] == int(MaterialType.DIELECTRIC)
        assert indices[0] == 0
        assert types[1] == -1 and indices[1] == -1
        assert types[2] == -1 and indices[2] == -1

    def test_metal_roughness_clamped_with_warning(self, caplog):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        with caplog.at_level("WARNING"):
            mid = scene.add_metal_material((0.8, 0.8, 0.8), roughness=1.7)

        assert scene.get_material_info(mid).params["roughness"] == 1.0
        warnings = [r for r in caplog.records if r.levelname == "WARNING"]
        assert len(warnings) == 1

    def test_invalid_albedo_rejected(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.add_lambertian_material((1.5, 0.0, 0.0))
        with pytest.raises(ValueError):
            scene.add_metal_material((-0.1, 0.0, 0.0))

    def test_invalid_ior_rejected(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.add_dielectric_material(0.0)


class TestSphereManagement:
    def test_add_sphere_with_shared_material(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        glass = scene.add_dielectric_material(1.5)
        scene.add_sphere((0, 0, -1), 0.5, glass)
        scene.add_sphere((1, 0, -1), 0.5, glass)

        assert scene.get_sphere_count() == 2
        assert scene.get_material_count() == 1
        assert all(s.material_id == glass for s in scene.spheres)

    def test_convenience_spheres(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        s0, m0 = scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
        s1, m1 = scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), 0.3)
        s2, m2 = scene.add_dielectric_sphere((-1, 0, -1), 0.5, 1.5)

        assert (s0, s1, s2) == (0, 1, 2)
        assert (m0, m1, m2) == (0, 1, 2)

    def test_zero_radius_rejected(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        mid = scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="radius"):
            scene.add_sphere((0, 0, 0), 0.0, mid)

    def test_negative_radius_allowed(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        glass = scene.add_dielectric_material(1.5)
        scene.add_sphere((0, 0, -1), -0.45, glass)
        assert scene.get_sphere_count() == 1

    def test_unknown_material_rejected(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="material_id"):
            scene.add_sphere((0, 0, 0), 1.0, 0)

    def test_clear(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
        scene.clear()
        assert scene.get_sphere_count() == 0
        assert scene.get_material_count() == 0
        assert scene.spheres == []


class TestSerialization:
    def test_dict_round_trip(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0, -100.5, -1), 100.0, (0.8, 0.8, 0.0))
        scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), 0.3)
        scene.add_dielectric_sphere((-1, 0, -1), 0.5, 1.5)
        scene.add_sphere((0, 0, -3), 0.5, scene.add_empty_material())
        data = scene.to_dict()

        restored = SceneManager()
        restored.from_dict(data)

        assert restored.to_dict() == data
        assert restored.get_sphere_count() == 4
        assert data["materials"][1] == {"type": "metal", "albedo": [0.8, 0.6, 0.2], "roughness": 0.3}
        assert data["materials"][3] == {"type": "empty"}

    def test_unknown_type_rejected(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="Unknown material type"):
            scene.from_dict({"materials": [{"type": "plasma"}], "spheres": []})

    def test_capacity(self):
        from src.tracer.scene.intersection import MAX_SPHERES
        from src.tracer.scene.manager import MAX_MATERIALS, SceneManager

        assert SceneManager.get_max_spheres() == MAX_SPHERES
        assert SceneManager.get_max_materials() == MAX_MATERIALS

    def test_sphere_refers_to_material_by_list_position(self):
        from src.tracer.scene.manager import SceneConfig, SceneManager

        config = SceneConfig.from_dict(
            {
                "materials": [{"type": "dielectric", "ior": 1.5}, {"type": "empty"}],
                "spheres": [
                    {"center": [0, 1, 0], "radius": 1.0, "material_id": 0},
                    {"center": [0, 1, 0], "radius": -0.9, "material_id": 0},
                    {"center": [4, 1, 0], "radius": 1.0, "material_id": 1},
                ],
            }
        )
        scene = SceneManager()
        scene.from_config(config)

        assert [s.material_id for s in scene.spheres] == [0, 0, 1]
        assert scene.materials[0].to_config() == {"type": "dielectric", "ior": 1.5}
        assert scene.spheres[1].to_config() == {"center": [0.0, 1.0, 0.0], "radius": -0.9, "material_id": 0}

    def test_sphere_with_missing_material_rejected_on_load(self):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="material_id"):
            scene.from_dict({"materials": [{"type": "empty"}], "spheres": [{"radius": 1.0, "material_id": 3}]})
