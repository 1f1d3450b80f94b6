"""Unit tests for the SceneManager.

Tests cover:
- Material registration (Lambertian, Metal, Dielectric)
- Material type tracking and kernel-side lookup
- Sphere addition with materials and shared materials
- Convenience methods (add_*_sphere)
- Scene serialization (to_config, from_config)
- Scene clearing
"""

import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestMaterialRegistration:
    """Tests for material registration."""

    def test_ids_are_sequential_across_types(self, fresh_scene):
        """Test unified ids count up regardless of material type."""
        id0 = fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
        id1 = fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.0)
        id2 = fresh_scene.add_dielectric_material(ior=1.5)
        id3 = fresh_scene.add_lambertian_material(albedo=(0.1, 0.8, 0.1))

        assert (id0, id1, id2, id3) == (0, 1, 2, 3)
        assert fresh_scene.get_material_count() == 4

    def test_albedo_validation(self, fresh_scene):
        with pytest.raises(ValueError, match="outside"):
            fresh_scene.add_lambertian_material(albedo=(1.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="outside"):
            fresh_scene.add_metal_material(albedo=(-0.1, 0.5, 0.5))
        assert fresh_scene.get_material_count() == 0

    def test_ior_validation(self, fresh_scene):
        with pytest.raises(ValueError, match="IOR"):
            fresh_scene.add_dielectric_material(ior=0.0)

    def test_arena_capacity(self, fresh_scene, monkeypatch):
        import pathtracer.scene.manager as manager

        monkeypatch.setattr(manager, "MAX_MATERIALS", 2)
        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_dielectric_material(ior=1.5)
        with pytest.raises(RuntimeError, match="Maximum number of materials"):
            fresh_scene.add_metal_material(albedo=(0.5, 0.5, 0.5))
        assert fresh_scene.get_material_count() == 2

    def test_fuzz_clamped(self, fresh_scene):
        """Test fuzz outside [0, 1] is stored clamped."""
        high = fresh_scene.add_metal_material(albedo=(0.5, 0.5, 0.5), fuzz=3.0)
        low = fresh_scene.add_metal_material(albedo=(0.5, 0.5, 0.5), fuzz=-1.0)
        assert fresh_scene.get_material_info(high).params["fuzz"] == 1.0
        assert fresh_scene.get_material_info(low).params["fuzz"] == 0.0


class TestMaterialTypeTracking:
    """Tests for material type lookup."""

    def test_get_material_type_python(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_dielectric_material(ior=1.33)

        assert fresh_scene.get_material_type_python(0) == MaterialType.LAMBERTIAN
        assert fresh_scene.get_material_type_python(1) == MaterialType.DIELECTRIC
        assert fresh_scene.get_material_type_python(5) is None

    def test_get_material_info(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)

        info = fresh_scene.get_material_info(0)
        assert info is not None
        assert info.material_type == MaterialType.METAL
        assert info.type_index == 0
        assert info.params["albedo"] == (0.8, 0.6, 0.2)
        assert info.params["fuzz"] == 0.3
        assert fresh_scene.get_material_info(-1) is None

    def test_kernel_side_lookup(self, fresh_scene):
        """Test type and type-local index lookup inside a kernel."""
        from pathtracer.scene.manager import (
            MaterialType,
            get_material_type,
            get_material_type_index,
        )

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))  # lambertian[0]
        fresh_scene.add_metal_material(albedo=(0.8, 0.8, 0.8))  # metal[0]
        fresh_scene.add_lambertian_material(albedo=(0.2, 0.2, 0.8))  # lambertian[1]
        fresh_scene.add_dielectric_material(ior=1.5)  # dielectric[0]

        types = ti.field(dtype=ti.i32, shape=5)
        indices = ti.field(dtype=ti.i32, shape=5)

        @ti.kernel
        def test_kernel():
            for k in ti.static(range(4)):
                types[k] = get_material_type(k)
                indices[k] = get_material_type_index(k)
            types[4] = get_material_type(99)
            indices[4] = get_material_type_index(99)

        test_kernel()

        assert types.to_numpy().tolist() == [
            int(MaterialType.LAMBERTIAN),
            int(MaterialType.METAL),
            int(MaterialType.LAMBERTIAN),
            int(MaterialType.DIELECTRIC),
            -1,
        ]
        assert indices.to_numpy().tolist() == [0, 0, 1, 0, -1]


class TestSphereAddition:
    """Tests for adding spheres with materials."""

    def test_add_sphere_with_material(self, fresh_scene):
        mat_id = fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
        sphere_idx = fresh_scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=mat_id)

        assert sphere_idx == 0
        assert fresh_scene.get_sphere_count() == 1
        assert fresh_scene.spheres[0].material_id == mat_id

    def test_shared_material(self, fresh_scene):
        """Test many spheres may reference one material."""
        glass = fresh_scene.add_dielectric_material(ior=1.5)
        fresh_scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
        fresh_scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)

        assert fresh_scene.get_material_count() == 1
        assert fresh_scene.get_sphere_count() == 2

    def test_add_sphere_invalid_material(self, fresh_scene):
        with pytest.raises(ValueError, match="material_id"):
            fresh_scene.add_sphere(center=(0.0, 0.0, 0.0), radius=1.0, material_id=999)

    def test_convenience_methods(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        s0, m0 = fresh_scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, albedo=(0.8, 0.8, 0.0))
        s1, m1 = fresh_scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        s2, m2 = fresh_scene.add_dielectric_sphere((-1.0, 0.0, -1.0), 0.5, ior=1.5)

        assert (s0, s1, s2) == (0, 1, 2)
        assert fresh_scene.get_material_type_python(m0) == MaterialType.LAMBERTIAN
        assert fresh_scene.get_material_type_python(m1) == MaterialType.METAL
        assert fresh_scene.get_material_type_python(m2) == MaterialType.DIELECTRIC

    def test_clear(self, fresh_scene):
        fresh_scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, albedo=(0.5, 0.5, 0.5))
        fresh_scene.clear()

        assert fresh_scene.get_sphere_count() == 0
        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.materials == []
        assert fresh_scene.spheres == []

    def test_new_manager_replaces_scene(self, fresh_scene):
        from pathtracer.scene.manager import SceneManager

        fresh_scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, albedo=(0.5, 0.5, 0.5))
        other = SceneManager()
        assert other.get_sphere_count() == 0
        assert other.get_material_count() == 0


class TestSceneSerialization:
    """Tests for to_config / from_config."""

    def test_to_config(self, fresh_scene):
        mat = fresh_scene.add_metal_material(albedo=(0.7, 0.6, 0.5), fuzz=0.0)
        fresh_scene.add_sphere((4.0, 1.0, 0.0), 1.0, mat)

        config = fresh_scene.to_config()
        assert config.materials == [{"type": "metal", "albedo": [0.7, 0.6, 0.5], "fuzz": 0.0}]
        assert config.spheres == [{"center": [4.0, 1.0, 0.0], "radius": 1.0, "material_id": 0}]

    def test_round_trip(self, fresh_scene):
        fresh_scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, ior=1.5)
        fresh_scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.2)
        config = fresh_scene.to_config()

        fresh_scene.clear()
        fresh_scene.from_config(config)

        assert fresh_scene.get_sphere_count() == 3
        assert fresh_scene.get_material_count() == 3
        assert fresh_scene.to_config() == config

    def test_from_config_invalid_material_type(self, fresh_scene):
        from pathtracer.scene.manager import SceneConfig

        config = SceneConfig(materials=[{"type": "phong"}])
        with pytest.raises(ValueError, match="Unknown material type"):
            fresh_scene.from_config(config)


class TestIntegrationWithIntersection:
    """Tests that SceneManager works with the intersection system."""

    def test_intersection_returns_material_id(self, fresh_scene):
        from pathtracer.scene.intersection import intersect_scene, vec3

        mat0 = fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
        mat1 = fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.0)
        fresh_scene.add_sphere(center=(0.0, 0.0, -3.0), radius=0.5, material_id=mat0)
        fresh_scene.add_sphere(center=(0.0, 0.0, -5.0), radius=0.5, material_id=mat1)

        material_id = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = intersect_scene(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.001, 1000.0)
            material_id[None] = rec.material_id

        test_kernel()
        assert material_id[None] == mat0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
