"""Unit tests for the SceneManager.

Tests cover:
- Material registration (Lambertian, Metal, Dielectric)
- Material type tracking and lookup
- Primitive addition with materials
- Scene clearing
- GPU-side material type dispatch
"""

import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from raybow.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestMaterialRegistration:
    """Tests for material registration."""

    def test_add_lambertian_material(self, fresh_scene):
        mat_id = fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
        assert mat_id == 0
        assert fresh_scene.get_material_count() == 1

    def test_add_metal_material(self, fresh_scene):
        mat_id = fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), roughness=0.3)
        assert mat_id == 0
        assert fresh_scene.get_material_count() == 1

    def test_add_dielectric_material(self, fresh_scene):
        mat_id = fresh_scene.add_dielectric_material(ior=1.5)
        assert mat_id == 0
        assert fresh_scene.get_material_count() == 1

    def test_ids_are_shared_across_kinds(self, fresh_scene):
        """Material ids count up across all kinds in registration order."""
        id0 = fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
        id1 = fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), roughness=0.0)
        id2 = fresh_scene.add_dielectric_material(ior=1.5)
        id3 = fresh_scene.add_lambertian_material(albedo=(0.1, 0.8, 0.1))

        assert (id0, id1, id2, id3) == (0, 1, 2, 3)
        assert fresh_scene.get_material_count() == 4

    def test_material_validation_albedo(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_lambertian_material(albedo=(1.5, 0.0, 0.0))

        with pytest.raises(ValueError):
            fresh_scene.add_metal_material(albedo=(-0.1, 0.5, 0.5))

        assert fresh_scene.get_material_count() == 0

    def test_material_validation_roughness(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_metal_material(albedo=(0.8, 0.8, 0.8), roughness=1.5)

        with pytest.raises(ValueError):
            fresh_scene.add_metal_material(albedo=(0.8, 0.8, 0.8), roughness=-0.1)

    def test_material_validation_ior(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_dielectric_material(ior=0.0)

    def test_ior_below_one_is_accepted(self, fresh_scene):
        """An inverted IOR models an air bubble inside glass."""
        mat_id = fresh_scene.add_dielectric_material(ior=1.0 / 1.5)
        assert fresh_scene.get_material_info(mat_id).params["ior"] == 1.0 / 1.5


class TestMaterialTypeTracking:
    """Tests for material type tracking."""

    def test_get_material_type_python(self, fresh_scene):
        from raybow.scene.manager import MaterialType

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_metal_material(albedo=(0.8, 0.8, 0.8))
        fresh_scene.add_dielectric_material(ior=1.5)

        assert fresh_scene.get_material_type_python(0) == MaterialType.LAMBERTIAN
        assert fresh_scene.get_material_type_python(1) == MaterialType.METAL
        assert fresh_scene.get_material_type_python(2) == MaterialType.DIELECTRIC
        assert fresh_scene.get_material_type_python(99) is None

    def test_get_material_info(self, fresh_scene):
        from raybow.scene.manager import MaterialType

        fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), roughness=0.3)

        info = fresh_scene.get_material_info(0)
        assert info is not None
        assert info.material_id == 0
        assert info.material_type == MaterialType.METAL
        assert info.type_index == 0
        assert info.params["albedo"] == (0.8, 0.6, 0.2)
        assert info.params["roughness"] == 0.3
        assert fresh_scene.get_material_info(-1) is None

    def test_get_material_type_gpu(self, fresh_scene):
        from raybow.scene.manager import MaterialType, get_material_type

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_metal_material(albedo=(0.8, 0.8, 0.8))
        fresh_scene.add_dielectric_material(ior=1.5)

        result = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            result[0] = get_material_type(0)
            result[1] = get_material_type(1)
            result[2] = get_material_type(2)
            result[3] = get_material_type(99)

        test_kernel()

        assert result[0] == int(MaterialType.LAMBERTIAN)
        assert result[1] == int(MaterialType.METAL)
        assert result[2] == int(MaterialType.DIELECTRIC)
        assert result[3] == -1

    def test_get_material_type_index_gpu(self, fresh_scene):
        from raybow.scene.manager import get_material_type_index

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))  # id=0, lambertian[0]
        fresh_scene.add_metal_material(albedo=(0.8, 0.8, 0.8))  # id=1, metal[0]
        fresh_scene.add_lambertian_material(albedo=(0.2, 0.2, 0.8))  # id=2, lambertian[1]
        fresh_scene.add_dielectric_material(ior=1.5)  # id=3, dielectric[0]

        result = ti.field(dtype=ti.i32, shape=5)

        @ti.kernel
        def test_kernel():
            for k in ti.static(range(4)):
                result[k] = get_material_type_index(k)
            result[4] = get_material_type_index(99)

        test_kernel()

        assert result.to_numpy().tolist() == [0, 0, 1, 0, -1]


class TestPrimitiveAddition:
    """Tests for adding primitives with materials."""

    def test_add_sphere_with_material(self, fresh_scene):
        mat_id = fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        idx = fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat_id)

        assert idx == 0
        assert fresh_scene.get_sphere_count() == 1
        info = fresh_scene.spheres[0]
        assert info.center == (0.0, 0.0, -1.0)
        assert info.radius == 0.5
        assert info.material_id == mat_id

    def test_add_parallelogram_with_material(self, fresh_scene):
        mat_id = fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        idx = fresh_scene.add_parallelogram(
            corner=(0.0, 0.0, 0.0),
            edge1=(1.0, 0.0, 0.0),
            edge2=(0.0, 1.0, 0.0),
            material_id=mat_id,
        )

        assert idx == 0
        assert fresh_scene.get_parallelogram_count() == 1
        info = fresh_scene.parallelograms[0]
        assert info.edge1 == (1.0, 0.0, 0.0)
        assert info.material_id == mat_id

    def test_add_sphere_invalid_material(self, fresh_scene):
        with pytest.raises(ValueError, match="material_id"):
            fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, 0)
        assert fresh_scene.get_sphere_count() == 0

    def test_add_parallelogram_invalid_material(self, fresh_scene):
        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="material_id"):
            fresh_scene.add_parallelogram((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), 5)

    def test_add_sphere_invalid_radius(self, fresh_scene):
        mat_id = fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="radius"):
            fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.0, mat_id)
        assert fresh_scene.spheres == []

    def test_shared_material(self, fresh_scene):
        """Several primitives may share one material id."""
        mat_id = fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat_id)
        fresh_scene.add_sphere((1.0, 0.0, -1.0), 0.5, mat_id)
        assert fresh_scene.get_material_count() == 1
        assert fresh_scene.get_primitive_count() == 2


class TestSceneQueries:
    def test_clear_scene(self, fresh_scene):
        mat_id = fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat_id)
        fresh_scene.add_parallelogram(
            (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), mat_id
        )
        fresh_scene.clear()

        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.get_primitive_count() == 0
        assert fresh_scene.materials == []
        assert fresh_scene.spheres == []
        assert fresh_scene.parallelograms == []

    def test_new_manager_replaces_scene(self, fresh_scene):
        from raybow.scene.manager import SceneManager

        mat_id = fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat_id)
        replacement = SceneManager()
        assert replacement.get_sphere_count() == 0
        assert replacement.get_material_count() == 0


class TestMaterialDispatchIntegration:
    """The material id returned by an intersection drives the scatter dispatch."""

    def test_intersection_returns_correct_material_id(self, fresh_scene):
        from raybow.core.interval import Interval
        from raybow.core.ray import Ray, vec3
        from raybow.scene.intersection import intersect_scene

        mat0 = fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
        mat1 = fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), roughness=0.0)
        fresh_scene.add_sphere(center=(0.0, 0.0, -3.0), radius=0.5, material_id=mat0)
        fresh_scene.add_sphere(center=(0.0, 0.0, -5.0), radius=0.5, material_id=mat1)

        hit = ti.field(dtype=ti.i32, shape=())
        material_id = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
            rec = intersect_scene(ray, Interval(min=0.001, max=1000.0))
            hit[None] = rec.hit
            material_id[None] = rec.material_id

        test_kernel()

        assert hit[None] == 1
        assert material_id[None] == mat0

    def test_scatter_dispatch_by_material_type(self, fresh_scene):
        from raybow.core.integrator import scatter_material
        from raybow.core.ray import vec3

        fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))  # id=0
        fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), roughness=0.0)  # id=1
        fresh_scene.add_dielectric_material(ior=1.5)  # id=2

        did_scatter = ti.field(dtype=ti.i32, shape=4)
        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=4)

        @ti.kernel
        def test_dispatch():
            normal = vec3(0.0, 1.0, 0.0)
            incident = vec3(0.0, -1.0, 0.0)
            for k in ti.static(range(4)):
                _, atten, scattered = scatter_material(k, incident, normal, 1)
                did_scatter[k] = scattered
                attenuation[k] = atten

        test_dispatch()

        assert did_scatter.to_numpy().tolist() == [1, 1, 1, 0]
        atten = attenuation.to_numpy()
        assert abs(atten[0][0] - 0.8) < 1e-6
        assert abs(atten[0][1] - 0.3) < 1e-6
        assert abs(atten[1][1] - 0.6) < 1e-6
        assert abs(atten[2][0] - 1.0) < 1e-6
        # An unknown material id absorbs the ray
        assert abs(atten[3]).sum() == 0.0
