"""Unit tests for the Metal material module.

Tests cover:
- Perfect specular reflection (roughness=0)
- Fuzzy reflection (roughness>0)
- Ray absorption when scattered below surface
- Attenuation equals albedo
- Material registry operations
- Roughness validation
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestPerfectReflection:
    """Tests for perfect specular reflection (roughness=0)."""

    def test_perfect_reflection_normal_incidence(self):
        """Test reflection of ray hitting surface head-on."""
        from raybow.materials.metal import scatter_metal

        result_dir = ti.Vector.field(3, dtype=ti.f32, shape=())
        result_scatter = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            albedo = ti.math.vec3(1.0, 1.0, 1.0)
            incident = ti.math.vec3(0.0, -1.0, 0.0)
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            direction, _, did_scatter = scatter_metal(albedo, 0.0, incident, normal)
            result_dir[None] = direction
            result_scatter[None] = did_scatter

        test_kernel()
        d = result_dir[None]
        assert abs(d[0]) < 1e-5
        assert abs(d[1] - 1.0) < 1e-5
        assert abs(d[2]) < 1e-5
        assert result_scatter[None] == 1

    def test_mirror_law(self):
        """Angle of incidence equals angle of reflection."""
        from raybow.materials.metal import scatter_metal

        result_dir = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            # Unnormalized 45 degree incident direction
            incident = ti.math.vec3(2.0, -2.0, 0.0)
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            direction, _, _ = scatter_metal(ti.math.vec3(1.0, 1.0, 1.0), 0.0, incident, normal)
            result_dir[None] = direction

        test_kernel()
        d = result_dir[None]
        expected = 1.0 / math.sqrt(2.0)
        assert abs(d[0] - expected) < 1e-5
        assert abs(d[1] - expected) < 1e-5
        assert abs(d[2]) < 1e-5


class TestFuzzyReflection:
    def test_fuzzy_reflection_bounded_by_roughness(self):
        """The perturbation never exceeds the roughness radius."""
        from raybow.materials.metal import scatter_metal

        n = 512
        offsets = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            for i in range(n):
                direction, _, _ = scatter_metal(
                    ti.math.vec3(1.0, 1.0, 1.0), 0.3, ti.math.vec3(0.0, -1.0, 0.0), normal
                )
                offsets[i] = ti.math.length(direction - normal)

        test_kernel()
        o = offsets.to_numpy()
        assert np.all(o <= 0.3 + 1e-5)
        # Samples lie on the sphere of radius roughness around the mirror direction
        assert np.allclose(o, 0.3, atol=1e-4)

    def test_fuzzy_grazing_reflection_may_absorb(self):
        """Near-grazing rays with high roughness are sometimes absorbed."""
        from raybow.materials.metal import scatter_metal

        n = 512
        flags = ti.field(dtype=ti.i32, shape=n)
        dots = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            incident = ti.math.vec3(1.0, -0.05, 0.0)
            for i in range(n):
                direction, _, did_scatter = scatter_metal(
                    ti.math.vec3(1.0, 1.0, 1.0), 1.0, incident, normal
                )
                flags[i] = did_scatter
                dots[i] = ti.math.dot(direction, normal)

        test_kernel()
        f = flags.to_numpy()
        d = dots.to_numpy()
        assert 0 < f.sum() < n
        # Absorbed exactly when the scattered direction is not above the surface
        assert np.array_equal(f == 1, d > 0.0)


class TestMetalAttenuation:
    def test_attenuation_equals_albedo(self):
        from raybow.materials.metal import scatter_metal

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            _, attenuation, _ = scatter_metal(
                ti.math.vec3(0.8, 0.6, 0.2),
                0.0,
                ti.math.vec3(0.0, -1.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            result[None] = attenuation

        test_kernel()
        a = result[None]
        assert abs(a[0] - 0.8) < 1e-6
        assert abs(a[1] - 0.6) < 1e-6
        assert abs(a[2] - 0.2) < 1e-6


class TestMetalRegistry:
    def test_add_and_get_material(self):
        from raybow.materials.metal import (
            add_metal_material,
            get_metal_albedo,
            get_metal_roughness,
        )

        idx = add_metal_material((0.7, 0.7, 0.9), roughness=0.25)
        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        roughness = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            albedo[None] = get_metal_albedo(mat_idx)
            roughness[None] = get_metal_roughness(mat_idx)

        test_kernel(idx)
        assert abs(albedo[None][2] - 0.9) < 1e-6
        assert abs(roughness[None] - 0.25) < 1e-6

    def test_default_roughness_is_zero(self):
        from raybow.materials.metal import add_metal_material, metal_roughnesses

        idx = add_metal_material((0.5, 0.5, 0.5))
        assert metal_roughnesses[idx] == 0.0

    def test_material_count(self):
        from raybow.materials.metal import (
            add_metal_material,
            clear_metal_materials,
            get_metal_material_count,
        )

        add_metal_material((0.5, 0.5, 0.5))
        assert get_metal_material_count() == 1
        clear_metal_materials()
        assert get_metal_material_count() == 0

    def test_scatter_by_id(self):
        from raybow.materials.metal import add_metal_material, scatter_metal_by_id

        idx = add_metal_material((0.5, 0.5, 0.5), roughness=0.0)
        result_dir = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            direction, _, _ = scatter_metal_by_id(
                mat_idx, ti.math.vec3(0.0, 0.0, -1.0), ti.math.vec3(0.0, 0.0, 1.0)
            )
            result_dir[None] = direction

        test_kernel(idx)
        assert abs(result_dir[None][2] - 1.0) < 1e-5

    @pytest.mark.parametrize("roughness", [-0.1, 1.5])
    def test_roughness_validation(self, roughness):
        from raybow.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="Roughness"):
            add_metal_material((0.5, 0.5, 0.5), roughness=roughness)

    @pytest.mark.parametrize("roughness", [0.0, 1.0])
    def test_roughness_boundary_values_valid(self, roughness):
        from raybow.materials.metal import add_metal_material

        assert add_metal_material((0.5, 0.5, 0.5), roughness=roughness) == 0

    def test_albedo_validation(self):
        from raybow.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="outside"):
            add_metal_material((0.5, 1.2, 0.5))
