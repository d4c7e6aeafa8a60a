"""Unit tests for scene storage and the closest-hit query.

Tests cover:
- Adding and clearing primitives
- Closest-hit selection across spheres and parallelograms
- Interval bounds on the query
"""

import pytest
import taichi as ti


def _query(origin, direction, t_min=0.001, t_max=1e10):
    """Run intersect_scene for one ray and return (hit, t, material_id, normal)."""
    from raybow.core.interval import Interval
    from raybow.core.ray import Ray
    from raybow.scene.intersection import intersect_scene

    ray_origin = ti.field(dtype=ti.math.vec3, shape=())
    ray_direction = ti.field(dtype=ti.math.vec3, shape=())
    ray_origin[None] = origin
    ray_direction[None] = direction

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(lo: ti.f32, hi: ti.f32):
        ray = Ray(origin=ray_origin[None], direction=ray_direction[None])
        record = intersect_scene(ray, Interval(min=lo, max=hi))
        hit[None] = record.hit
        t_val[None] = record.t
        material_id[None] = record.material_id
        normal[None] = record.normal

    test_kernel(t_min, t_max)
    return hit[None], t_val[None], material_id[None], tuple(normal[None])


class TestSceneStorage:
    def test_add_sphere(self):
        from raybow.scene.intersection import add_sphere, get_sphere_count

        assert add_sphere((0.0, 0.0, -1.0), 0.5, material_id=2) == 0
        assert add_sphere((1.0, 0.0, -1.0), 0.5, material_id=3) == 1
        assert get_sphere_count() == 2

    def test_add_parallelogram(self):
        from raybow.scene.intersection import add_parallelogram, get_parallelogram_count

        idx = add_parallelogram((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert idx == 0
        assert get_parallelogram_count() == 1

    def test_invalid_radius(self):
        from raybow.scene.intersection import add_sphere, get_sphere_count

        with pytest.raises(ValueError, match="radius"):
            add_sphere((0.0, 0.0, 0.0), 0.0)
        with pytest.raises(ValueError, match="radius"):
            add_sphere((0.0, 0.0, 0.0), -1.0)
        assert get_sphere_count() == 0

    def test_degenerate_parallelogram(self):
        from raybow.scene.intersection import add_parallelogram, get_parallelogram_count

        with pytest.raises(ValueError, match="parallel"):
            add_parallelogram((0.0, 0.0, 0.0), (1.0, 1.0, 0.0), (2.0, 2.0, 0.0))
        assert get_parallelogram_count() == 0

    def test_clear_scene(self):
        from raybow.scene.intersection import (
            add_parallelogram,
            add_sphere,
            clear_scene,
            get_parallelogram_count,
            get_sphere_count,
        )

        add_sphere((0.0, 0.0, -1.0), 0.5)
        add_parallelogram((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        clear_scene()
        assert get_sphere_count() == 0
        assert get_parallelogram_count() == 0


class TestClosestHit:
    def test_empty_scene_misses(self):
        hit, _, material_id, _ = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 0
        assert material_id == -1

    def test_closest_of_two_spheres(self):
        from raybow.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 1.0, material_id=1)
        add_sphere((0.0, 0.0, -2.0), 0.5, material_id=2)
        hit, t, material_id, _ = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 1.5) < 1e-5
        assert material_id == 2

    def test_closest_independent_of_insertion_order(self):
        from raybow.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -2.0), 0.5, material_id=2)
        add_sphere((0.0, 0.0, -5.0), 1.0, material_id=1)
        _, t, material_id, _ = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert abs(t - 1.5) < 1e-5
        assert material_id == 2

    def test_parallelogram_closer_than_sphere(self):
        from raybow.scene.intersection import add_parallelogram, add_sphere

        add_sphere((0.0, 0.0, -5.0), 1.0, material_id=1)
        # Square in the z = -2 plane facing the camera
        add_parallelogram((-1.0, -1.0, -2.0), (0.0, 2.0, 0.0), (2.0, 0.0, 0.0), material_id=4)
        hit, t, material_id, normal = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert material_id == 4
        assert abs(normal[2] - 1.0) < 1e-5

    def test_sphere_closer_than_parallelogram(self):
        from raybow.scene.intersection import add_parallelogram, add_sphere

        add_parallelogram((-1.0, -1.0, -6.0), (0.0, 2.0, 0.0), (2.0, 0.0, 0.0), material_id=4)
        add_sphere((0.0, 0.0, -3.0), 1.0, material_id=1)
        _, t, material_id, _ = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert abs(t - 2.0) < 1e-5
        assert material_id == 1

    def test_hit_rejected_by_t_max(self):
        from raybow.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 1.0)
        hit, _, _, _ = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), t_max=3.0)
        assert hit == 0

    def test_hit_rejected_by_t_min(self):
        from raybow.scene.intersection import add_sphere

        # Both roots (t = 4 and t = 6) lie below t_min
        add_sphere((0.0, 0.0, -5.0), 1.0)
        hit, _, _, _ = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), t_min=7.0)
        assert hit == 0
