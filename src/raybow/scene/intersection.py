"""Scene-level primitive intersection testing.

This module provides scene-level ray intersection testing that handles
both primitive types (spheres, parallelograms) and returns the closest hit
together with the material id of the primitive that was struck.

The scene stores primitives in Taichi fields for GPU-efficient access.
Each primitive has an associated material ID for shading.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raybow.scene.intersection import (
    ...     add_sphere, add_parallelogram, intersect_scene, clear_scene
    ... )
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, material_id=0)
    0
    >>> add_parallelogram((-1, -0.5, -2), (2, 0, 0), (0, 1, 0), material_id=1)
    0
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from raybow.core.interval import Interval, interval_with_max
from raybow.core.ray import Ray
from raybow.geometry.hit_record import HitRecord, make_miss_record
from raybow.geometry.parallelogram import (
    Parallelogram,
    hit_parallelogram,
    parallelogram_frame,
)
from raybow.geometry.sphere import Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

Vec3Like = tuple[float, float, float]

# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024
MAX_PARALLELOGRAMS = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Parallelogram storage, including the ray-independent plane data
parallelogram_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PARALLELOGRAMS)
parallelogram_edge1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PARALLELOGRAMS)
parallelogram_edge2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PARALLELOGRAMS)
parallelogram_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PARALLELOGRAMS)
parallelogram_offsets = ti.field(dtype=ti.f32, shape=MAX_PARALLELOGRAMS)
parallelogram_w = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PARALLELOGRAMS)
parallelogram_material_ids = ti.field(dtype=ti.i32, shape=MAX_PARALLELOGRAMS)
num_parallelograms = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0
    num_parallelograms[None] = 0


def add_sphere(center: Vec3Like, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (must be positive).
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def add_parallelogram(
    corner: Vec3Like,
    edge1: Vec3Like,
    edge2: Vec3Like,
    material_id: int = 0,
) -> int:
    """Add a parallelogram to the scene.

    The parallelogram has vertices at corner, corner+edge1, corner+edge2 and
    corner+edge1+edge2. Its plane normal, offset and w vector are computed
    here once.

    Args:
        corner: The corner point of the parallelogram.
        edge1: First edge vector leaving the corner.
        edge2: Second edge vector leaving the corner.
        material_id: The material ID to associate with this parallelogram.

    Returns:
        The index of the added parallelogram.

    Raises:
        ValueError: If the edges are parallel.
        RuntimeError: If the maximum number of parallelograms is exceeded.
    """
    normal, offset, w = parallelogram_frame(corner, edge1, edge2)

    idx = num_parallelograms[None]
    if idx >= MAX_PARALLELOGRAMS:
        raise RuntimeError(
            f"Maximum number of parallelograms ({MAX_PARALLELOGRAMS}) exceeded"
        )
    parallelogram_corners[idx] = vec3(corner[0], corner[1], corner[2])
    parallelogram_edge1[idx] = vec3(edge1[0], edge1[1], edge1[2])
    parallelogram_edge2[idx] = vec3(edge2[0], edge2[1], edge2[2])
    parallelogram_normals[idx] = vec3(normal[0], normal[1], normal[2])
    parallelogram_offsets[idx] = offset
    parallelogram_w[idx] = vec3(w[0], w[1], w[2])
    parallelogram_material_ids[idx] = material_id
    num_parallelograms[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_parallelogram_count() -> int:
    """Get the number of parallelograms in the scene."""
    return int(num_parallelograms[None])


@ti.func
def _load_sphere(i: ti.i32) -> Sphere:
    return Sphere(
        center=sphere_centers[i],
        radius=sphere_radii[i],
        material_id=sphere_material_ids[i],
    )


@ti.func
def _load_parallelogram(i: ti.i32) -> Parallelogram:
    return Parallelogram(
        corner=parallelogram_corners[i],
        edge1=parallelogram_edge1[i],
        edge2=parallelogram_edge2[i],
        normal=parallelogram_normals[i],
        offset=parallelogram_offsets[i],
        w=parallelogram_w[i],
        material_id=parallelogram_material_ids[i],
    )


@ti.func
def intersect_scene(ray: Ray, interval: Interval) -> HitRecord:
    """Test ray against all primitives in the scene.

    Iterates through all spheres and parallelograms. After each hit the
    search interval's max shrinks to that hit's t, so only strictly closer
    hits replace it and the final record is the closest one.

    Args:
        ray: The ray to trace.
        interval: Open range of acceptable t values.

    Returns:
        A HitRecord for the closest intersection, or a miss record if no
        intersection was found.
    """
    closest = interval
    result = make_miss_record()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, _load_sphere(i), closest)
        if rec.hit == 1:
            closest = interval_with_max(closest, rec.t)
            result = rec

    for i in range(num_parallelograms[None]):
        rec = hit_parallelogram(ray, _load_parallelogram(i), closest)
        if rec.hit == 1:
            closest = interval_with_max(closest, rec.t)
            result = rec

    return result
