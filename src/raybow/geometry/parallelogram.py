"""Parallelogram primitive with ray-parallelogram intersection.

A parallelogram is defined by:
- corner: one corner point
- edge1, edge2: edge vectors leaving that corner

It spans the points corner + a*edge2 + b*edge1 for a, b in [0, 1]. The
plane normal is normalize(edge2 x edge1).

Ray-parallelogram intersection uses the parametric plane test:
1. Find where the ray intersects the plane containing the parallelogram
2. Express that point in the affine basis of the two edges
3. Accept it if both affine coordinates lie in [0, 1]

The plane normal, plane offset and the helper vector w = n / (n . n) do not
depend on the ray, so they are computed once on the host by
``parallelogram_frame`` and stored with the primitive.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raybow.geometry.parallelogram import parallelogram_frame
    >>> # Floor at y=0, spanning x=[0,1] and z=[0,1]
    >>> normal, offset, w = parallelogram_frame((0, 0, 0), (1, 0, 0), (0, 0, 1))
    >>> normal
    (0.0, 1.0, 0.0)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from raybow.core.interval import Interval, interval_contains, interval_surrounds
from raybow.core.ray import Ray, ray_at
from raybow.geometry.hit_record import HitRecord, face_normal, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Below this |normal . direction| the ray counts as parallel to the plane.
# Single precision machine epsilon, the resolution of the f32 dot product.
PARALLEL_EPSILON = 1.1920929e-07

Vec3Tuple = tuple[float, float, float]


@ti.dataclass
class Parallelogram:
    """A parallelogram with its precomputed plane data.

    Attributes:
        corner: The corner point (vec3).
        edge1: First edge vector from the corner (vec3).
        edge2: Second edge vector from the corner (vec3).
        normal: Unit plane normal, normalize(edge2 x edge1).
        offset: Plane constant, dot(normal, corner).
        w: Helper vector n / dot(n, n) with n = edge2 x edge1.
        material_id: Handle of the parallelogram's material.
    """

    corner: vec3
    edge1: vec3
    edge2: vec3
    normal: vec3
    offset: ti.f32
    w: vec3
    material_id: ti.i32


def parallelogram_frame(
    corner: Vec3Tuple,
    edge1: Vec3Tuple,
    edge2: Vec3Tuple,
) -> tuple[Vec3Tuple, float, Vec3Tuple]:
    """Compute the plane normal, plane offset and w vector of a parallelogram.

    Args:
        corner: The corner point.
        edge1: First edge vector.
        edge2: Second edge vector.

    Returns:
        Tuple of (normal, offset, w).

    Raises:
        ValueError: If the edges are parallel (zero area).
    """
    q = np.asarray(corner, dtype=np.float64)
    n = np.cross(np.asarray(edge2, dtype=np.float64), np.asarray(edge1, dtype=np.float64))
    n_dot_n = float(np.dot(n, n))
    if n_dot_n < 1e-20:
        raise ValueError(f"Parallelogram edges {edge1} and {edge2} are parallel")

    normal = n / np.sqrt(n_dot_n)
    offset = float(np.dot(normal, q))
    w = n / n_dot_n
    return (
        (float(normal[0]), float(normal[1]), float(normal[2])),
        offset,
        (float(w[0]), float(w[1]), float(w[2])),
    )


@ti.func
def hit_parallelogram(ray: Ray, para: Parallelogram, interval: Interval) -> HitRecord:
    """Test for ray-parallelogram intersection.

    The ray-plane intersection is found by solving:
        t = (offset - dot(normal, origin)) / dot(normal, direction)

    A near-parallel ray (|dot(normal, direction)| < PARALLEL_EPSILON) is a
    miss, as is a t the interval does not strictly surround. The hit point
    p is then expressed in the edge basis:
        a = dot(w, (p - corner) x edge1)
        b = dot(w, edge2 x (p - corner))
    and the hit is inside the parallelogram iff a and b lie in [0, 1].

    Args:
        ray: The ray to test (direction need not be normalized).
        para: The parallelogram to test against.
        interval: Open range of acceptable t values.

    Returns:
        A HitRecord; check its hit field to see whether an intersection
        occurred.
    """
    result = make_miss_record()
    denom = tm.dot(para.normal, ray.direction)

    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = (para.offset - tm.dot(para.normal, ray.origin)) / denom

        if interval_surrounds(interval, t):
            point = ray_at(ray, t)
            planar = point - para.corner
            alpha = tm.dot(para.w, tm.cross(planar, para.edge1))
            beta = tm.dot(para.w, tm.cross(para.edge2, planar))

            unit = Interval(min=0.0, max=1.0)
            if interval_contains(unit, alpha) and interval_contains(unit, beta):
                front_face, normal = face_normal(ray.direction, para.normal)
                result = HitRecord(
                    hit=1,
                    t=t,
                    point=point,
                    normal=normal,
                    front_face=front_face,
                    material_id=para.material_id,
                )

    return result

