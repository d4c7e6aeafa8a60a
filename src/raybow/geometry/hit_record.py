"""Hit record shared by every primitive intersection routine.

A HitRecord is produced by a primitive's hit test, may be replaced by a
closer hit later in the same scene query, and is finally consumed by the
integrator. The normal stored in the record always opposes the incoming
ray; ``front_face`` remembers which side of the surface was struck.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Material id carried by a miss record
NO_MATERIAL = -1


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The surface normal at the intersection point (unit length,
            always facing against the ray direction).
            Only valid if hit == 1.
        front_face: 1 if the ray approached from the side the geometric
            outward normal points to, 0 otherwise.
            Only valid if hit == 1.
        material_id: Handle of the surface material, shared by every
            primitive using that material. NO_MATERIAL on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a geometric normal against the incoming ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: The geometric normal (unit length).

    Returns:
        A tuple (front_face, normal) where front_face is 1 when the ray
        hits the side the outward normal points to, and normal is the
        outward normal flipped if necessary.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return front_face, normal


@ti.func
def make_miss_record() -> HitRecord:
    """HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=NO_MATERIAL,
    )
