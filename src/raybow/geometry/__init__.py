"""Geometry module for shape primitives.

Components:
    hit_record: Intersection result shared by all primitives
    sphere: Sphere primitive with ray-sphere intersection
    parallelogram: Parallelogram primitive with ray-plane intersection

All intersection routines are implemented as Taichi functions (@ti.func)
and accept hits only strictly inside the given interval.
"""

from .hit_record import NO_MATERIAL, HitRecord, face_normal, make_miss_record
from .parallelogram import Parallelogram, hit_parallelogram, parallelogram_frame
from .sphere import Sphere, hit_sphere, make_sphere

__all__ = [
    "HitRecord",
    "NO_MATERIAL",
    "face_normal",
    "make_miss_record",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Parallelogram",
    "hit_parallelogram",
    "parallelogram_frame",
]
