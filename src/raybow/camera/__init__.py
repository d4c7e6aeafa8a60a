"""Camera module for view and ray generation.

Components:
    camera: Thin-lens camera (a pinhole when the defocus angle is 0)

Camera responsibilities:
    - Derive the viewport (upper-left pixel, pixel deltas) from position,
      look-at, up hint, field of view and focus distance
    - Generate a deterministic ray through each pixel center
    - Jitter rays inside the pixel for anti-aliasing
    - Spread ray origins over the defocus disk for depth of field

Pixel (0, 0) is the upper-left corner of the image; rows grow downwards.
"""

from .camera import (
    Camera,
    get_camera_info,
    pixel_center,
    random_point_on_defocus_disk,
    random_point_on_pixel,
    random_ray_through_pixel,
    ray_through_pixel_center,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "pixel_center",
    "random_point_on_pixel",
    "random_point_on_defocus_disk",
    "ray_through_pixel_center",
    "random_ray_through_pixel",
    "get_camera_info",
]
