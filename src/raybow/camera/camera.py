"""Thin-lens camera model for primary ray generation.

The camera maps pixel coordinates (i, j) to rays. Pixel (0, 0) is the
upper-left corner of the image; i grows to the right and j grows
downwards. With a defocus angle of 0 the camera is a pinhole; with a
positive angle ray origins are spread over a defocus disk to produce
depth of field.

The camera builds an orthonormal basis from the view parameters:
- forward: points from look_at toward the camera position (opposite the
  view direction)
- side: points right in the image plane
- true_up: points up in the image plane

Derived viewport data is recomputed inside every setter, so the camera is
always ready for the next ray query. ``setup_camera`` copies that state
into Taichi fields for use inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raybow.camera.camera import Camera, setup_camera, ray_through_pixel_center
    >>>
    >>> camera = Camera(width=320, height=180, position=(0.0, 0.0, 0.0))
    >>> camera.vfov = 60.0
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = ray_through_pixel_center(160, 90)
"""

import math

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from raybow.core.ray import Ray, make_ray, vec3
from raybow.core.sampler import random_in_unit_disk, random_offset_in_pixel

Vec3Tuple = tuple[float, float, float]


# =============================================================================
# Camera Configuration (Python-side)
# =============================================================================


class Camera:
    """Camera configuration plus derived viewport state.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        position: Camera position in world space.
        look_at: Point the camera is looking at.
        up: Up hint used to orient the image plane.
        vfov: Vertical field of view in degrees.
        focus_distance: Distance from the camera to the plane of perfect focus.
            The viewport is placed on this plane.
        defocus_angle: Cone angle in degrees of rays through each pixel.
            0 disables depth of field.
    """

    def __init__(
        self,
        width: int,
        height: int,
        position: Vec3Tuple = (0.0, 0.0, 0.0),
        look_at: Vec3Tuple = (0.0, 0.0, -1.0),
        up: Vec3Tuple = (0.0, 1.0, 0.0),
        vfov: float = 90.0,
        focus_distance: float = 1.0,
        defocus_angle: float = 0.0,
    ) -> None:
        """Create a camera and compute its viewport.

        Raises:
            ValueError: If width or height is smaller than 1, the focus
                distance is not positive, vfov is outside (0, 180), or the
                view basis is degenerate.
        """
        self._width = width
        self._height = height
        self._position = np.array(position, dtype=np.float64)
        self._look_at = np.array(look_at, dtype=np.float64)
        self._up = np.array(up, dtype=np.float64)
        self._vfov = float(vfov)
        self._focus_distance = float(focus_distance)
        self._defocus_angle = float(defocus_angle)
        self._update()

    # -------------------------------------------------------------------------
    # Configuration properties (every setter recomputes derived state)
    # -------------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def resize(self, width: int, height: int) -> None:
        """Change the image resolution."""
        self._width = width
        self._height = height
        self._update()

    @property
    def position(self) -> Vec3Tuple:
        return _as_tuple(self._position)

    @position.setter
    def position(self, value: Vec3Tuple) -> None:
        self._position = np.array(value, dtype=np.float64)
        self._update()

    @property
    def look_at(self) -> Vec3Tuple:
        return _as_tuple(self._look_at)

    @look_at.setter
    def look_at(self, value: Vec3Tuple) -> None:
        self._look_at = np.array(value, dtype=np.float64)
        self._update()

    @property
    def up(self) -> Vec3Tuple:
        return _as_tuple(self._up)

    @up.setter
    def up(self, value: Vec3Tuple) -> None:
        self._up = np.array(value, dtype=np.float64)
        self._update()

    @property
    def vfov(self) -> float:
        return self._vfov

    @vfov.setter
    def vfov(self, value: float) -> None:
        self._vfov = float(value)
        self._update()

    @property
    def focus_distance(self) -> float:
        return self._focus_distance

    @focus_distance.setter
    def focus_distance(self, value: float) -> None:
        self._focus_distance = float(value)
        self._update()

    @property
    def defocus_angle(self) -> float:
        return self._defocus_angle

    @defocus_angle.setter
    def defocus_angle(self, value: float) -> None:
        self._defocus_angle = float(value)
        self._update()

    @property
    def aspect_ratio(self) -> float:
        return self._width / self._height

    # Read-only derived vectors, as tuples

    @property
    def upper_left_pixel(self) -> Vec3Tuple:
        """Center of pixel (0, 0) on the focus plane."""
        return _as_tuple(self._upper_left_pixel)

    @property
    def pixel_delta_u(self) -> Vec3Tuple:
        return _as_tuple(self._pixel_delta_u)

    @property
    def pixel_delta_v(self) -> Vec3Tuple:
        return _as_tuple(self._pixel_delta_v)

    @property
    def defocus_disk_u(self) -> Vec3Tuple:
        return _as_tuple(self._defocus_disk_u)

    @property
    def defocus_disk_v(self) -> Vec3Tuple:
        return _as_tuple(self._defocus_disk_v)

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    def _update(self) -> None:
        """Recompute the viewport, pixel deltas and defocus basis."""
        if self._width < 1 or self._height < 1:
            raise ValueError(
                f"Image dimensions must be positive, got {self._width}x{self._height}"
            )
        if self._focus_distance <= 0.0:
            raise ValueError(f"Focus distance must be positive, got {self._focus_distance}")
        if not 0.0 < self._vfov < 180.0:
            raise ValueError(f"Vertical field of view must be in (0, 180), got {self._vfov}")

        # Viewport dimensions on the focus plane
        theta = math.radians(self._vfov)
        h = math.tan(theta / 2.0) * self._focus_distance
        viewport_height = 2.0 * h
        viewport_width = viewport_height * self.aspect_ratio

        forward = self._position - self._look_at
        forward_length = np.linalg.norm(forward)
        if forward_length < 1e-12:
            raise ValueError("Camera position and look_at point coincide")
        forward = forward / forward_length

        side = np.cross(self._up, forward)
        side_length = np.linalg.norm(side)
        if side_length < 1e-12:
            raise ValueError("Camera up vector is parallel to the view direction")
        side = side / side_length

        true_up = np.cross(forward, side)

        # Spans across the viewport; rows grow downwards
        horizontal = viewport_width * side
        vertical = viewport_height * -true_up

        self._pixel_delta_u = horizontal / self._width
        self._pixel_delta_v = vertical / self._height

        viewport_upper_left = (
            self._position - self._focus_distance * forward - horizontal / 2.0 - vertical / 2.0
        )
        self._upper_left_pixel = viewport_upper_left + 0.5 * (
            self._pixel_delta_u + self._pixel_delta_v
        )

        defocus_radius = self._focus_distance * math.tan(math.radians(self._defocus_angle) / 2.0)
        self._defocus_disk_u = side * defocus_radius
        self._defocus_disk_v = true_up * defocus_radius

        self._forward = forward
        self._side = side
        self._true_up = true_up

    def pixel_center(self, i: int, j: int) -> npt.NDArray[np.float64]:
        """World-space center of pixel (i, j)."""
        return self._upper_left_pixel + i * self._pixel_delta_u + j * self._pixel_delta_v

    def info(self) -> dict[str, Vec3Tuple | float]:
        """Return the derived state as plain tuples (for inspection)."""
        return {
            "origin": _as_tuple(self._position),
            "forward": _as_tuple(self._forward),
            "side": _as_tuple(self._side),
            "true_up": _as_tuple(self._true_up),
            "pixel_delta_u": self.pixel_delta_u,
            "pixel_delta_v": self.pixel_delta_v,
            "upper_left_pixel": self.upper_left_pixel,
            "defocus_disk_u": self.defocus_disk_u,
            "defocus_disk_v": self.defocus_disk_v,
            "defocus_angle": self._defocus_angle,
        }

    def __repr__(self) -> str:
        return (
            f"Camera(width={self._width}, height={self._height}, "
            f"position={self.position}, look_at={self.look_at}, vfov={self._vfov}, "
            f"focus_distance={self._focus_distance}, defocus_angle={self._defocus_angle})"
        )


def _as_tuple(v: npt.NDArray[np.float64]) -> Vec3Tuple:
    return (float(v[0]), float(v[1]), float(v[2]))


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_upper_left_pixel = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_enabled = ti.field(dtype=ti.i32, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload the camera's derived state to the Taichi fields.

    Must be called (from Python, not inside a kernel) before any kernel
    generates rays. The renderer calls it at the start of every render.

    Args:
        camera: The camera whose state to upload.
    """
    _camera_origin[None] = camera.position
    _upper_left_pixel[None] = camera.upper_left_pixel
    _pixel_delta_u[None] = camera.pixel_delta_u
    _pixel_delta_v[None] = camera.pixel_delta_v
    _defocus_disk_u[None] = camera.defocus_disk_u
    _defocus_disk_v[None] = camera.defocus_disk_v
    _defocus_enabled[None] = 1 if camera.defocus_angle > 0.0 else 0


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def pixel_center(i: ti.i32, j: ti.i32) -> vec3:
    """World-space center of pixel (i, j) on the focus plane."""
    return (
        _upper_left_pixel[None]
        + ti.cast(i, ti.f32) * _pixel_delta_u[None]
        + ti.cast(j, ti.f32) * _pixel_delta_v[None]
    )


@ti.func
def random_point_on_pixel(i: ti.i32, j: ti.i32) -> vec3:
    """Random point inside pixel (i, j) for anti-aliasing.

    Adds a uniform offset in [-0.5, 0.5) of a pixel delta along each axis.
    """
    offset = random_offset_in_pixel()
    return pixel_center(i, j) + offset.x * _pixel_delta_u[None] + offset.y * _pixel_delta_v[None]


@ti.func
def random_point_on_defocus_disk() -> vec3:
    """Random ray origin on the camera's defocus disk."""
    p = random_in_unit_disk()
    return _camera_origin[None] + p.x * _defocus_disk_u[None] + p.y * _defocus_disk_v[None]


@ti.func
def ray_through_pixel_center(i: ti.i32, j: ti.i32) -> Ray:
    """Pinhole ray from the camera position through the center of pixel (i, j)."""
    origin = _camera_origin[None]
    return make_ray(origin, pixel_center(i, j) - origin)


@ti.func
def random_ray_through_pixel(i: ti.i32, j: ti.i32) -> Ray:
    """Jittered ray through pixel (i, j).

    The origin is the camera position when depth of field is disabled,
    otherwise a random point on the defocus disk. The direction aims at a
    random point inside the pixel on the focus plane, so points at the
    focus distance stay sharp.

    Example:
        @ti.kernel
        def render():
            for i, j in ti.ndrange(width, height):
                ray = random_ray_through_pixel(i, j)
    """
    origin = _camera_origin[None]
    if _defocus_enabled[None] == 1:
        origin = random_point_on_defocus_disk()
    target = random_point_on_pixel(i, j)
    return make_ray(origin, target - origin)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, upper_left_pixel, pixel_delta_u,
        pixel_delta_v, defocus_disk_u and defocus_disk_v.
    """
    fields = {
        "origin": _camera_origin,
        "upper_left_pixel": _upper_left_pixel,
        "pixel_delta_u": _pixel_delta_u,
        "pixel_delta_v": _pixel_delta_v,
        "defocus_disk_u": _defocus_disk_u,
        "defocus_disk_v": _defocus_disk_v,
    }
    info = {}
    for name, value_field in fields.items():
        v = value_field[None]
        info[name] = (float(v[0]), float(v[1]), float(v[2]))
    return info
