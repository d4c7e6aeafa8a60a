"""Monte Carlo integrator and pixel loop.

This module implements the color estimator and the rendering kernel that
fills the image buffer.

The estimator follows a ray through the scene, bouncing off surfaces
according to their material, and multiplies the attenuation of every
bounce into a running throughput:

    color(ray, depth) = 0                                  if depth == 0
                      = background(ray)                    on a miss
                      = 0                                  if absorbed
                      = attenuation * color(scattered, depth - 1)

The recursion is unrolled into a loop carrying the throughput, so the
bounce budget never grows the call stack.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Vertical gradient background for escaped rays
    - One center ray per pixel at 1 sample, jittered rays averaged otherwise
    - Non-finite samples replaced by black and counted

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raybow.core.integrator import (
    ...     get_image_buffer, render_rows, setup_render_target
    ... )
    >>> from raybow.scene.demo import create_demo_scene
    >>> from raybow.camera.camera import setup_camera
    >>>
    >>> scene, camera = create_demo_scene(64, 64)
    >>> setup_camera(camera)
    >>> setup_render_target(64, 64)
    >>> render_rows(0, 64, samples_per_pixel=4, max_depth=10)
    >>> get_image_buffer().shape
    (4096, 3)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from raybow.camera.camera import random_ray_through_pixel, ray_through_pixel_center
from raybow.core.color import WHITE, lerp, validate_color
from raybow.core.interval import T_INFINITY, Interval
from raybow.core.ray import Ray
from raybow.materials.dielectric import scatter_dielectric_by_id
from raybow.materials.lambertian import scatter_lambertian_by_id
from raybow.materials.metal import scatter_metal_by_id
from raybow.scene.intersection import intersect_scene
from raybow.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min excludes hits right at the ray origin (shadow acne)
T_MIN = 0.001
T_MAX = T_INFINITY

# Default bounce budget
DEFAULT_MAX_DEPTH = 10

# =============================================================================
# Background
# =============================================================================

DEFAULT_BACKGROUND_BOTTOM = WHITE
DEFAULT_BACKGROUND_TOP = (0.5, 0.7, 1.0)

_background_bottom = ti.Vector.field(3, dtype=ti.f32, shape=())
_background_top = ti.Vector.field(3, dtype=ti.f32, shape=())


def set_background(
    bottom: tuple[float, float, float],
    top: tuple[float, float, float],
) -> None:
    """Configure the background gradient seen by escaped rays.

    Args:
        bottom: Color for rays pointing straight down.
        top: Color for rays pointing straight up.

    Raises:
        ValueError: If a color does not have 3 components in [0, 1].
    """
    validate_color(bottom, "Background bottom")
    validate_color(top, "Background top")
    _background_bottom[None] = vec3(bottom[0], bottom[1], bottom[2])
    _background_top[None] = vec3(top[0], top[1], top[2])


def reset_background() -> None:
    """Restore the default white to sky-blue gradient."""
    set_background(DEFAULT_BACKGROUND_BOTTOM, DEFAULT_BACKGROUND_TOP)


reset_background()


@ti.func
def background_color(direction: vec3) -> vec3:
    """Background seen along a ray direction.

    Blends bottom to top with a = 0.5 * (unit_direction.y + 1).
    """
    unit_direction = tm.normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return lerp(_background_bottom[None], _background_top[None], a)


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color buffer indexed [row, column], row 0 at the top of the image
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Number of samples replaced by black because they were NaN or infinite
_invalid_samples = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the color buffer and the invalid sample counter."""
    _color_buffer.fill(0.0)
    _invalid_samples[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_invalid_sample_count() -> int:
    """Number of NaN or infinite samples replaced by black since the last clear."""
    return int(_invalid_samples[None])


def get_image_buffer() -> npt.NDArray[np.float32]:
    """Get the rendered image as a flat row-major array.

    Pixel (i, j) of a width x height image is row ``j * width + i``; row 0
    of the image is its top.

    Returns:
        Float32 array of shape (width * height, 3) in linear color.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    image = _color_buffer.to_numpy()[:height, :width, :]
    return image.reshape(width * height, 3).astype(np.float32)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Based on the material type, calls the corresponding scatter function
    and returns the scattered ray direction and attenuation. An unknown
    material id absorbs the ray.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length, facing toward ray).
        front_face: 1 if hit front face, 0 if back face.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The new ray direction.
        - attenuation: The color attenuation for this bounce.
        - did_scatter: 1 if ray scattered, 0 if absorbed.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Color Estimator
# =============================================================================


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Estimate the color carried back along a ray.

    Each loop iteration spends one unit of the bounce budget. A path that
    runs out of budget, or is absorbed, contributes black; a path that
    escapes the scene contributes throughput * background.

    Scattered rays start exactly at the hit point; T_MIN keeps them from
    re-hitting the surface they leave.

    Args:
        ray: The ray to trace.
        max_depth: Bounce budget. 0 always yields black.

    Returns:
        The estimated linear color (RGB).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Taichi does not allow break inside ti.func loops, so a flag ends the path
    active = 1

    for _ in range(max_depth):
        if active == 1:
            record = intersect_scene(current, Interval(min=T_MIN, max=T_MAX))

            if record.hit == 0:
                color = throughput * background_color(current.direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter_material(
                    record.material_id, current.direction, record.normal, record.front_face
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = Ray(origin=record.point, direction=scattered_direction)

    return color


@ti.func
def _sanitize_sample(color: vec3) -> vec3:
    """Replace a non-finite sample by black and count it."""
    result = color
    invalid = 0
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            invalid = 1
    if invalid == 1:
        result = vec3(0.0, 0.0, 0.0)
        ti.atomic_add(_invalid_samples[None], 1)
    return result


@ti.func
def pixel_color(i: ti.i32, j: ti.i32, samples_per_pixel: ti.i32, max_depth: ti.i32) -> vec3:
    """Monte Carlo estimate of the color of pixel (i, j).

    With a single sample the pixel gets exactly one deterministic ray
    through its center. Otherwise samples_per_pixel jittered rays (with
    depth of field when the camera has a defocus angle) are averaged.
    """
    total = vec3(0.0, 0.0, 0.0)
    if samples_per_pixel == 1:
        total = _sanitize_sample(ray_color(ray_through_pixel_center(i, j), max_depth))
    else:
        for _ in range(samples_per_pixel):
            total += _sanitize_sample(ray_color(random_ray_through_pixel(i, j), max_depth))
    return total / ti.cast(samples_per_pixel, ti.f32)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    """Render image rows [row_start, row_end) into the color buffer.

    The outermost loop is parallelised by Taichi; every pixel writes only
    its own buffer slot.
    """
    for j, i in ti.ndrange((row_start, row_end), width):
        _color_buffer[j, i] = pixel_color(i, j, samples_per_pixel, max_depth)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Estimate one pixel without touching the color buffer."""
    return pixel_color(pixel_i, pixel_j, samples_per_pixel, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_render_arguments(samples_per_pixel: int, max_depth: int) -> None:
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be at least 1, got {samples_per_pixel}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")


def render_rows(
    row_start: int,
    row_end: int,
    samples_per_pixel: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> None:
    """Render a band of image rows into the color buffer.

    The camera must have been uploaded with ``setup_camera`` and the scene
    filled before calling this.

    Args:
        row_start: First row to render (0 = top).
        row_end: One past the last row to render.
        samples_per_pixel: Number of samples per pixel (>= 1).
        max_depth: Bounce budget (>= 0).

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the row range or render arguments are invalid.
    """
    _check_render_target_initialized()
    _check_render_arguments(samples_per_pixel, max_depth)

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Invalid row range [{row_start}, {row_end}) for height {height}")

    _render_rows(row_start, row_end, width, samples_per_pixel, max_depth)


def render_image(samples_per_pixel: int = 1, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Render every row of the render target in one kernel launch."""
    _check_render_target_initialized()
    _, height = get_image_dimensions()
    render_rows(0, height, samples_per_pixel, max_depth)


def render_pixel(
    pixel_i: int,
    pixel_j: int,
    samples_per_pixel: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[float, float, float]:
    """Estimate the color of a single pixel.

    This is a Python-callable function for testing and debugging. For
    production rendering, use render_rows() which processes pixels in
    parallel.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).
        samples_per_pixel: Number of samples (>= 1).
        max_depth: Bounce budget (>= 0).

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    _check_render_arguments(samples_per_pixel, max_depth)
    color = _render_single_pixel(pixel_i, pixel_j, samples_per_pixel, max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))
