"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector algebra
    interval: Open/closed real ranges used for hit searches
    color: Linear RGB helpers, gamma conversion and clamping
    sampler: Random directions and pixel jitter
    integrator: Color estimator and the pixel loop kernels
    renderer: Render settings, results and the scanline batch driver
    progress: Milestone-based progress tracking
    postprocess: Gamma correction of render results

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .color import (
    BLACK,
    WHITE,
    clamp_color,
    clamp_colors,
    lerp,
    linear_to_gamma,
    linear_to_gamma_space,
    rgb,
    validate_color,
)
from .interval import (
    T_INFINITY,
    Interval,
    interval_contains,
    interval_surrounds,
    interval_with_max,
    make_interval,
)
from .progress import ProgressTracker
from .ray import (
    Ray,
    cross,
    dot,
    is_invalid,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .sampler import (
    random_in_unit_ball,
    random_in_unit_disk,
    random_normal,
    random_offset_in_pixel,
    random_unit_vector,
)

# Note: integrator, renderer and postprocess are NOT imported here because
# they allocate Taichi fields. Import them directly after ti.init(), e.g.
#   from raybow.core.renderer import Renderer, RenderSettings

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "is_invalid",
    "Interval",
    "T_INFINITY",
    "interval_contains",
    "interval_surrounds",
    "interval_with_max",
    "make_interval",
    "rgb",
    "BLACK",
    "WHITE",
    "lerp",
    "linear_to_gamma",
    "linear_to_gamma_space",
    "clamp_color",
    "clamp_colors",
    "validate_color",
    "random_normal",
    "random_in_unit_ball",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_offset_in_pixel",
    "ProgressTracker",
]
