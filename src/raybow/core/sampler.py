"""Random sampling utilities for Monte Carlo estimation.

All sampling draws from ``ti.random``. The Taichi runtime keeps an
independent random state per worker thread, seeded from the
``random_seed`` given to ``ti.init``, so kernels stay reproducible for a
fixed seed and thread layout.

Degenerate samples (a zero or infinite norm from the Box-Muller
transform) are resampled rather than propagated as NaN.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Resampling budget for rejection loops
MAX_SAMPLE_ATTEMPTS = 16


@ti.func
def random_normal() -> ti.f32:
    """Draw a standard normal variate with the Box-Muller transform.

    ``u1`` may be exactly 0, in which case the result is infinite; callers
    that combine several variates guard against that.
    """
    u1 = ti.random(ti.f32)
    u2 = ti.random(ti.f32)
    return ti.sqrt(-2.0 * ti.log(u1)) * ti.cos(2.0 * tm.pi * u2)


@ti.func
def ball_point_from_normals(x: ti.f32, y: ti.f32, z: ti.f32, w: ti.f32):
    """Map four normal variates to a point in the unit ball.

    Returns:
        A tuple of (point, valid). valid is 0 when the 4D norm is zero,
        infinite or NaN; the point is then the zero vector.
    """
    p = vec3(0.0, 0.0, 0.0)
    valid = 0
    norm = ti.sqrt(x * x + y * y + z * z + w * w)
    if norm > 0.0 and not tm.isinf(norm) and not tm.isnan(norm):
        p = vec3(x, y, z) / norm
        valid = 1
    return p, valid


@ti.func
def unit_vector_from_ball(p: vec3):
    """Normalize a ball sample.

    Returns:
        A tuple of (unit_vector, valid). valid is 0 when p is too short to
        normalize.
    """
    result = vec3(0.0, 0.0, 0.0)
    valid = 0
    len_sq = tm.dot(p, p)
    if len_sq > 1e-12:
        result = p / ti.sqrt(len_sq)
        valid = 1
    return result, valid


@ti.func
def random_in_unit_ball() -> vec3:
    """Sample a point inside the unit ball with the dropped-coordinate method.

    Four standard normal variates are divided by their 4D norm and the
    fourth coordinate is dropped. A zero or non-finite norm is resampled;
    after MAX_SAMPLE_ATTEMPTS failures the zero vector is returned.

    Returns:
        A point with length <= 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_SAMPLE_ATTEMPTS):
        if found == 0:
            p, found = ball_point_from_normals(
                random_normal(), random_normal(), random_normal(), random_normal()
            )
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Sample a direction uniformly on the unit sphere.

    Normalizes the first three coordinates of the dropped-coordinate sample,
    which is the same as normalizing a 3D Gaussian. Samples too short to
    normalize are drawn again.

    Returns:
        A unit vector, or the zero vector if every attempt was degenerate.
    """
    result = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_SAMPLE_ATTEMPTS):
        if found == 0:
            result, found = unit_vector_from_ball(random_in_unit_ball())
    return result


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for sampling the camera's defocus disk.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Rejection sampling loop
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            p = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p


@ti.func
def random_offset_in_pixel() -> tm.vec2:
    """Uniform jitter in [-0.5, 0.5) along both pixel axes."""
    return tm.vec2(ti.random(ti.f32) - 0.5, ti.random(ti.f32) - 0.5)
