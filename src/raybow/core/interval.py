"""Closed real-number ranges used to bound ray parameters.

An Interval is used in two ways:
- as the camera near/far bound for a query (e.g. (0.001, inf))
- as the shrinking "closest hit so far" bound during the scene search

Primitive hit tests only accept a parameter t that the interval
*surrounds* (exclusive bounds); `interval_contains` is the inclusive test
used for affine coordinate checks.
"""

import taichi as ti

# Stand-in for infinity that stays finite in f32 arithmetic
T_INFINITY = 1e10


@ti.dataclass
class Interval:
    """A [min, max] range of real numbers.

    Attributes:
        min: Lower bound.
        max: Upper bound. Expected to satisfy min <= max.
    """

    min: ti.f32
    max: ti.f32


@ti.func
def interval_contains(interval: Interval, x: ti.f32) -> ti.i32:
    """Return 1 if min <= x <= max."""
    return interval.min <= x and x <= interval.max


@ti.func
def interval_surrounds(interval: Interval, x: ti.f32) -> ti.i32:
    """Return 1 if min < x < max."""
    return interval.min < x and x < interval.max


@ti.func
def interval_with_max(interval: Interval, new_max: ti.f32) -> Interval:
    """Copy of the interval with its upper bound replaced."""
    return Interval(min=interval.min, max=new_max)


def make_interval(min_value: float, max_value: float) -> Interval:
    """Create an Interval from Python, validating its bounds.

    Args:
        min_value: Lower bound.
        max_value: Upper bound.

    Returns:
        A new Interval.

    Raises:
        ValueError: If min_value > max_value.
    """
    if min_value > max_value:
        raise ValueError(
            f"Interval lower bound {min_value} is greater than upper bound {max_value}"
        )
    return Interval(min=min_value, max=max_value)
