"""Linear RGB color helpers.

Colors are ``vec3`` values inside kernels and ``(N, 3)`` float arrays on
the host. Arithmetic never clamps: values stay in linear light until
export, where they are clamped to [0, 1].
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Colors share the vector type
rgb = tm.vec3

BLACK = (0.0, 0.0, 0.0)
WHITE = (1.0, 1.0, 1.0)


@ti.func
def lerp(start: rgb, end: rgb, t: ti.f32) -> rgb:
    """Linear interpolation (1 - t) * start + t * end."""
    return (1.0 - t) * start + t * end


@ti.func
def linear_to_gamma(color: rgb) -> rgb:
    """Convert linear light to gamma space (square root per channel).

    Negative channels map to 0 to keep the square root defined.
    """
    return ti.sqrt(tm.max(color, rgb(0.0, 0.0, 0.0)))


@ti.func
def clamp_color(color: rgb) -> rgb:
    """Clamp every channel to [0, 1]."""
    return tm.clamp(color, 0.0, 1.0)


# =============================================================================
# Host-side buffer operations
# =============================================================================


def clamp_colors(colors: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Clamp every channel of a color buffer to [0, 1].

    Args:
        colors: Array of shape (..., 3).

    Returns:
        A new float32 array with the same shape. NaN channels become 0.
    """
    array = np.nan_to_num(np.asarray(colors, dtype=np.float32), nan=0.0)
    return np.clip(array, 0.0, 1.0)


def linear_to_gamma_space(colors: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Apply gamma-2 encoding (square root) to a linear color buffer.

    Args:
        colors: Linear color array of shape (..., 3).

    Returns:
        A new float32 array in gamma space. Negative inputs map to 0.
    """
    array = np.asarray(colors, dtype=np.float32)
    return np.sqrt(np.maximum(array, 0.0)).astype(np.float32)


def validate_color(color: tuple[float, float, float], name: str = "color") -> None:
    """Check that a color tuple has three components in [0, 1].

    Raises:
        ValueError: On a wrong component count or an out-of-range value.
    """
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
