"""Image export utilities for rendered images.

This module serializes flat RGB buffers and writes them to disk. Every
channel is clamped to [0, 1] and scaled to 8 bits (truncating) on the way
out; gamma correction happens earlier, in postprocessing.

Supported formats:
    - Binary PPM (P6, via Pillow), the default
    - ASCII PPM (P3), handy for debugging
    - PNG (8-bit via Pillow)

Example:
    >>> import numpy as np
    >>> from raybow.preview.export import rgb_to_binary_ppm
    >>> data = np.ones((4, 3), dtype=np.float32)
    >>> rgb_to_binary_ppm(data, 2, 2)[:11]
    b'P6\\n2 2\\n255\\n'
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from raybow.core.color import clamp_colors

if TYPE_CHECKING:
    from raybow.core.renderer import RenderResult

logger = logging.getLogger(__name__)

MAX_COLOR_VALUE = 255


class ExportError(Exception):
    """Raised when image data cannot be serialized or written."""


def _to_uint8(rgb_data: npt.ArrayLike, width: int, height: int) -> npt.NDArray[np.uint8]:
    """Clamp, scale and truncate the first width*height pixels to bytes.

    Raises:
        ExportError: If there are fewer pixels than width * height.
    """
    if width < 1 or height < 1:
        raise ExportError(f"Image size must be positive, got {width}x{height}")

    pixels = np.asarray(rgb_data, dtype=np.float32).reshape(-1, 3)
    if width * height > len(pixels):
        raise ExportError(
            f"Image size {width}x{height} exceeds the {len(pixels)} pixels of data"
        )

    clamped = clamp_colors(pixels[: width * height])
    return (clamped * MAX_COLOR_VALUE).astype(np.uint8)


def _to_pil_image(rgb_data: npt.ArrayLike, width: int, height: int) -> PILImage.Image:
    """Build an 8-bit RGB Pillow image from the first width*height pixels."""
    pixels = _to_uint8(rgb_data, width, height).reshape(height, width, 3)
    return PILImage.fromarray(pixels)


def rgb_to_binary_ppm(rgb_data: npt.ArrayLike, width: int, height: int) -> bytes:
    """Encode RGB data as a binary (P6) PPM image using Pillow.

    Args:
        rgb_data: Pixel colors, shape (N, 3) or (height, width, 3), row 0 at
            the top. Values outside [0, 1] are clamped.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The header ``P6\\n{width} {height}\\n255\\n`` followed by three bytes
        per pixel.

    Raises:
        ExportError: If the data holds fewer than width * height pixels.
    """
    buffer = io.BytesIO()
    _to_pil_image(rgb_data, width, height).save(buffer, format="PPM")
    return buffer.getvalue()


def rgb_to_ascii_ppm(rgb_data: npt.ArrayLike, width: int, height: int) -> bytes:
    """Encode RGB data as an ASCII (P3) PPM image.

    Pillow only writes the binary form, so this debugging variant is
    formatted directly: one ``r g b`` line per pixel follows the header.

    Raises:
        ExportError: If the data holds fewer than width * height pixels.
    """
    pixels = _to_uint8(rgb_data, width, height)
    header = f"P3\n{width} {height}\n{MAX_COLOR_VALUE}\n"
    body = "\n".join(f"{r} {g} {b}" for r, g, b in pixels.tolist())
    return (header + body).encode("ascii")


def save_ppm(
    rgb_data: npt.ArrayLike,
    width: int,
    height: int,
    filepath: str | Path,
    *,
    binary: bool = True,
) -> None:
    """Write RGB data to a PPM file.

    Binary files are written by Pillow, ASCII files by rgb_to_ascii_ppm().

    Raises:
        ExportError: If the data is too small or the file cannot be written.
    """
    try:
        if binary:
            _to_pil_image(rgb_data, width, height).save(filepath, format="PPM")
        else:
            Path(filepath).write_bytes(rgb_to_ascii_ppm(rgb_data, width, height))
    except OSError as exc:
        raise ExportError(f"Cannot write {filepath}: {exc}") from exc


def save_png(rgb_data: npt.ArrayLike, width: int, height: int, filepath: str | Path) -> None:
    """Write RGB data to an 8-bit PNG file using Pillow.

    Raises:
        ExportError: If the data is too small or the file cannot be written.
    """
    pil_image = _to_pil_image(rgb_data, width, height)
    try:
        pil_image.save(filepath, format="PNG")
    except OSError as exc:
        raise ExportError(f"Cannot write {filepath}: {exc}") from exc


def export_to_file(filepath: str | Path, result: RenderResult) -> Path:
    """Write a render result, picking the format from the file extension.

    ``.png`` is written with Pillow, ``.ppm`` as binary PPM. Any other or
    missing extension gets ``.ppm`` appended.

    Args:
        filepath: Destination path.
        result: The (postprocessed) render result.

    Returns:
        The path that was written.

    Raises:
        ExportError: If the data is too small or the file cannot be written.
    """
    path = Path(filepath)
    suffix = path.suffix.lower()

    if suffix == ".png":
        save_png(result.image_data, result.width, result.height, path)
    else:
        if suffix != ".ppm":
            path = path.with_name(path.name + ".ppm")
        save_ppm(result.image_data, result.width, result.height, path)

    logger.debug("Wrote %dx%d image to %s", result.width, result.height, path)
    return path
