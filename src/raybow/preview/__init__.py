"""Preview module for image output.

Components:
    export: Binary/ASCII PPM and PNG writers

Example:
    >>> from raybow.preview import export_to_file
    >>> export_to_file("render.ppm", result)
"""

from raybow.preview.export import (
    ExportError,
    export_to_file,
    rgb_to_ascii_ppm,
    rgb_to_binary_ppm,
    save_png,
    save_ppm,
)

__all__ = [
    "ExportError",
    "rgb_to_binary_ppm",
    "rgb_to_ascii_ppm",
    "save_ppm",
    "save_png",
    "export_to_file",
]
