"""Render driver: settings, results and the scanline batch loop.

This module wraps the integrator kernels in a Python-side renderer that:
- Validates render settings up front
- Uploads the camera and prepares the render target
- Renders the image in scanline batches
- Reports progress after each batch and honors cooperative cancellation

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raybow.core.renderer import Renderer, RenderSettings
    >>> from raybow.scene.demo import create_demo_scene
    >>>
    >>> scene, camera = create_demo_scene(128, 128)
    >>> renderer = Renderer(camera, RenderSettings(samples_per_pixel=8))
    >>> result = renderer.render()
    >>> result.image_data.shape
    (16384, 3)
"""

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from raybow.camera.camera import Camera, setup_camera
from raybow.core.integrator import (
    DEFAULT_MAX_DEPTH,
    get_image_buffer,
    get_invalid_sample_count,
    render_rows,
    setup_render_target,
)
from raybow.core.progress import ProgressTracker

logger = logging.getLogger(__name__)

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]
CancelPredicate = Callable[[], bool]

# Relative progress between two "Render on N%" log lines
PROGRESS_MILESTONE = 0.1


class RenderCancelled(Exception):
    """Raised when a render is stopped by its cancellation predicate.

    Attributes:
        rows_done: Number of rows completed before the render stopped.
        total_rows: Number of rows in the image.
    """

    def __init__(self, rows_done: int, total_rows: int) -> None:
        super().__init__(f"Render cancelled after {rows_done} of {total_rows} rows")
        self.rows_done = rows_done
        self.total_rows = total_rows


@dataclass
class RenderSettings:
    """Integrator configuration.

    Attributes:
        samples_per_pixel: Rays per pixel. 1 shoots a single ray through the
            pixel center; more average jittered rays (anti-aliasing).
        max_depth: Bounce budget per path. 0 renders black.
        gamma_correction: Whether postprocessing converts to gamma space.
        rows_per_batch: Image rows rendered per kernel launch. Progress and
            cancellation are checked between batches.
    """

    samples_per_pixel: int = 1
    max_depth: int = DEFAULT_MAX_DEPTH
    gamma_correction: bool = False
    rows_per_batch: int = 16

    def __post_init__(self) -> None:
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.rows_per_batch < 1:
            raise ValueError(f"rows_per_batch must be at least 1, got {self.rows_per_batch}")


@dataclass
class RenderResult:
    """A rendered image in linear or gamma space.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        image_data: Float32 array of shape (width * height, 3), row-major
            with row 0 at the top.
    """

    width: int
    height: int
    image_data: npt.NDArray[np.float32]

    def as_image(self) -> npt.NDArray[np.float32]:
        """View the pixel data as a (height, width, 3) array."""
        return self.image_data.reshape(self.height, self.width, 3)


class Renderer:
    """Renders the loaded scene through a camera.

    The scene is whatever the SceneManager last loaded into the scene
    fields. The camera is uploaded at the start of every render, so camera
    changes between renders take effect.

    Attributes:
        camera: The camera to render through.
        settings: Integrator configuration.
    """

    def __init__(self, camera: Camera, settings: RenderSettings | None = None) -> None:
        self.camera = camera
        self.settings = settings if settings is not None else RenderSettings()

    @property
    def width(self) -> int:
        """Image width, taken from the camera."""
        return self.camera.width

    @property
    def height(self) -> int:
        """Image height, taken from the camera."""
        return self.camera.height

    def _prepare(self) -> None:
        setup_render_target(self.width, self.height)
        setup_camera(self.camera)

    def _finish(self) -> RenderResult:
        invalid = get_invalid_sample_count()
        if invalid > 0:
            logger.warning("Replaced %d non-finite samples with black", invalid)
        return RenderResult(
            width=self.width,
            height=self.height,
            image_data=get_image_buffer(),
        )

    def render_progressive(self) -> Generator[tuple[int, int], None, None]:
        """Render scanline batches, yielding progress after each one.

        The image is complete once the generator is exhausted; read it with
        result().

        Yields:
            Tuple of (rows_done, total_rows).
        """
        self._prepare()
        settings = self.settings
        total_rows = self.height
        tracker = ProgressTracker(0.0, float(total_rows), 1.0, PROGRESS_MILESTONE)

        logger.debug(
            "Rendering %dx%d at %d spp, depth %d",
            self.width,
            self.height,
            settings.samples_per_pixel,
            settings.max_depth,
        )

        rows_done = 0
        while rows_done < total_rows:
            batch_end = min(rows_done + settings.rows_per_batch, total_rows)
            render_rows(rows_done, batch_end, settings.samples_per_pixel, settings.max_depth)

            progress = tracker.increment(batch_end - rows_done)
            rows_done = batch_end
            if progress is not None:
                logger.debug(" Render on %.0f%%", progress * 100.0)

            yield rows_done, total_rows

    def result(self) -> RenderResult:
        """Collect the image rendered by the last render_progressive() run."""
        return self._finish()

    def render(
        self,
        callback: ProgressCallback | None = None,
        should_cancel: CancelPredicate | None = None,
    ) -> RenderResult:
        """Render the full image.

        Args:
            callback: Optional function called after each batch with
                (rows_done, total_rows).
            should_cancel: Optional predicate checked after each batch. When
                it returns True the render stops.

        Returns:
            The rendered image in linear color.

        Raises:
            RenderCancelled: If should_cancel requested a stop before the
                last row was rendered.
        """
        for rows_done, total_rows in self.render_progressive():
            if callback is not None:
                callback(rows_done, total_rows)
            if should_cancel is not None and rows_done < total_rows and should_cancel():
                logger.info("Render cancelled after %d of %d rows", rows_done, total_rows)
                raise RenderCancelled(rows_done, total_rows)

        return self._finish()

    def __repr__(self) -> str:
        return f"Renderer(width={self.width}, height={self.height}, settings={self.settings})"
