"""Postprocessing of rendered images.

Postprocessing never modifies the render result it is given; it returns a
new RenderResult. Clamping to [0, 1] is left to the exporters.
"""

import logging

from raybow.core.color import linear_to_gamma_space
from raybow.core.renderer import RenderResult

logger = logging.getLogger(__name__)


def postprocess(result: RenderResult, gamma_correction: bool = False) -> RenderResult:
    """Apply the postprocessing chain to a render result.

    Args:
        result: The linear-light render result.
        gamma_correction: Whether to convert to gamma space (square root
            per channel).

    Returns:
        A new RenderResult with its own copy of the pixel data.
    """
    image_data = result.image_data.copy()
    if gamma_correction:
        logger.debug("Applying gamma correction")
        image_data = linear_to_gamma_space(image_data)

    return RenderResult(width=result.width, height=result.height, image_data=image_data)
