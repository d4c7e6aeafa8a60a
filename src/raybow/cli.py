"""Command line entry point.

Renders the demo scene and writes it to an image file.

Usage:
    raybow [options]
    python -m raybow [options]

Example:
    raybow -o spheres.ppm --output-width 400 --output-height 225 \\
        --samples-per-pixel 32 --steps 20 --gamma-correction -v
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence

import taichi as ti

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="raybow",
        description="A little raytracer.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-o",
        "--output-path",
        type=str,
        default="untitled.ppm",
        help="Output file; .png is written with Pillow, anything else as binary PPM",
    )
    parser.add_argument("--output-width", type=int, default=256, help="Output image width")
    parser.add_argument("--output-height", type=int, default=256, help="Output image height")
    parser.add_argument(
        "--focal-length",
        type=float,
        default=1.0,
        help="Distance from the camera to the plane of perfect focus",
    )
    parser.add_argument(
        "--vfov", type=float, default=90.0, help="Vertical field of view in degrees"
    )
    parser.add_argument(
        "--defocus-angle",
        type=float,
        default=0.0,
        help="Depth-of-field cone angle in degrees (0 disables depth of field)",
    )
    parser.add_argument(
        "--samples-per-pixel",
        type=int,
        default=1,
        help="Rays sent through each pixel (more means better anti-aliasing, but is slower)",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=10,
        help="Bounces each ray may make (more means more realism, but is slower)",
    )
    parser.add_argument(
        "--gamma-correction",
        action="store_true",
        help="Apply gamma correction to the final image",
    )
    parser.add_argument(
        "--seed", type=int, default=0, help="Seed for the random number generator"
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend; gpu falls back to cpu when unavailable",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose messages about program execution",
    )
    return parser


def init_logging(verbose: bool) -> None:
    """Configure the root logger: DEBUG when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )


def init_taichi(arch: str, seed: int) -> None:
    """Initialize Taichi, falling back to the CPU backend.

    fast_math is off so NaN checks in kernels are not optimised away.
    """
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu, random_seed=seed, fast_math=False)
            return
        except Exception:
            logger.warning("GPU backend unavailable, falling back to CPU")
    ti.init(arch=ti.cpu, random_seed=seed, fast_math=False)


def run(args: argparse.Namespace) -> None:
    """Render the demo scene according to the parsed arguments."""
    # Field-declaring modules are imported after ti.init()
    from raybow.core.postprocess import postprocess
    from raybow.core.renderer import Renderer, RenderSettings
    from raybow.preview.export import export_to_file
    from raybow.scene.demo import DemoCameraParams, create_demo_scene

    logger.info("Preparing scene data...")
    settings = RenderSettings(
        samples_per_pixel=args.samples_per_pixel,
        max_depth=args.steps,
        gamma_correction=args.gamma_correction,
    )
    _, camera = create_demo_scene(
        width=args.output_width,
        height=args.output_height,
        camera_params=DemoCameraParams(
            vfov=args.vfov,
            focus_distance=args.focal_length,
            defocus_angle=args.defocus_angle,
        ),
    )

    logger.info("Rendering...")
    render_result = Renderer(camera, settings).render()

    logger.info("Postprocessing...")
    postprocessing_result = postprocess(render_result, settings.gamma_correction)

    logger.info("Writing to files...")
    path = export_to_file(args.output_path, postprocessing_result)
    logger.info("Saved %s", path)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Process exit status: 0 on success, 1 on error.
    """
    args = build_parser().parse_args(argv)
    init_logging(args.verbose)

    start_time = time.perf_counter()
    logger.info("Starting...")

    init_taichi(args.arch, args.seed)

    # Imported lazily for the same reason as in run()
    from raybow.core.renderer import RenderCancelled
    from raybow.preview.export import ExportError

    try:
        run(args)
    except (ValueError, RuntimeError, ExportError, RenderCancelled) as exc:
        logger.error("%s", exc)
        return 1

    logger.debug("Done in %.2fs", time.perf_counter() - start_time)
    logger.info("Exit")
    return 0


if __name__ == "__main__":
    sys.exit(main())
