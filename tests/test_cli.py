"""Tests for the command line interface.

main() is not called here because it initializes Taichi, which the test
session has already done; run() is exercised directly instead.
"""

import logging

import pytest

from raybow.cli import build_parser, init_logging, run


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.output_path == "untitled.ppm"
        assert args.output_width == 256
        assert args.output_height == 256
        assert args.focal_length == 1.0
        assert args.vfov == 90.0
        assert args.defocus_angle == 0.0
        assert args.samples_per_pixel == 1
        assert args.steps == 10
        assert args.gamma_correction is False
        assert args.seed == 0
        assert args.arch == "cpu"
        assert args.verbose is False

    def test_all_options(self):
        args = build_parser().parse_args(
            [
                "-o", "out.png",
                "--output-width", "320",
                "--output-height", "180",
                "--focal-length", "3.4",
                "--vfov", "20",
                "--defocus-angle", "10",
                "--samples-per-pixel", "64",
                "--steps", "50",
                "--gamma-correction",
                "--seed", "7",
                "--arch", "gpu",
                "-v",
            ]
        )
        assert args.output_path == "out.png"
        assert (args.output_width, args.output_height) == (320, 180)
        assert args.focal_length == pytest.approx(3.4)
        assert args.vfov == 20.0
        assert args.defocus_angle == 10.0
        assert args.samples_per_pixel == 64
        assert args.steps == 50
        assert args.gamma_correction is True
        assert args.seed == 7
        assert args.arch == "gpu"
        assert args.verbose is True

    def test_rejects_unknown_arch(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--arch", "tpu"])

    def test_rejects_non_integer_width(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--output-width", "wide"])


class TestInitLogging:
    @pytest.mark.parametrize("verbose,level", [(True, logging.DEBUG), (False, logging.WARNING)])
    def test_level(self, monkeypatch, verbose, level):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        init_logging(verbose)
        assert calls[0]["level"] == level


class TestRun:
    def test_writes_ppm(self, tmp_path):
        output = tmp_path / "demo.ppm"
        args = build_parser().parse_args(
            ["-o", str(output), "--output-width", "8", "--output-height", "6", "--steps", "3"]
        )
        run(args)

        data = output.read_bytes()
        header = b"P6\n8 6\n255\n"
        assert data.startswith(header)
        assert len(data) == len(header) + 8 * 6 * 3

    def test_writes_png_with_gamma(self, tmp_path):
        from PIL import Image as PILImage

        output = tmp_path / "demo.png"
        args = build_parser().parse_args(
            [
                "-o", str(output),
                "--output-width", "8",
                "--output-height", "8",
                "--samples-per-pixel", "2",
                "--gamma-correction",
            ]
        )
        run(args)

        with PILImage.open(output) as loaded:
            assert loaded.size == (8, 8)

    def test_unknown_suffix_gets_ppm(self, tmp_path):
        args = build_parser().parse_args(
            ["-o", str(tmp_path / "demo"), "--output-width", "4", "--output-height", "4"]
        )
        run(args)
        assert (tmp_path / "demo.ppm").exists()

    def test_invalid_settings_raise(self, tmp_path):
        args = build_parser().parse_args(
            ["-o", str(tmp_path / "demo.ppm"), "--samples-per-pixel", "0"]
        )
        with pytest.raises(ValueError, match="samples_per_pixel"):
            run(args)
        assert not (tmp_path / "demo.ppm").exists()
