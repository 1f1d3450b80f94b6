"""Integration tests for the end-to-end rendering pipeline.

These tests run the random sphere field from scene creation to image file
at a tiny resolution with few samples, so they stay fast while exercising
every module together.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import numpy as np
import pytest


class TestRandomSceneIntegration:
    """End-to-end renders of the random sphere field."""

    def _render(self, seed: int = 0):
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.renderer import Renderer, RenderSettings
        from pathtracer.scene.random_scene import create_random_scene, create_random_scene_camera

        create_random_scene(seed=seed)
        setup_camera(create_random_scene_camera(16.0 / 9.0))
        settings = RenderSettings.from_aspect_ratio(
            32, 16.0 / 9.0, samples_per_pixel=2, max_depth=8, seed=seed
        )
        renderer = Renderer(settings)
        return renderer, renderer.render()

    def test_renders_valid_image(self) -> None:
        _, image = self._render()

        assert image.shape == (18, 32, 3)
        assert image.dtype == np.uint8
        # Sky fills the top of the frame, ground the bottom
        assert image[0].mean() > image[-1].mean()
        assert image.std() > 0.0

    def test_reproducible(self) -> None:
        _, first = self._render(seed=4)
        _, second = self._render(seed=4)
        np.testing.assert_array_equal(first, second)

    def test_pixel_sums_finite(self) -> None:
        renderer, _ = self._render()
        assert np.all(np.isfinite(renderer.get_pixel_sums()))


class TestRenderScript:
    """Tests for the command-line render script."""

    def test_parse_args_defaults(self) -> None:
        from examples.render_random_scene import parse_args

        args = parse_args([])
        assert args.width == 1200
        assert args.aspect_ratio == pytest.approx(16.0 / 9.0)
        assert args.samples == 100
        assert args.max_depth == 50
        assert args.output == "random_scene.png"
        assert args.threads is None

    def test_parse_args_fraction_aspect_ratio(self) -> None:
        from examples.render_random_scene import parse_args

        args = parse_args(["--aspect-ratio", "3/2", "--width", "300", "--samples", "4"])
        assert args.aspect_ratio == pytest.approx(1.5)
        assert args.width == 300
        assert args.samples == 4

    @pytest.mark.parametrize("ratio", ["0", "abc", "1/0"])
    def test_parse_args_rejects_bad_aspect_ratio(self, ratio: str) -> None:
        from examples.render_random_scene import parse_args

        with pytest.raises(SystemExit):
            parse_args(["--aspect-ratio", ratio])

    def test_render_to_ppm_file(self, tmp_path) -> None:
        from examples.render_random_scene import render_random_scene

        output = tmp_path / "scene.ppm"
        result = render_random_scene(
            width=16,
            aspect_ratio=2.0,
            samples_per_pixel=1,
            max_depth=4,
            output_path=str(output),
            quiet=True,
        )

        assert result == output
        lines = output.read_text().splitlines()
        assert lines[:3] == ["P3", "16 8", "255"]
        assert len(lines) == 3 + 16 * 8

    def test_render_to_stdout(self, capsys) -> None:
        from examples.render_random_scene import render_random_scene

        result = render_random_scene(
            width=8, aspect_ratio=2.0, samples_per_pixel=1, max_depth=2, output_path="-"
        )

        captured = capsys.readouterr()
        assert result is None
        assert captured.out.startswith("P3\n8 4\n255\n")
        assert "Scanlines remaining: 0" in captured.err
