"""Unit tests for the row renderer.

Tests cover:
- RenderSettings construction and validation
- Progress reporting through callbacks and the generator
- Seeded determinism
- Non-finite samples dropped to black
- Output ordering and formats
"""

import numpy as np
import pytest


def _setup_view(aspect_ratio=1.0):
    from pathtracer.camera.thin_lens import Camera, setup_camera

    setup_camera(
        Camera(
            lookfrom=(0.0, 0.0, 0.0),
            lookat=(0.0, 0.0, -1.0),
            vup=(0.0, 1.0, 0.0),
            vfov=90.0,
            aspect_ratio=aspect_ratio,
        )
    )


def _diffuse_scene():
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, albedo=(0.5, 0.5, 0.5))
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, albedo=(0.7, 0.3, 0.3))
    return scene


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults(self):
        from pathtracer.core.renderer import RenderSettings

        settings = RenderSettings(width=10, height=5)
        assert settings.samples_per_pixel == 100
        assert settings.max_depth == 50

    def test_from_aspect_ratio(self):
        from pathtracer.core.renderer import RenderSettings

        settings = RenderSettings.from_aspect_ratio(400, 16.0 / 9.0, samples_per_pixel=4)
        assert settings.height == 225
        assert settings.samples_per_pixel == 4

    def test_from_aspect_ratio_rejects_non_positive(self):
        from pathtracer.core.renderer import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings.from_aspect_ratio(400, 0.0)

    @pytest.mark.parametrize(
        "field", ["width", "height", "samples_per_pixel", "max_depth", "rows_per_batch"]
    )
    def test_non_positive_rejected(self, field):
        from pathtracer.core.renderer import Renderer, RenderSettings

        settings = RenderSettings(width=4, height=4)
        setattr(settings, field, 0)
        with pytest.raises(ValueError, match=f"{field} must be positive"):
            Renderer(settings)

    def test_oversized_image_rejected(self):
        from pathtracer.core.renderer import MAX_IMAGE_WIDTH, Renderer, RenderSettings

        with pytest.raises(RuntimeError, match="exceeds maximum"):
            Renderer(RenderSettings(width=MAX_IMAGE_WIDTH + 1, height=4))


class TestProgress:
    """Tests for progress reporting."""

    def test_callback_once_per_row(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view()
        calls = []
        renderer = Renderer(RenderSettings(width=3, height=5, samples_per_pixel=1, rows_per_batch=2))
        renderer.render(callback=lambda done, total: calls.append((done, total)))

        assert calls == [(k, 5) for k in range(1, 6)]

    def test_render_progressive_yields(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view()
        renderer = Renderer(RenderSettings(width=2, height=3, samples_per_pixel=1))
        progress = list(renderer.render_progressive())

        assert progress == [(1, 3), (2, 3), (3, 3)]
        assert renderer.get_image_uint8().shape == (3, 2, 3)

    def test_rows_remaining(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view()
        renderer = Renderer(RenderSettings(width=2, height=4, samples_per_pixel=1))
        assert renderer.rows_remaining == 4
        renderer.render()
        assert renderer.rows_remaining == 0

    def test_outputs_before_render_raise(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        renderer = Renderer(RenderSettings(width=2, height=2))
        with pytest.raises(RuntimeError, match="No image has been rendered"):
            renderer.get_pixel_sums()
        with pytest.raises(RuntimeError):
            renderer.pixel_strings()


class TestDeterminism:
    """Tests for seeded reproducibility."""

    def test_same_seed_same_image(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view()
        _diffuse_scene()
        settings = RenderSettings(width=6, height=4, samples_per_pixel=4, seed=7)

        first = Renderer(settings)
        first.render()
        sums_a = first.get_pixel_sums()

        second = Renderer(settings)
        second.render()
        np.testing.assert_array_equal(sums_a, second.get_pixel_sums())

    def test_different_seed_different_samples(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view()
        _diffuse_scene()

        renderer_a = Renderer(RenderSettings(width=6, height=4, samples_per_pixel=4, seed=1))
        renderer_a.render()
        sums_a = renderer_a.get_pixel_sums()

        renderer_b = Renderer(RenderSettings(width=6, height=4, samples_per_pixel=4, seed=2))
        renderer_b.render()
        assert not np.array_equal(sums_a, renderer_b.get_pixel_sums())

    def test_batch_size_does_not_change_image(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view()
        _diffuse_scene()

        renderer_a = Renderer(RenderSettings(width=4, height=6, samples_per_pixel=2, rows_per_batch=1))
        renderer_a.render()
        renderer_b = Renderer(RenderSettings(width=4, height=6, samples_per_pixel=2, rows_per_batch=16))
        renderer_b.render()
        np.testing.assert_array_equal(renderer_a.get_pixel_sums(), renderer_b.get_pixel_sums())


class TestSampleGuard:
    """Tests for dropping non-finite samples before accumulation."""

    def _guarded(self, value):
        import taichi as ti

        from pathtracer.core.renderer import _finite_or_black

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(x: ti.f32):
            result[None] = _finite_or_black(ti.math.vec3(x, 0.5, 0.25))

        test_kernel(value)
        return result[None].to_numpy()

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_sample_is_black(self, bad):
        np.testing.assert_array_equal(self._guarded(bad), [0.0, 0.0, 0.0])

    @pytest.mark.parametrize("good", [0.0, 0.75, 3.0e38])
    def test_finite_sample_passes(self, good):
        np.testing.assert_allclose(self._guarded(good), [good, 0.5, 0.25], rtol=1e-6)


class TestOutput:
    """Tests for image ordering and formats."""

    def test_empty_scene_top_row_is_bluer(self):
        """Test output is top row first: the sky reddens toward the horizon below."""
        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view()
        renderer = Renderer(RenderSettings(width=4, height=4, samples_per_pixel=8))
        image = renderer.render()

        assert image.dtype == np.uint8
        assert image.shape == (4, 4, 3)
        assert image[0, :, 0].mean() < image[-1, :, 0].mean()
        assert np.all(image[:, :, 2] >= 254)

    def test_sums_divided_by_samples(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view()
        renderer = Renderer(RenderSettings(width=3, height=3, samples_per_pixel=5))
        renderer.render()
        sums = renderer.get_pixel_sums()

        # Sky blue channel is always 1.0
        np.testing.assert_allclose(sums[:, :, 2], 5.0, atol=1e-4)

    def test_pixel_strings(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view(aspect_ratio=2.0)
        renderer = Renderer(RenderSettings(width=4, height=2, samples_per_pixel=2))
        image = renderer.render()
        strings = renderer.pixel_strings()

        assert len(strings) == 8
        assert strings[0] == "{} {} {}\n".format(*image[0, 0])
        for line in strings:
            values = [int(x) for x in line.split()]
            assert len(values) == 3
            assert all(0 <= v <= 255 for v in values)

    def test_save_image(self, tmp_path):
        from PIL import Image

        from pathtracer.core.renderer import Renderer, RenderSettings

        _setup_view()
        renderer = Renderer(RenderSettings(width=3, height=2, samples_per_pixel=1))
        image = renderer.render()

        png_path = tmp_path / "out.png"
        renderer.save_image(str(png_path))
        np.testing.assert_array_equal(np.array(Image.open(png_path)), image)

        ppm_path = tmp_path / "out.ppm"
        renderer.save_image(str(ppm_path))
        assert ppm_path.read_text().startswith("P3\n3 2\n255\n")

    def test_repr(self):
        from pathtracer.core.renderer import Renderer, RenderSettings

        renderer = Renderer(RenderSettings(width=8, height=4, samples_per_pixel=3))
        assert repr(renderer) == (
            "Renderer(width=8, height=4, samples_per_pixel=3, max_depth=50, seed=0)"
        )
