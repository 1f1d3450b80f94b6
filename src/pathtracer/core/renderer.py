"""Parallel row renderer with per-row progress reporting.

This module turns the current scene and camera into an image:
- Every pixel averages samples_per_pixel jittered camera rays
- Rows are rendered in parallel by a Taichi kernel on the CPU thread pool
- Each row draws from its own random stream, so a seed reproduces the
  image exactly regardless of thread count or scheduling
- Progress is reported once per completed row, through a callback or a
  generator

Rows are numbered bottom-up (row 0 is the bottom of the image, matching
the camera's t axis) but dispatched and reported top row first, and all
host-side outputs are ordered top-to-bottom.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.renderer import Renderer, RenderSettings
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.scene.random_scene import (
    ...     create_random_scene, create_random_scene_camera
    ... )
    >>>
    >>> scene = create_random_scene(seed=0)
    >>> setup_camera(create_random_scene_camera(16.0 / 9.0))
    >>> renderer = Renderer(RenderSettings(width=400, height=225, samples_per_pixel=10))
    >>> image = renderer.render(callback=lambda done, total: None)
"""

from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti

from pathtracer.camera.thin_lens import get_ray_jittered
from pathtracer.core.color import color3, finalize_pixels
from pathtracer.core.integrator import ray_color
from pathtracer.core.sampler import MAX_STREAMS, seed_streams

# Type alias for progress callback
# Callback receives (rows_completed, total_rows)
ProgressCallback = Callable[[int, int], None]

# =============================================================================
# Render Target
# =============================================================================

# Preallocated; the active region is width x height
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = min(2048, MAX_STREAMS)

# Sum of sample radiance per pixel, indexed [column, row] with row 0 at the bottom
_pixel_sums = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Rows of the current render not yet finished
_rows_remaining = ti.field(dtype=ti.i32, shape=())

# f32 exponent bits; all set means Inf or NaN
_F32_EXPONENT_MASK = 0x7F800000


@dataclass
class RenderSettings:
    """Image size and sampling parameters for a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered rays averaged per pixel.
        max_depth: Maximum number of bounces per ray.
        seed: Seed for the per-row random streams.
        rows_per_batch: Rows handed to the thread pool per kernel launch.
            Progress is reported after each batch.
    """

    width: int
    height: int
    samples_per_pixel: int = 100
    max_depth: int = 50
    seed: int = 0
    rows_per_batch: int = 16

    @classmethod
    def from_aspect_ratio(cls, width: int, aspect_ratio: float, **kwargs) -> "RenderSettings":
        """Create settings with height = int(width / aspect_ratio)."""
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        return cls(width=width, height=int(width / aspect_ratio), **kwargs)

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any value is not positive.
            RuntimeError: If the image exceeds the preallocated render target.
        """
        for name in ("width", "height", "samples_per_pixel", "max_depth", "rows_per_batch"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise RuntimeError(
                f"Image size {self.width}x{self.height} exceeds maximum "
                f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
            )


# =============================================================================
# Render Kernel
# =============================================================================


@ti.func
def _finite_or_black(c: color3) -> color3:
    result = c
    for k in ti.static(range(3)):
        # Compared on bits; fast-math folds x != x away
        if (ti.bit_cast(c[k], ti.u32) & _F32_EXPONENT_MASK) == _F32_EXPONENT_MASK:
            result = color3(0.0, 0.0, 0.0)
    return result


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    # Outermost loop runs in parallel; one row per iteration
    for j in range(row_start, row_end):
        for i in range(width):
            total = color3(0.0, 0.0, 0.0)
            for _ in range(samples_per_pixel):
                ray = get_ray_jittered(i, j, width, height, j)
                total += _finite_or_black(ray_color(ray, max_depth, j))
            _pixel_sums[i, j] = total
        ti.atomic_sub(_rows_remaining[None], 1)


# =============================================================================
# Renderer
# =============================================================================


class Renderer:
    """Renders the current scene through the current camera.

    The scene (see :class:`pathtracer.scene.manager.SceneManager`) and the
    camera (see :func:`pathtracer.camera.thin_lens.setup_camera`) must be set
    up before rendering and left untouched while a render runs.

    Attributes:
        settings: The validated render settings.
    """

    def __init__(self, settings: RenderSettings) -> None:
        """Initialize the renderer.

        Raises:
            ValueError: If a setting is not positive.
            RuntimeError: If the image exceeds the maximum supported size.
        """
        settings.validate()
        self.settings = settings
        self._rendered = False
        _rows_remaining[None] = settings.height

    @property
    def width(self) -> int:
        return self.settings.width

    @property
    def height(self) -> int:
        return self.settings.height

    @property
    def rows_remaining(self) -> int:
        """Number of rows of the current render that are not finished."""
        return int(_rows_remaining[None])

    def _row_batches(self) -> Generator[tuple[int, int], None, None]:
        # Top row first
        batch_end = self.height
        while batch_end > 0:
            batch_start = max(batch_end - self.settings.rows_per_batch, 0)
            yield batch_start, batch_end
            batch_end = batch_start

    def render_progressive(self) -> Generator[tuple[int, int], None, None]:
        """Render the image, yielding progress after every finished row.

        Streams are reseeded from settings.seed first, so repeated renders
        with the same settings produce identical images.

        Yields:
            Tuple of (rows_completed, total_rows), once per row.

        Example:
            >>> for done, total in renderer.render_progressive():
            ...     print(f"Scanlines remaining: {total - done}")
        """
        s = self.settings
        seed_streams(s.seed)
        _pixel_sums.fill(0.0)
        _rows_remaining[None] = s.height
        self._rendered = False

        rows_completed = 0
        for batch_start, batch_end in self._row_batches():
            _render_rows(
                batch_start, batch_end, s.width, s.height, s.samples_per_pixel, s.max_depth
            )
            for _ in range(batch_end - batch_start):
                rows_completed += 1
                yield (rows_completed, s.height)

        self._rendered = True

    def render(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.uint8]:
        """Render the image.

        Args:
            callback: Optional function called once per finished row with
                (rows_completed, total_rows).

        Returns:
            The image as a uint8 array of shape (height, width, 3), top row
            first.
        """
        for rows_completed, total_rows in self.render_progressive():
            if callback is not None:
                callback(rows_completed, total_rows)
        return self.get_image_uint8()

    def _check_rendered(self) -> None:
        if not self._rendered:
            raise RuntimeError("No image has been rendered yet. Call render() first.")

    def get_pixel_sums(self) -> npt.NDArray[np.float32]:
        """Get the per-pixel sample sums, shape (height, width, 3), top row first.

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        self._check_rendered()
        sums = _pixel_sums.to_numpy()[: self.width, : self.height]
        return np.ascontiguousarray(np.flipud(sums.transpose(1, 0, 2)))

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the finalized 8-bit image, shape (height, width, 3), top row first.

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        return finalize_pixels(self.get_pixel_sums(), self.settings.samples_per_pixel)

    def pixel_strings(self) -> list[str]:
        """Get one ``"R G B\\n"`` string per pixel, row-major, top row first.

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        pixels = self.get_image_uint8().reshape(-1, 3)
        return [f"{r} {g} {b}\n" for r, g, b in pixels.tolist()]

    def save_image(self, filepath: str) -> None:
        """Save the rendered image; ``.ppm`` writes ASCII P3, anything else uses Pillow.

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        from pathtracer.preview.export import save_image

        save_image(self.get_image_uint8(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples_per_pixel={self.settings.samples_per_pixel}, "
            f"max_depth={self.settings.max_depth}, seed={self.settings.seed})"
        )
