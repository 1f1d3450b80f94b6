"""Image export utilities for rendered images.

Images are uint8 arrays of shape (height, width, 3), top row first, as
returned by :meth:`pathtracer.core.renderer.Renderer.render`.

Supported formats:
    - PPM, plain ASCII ``P3`` (written directly)
    - PNG and any other format Pillow can write

Example:
    >>> from pathtracer.preview.export import save_image
    >>> image = renderer.render()
    >>> save_image(image, "output.png")
    >>> save_image(image, "output.ppm")
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def _check_image(image: npt.NDArray[np.uint8]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 image, got {image.dtype}")


def write_ppm(image: npt.NDArray[np.uint8], stream: TextIO | None = None) -> None:
    """Write an image as ASCII PPM (P3).

    The header is ``P3``, ``width height`` and ``255``, each on its own
    line, followed by one ``R G B`` line per pixel in row-major order.

    Args:
        image: uint8 array of shape (height, width, 3), top row first.
        stream: Text stream to write to. Defaults to sys.stdout.

    Raises:
        ValueError: If the array is not an 8-bit RGB image.
    """
    _check_image(image)
    out = stream if stream is not None else sys.stdout

    height, width, _ = image.shape
    out.write(f"P3\n{width} {height}\n255\n")
    out.writelines(f"{r} {g} {b}\n" for r, g, b in image.reshape(-1, 3).tolist())
    out.flush()


def save_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image as an ASCII PPM (P3) file."""
    with open(filepath, "w", encoding="ascii", newline="\n") as f:
        write_ppm(image, f)


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image with Pillow; the format follows the file suffix.

    Raises:
        ValueError: If the array is not an 8-bit RGB image.
    """
    _check_image(image)
    pil_image = PILImage.fromarray(np.ascontiguousarray(image))
    pil_image.save(filepath)


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image, choosing the writer from the file suffix.

    ``.ppm`` files are written as ASCII P3; every other suffix goes
    through Pillow.
    """
    if Path(filepath).suffix.lower() == ".ppm":
        save_ppm(image, filepath)
    else:
        save_png(image, filepath)
