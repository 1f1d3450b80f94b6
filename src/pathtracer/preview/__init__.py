"""Preview module for image output.

Components:
    export: ASCII PPM and Pillow-based image writers

Example:
    >>> from pathtracer.preview import save_image
    >>> save_image(renderer.render(), "output.png")
"""

from pathtracer.preview.export import (
    save_image,
    save_png,
    save_ppm,
    write_ppm,
)

__all__ = [
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
