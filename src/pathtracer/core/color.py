"""Color representation and conversion to integer pixels.

Colors share the ``tm.vec3`` storage type with points and directions but
carry radiance or albedo, usually in [0, 1] per channel. Inside kernels
they are accumulated as per-pixel sums of sample radiance; this module
turns those sums into displayable 8-bit pixels.

Conversion for each channel:
    c = sqrt(sum / samples_per_pixel)      (average, then gamma 2.0)
    pixel = int(256 * clamp(c, 0, 0.999))  (always in [0, 255])

Example:
    >>> import numpy as np
    >>> from pathtracer.core.color import color_to_string, finalize_pixels
    >>> color_to_string((4.0, 1.0, 0.0), samples_per_pixel=4)
    '255 128 0\\n'
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi.math as tm

# Type alias for RGB colors
color3 = tm.vec3

# Upper clamp bound before scaling by 256; keeps pixels within [0, 255]
MAX_INTENSITY = 0.999


def finalize_pixels(
    pixel_sums: npt.NDArray[np.floating],
    samples_per_pixel: int,
) -> npt.NDArray[np.uint8]:
    """Convert accumulated sample sums to 8-bit pixels.

    NaN values become zero and infinities are clamped like any other
    out-of-range value, so no invalid number reaches the integer conversion.

    Args:
        pixel_sums: Array of shape (..., 3) holding per-pixel radiance sums.
        samples_per_pixel: Number of samples that were summed per pixel.

    Returns:
        Array of the same shape with dtype uint8.

    Raises:
        ValueError: If samples_per_pixel is not positive.
    """
    if samples_per_pixel <= 0:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")

    sums = np.nan_to_num(np.asarray(pixel_sums, dtype=np.float64), nan=0.0, posinf=1.0, neginf=0.0)
    scale = 1.0 / samples_per_pixel

    # Gamma-correct for gamma=2.0; negative sums are clipped before sqrt
    corrected = np.sqrt(np.clip(scale * sums, 0.0, None))
    clamped = np.clip(corrected, 0.0, MAX_INTENSITY)

    return (256.0 * clamped).astype(np.uint8)


def color_to_string(pixel_sum: Sequence[float], samples_per_pixel: int) -> str:
    """Format a single accumulated color as an ``"R G B\\n"`` pixel string.

    Args:
        pixel_sum: The (r, g, b) sum of all samples for the pixel.
        samples_per_pixel: Number of samples in the sum.

    Returns:
        The integer pixel values separated by spaces, newline-terminated.
    """
    rgb = finalize_pixels(np.asarray(pixel_sum, dtype=np.float64).reshape(1, 3), samples_per_pixel)
    r, g, b = (int(c) for c in rgb[0])
    return f"{r} {g} {b}\n"


def check_albedo(albedo: Sequence[float]) -> None:
    """Reject reflectances that would add energy or go negative.

    Raises:
        ValueError: If any of the three components is outside [0, 1].
    """
    for channel, component in zip("RGB", albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(f"Albedo {channel} = {component} is outside [0, 1]")
