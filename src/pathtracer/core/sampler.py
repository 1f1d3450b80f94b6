"""Per-stream random number generation for Monte Carlo sampling.

Every consumer of randomness inside a kernel passes an explicit stream
index. The renderer hands each image row its own stream, so a row always
draws the same sequence no matter which CPU thread Taichi schedules it on,
and a fixed seed reproduces an image exactly.

Streams are seeded with a cascaded Wang hash of (seed, stream index) and
advanced with xorshift32. The top 24 bits of each state map exactly onto
the float32 mantissa, giving uniform values in [0, 1).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.sampler import seed_streams, random_float
    >>> seed_streams(42)
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     return random_float(0)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti

# One stream per image row; matches the maximum render target height
MAX_STREAMS = 2048

_rng_states = ti.field(dtype=ti.u32, shape=MAX_STREAMS)

# 2^-24: maps a 24-bit integer onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash.

    Args:
        key: The value to hash.

    Returns:
        A well-mixed 32-bit hash of key.
    """
    k = (key ^ ti.u32(61)) ^ (key >> ti.u32(16))
    k = k * ti.u32(9)
    k = k ^ (k >> ti.u32(4))
    k = k * ti.u32(0x27D4EB2D)
    k = k ^ (k >> ti.u32(15))
    return k


@ti.kernel
def _seed_streams_kernel(seed: ti.u32):
    for s in _rng_states:
        state = wang_hash(seed ^ wang_hash(ti.cast(s, ti.u32)))
        # xorshift has a fixed point at zero
        if state == ti.u32(0):
            state = ti.u32(0x9E3779B9 & 0x7FFFFFFF)
        _rng_states[s] = state


def seed_streams(seed: int) -> None:
    """Seed every random stream from a single integer seed.

    Args:
        seed: Any integer; only the low 32 bits are used.
    """
    _seed_streams_kernel(seed & 0xFFFFFFFF)


@ti.func
def _next_u32(stream: ti.i32) -> ti.u32:
    x = _rng_states[stream]
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    _rng_states[stream] = x
    return x


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw a uniform value in [0, 1) from a stream.

    Args:
        stream: Index of the random stream to advance. A stream must only be
            used by one parallel loop iteration at a time.

    Returns:
        A float32 uniformly distributed in [0, 1).
    """
    return ti.cast(_next_u32(stream) >> ti.u32(8), ti.f32) * _INV_2_24


@ti.func
def random_range(lo: ti.f32, hi: ti.f32, stream: ti.i32) -> ti.f32:
    """Draw a uniform value in [lo, hi) from a stream."""
    return lo + (hi - lo) * random_float(stream)


_draw_buffer = ti.field(dtype=ti.f32, shape=4096)


@ti.kernel
def _draw_kernel(stream: ti.i32, count: ti.i32):
    ti.loop_config(serialize=True)
    for k in range(count):
        _draw_buffer[k] = random_float(stream)


def random_floats(stream: int, count: int) -> npt.NDArray[np.float32]:
    """Draw values from a stream on the host side.

    Intended for diagnostics and tests.

    Args:
        stream: Index of the stream to draw from.
        count: Number of values (at most 4096).

    Returns:
        Array of shape (count,) with values in [0, 1).

    Raises:
        ValueError: If stream or count is out of range.
    """
    if not 0 <= stream < MAX_STREAMS:
        raise ValueError(f"Stream {stream} is outside [0, {MAX_STREAMS})")
    if not 0 < count <= _draw_buffer.shape[0]:
        raise ValueError(f"Count {count} is outside [1, {_draw_buffer.shape[0]}]")
    _draw_kernel(stream, count)
    return _draw_buffer.to_numpy()[:count].copy()
