"""In-place radix-2 Cooley-Tukey FFT over split real/imaginary buffers."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

__all__ = [
    "forward_fft",
    "inverse_fft",
    "is_power_of_two",
    "next_power_of_two",
]

Buffer = NDArray[np.float64]


def is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


def next_power_of_two(value: int) -> int:
    """Return the smallest power of two that is ``>= value`` (1 for non-positive input)."""
    if value <= 1:
        return 1
    return 1 << (value - 1).bit_length()


def forward_fft(real: Buffer, imag: Buffer) -> None:
    """Transform ``real``/``imag`` in place.

    Both buffers must be one-dimensional, C-contiguous ``float64`` arrays of the same
    power-of-two length. The permutation is applied first, then ``log2(n)`` butterfly
    stages combine blocks of doubling size with twiddles ``exp(-2j*pi*k/size)``.
    """
    n = _check_buffers(real, imag)
    if n == 1:
        return

    order = _bit_reversed_indices(n)
    real[:] = real[order]
    imag[:] = imag[order]

    size = 2
    while size <= n:
        half = size >> 1
        angle = -2.0 * math.pi / size
        steps = np.arange(half, dtype=np.float64) * angle
        w_real = np.cos(steps)
        w_imag = np.sin(steps)

        blocks_real = real.reshape(-1, size)
        blocks_imag = imag.reshape(-1, size)

        top_real = blocks_real[:, :half].copy()
        top_imag = blocks_imag[:, :half].copy()
        bottom_real = blocks_real[:, half:]
        bottom_imag = blocks_imag[:, half:]

        v_real = bottom_real * w_real - bottom_imag * w_imag
        v_imag = bottom_real * w_imag + bottom_imag * w_real

        blocks_real[:, :half] = top_real + v_real
        blocks_imag[:, :half] = top_imag + v_imag
        blocks_real[:, half:] = top_real - v_real
        blocks_imag[:, half:] = top_imag - v_imag

        size <<= 1


def inverse_fft(real: Buffer, imag: Buffer) -> None:
    """Inverse transform in place: conjugate, forward transform, conjugate and scale by 1/n."""
    n = _check_buffers(real, imag)
    np.negative(imag, out=imag)
    forward_fft(real, imag)
    real /= n
    imag /= -n


def _bit_reversed_indices(n: int) -> NDArray[np.intp]:
    bits = n.bit_length() - 1
    indices = np.arange(n, dtype=np.intp)
    reversed_indices = np.zeros(n, dtype=np.intp)
    for bit in range(bits):
        reversed_indices |= ((indices >> bit) & 1) << (bits - 1 - bit)
    return reversed_indices


def _check_buffers(real: Buffer, imag: Buffer) -> int:
    if real.ndim != 1 or imag.ndim != 1:
        raise ValueError("FFT buffers must be one-dimensional.")
    if real.shape != imag.shape:
        raise ValueError(
            f"FFT buffers must have equal length (got {real.shape[0]} and {imag.shape[0]})."
        )
    if real.dtype != np.float64 or imag.dtype != np.float64:
        raise ValueError("FFT buffers must be float64.")
    if not (real.flags.c_contiguous and imag.flags.c_contiguous):
        raise ValueError("FFT buffers must be contiguous to be transformed in place.")
    n = int(real.shape[0])
    if not is_power_of_two(n):
        raise ValueError(f"FFT length must be a power of two, got {n}.")
    return n
