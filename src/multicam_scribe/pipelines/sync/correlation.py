"""FFT-based circular cross-correlation and lag extraction."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .fft import forward_fft, inverse_fft, next_power_of_two

__all__ = [
    "CorrelationPeak",
    "circular_index_to_lag",
    "cross_correlate",
    "estimate_lag",
    "normalized_confidence",
    "round_half_up",
]


@dataclass(frozen=True, slots=True)
class CorrelationPeak:
    """Best-aligning shift between two signals."""

    lag_samples: int
    peak_value: float
    confidence: float
    size: int

    def lag_ms(self, sample_rate_hz: int) -> int:
        """Return the lag in whole milliseconds."""
        return round_half_up(self.lag_samples / sample_rate_hz * 1000.0)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going towards +inf."""
    return int(math.floor(value + 0.5))


def cross_correlate(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    """Return ``R[k] = IFFT(FFT(a) * conj(FFT(b)))`` over a zero-padded buffer.

    The buffer length is the next power of two ``>= len(a) + len(b) - 1`` so the
    circular result contains the full linear correlation without wraparound.
    ``R[k]`` peaks where ``a[m + k]`` best matches ``b[m]``, so when ``b`` is ``a``
    delayed by ``d`` samples the peak sits at the negative lag ``-d``.
    """
    signal_a = _as_signal(a)
    signal_b = _as_signal(b)
    if signal_a.size == 0 or signal_b.size == 0:
        raise ValueError("Cannot correlate an empty signal.")

    n = next_power_of_two(signal_a.size + signal_b.size - 1)

    a_real = np.zeros(n, dtype=np.float64)
    a_imag = np.zeros(n, dtype=np.float64)
    b_real = np.zeros(n, dtype=np.float64)
    b_imag = np.zeros(n, dtype=np.float64)
    a_real[: signal_a.size] = signal_a
    b_real[: signal_b.size] = signal_b

    forward_fft(a_real, a_imag)
    forward_fft(b_real, b_imag)

    # A * conj(B)
    c_real = a_real * b_real + a_imag * b_imag
    c_imag = a_imag * b_real - a_real * b_imag

    inverse_fft(c_real, c_imag)
    return c_real


def circular_index_to_lag(index: int, size: int) -> int:
    """Map a circular correlation index onto a signed lag."""
    return index if index <= size // 2 else index - size


def normalized_confidence(peak_value: float, a: ArrayLike, b: ArrayLike) -> float:
    """Return ``clamp01(peak / sqrt(energy(a) * energy(b)))``."""
    signal_a = _as_signal(a)
    signal_b = _as_signal(b)
    norm = math.sqrt(float(np.dot(signal_a, signal_a)) * float(np.dot(signal_b, signal_b)))
    if norm <= 0.0 or not math.isfinite(norm) or not math.isfinite(peak_value):
        return 0.0
    return min(1.0, max(0.0, peak_value / norm))


def estimate_lag(a: ArrayLike, b: ArrayLike) -> CorrelationPeak:
    """Correlate ``a`` with ``b`` and return the peak as a signed lag with confidence.

    A positive lag means the shared content sits ``lag`` samples later in ``a``
    than in ``b``.
    """
    signal_a = _as_signal(a)
    signal_b = _as_signal(b)
    correlation = cross_correlate(signal_a, signal_b)

    peak_index = int(np.argmax(correlation))
    peak_value = float(correlation[peak_index])
    size = int(correlation.shape[0])

    return CorrelationPeak(
        lag_samples=circular_index_to_lag(peak_index, size),
        peak_value=peak_value,
        confidence=normalized_confidence(peak_value, signal_a, signal_b),
        size=size,
    )


def _as_signal(values: ArrayLike) -> NDArray[np.float64]:
    return np.asarray(values, dtype=np.float64).reshape(-1)
