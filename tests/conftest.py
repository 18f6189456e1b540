"""Global pytest fixtures for Multicam-Scribe."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def band_limited_noise(rng: np.random.Generator) -> Callable[[int], np.ndarray]:
    """Factory for white noise smoothed with a short moving average."""

    def _make(length: int, taps: int = 8) -> np.ndarray:
        noise = rng.standard_normal(length + taps)
        kernel = np.ones(taps) / taps
        return np.convolve(noise, kernel, mode="valid")[:length]

    return _make
