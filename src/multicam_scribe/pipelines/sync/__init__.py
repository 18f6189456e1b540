"""Content-based alignment of independently recorded tracks."""

from __future__ import annotations

from .correlation import CorrelationPeak, cross_correlate, estimate_lag
from .fft import forward_fft, inverse_fft, next_power_of_two
from .offsets import (
    AnalysisWindow,
    OffsetEstimator,
    SyncMethod,
    SyncResult,
    estimate_offsets,
    offsets_by_source,
)
from .samples import FFmpegSampleFetcher, SampleFetcher

__all__ = [
    "AnalysisWindow",
    "CorrelationPeak",
    "FFmpegSampleFetcher",
    "OffsetEstimator",
    "SampleFetcher",
    "SyncMethod",
    "SyncResult",
    "cross_correlate",
    "estimate_lag",
    "estimate_offsets",
    "forward_fft",
    "inverse_fft",
    "next_power_of_two",
    "offsets_by_source",
]
