"""Estimation of per-source start offsets against a reference recording."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ...config.settings import SyncSettings
from ...sources import SourceRecording, SourceType, sort_by_display_order
from ...utils.logging import get_logger
from .correlation import estimate_lag, round_half_up
from .samples import SampleFetcher

LOGGER = get_logger(__name__)

__all__ = [
    "AnalysisWindow",
    "OffsetEstimator",
    "SyncMethod",
    "SyncResult",
    "estimate_offsets",
    "offsets_by_source",
]


class SyncMethod(str, Enum):
    """How an offset was obtained."""

    NONE = "none"
    DURATION_MATCH = "duration-match"
    AUDIO_CORRELATION = "audio-correlation"


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Offset of one source relative to the reference of a run."""

    source_id: str
    offset_ms: int
    method: SyncMethod
    confidence: float
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "source_id": self.source_id,
            "offset_ms": self.offset_ms,
            "method": self.method.value,
            "confidence": self.confidence,
        }
        if self.error:
            payload["error"] = self.error
        return payload

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SyncResult:
        """Parse a previously serialised result (snake_case or camelCase keys)."""
        source_id = data.get("source_id", data.get("sourceId"))
        if not source_id:
            raise ValueError("Sync result is missing 'source_id'.")
        error = data.get("error")
        return cls(
            source_id=str(source_id),
            offset_ms=int(data.get("offset_ms", data.get("offsetMs", 0))),
            method=SyncMethod(str(data.get("method", SyncMethod.NONE.value))),
            confidence=float(data.get("confidence", 0.0)),
            error=str(error) if error else None,
        )


@dataclass(frozen=True, slots=True)
class AnalysisWindow:
    """Slice of a track used for correlation."""

    start_seconds: float
    duration_seconds: float

    @classmethod
    def centered(cls, track_duration: float | None, window_seconds: float) -> AnalysisWindow:
        """Window taken from the temporal middle of the track."""
        duration = track_duration or 0.0
        return cls(
            start_seconds=max(0.0, (duration - window_seconds) / 2.0),
            duration_seconds=window_seconds,
        )


class OffsetEstimator:
    """Aligns every source of a session against the lowest ``display_order`` source."""

    def __init__(self, fetcher: SampleFetcher, settings: SyncSettings | None = None) -> None:
        self.fetcher = fetcher
        self.settings = settings or SyncSettings()

    def estimate_offsets(self, sources: Iterable[SourceRecording]) -> list[SyncResult]:
        """Return one result per source, reference first."""
        catalog = list(sources)
        if len(catalog) <= 1:
            return [
                SyncResult(source.id, 0, SyncMethod.NONE, 1.0) for source in catalog
            ]

        ordered = sort_by_display_order(catalog)
        reference = ordered[0]
        candidates = ordered[1:]

        decided: dict[str, SyncResult] = {}
        to_correlate: list[SourceRecording] = []
        for source in candidates:
            shortcut = self._shortcut(reference, source)
            if shortcut is None:
                to_correlate.append(source)
            else:
                decided[source.id] = shortcut

        if to_correlate:
            for result in self._correlate_all(reference, to_correlate):
                decided[result.source_id] = result

        results = [SyncResult(reference.id, 0, SyncMethod.NONE, 1.0)]
        results.extend(decided[source.id] for source in candidates)
        return results

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------
    def _shortcut(self, reference: SourceRecording, source: SourceRecording) -> SyncResult | None:
        if source.source_type is SourceType.BROLL or not source.has_audio:
            return SyncResult(source.id, 0, SyncMethod.NONE, 0.0)
        if not reference.has_audio:
            return SyncResult(source.id, 0, SyncMethod.NONE, 0.0)

        ref_duration = reference.duration_seconds
        src_duration = source.duration_seconds
        if (
            ref_duration is not None
            and src_duration is not None
            and abs(ref_duration - src_duration) < self.settings.duration_match_tolerance_seconds
        ):
            return SyncResult(source.id, 0, SyncMethod.DURATION_MATCH, 1.0)
        return None

    # ------------------------------------------------------------------
    # Audio correlation
    # ------------------------------------------------------------------
    def _correlate_all(
        self,
        reference: SourceRecording,
        sources: Sequence[SourceRecording],
    ) -> list[SyncResult]:
        ref_window = AnalysisWindow.centered(
            reference.duration_seconds, self.settings.window_seconds
        )
        try:
            ref_samples = self._fetch(reference, ref_window)
        except Exception as exc:  # noqa: BLE001 - a broken reference degrades every pair
            LOGGER.warning("Reference %s could not be decoded (%s).", reference.id, exc)
            return [self._failed(source, f"reference audio unavailable: {exc}") for source in sources]

        workers = max(1, min(self.settings.max_workers, len(sources)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sync") as pool:
            return list(
                pool.map(
                    lambda source: self._correlate_pair(ref_window, ref_samples, source),
                    sources,
                )
            )

    def _correlate_pair(
        self,
        ref_window: AnalysisWindow,
        ref_samples: NDArray[np.float32],
        source: SourceRecording,
    ) -> SyncResult:
        window = AnalysisWindow.centered(source.duration_seconds, self.settings.window_seconds)
        try:
            src_samples = self._fetch(source, window)
            if ref_samples.size == 0 or src_samples.size == 0:
                LOGGER.warning("No samples decoded for source %s; offset left at 0.", source.id)
                return self._failed(source, "no audio samples decoded")

            peak = estimate_lag(ref_samples, src_samples)
            lag_ms = peak.lag_ms(self.settings.sample_rate_hz)
            start_diff_ms = round_half_up((ref_window.start_seconds - window.start_seconds) * 1000.0)
            offset_ms = lag_ms + start_diff_ms
        except Exception as exc:  # noqa: BLE001 - one bad source must not block the others
            LOGGER.warning("Correlation failed for source %s (%s).", source.id, exc)
            return self._failed(source, str(exc))

        LOGGER.info(
            "Source %s: offset=%sms, confidence=%.2f, lag=%s samples",
            source.id,
            offset_ms,
            peak.confidence,
            peak.lag_samples,
        )
        return SyncResult(source.id, offset_ms, SyncMethod.AUDIO_CORRELATION, peak.confidence)

    def _fetch(self, source: SourceRecording, window: AnalysisWindow) -> NDArray[np.float32]:
        samples = self.fetcher.fetch_samples(
            source.id,
            window.start_seconds,
            window.duration_seconds,
            self.settings.sample_rate_hz,
        )
        return np.asarray(samples, dtype=np.float32).reshape(-1)

    @staticmethod
    def _failed(source: SourceRecording, reason: str) -> SyncResult:
        return SyncResult(source.id, 0, SyncMethod.AUDIO_CORRELATION, 0.0, error=reason)


def estimate_offsets(
    sources: Iterable[SourceRecording],
    fetcher: SampleFetcher,
    *,
    settings: SyncSettings | None = None,
) -> list[SyncResult]:
    """Convenience wrapper around :class:`OffsetEstimator`."""
    return OffsetEstimator(fetcher, settings).estimate_offsets(sources)


def offsets_by_source(results: Iterable[SyncResult]) -> dict[str, int]:
    """Index offsets by source id."""
    return {result.source_id: result.offset_ms for result in results}
