"""Tests for per-source offset estimation."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest

from multicam_scribe.config.settings import SyncSettings
from multicam_scribe.pipelines.sync.offsets import (
    AnalysisWindow,
    OffsetEstimator,
    SyncMethod,
    SyncResult,
    estimate_offsets,
    offsets_by_source,
)
from multicam_scribe.sources import SourceRecording, SourceType

RATE = 1000
SETTINGS = SyncSettings(sample_rate_hz=RATE, window_seconds=1.0, max_workers=2)


class SessionFetcher:
    """Serves windows of one shared signal; each source started at its own session time."""

    def __init__(self, signal: np.ndarray, starts: dict[str, float]) -> None:
        self.signal = signal
        self.starts = starts
        self.calls: list[tuple[str, float, float, int]] = []

    def fetch_samples(
        self,
        source_id: str,
        start_seconds: float,
        duration_seconds: float,
        sample_rate_hz: int,
    ) -> np.ndarray:
        self.calls.append((source_id, start_seconds, duration_seconds, sample_rate_hz))
        first = int(round((start_seconds + self.starts[source_id]) * sample_rate_hz))
        count = int(round(duration_seconds * sample_rate_hz))
        return self.signal[first : first + count].astype(np.float32)


class FailingFetcher:
    def __init__(self, failing: set[str], fallback: SessionFetcher | None = None) -> None:
        self.failing = failing
        self.fallback = fallback

    def fetch_samples(self, source_id, start_seconds, duration_seconds, sample_rate_hz):
        if source_id in self.failing:
            raise RuntimeError(f"decoder crashed on {source_id}")
        assert self.fallback is not None
        return self.fallback.fetch_samples(
            source_id, start_seconds, duration_seconds, sample_rate_hz
        )


class EmptyFetcher:
    def fetch_samples(self, source_id, start_seconds, duration_seconds, sample_rate_hz):
        return np.zeros(0, dtype=np.float32)


def source(
    source_id: str,
    source_type: SourceType = SourceType.SPEAKER,
    *,
    order: int = 0,
    duration: float | None = 60.0,
    has_audio: bool = True,
) -> SourceRecording:
    return SourceRecording(
        id=source_id,
        source_type=source_type,
        display_order=order,
        duration_seconds=duration,
        has_audio=has_audio,
    )


@pytest.fixture
def session_signal(band_limited_noise: Callable[[int], np.ndarray]) -> np.ndarray:
    return band_limited_noise(80 * RATE)


def test_single_source_is_its_own_reference() -> None:
    results = estimate_offsets([source("only")], EmptyFetcher())

    assert results == [SyncResult("only", 0, SyncMethod.NONE, 1.0)]


def test_empty_catalog_returns_no_results() -> None:
    assert estimate_offsets([], EmptyFetcher()) == []


def test_duration_match_skips_audio() -> None:
    fetcher = SessionFetcher(np.zeros(10), {})

    results = estimate_offsets(
        [source("ref", order=0, duration=60.0), source("cam", order=1, duration=60.3)],
        fetcher,
        settings=SETTINGS,
    )

    assert results[1] == SyncResult("cam", 0, SyncMethod.DURATION_MATCH, 1.0)
    assert fetcher.calls == []


def test_broll_and_silent_sources_are_not_synced() -> None:
    results = estimate_offsets(
        [
            source("ref", order=0),
            source("broll", SourceType.BROLL, order=1, duration=12.0),
            source("mute", order=2, duration=40.0, has_audio=False),
        ],
        EmptyFetcher(),
        settings=SETTINGS,
    )

    assert [r.method for r in results[1:]] == [SyncMethod.NONE, SyncMethod.NONE]
    assert all(r.offset_ms == 0 and r.confidence == 0.0 for r in results[1:])


def test_reference_without_audio_leaves_offsets_unknown() -> None:
    results = estimate_offsets(
        [source("ref", order=0, has_audio=False), source("cam", order=1, duration=30.0)],
        EmptyFetcher(),
        settings=SETTINGS,
    )

    assert results[1] == SyncResult("cam", 0, SyncMethod.NONE, 0.0)


def test_reference_is_lowest_display_order() -> None:
    results = estimate_offsets(
        [source("late", order=5, duration=10.0), source("first", order=1, duration=10.2)],
        EmptyFetcher(),
        settings=SETTINGS,
    )

    assert [r.source_id for r in results] == ["first", "late"]
    assert results[0] == SyncResult("first", 0, SyncMethod.NONE, 1.0)


def test_audio_correlation_recovers_start_offset(session_signal: np.ndarray) -> None:
    fetcher = SessionFetcher(session_signal, {"ref": 0.0, "cam": 5.2})

    results = OffsetEstimator(fetcher, SETTINGS).estimate_offsets(
        [
            source("ref", order=0, duration=60.0),
            source("cam", order=1, duration=50.0),
        ]
    )

    cam = results[1]
    assert cam.method is SyncMethod.AUDIO_CORRELATION
    assert abs(cam.offset_ms - 5200) <= 1
    assert cam.confidence > 0.5
    assert cam.error is None
    assert sum(1 for call in fetcher.calls if call[0] == "ref") == 1


def test_correlation_failure_is_isolated(session_signal: np.ndarray) -> None:
    healthy = SessionFetcher(session_signal, {"ref": 0.0, "good": 3.0})
    fetcher = FailingFetcher({"bad"}, healthy)

    results = estimate_offsets(
        [
            source("ref", order=0, duration=60.0),
            source("bad", order=1, duration=40.0),
            source("good", order=2, duration=54.2),
        ],
        fetcher,
        settings=SETTINGS,
    )

    by_id = {r.source_id: r for r in results}
    assert by_id["bad"].confidence == 0.0
    assert by_id["bad"].offset_ms == 0
    assert "decoder crashed" in (by_id["bad"].error or "")
    assert abs(by_id["good"].offset_ms - 3000) <= 1


def test_empty_samples_yield_zero_confidence() -> None:
    results = estimate_offsets(
        [source("ref", order=0), source("cam", order=1, duration=20.0)],
        EmptyFetcher(),
        settings=SETTINGS,
    )

    assert results[1].method is SyncMethod.AUDIO_CORRELATION
    assert results[1].confidence == 0.0
    assert results[1].offset_ms == 0


def test_broken_reference_degrades_every_pair() -> None:
    results = estimate_offsets(
        [source("ref", order=0), source("a", order=1, duration=20.0), source("b", order=2, duration=25.0)],
        FailingFetcher({"ref"}),
        settings=SETTINGS,
    )

    assert [r.confidence for r in results] == [1.0, 0.0, 0.0]
    assert all(r.error for r in results[1:])


def test_analysis_window_is_centred() -> None:
    assert AnalysisWindow.centered(100.0, 30.0) == AnalysisWindow(35.0, 30.0)
    assert AnalysisWindow.centered(10.0, 30.0) == AnalysisWindow(0.0, 30.0)
    assert AnalysisWindow.centered(None, 30.0) == AnalysisWindow(0.0, 30.0)


def test_sync_result_serialisation() -> None:
    result = SyncResult("cam", -120, SyncMethod.AUDIO_CORRELATION, 0.42)

    payload = result.to_dict()

    assert payload == {
        "source_id": "cam",
        "offset_ms": -120,
        "method": "audio-correlation",
        "confidence": 0.42,
    }
    assert SyncResult.from_mapping(payload) == result
    assert SyncResult.from_mapping({"sourceId": "x", "offsetMs": 5, "method": "none"}).offset_ms == 5
    assert offsets_by_source([result]) == {"cam": -120}
