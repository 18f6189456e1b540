"""End-to-end multicam transcription: strategy, per-source transcription, fusion."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any

from ...config.settings import TranscriptionSettings
from ...exceptions import SourceTranscriptionError
from ...sources import SourceRecording
from ...utils.logging import get_logger
from ...words import SpeakerSegment, WordTimestamp
from ..asr.service import TranscriptionService
from ..sync.offsets import SyncResult, offsets_by_source
from .fusion import fuse
from .source_transcriber import (
    SourceTranscriptionResult,
    resolve_display_name,
    transcribe_source,
)
from .strategy import StrategySelection, TranscriptionStrategy, select_strategy

LOGGER = get_logger(__name__)

__all__ = [
    "MulticamTranscript",
    "MulticamTranscriptionPipeline",
    "ProgressCallback",
    "ProgressEvent",
    "run_multicam_transcription",
]

_TRANSCRIBE_START = 5.0
_TRANSCRIBE_SPAN = 85.0


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Coarse progress notification emitted while a run advances."""

    stage: str
    progress: int
    message: str
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "stage": self.stage,
            "progress": self.progress,
            "message": self.message,
        }
        if self.detail:
            payload["detail"] = self.detail
        return payload


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass(frozen=True, slots=True)
class MulticamTranscript:
    """Single time-ordered transcript of a multicam session."""

    strategy: TranscriptionStrategy
    words: list[WordTimestamp] = field(default_factory=list)
    segments: list[SpeakerSegment] = field(default_factory=list)
    duration_seconds: float = 0.0
    language: str | None = None

    @property
    def text(self) -> str:
        return " ".join(word.text for word in self.words)

    @property
    def speaker_count(self) -> int:
        return len({segment.speaker_label for segment in self.segments})

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "language": self.language,
            "duration_seconds": self.duration_seconds,
            "text": self.text,
            "words": [word.to_dict() for word in self.words],
            "segments": [segment.to_dict() for segment in self.segments],
        }


class MulticamTranscriptionPipeline:
    """Composes strategy selection, per-source transcription and fusion."""

    def __init__(
        self,
        service: TranscriptionService,
        settings: TranscriptionSettings | None = None,
        *,
        person_names: Mapping[str, str] | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.service = service
        self.settings = settings or TranscriptionSettings()
        self.person_names = dict(person_names or {})
        self._progress_callback = progress_callback

    def run(
        self,
        sources: Iterable[SourceRecording],
        offsets: Mapping[str, int] | Iterable[SyncResult] | None = None,
    ) -> MulticamTranscript:
        catalog = list(sources)
        if not catalog:
            raise ValueError("A multicam session needs at least one source.")
        offset_map = _normalise_offsets(offsets)

        selection = select_strategy(catalog)
        targets = selection.sources_to_transcribe
        self._emit(
            "detected",
            _TRANSCRIBE_START,
            f"Strategy: {selection.strategy.value}",
            f"{len(targets)} source(s) to transcribe",
        )

        if selection.strategy is TranscriptionStrategy.PER_SPEAKER:
            results = self._transcribe_per_speaker(selection, offset_map)
            self._emit("merging", 92, "Merging speaker timelines")
            fused = fuse(results)
            words, segments = fused.words, fused.segments
        else:
            result = self._transcribe_one(selection, targets[0], offset_map, index=0)
            results = [result]
            words, segments = result.words, result.segments

        transcript = MulticamTranscript(
            strategy=selection.strategy,
            words=words,
            segments=segments,
            duration_seconds=max((r.duration_seconds for r in results), default=0.0),
            language=next((r.language for r in results if r.language), None),
        )
        self._emit(
            "complete",
            100,
            "Multicam transcription complete",
            f"{len(transcript.words)} words, {transcript.speaker_count} speakers",
        )
        LOGGER.info(
            "Multicam transcription finished: strategy=%s words=%s speakers=%s.",
            transcript.strategy.value,
            len(transcript.words),
            transcript.speaker_count,
        )
        return transcript

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------
    def _transcribe_per_speaker(
        self,
        selection: StrategySelection,
        offsets: Mapping[str, int],
    ) -> list[SourceTranscriptionResult]:
        targets = selection.sources_to_transcribe
        workers = max(1, min(self.settings.max_workers, len(targets)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="transcribe") as pool:
            futures: list[Future[SourceTranscriptionResult]] = [
                pool.submit(self._transcribe_one, selection, source, offsets, index=index)
                for index, source in enumerate(targets)
            ]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            failed = next((f for f in futures if f in done and f.exception() is not None), None)
            if failed is not None:
                for other in pending:
                    other.cancel()
                failed.result()
        return [future.result() for future in futures]

    def _transcribe_one(
        self,
        selection: StrategySelection,
        source: SourceRecording,
        offsets: Mapping[str, int],
        *,
        index: int,
    ) -> SourceTranscriptionResult:
        strategy = selection.strategy
        total = len(selection.sources_to_transcribe)
        label = self._label_for(strategy, source)
        progress = _TRANSCRIBE_START + (index / total) * _TRANSCRIBE_SPAN
        self._emit("transcribing", progress, f"[{index + 1}/{total}] Transcribing {label}", source.id)

        try:
            return transcribe_source(
                source,
                offsets.get(source.id, 0),
                strategy is TranscriptionStrategy.DIARIZE_WIDE,
                service=self.service,
                speaker_label=label,
                gap_seconds=self.settings.segment_gap_seconds,
            )
        except SourceTranscriptionError as exc:
            if exc.strategy is not None:
                raise
            raise SourceTranscriptionError(
                source.id,
                speaker_label=label,
                strategy=strategy.value,
                reason=exc.reason,
            ) from exc
        except Exception as exc:
            raise SourceTranscriptionError(
                source.id,
                speaker_label=label,
                strategy=strategy.value,
                reason=str(exc) or type(exc).__name__,
            ) from exc

    def _label_for(self, strategy: TranscriptionStrategy, source: SourceRecording) -> str:
        if strategy is TranscriptionStrategy.DIARIZE_WIDE:
            return source.display_name
        return resolve_display_name(source, self.person_names)

    def _emit(self, stage: str, progress: float, message: str, detail: str | None = None) -> None:
        if self._progress_callback is None:
            return
        self._progress_callback(ProgressEvent(stage, int(round(progress)), message, detail))


def _normalise_offsets(
    offsets: Mapping[str, int] | Iterable[SyncResult] | None,
) -> dict[str, int]:
    if offsets is None:
        return {}
    if isinstance(offsets, Mapping):
        return {str(key): int(value) for key, value in offsets.items()}
    return offsets_by_source(offsets)


def run_multicam_transcription(
    sources: Sequence[SourceRecording],
    offsets: Mapping[str, int] | Iterable[SyncResult] | None,
    *,
    service: TranscriptionService,
    settings: TranscriptionSettings | None = None,
    person_names: Mapping[str, str] | None = None,
    progress_callback: ProgressCallback | None = None,
) -> MulticamTranscript:
    """Convenience wrapper around :class:`MulticamTranscriptionPipeline`."""
    pipeline = MulticamTranscriptionPipeline(
        service,
        settings,
        person_names=person_names,
        progress_callback=progress_callback,
    )
    return pipeline.run(sources, offsets)
