"""Transcription of a single source onto the shared session timeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ...exceptions import SourceTranscriptionError
from ...sources import SourceRecording
from ...utils.logging import get_logger
from ...words import (
    DEFAULT_SEGMENT_GAP_SECONDS,
    SpeakerSegment,
    WordTimestamp,
    segments_from_pauses,
    segments_from_speaker_runs,
    shift_words,
)
from ..asr.service import TranscriptionService

LOGGER = get_logger(__name__)

__all__ = ["SourceTranscriptionResult", "resolve_display_name", "transcribe_source"]


@dataclass(frozen=True, slots=True)
class SourceTranscriptionResult:
    """Words and segments of one source, already shifted by its sync offset."""

    speaker_label: str
    words: list[WordTimestamp] = field(default_factory=list)
    segments: list[SpeakerSegment] = field(default_factory=list)
    duration_seconds: float = 0.0
    text: str = ""
    language: str | None = None


def resolve_display_name(
    source: SourceRecording,
    person_names: Mapping[str, str] | None = None,
) -> str:
    """Person name when known, otherwise the source label, otherwise its id."""
    if source.person_id and person_names:
        name = person_names.get(source.person_id)
        if name:
            return name
    return source.display_name


def transcribe_source(
    source: SourceRecording,
    offset_ms: int,
    with_diarization: bool,
    *,
    service: TranscriptionService,
    speaker_label: str | None = None,
    gap_seconds: float = DEFAULT_SEGMENT_GAP_SECONDS,
) -> SourceTranscriptionResult:
    """Transcribe ``source`` and move its words onto the session timeline.

    Service failures propagate unchanged; a missing speaker cannot be approximated.
    When the service returns speaker tags the segments follow them, otherwise the
    words are grouped into pause-separated runs labelled ``speaker_label``.
    """
    if not source.audio_path:
        raise SourceTranscriptionError(
            source.id,
            speaker_label=speaker_label,
            reason="source has no audio to transcribe",
        )

    label = speaker_label or source.display_name
    transcript = service.transcribe(
        source.id,
        source.audio_path,
        enable_diarization=with_diarization,
    )

    offset_seconds = offset_ms / 1000.0
    words = shift_words(transcript.words, offset_seconds)
    if transcript.speaker_tags is not None:
        segments = segments_from_speaker_runs(words, transcript.speaker_tags)
    else:
        segments = segments_from_pauses(words, label, gap_seconds)

    LOGGER.info(
        "Transcribed source %s (%s): %s words in %s segment(s), offset %sms.",
        source.id,
        label,
        len(words),
        len(segments),
        offset_ms,
    )
    return SourceTranscriptionResult(
        speaker_label=label,
        words=words,
        segments=segments,
        duration_seconds=transcript.duration_seconds,
        text=transcript.text,
        language=transcript.language_code,
    )
