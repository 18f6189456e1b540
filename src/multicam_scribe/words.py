"""Word and speaker-segment primitives shared by the ASR and transcript pipelines."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

__all__ = [
    "DEFAULT_SEGMENT_GAP_SECONDS",
    "SpeakerSegment",
    "WordTimestamp",
    "segments_from_pauses",
    "segments_from_speaker_runs",
    "shift_words",
    "validate_partition",
]

DEFAULT_SEGMENT_GAP_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class WordTimestamp:
    """A single recognised word on the session timeline (seconds)."""

    text: str
    start: float
    end: float
    confidence: float | None = None

    def shifted(self, offset_seconds: float) -> WordTimestamp:
        return replace(self, start=self.start + offset_seconds, end=self.end + offset_seconds)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"text": self.text, "start": self.start, "end": self.end}
        if self.confidence is not None:
            payload["confidence"] = self.confidence
        return payload


@dataclass(frozen=True, slots=True)
class SpeakerSegment:
    """Contiguous run ``[start_word_index, end_word_index)`` spoken by one speaker."""

    speaker_label: str
    start_word_index: int
    end_word_index: int
    start_time: float
    end_time: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "speaker_label": self.speaker_label,
            "start_word_index": self.start_word_index,
            "end_word_index": self.end_word_index,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SpeakerSegment:
        return cls(
            speaker_label=str(data.get("speaker_label", "")),
            start_word_index=int(data.get("start_word_index", 0)),
            end_word_index=int(data.get("end_word_index", 0)),
            start_time=float(data.get("start_time", 0.0)),
            end_time=float(data.get("end_time", 0.0)),
        )


def shift_words(words: Sequence[WordTimestamp], offset_seconds: float) -> list[WordTimestamp]:
    """Return new words moved by ``offset_seconds``."""
    if not offset_seconds:
        return list(words)
    return [word.shifted(offset_seconds) for word in words]


def segments_from_speaker_runs(
    words: Sequence[WordTimestamp],
    speakers: Sequence[str],
) -> list[SpeakerSegment]:
    """Emit a new segment every time the speaker differs from the previous word.

    ``speakers[i]`` is the speaker of ``words[i]``. The last segment always closes at
    ``len(words)``, so the result partitions the word indices.
    """
    if len(words) != len(speakers):
        raise ValueError(
            f"Expected one speaker per word (got {len(speakers)} for {len(words)} words)."
        )
    if not words:
        return []

    segments: list[SpeakerSegment] = []
    run_start = 0
    current = speakers[0]
    for index in range(1, len(words)):
        if speakers[index] != current:
            segments.append(_close_run(words, current, run_start, index))
            current = speakers[index]
            run_start = index
    segments.append(_close_run(words, current, run_start, len(words)))
    return segments


def segments_from_pauses(
    words: Sequence[WordTimestamp],
    speaker_label: str,
    gap_seconds: float = DEFAULT_SEGMENT_GAP_SECONDS,
) -> list[SpeakerSegment]:
    """Split a single speaker's words into runs separated by pauses of ``gap_seconds`` or more."""
    if not words:
        return []

    segments: list[SpeakerSegment] = []
    run_start = 0
    for index in range(1, len(words)):
        if words[index].start - words[index - 1].end >= gap_seconds:
            segments.append(_close_run(words, speaker_label, run_start, index))
            run_start = index
    segments.append(_close_run(words, speaker_label, run_start, len(words)))
    return segments


def validate_partition(segments: Sequence[SpeakerSegment], word_count: int) -> None:
    """Raise ``ValueError`` unless ``segments`` partition ``[0, word_count)`` in order."""
    expected = 0
    for segment in segments:
        if segment.start_word_index != expected:
            raise ValueError(
                f"Segment for {segment.speaker_label!r} starts at {segment.start_word_index}, "
                f"expected {expected}."
            )
        if segment.end_word_index <= segment.start_word_index:
            raise ValueError(f"Empty segment for {segment.speaker_label!r} at {expected}.")
        expected = segment.end_word_index
    if expected != word_count:
        raise ValueError(f"Segments cover {expected} of {word_count} words.")


def _close_run(
    words: Sequence[WordTimestamp], speaker: str, start: int, end: int
) -> SpeakerSegment:
    return SpeakerSegment(
        speaker_label=speaker,
        start_word_index=start,
        end_word_index=end,
        start_time=words[start].start,
        end_time=words[end - 1].end,
    )
