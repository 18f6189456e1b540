"""Merge per-speaker transcripts into one time-ordered transcript."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from ...utils.logging import get_logger
from ...words import SpeakerSegment, WordTimestamp, segments_from_speaker_runs
from .source_transcriber import SourceTranscriptionResult

LOGGER = get_logger(__name__)

__all__ = ["FusedTranscript", "fuse"]


@dataclass(frozen=True, slots=True)
class FusedTranscript:
    words: list[WordTimestamp] = field(default_factory=list)
    segments: list[SpeakerSegment] = field(default_factory=list)


def fuse(results: Sequence[SourceTranscriptionResult]) -> FusedTranscript:
    """Interleave words from every result by start time and rebuild speaker turns.

    ``sorted`` is stable, so words starting at the same instant keep the order in
    which their results were supplied.
    """
    tagged = [(word, result.speaker_label) for result in results for word in result.words]
    tagged.sort(key=lambda item: item[0].start)

    words = [word for word, _ in tagged]
    segments = segments_from_speaker_runs(words, [speaker for _, speaker in tagged])

    LOGGER.info(
        "Fused %s source(s) into %s words across %s segment(s).",
        len(results),
        len(words),
        len(segments),
    )
    return FusedTranscript(words=words, segments=segments)
