"""Boundary types for the external speech-to-text service."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from ...words import WordTimestamp

__all__ = ["ServiceTranscript", "TranscriptionService"]


@dataclass(frozen=True, slots=True)
class ServiceTranscript:
    """Validated output of one transcription request, in source-local seconds.

    ``speaker_tags`` holds one display label per word when diarization was requested
    and the service returned speaker information, otherwise ``None``.
    """

    text: str
    words: list[WordTimestamp] = field(default_factory=list)
    speaker_tags: list[str] | None = None
    duration_seconds: float = 0.0
    language_code: str | None = None


class TranscriptionService(Protocol):
    """Speech-to-text backend used by the per-source transcriber."""

    def transcribe(
        self,
        source_id: str,
        audio_handle: str | Path,
        *,
        enable_diarization: bool,
    ) -> ServiceTranscript:
        ...
