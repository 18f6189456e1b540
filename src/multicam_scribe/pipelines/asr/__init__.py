"""Speech-to-text provider clients."""

from __future__ import annotations

from .assemblyai_api import (
    AssemblyAIError,
    AssemblyAITranscriber,
    build_assemblyai_transcriber,
    parse_transcript_payload,
    speaker_display_name,
)
from .polling import PollingPolicy
from .service import ServiceTranscript, TranscriptionService

__all__ = [
    "AssemblyAIError",
    "AssemblyAITranscriber",
    "PollingPolicy",
    "ServiceTranscript",
    "TranscriptionService",
    "build_assemblyai_transcriber",
    "parse_transcript_payload",
    "speaker_display_name",
]
