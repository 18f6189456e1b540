"""Strategy selection, per-source transcription and transcript fusion."""

from .fusion import FusedTranscript, fuse
from .multicam import (
    MulticamTranscript,
    MulticamTranscriptionPipeline,
    ProgressEvent,
    run_multicam_transcription,
)
from .source_transcriber import (
    SourceTranscriptionResult,
    resolve_display_name,
    transcribe_source,
)
from .strategy import StrategySelection, TranscriptionStrategy, select_strategy

__all__ = [
    "FusedTranscript",
    "MulticamTranscript",
    "MulticamTranscriptionPipeline",
    "ProgressEvent",
    "SourceTranscriptionResult",
    "StrategySelection",
    "TranscriptionStrategy",
    "fuse",
    "resolve_display_name",
    "run_multicam_transcription",
    "select_strategy",
    "transcribe_source",
]
