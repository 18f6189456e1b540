"""Exception types for Multicam-Scribe."""

from __future__ import annotations

__all__ = [
    "NoUsableAudioSourceError",
    "PollingTimeoutError",
    "SourceTranscriptionError",
]


class NoUsableAudioSourceError(RuntimeError):
    """Raised when no source in a session catalog can produce a transcript."""


class PollingTimeoutError(TimeoutError):
    """Raised when a polled remote job does not finish within its attempt budget."""


class SourceTranscriptionError(RuntimeError):
    """
    Raised when transcribing a single source fails.

    Carries enough context for callers to report which source broke the run and
    under which strategy. The underlying failure is chained as ``__cause__``.
    """

    def __init__(
        self,
        source_id: str,
        *,
        speaker_label: str | None = None,
        strategy: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.source_id = source_id
        self.speaker_label = speaker_label
        self.strategy = strategy
        self.reason = reason
        label = f" ({speaker_label})" if speaker_label else ""
        detail = f": {reason}" if reason else ""
        mode = f" [{strategy}]" if strategy else ""
        super().__init__(f"Transcription failed for source {source_id}{label}{mode}{detail}")
