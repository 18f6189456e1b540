"""Selection of a transcription strategy from a session's source catalog."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from ...exceptions import NoUsableAudioSourceError
from ...sources import SourceRecording, SourceType
from ...utils.logging import get_logger

LOGGER = get_logger(__name__)

__all__ = ["StrategySelection", "TranscriptionStrategy", "select_strategy"]


class TranscriptionStrategy(str, Enum):
    """How a session is turned into a single transcript."""

    PER_SPEAKER = "PER_SPEAKER"
    SINGLE_SPEAKER = "SINGLE_SPEAKER"
    DIARIZE_WIDE = "DIARIZE_WIDE"


@dataclass(frozen=True, slots=True)
class StrategySelection:
    strategy: TranscriptionStrategy
    sources_to_transcribe: tuple[SourceRecording, ...]


def select_strategy(sources: Iterable[SourceRecording]) -> StrategySelection:
    """Classify the catalog and pick the sources that need transcribing.

    Sources are considered in the order given. Several distinct people on speaker
    cameras get one source each; a single person (or unassigned speaker cameras)
    gets the first speaker source; otherwise the first wide shot is diarized.
    """
    catalog = list(sources)
    speaker_sources = [s for s in catalog if s.source_type is SourceType.SPEAKER]
    wide_sources = [s for s in catalog if s.source_type is SourceType.WIDE]

    distinct_people = {s.person_id for s in speaker_sources if s.person_id}

    if len(distinct_people) > 1:
        seen: set[str] = set()
        per_person: list[SourceRecording] = []
        for source in speaker_sources:
            if source.person_id and source.person_id not in seen:
                seen.add(source.person_id)
                per_person.append(source)
        selection = StrategySelection(TranscriptionStrategy.PER_SPEAKER, tuple(per_person))
    elif speaker_sources:
        selection = StrategySelection(
            TranscriptionStrategy.SINGLE_SPEAKER, (speaker_sources[0],)
        )
    elif wide_sources:
        selection = StrategySelection(TranscriptionStrategy.DIARIZE_WIDE, (wide_sources[0],))
    else:
        raise NoUsableAudioSourceError(
            f"No usable audio source among {len(catalog)} source(s) for transcription."
        )

    LOGGER.info(
        "Strategy %s with %s source(s) to transcribe.",
        selection.strategy.value,
        len(selection.sources_to_transcribe),
    )
    return selection
