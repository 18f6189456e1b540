"""Source recordings that make up a multi-camera session."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

__all__ = ["SourceRecording", "SourceType", "sort_by_display_order"]


class SourceType(str, Enum):
    """Camera role of a recording."""

    SPEAKER = "speaker"
    WIDE = "wide"
    BROLL = "broll"


@dataclass(frozen=True, slots=True)
class SourceRecording:
    """One independently recorded audio/video track of a session."""

    id: str
    source_type: SourceType
    display_order: int = 0
    person_id: str | None = None
    duration_seconds: float | None = None
    has_audio: bool = True
    label: str = ""
    audio_path: str | None = None

    @property
    def display_name(self) -> str:
        """Human readable name used when no person name is known."""
        return self.label or self.id

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SourceRecording:
        """Build a recording from a loosely-typed catalog entry."""
        source_id = data.get("id")
        if not source_id:
            raise ValueError("Source entry is missing 'id'.")

        raw_type = data.get("source_type", data.get("sourceType", SourceType.SPEAKER.value))
        try:
            source_type = SourceType(str(raw_type).lower())
        except ValueError as exc:
            raise ValueError(f"Unknown source type {raw_type!r} for source {source_id}.") from exc

        duration_raw = data.get("duration_seconds", data.get("durationSeconds"))
        duration = float(duration_raw) if duration_raw is not None else None

        person_raw = data.get("person_id", data.get("personId"))
        audio_path = data.get("audio_path")
        has_audio_raw = data.get("has_audio", data.get("hasAudio"))
        has_audio = bool(has_audio_raw) if has_audio_raw is not None else True

        return cls(
            id=str(source_id),
            source_type=source_type,
            display_order=int(data.get("display_order", data.get("displayOrder", 0))),
            person_id=str(person_raw) if person_raw else None,
            duration_seconds=duration,
            has_audio=has_audio,
            label=str(data.get("label") or ""),
            audio_path=str(audio_path) if audio_path else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the recording."""
        return {
            "id": self.id,
            "source_type": self.source_type.value,
            "display_order": self.display_order,
            "person_id": self.person_id,
            "duration_seconds": self.duration_seconds,
            "has_audio": self.has_audio,
            "label": self.label,
            "audio_path": self.audio_path,
        }


def sort_by_display_order(sources: Iterable[SourceRecording]) -> list[SourceRecording]:
    """Return a new list ordered by ``display_order`` (stable for ties)."""
    return sorted(sources, key=lambda source: source.display_order)
