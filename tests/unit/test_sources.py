"""Tests for source catalog parsing."""

from __future__ import annotations

import pytest

from multicam_scribe.sources import SourceRecording, SourceType, sort_by_display_order


def test_from_mapping_accepts_camel_case() -> None:
    source = SourceRecording.from_mapping(
        {
            "id": "cam-1",
            "sourceType": "WIDE",
            "displayOrder": 3,
            "personId": None,
            "durationSeconds": "61.5",
            "hasAudio": False,
            "label": "Wide",
        }
    )

    assert source.source_type is SourceType.WIDE
    assert source.display_order == 3
    assert source.duration_seconds == 61.5
    assert source.has_audio is False
    assert source.display_name == "Wide"
    assert SourceRecording.from_mapping(source.to_dict()) == source


@pytest.mark.parametrize("entry", [{"source_type": "speaker"}, {"id": "x", "source_type": "drone"}])
def test_from_mapping_rejects_bad_entries(entry: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        SourceRecording.from_mapping(entry)


def test_sort_by_display_order_is_stable() -> None:
    sources = [
        SourceRecording("b", SourceType.SPEAKER, display_order=1),
        SourceRecording("a", SourceType.SPEAKER, display_order=0),
        SourceRecording("c", SourceType.SPEAKER, display_order=1),
    ]

    assert [s.id for s in sort_by_display_order(sources)] == ["a", "b", "c"]
