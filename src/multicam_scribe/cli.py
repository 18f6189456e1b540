"""Command-line entrypoints for Multicam-Scribe."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import typer

from multicam_scribe.config import Settings, load_settings
from multicam_scribe.exceptions import NoUsableAudioSourceError, SourceTranscriptionError
from multicam_scribe.pipelines.asr import build_assemblyai_transcriber
from multicam_scribe.pipelines.sync import FFmpegSampleFetcher, SyncResult, estimate_offsets
from multicam_scribe.pipelines.transcript import ProgressEvent, run_multicam_transcription
from multicam_scribe.sources import SourceRecording
from multicam_scribe.utils.ffmpeg import FFmpeg, FFmpegError
from multicam_scribe.utils.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)

app = typer.Typer(help="Align multi-camera recordings and fuse their transcripts.")

_HAS_AUDIO_KEYS = ("has_audio", "hasAudio")


@dataclass(slots=True)
class Catalog:
    """Sources and person names read from a session catalog file."""

    sources: list[SourceRecording]
    people: dict[str, str] = field(default_factory=dict)
    audio_unknown: set[str] = field(default_factory=set)


def _load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _load_catalog(path: Path) -> Catalog:
    data = _load_json(path)
    if isinstance(data, list):
        data = {"sources": data}
    if not isinstance(data, Mapping):
        raise ValueError(f"Catalog at {path} must be a JSON object or list.")

    raw_sources = data.get("sources") or []
    if not isinstance(raw_sources, list):
        raise ValueError("Catalog 'sources' must be a list.")
    if not all(isinstance(entry, Mapping) for entry in raw_sources):
        raise ValueError("Catalog sources must be JSON objects.")
    sources = [SourceRecording.from_mapping(entry) for entry in raw_sources]
    audio_unknown = {
        source.id
        for source, entry in zip(sources, raw_sources)
        if all(entry.get(key) is None for key in _HAS_AUDIO_KEYS)
    }

    people_raw = data.get("people") or {}
    people = (
        {str(key): str(value) for key, value in people_raw.items()}
        if isinstance(people_raw, Mapping)
        else {}
    )
    return Catalog(sources, people, audio_unknown)


def _read_catalog(path: Path) -> Catalog:
    try:
        return _load_catalog(path)
    except (OSError, ValueError, TypeError) as exc:
        typer.echo(f"Invalid catalog {path}: {exc}", err=True)
        raise typer.Exit(code=2) from exc


def _inspect_media(catalog: Catalog, ffmpeg: FFmpeg) -> list[SourceRecording]:
    """Fill unknown durations and audio presence from ffprobe metadata."""
    inspected: list[SourceRecording] = []
    for source in catalog.sources:
        needs_duration = source.duration_seconds is None
        needs_audio = source.id in catalog.audio_unknown
        if source.audio_path and (needs_duration or needs_audio):
            try:
                if needs_duration:
                    duration = ffmpeg.duration_seconds(source.audio_path)
                    if duration is not None:
                        source = replace(source, duration_seconds=duration)
                if needs_audio:
                    source = replace(source, has_audio=ffmpeg.has_audio_stream(source.audio_path))
            except (FFmpegError, OSError) as exc:
                LOGGER.warning("Unable to inspect media for %s (%s).", source.id, exc)
        inspected.append(source)
    return inspected


def _setup(env: str) -> Settings:
    try:
        settings = load_settings(env)
    except Exception as exc:  # pragma: no cover - configuration safety
        typer.echo(f"Failed to load configuration: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    configure_logging(settings.logging)
    return settings


def _write_payload(payload: Any, output: Path | None) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    typer.echo(f"Wrote {output}")


def _progress_printer(event: ProgressEvent) -> None:
    detail = f" ({event.detail})" if event.detail else ""
    typer.echo(f"[{event.stage}] {event.progress:3d}% {event.message}{detail}", err=True)


@app.command()
def sync(
    catalog: Path = typer.Argument(..., help="Session catalog JSON with a 'sources' list."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write sync results here instead of stdout."
    ),
    env: str = typer.Option(
        "dev",
        "--env",
        help="Configuration environment to load (default: dev).",
    ),
) -> None:
    """Estimate every source's start offset against the reference source."""

    settings = _setup(env)
    session = _read_catalog(catalog)
    ffmpeg = FFmpeg(
        ffmpeg_path=settings.ffmpeg.ffmpeg_path,
        ffprobe_path=settings.ffmpeg.ffprobe_path,
    )
    sources = _inspect_media(session, ffmpeg)

    fetcher = FFmpegSampleFetcher(
        {source.id: source.audio_path for source in sources if source.audio_path},
        ffmpeg=ffmpeg,
    )
    results = estimate_offsets(sources, fetcher, settings=settings.sync)
    _write_payload([result.to_dict() for result in results], output)


@app.command()
def transcribe(
    catalog: Path = typer.Argument(..., help="Session catalog JSON with a 'sources' list."),
    offsets: Optional[Path] = typer.Option(
        None,
        "--offsets",
        help="Sync results JSON produced by the 'sync' command.",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the transcript here instead of stdout."
    ),
    env: str = typer.Option(
        "dev",
        "--env",
        help="Configuration environment to load (default: dev).",
    ),
    watch: bool = typer.Option(
        True,
        "--watch/--no-watch",
        help="Stream progress to stderr.",
    ),
) -> None:
    """Transcribe a session and fuse the per-source transcripts."""

    settings = _setup(env)
    session = _read_catalog(catalog)

    sync_results: list[SyncResult] = []
    if offsets is not None:
        raw_offsets = _load_json(offsets)
        if not isinstance(raw_offsets, list):
            typer.echo(f"Offsets file {offsets} must contain a JSON list.", err=True)
            raise typer.Exit(code=2)
        sync_results = [SyncResult.from_mapping(entry) for entry in raw_offsets]

    service = build_assemblyai_transcriber(settings.raw)
    try:
        transcript = run_multicam_transcription(
            session.sources,
            sync_results,
            service=service,
            settings=settings.transcription,
            person_names=session.people,
            progress_callback=_progress_printer if watch else None,
        )
    except (NoUsableAudioSourceError, SourceTranscriptionError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    _write_payload(transcript.to_dict(), output)


def main() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    main()
