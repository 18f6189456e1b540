"""FFmpeg command wrappers and helpers."""

from __future__ import annotations

import json
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import cast

import numpy as np
from numpy.typing import NDArray

from .logging import get_logger

LOGGER = get_logger(__name__)

__all__ = ["FFmpeg", "FFmpegError"]


class FFmpegError(RuntimeError):
    """Raised when FFmpeg exits with a non-zero status."""


class FFmpeg:
    """Lightweight wrapper around FFmpeg and FFprobe commands."""

    def __init__(self, *, ffmpeg_path: str = "ffmpeg", ffprobe_path: str = "ffprobe") -> None:
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def probe(self, media_path: str | Path) -> dict[str, object]:
        """Return metadata for the provided media file using ffprobe."""
        command = [
            self.ffprobe_path,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(media_path),
        ]
        result = subprocess.run(  # noqa: S603 - command constructed from trusted input
            command,
            check=False,
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            raise FFmpegError(
                f"ffprobe failed with code {result.returncode}: {result.stderr.strip()}"
            )
        payload = json.loads(result.stdout or "{}")
        if not isinstance(payload, dict):
            raise FFmpegError("ffprobe did not return a JSON object.")
        return cast(dict[str, object], payload)

    def duration_seconds(self, media_path: str | Path) -> float | None:
        """Return the container duration reported by ffprobe, if any."""
        metadata = self.probe(media_path)
        format_section = metadata.get("format")
        if not isinstance(format_section, dict):
            return None
        raw = format_section.get("duration")
        try:
            return float(raw) if raw is not None else None
        except (TypeError, ValueError):
            return None

    def has_audio_stream(self, media_path: str | Path) -> bool:
        """Return whether ffprobe reports at least one audio stream."""
        streams = self.probe(media_path).get("streams")
        if not isinstance(streams, list):
            return False
        return any(
            isinstance(stream, dict) and stream.get("codec_type") == "audio" for stream in streams
        )

    def extract_pcm(
        self,
        input_path: str | Path,
        *,
        start_seconds: float,
        duration_seconds: float,
        sample_rate: int,
    ) -> NDArray[np.float32]:
        """Decode a window of mono float32 PCM from ``input_path``."""
        command = [
            "-ss",
            f"{max(0.0, start_seconds):.3f}",
            "-t",
            f"{duration_seconds:.3f}",
            "-i",
            str(input_path),
            "-vn",
            "-f",
            "f32le",
            "-acodec",
            "pcm_f32le",
            "-ar",
            str(sample_rate),
            "-ac",
            "1",
            "pipe:1",
        ]
        raw = self.run(command, capture_stdout=True)
        usable = len(raw) - (len(raw) % 4)
        return np.frombuffer(raw[:usable], dtype="<f4").astype(np.float32)

    def run(self, args: Sequence[str], *, capture_stdout: bool = False) -> bytes:
        """Invoke FFmpeg with the provided arguments and return raw stdout."""
        command = [self.ffmpeg_path, "-hide_banner", "-nostdin", "-y", *args]
        LOGGER.debug("Running %s", " ".join(command))
        result = subprocess.run(  # noqa: S603 - command is constructed from trusted configuration
            command,
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace") if result.stderr else ""
            raise FFmpegError(stderr.strip() or f"ffmpeg exited with code {result.returncode}")
        return result.stdout if capture_stdout and result.stdout else b""
