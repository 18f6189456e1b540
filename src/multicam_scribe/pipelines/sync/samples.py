"""Access to decoded mono PCM windows of source recordings."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import numpy as np
from numpy.typing import NDArray

from ...utils.ffmpeg import FFmpeg, FFmpegError
from ...utils.logging import get_logger

LOGGER = get_logger(__name__)

__all__ = ["FFmpegSampleFetcher", "SampleFetcher", "empty_samples"]


class SampleFetcher(Protocol):
    """Decodes a mono float32 window of a source's audio."""

    def fetch_samples(
        self,
        source_id: str,
        start_seconds: float,
        duration_seconds: float,
        sample_rate_hz: int,
    ) -> NDArray[np.float32]:
        """Return samples, or an empty array when nothing could be decoded."""
        ...


def empty_samples() -> NDArray[np.float32]:
    return np.zeros(0, dtype=np.float32)


class FFmpegSampleFetcher:
    """Sample fetcher that decodes local media files with ffmpeg."""

    def __init__(
        self,
        media_paths: Mapping[str, str | Path],
        *,
        ffmpeg: FFmpeg | None = None,
    ) -> None:
        self._media_paths = {key: Path(value) for key, value in media_paths.items()}
        self._ffmpeg = ffmpeg or FFmpeg()

    def fetch_samples(
        self,
        source_id: str,
        start_seconds: float,
        duration_seconds: float,
        sample_rate_hz: int,
    ) -> NDArray[np.float32]:
        media_path = self._media_paths.get(source_id)
        if media_path is None:
            LOGGER.warning("No media registered for source %s.", source_id)
            return empty_samples()
        try:
            return self._ffmpeg.extract_pcm(
                media_path,
                start_seconds=start_seconds,
                duration_seconds=duration_seconds,
                sample_rate=sample_rate_hz,
            )
        except (FFmpegError, OSError) as exc:
            LOGGER.warning("PCM extraction failed for source %s (%s).", source_id, exc)
            return empty_samples()
