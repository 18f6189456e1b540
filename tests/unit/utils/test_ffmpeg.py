"""Tests for the FFmpeg helper utilities."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from multicam_scribe.pipelines.sync.samples import FFmpegSampleFetcher
from multicam_scribe.utils.ffmpeg import FFmpeg, FFmpegError


class FakeCompletedProcess:
    def __init__(self, returncode: int, stdout: str | bytes = "", stderr: str | bytes = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def test_ffprobe_metadata_is_returned(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    metadata = {"streams": [], "format": {}}

    def fake_run(*_args, **_kwargs):
        return FakeCompletedProcess(returncode=0, stdout=json.dumps(metadata))

    monkeypatch.setattr("subprocess.run", fake_run)
    result = FFmpeg().probe(tmp_path / "video.mp4")
    assert result == metadata


def test_ffprobe_failure_raises(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(*_args, **_kwargs):
        return FakeCompletedProcess(returncode=1, stderr="No such file")

    monkeypatch.setattr("subprocess.run", fake_run)
    with pytest.raises(FFmpegError, match="No such file"):
        FFmpeg().probe(tmp_path / "missing.mp4")


def test_duration_and_audio_stream(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    metadata = {
        "streams": [{"codec_type": "video"}, {"codec_type": "audio"}],
        "format": {"duration": "61.250000"},
    }

    def fake_run(*_args, **_kwargs):
        return FakeCompletedProcess(returncode=0, stdout=json.dumps(metadata))

    monkeypatch.setattr("subprocess.run", fake_run)
    ffmpeg = FFmpeg()

    assert ffmpeg.duration_seconds(tmp_path / "cam.mp4") == pytest.approx(61.25)
    assert ffmpeg.has_audio_stream(tmp_path / "cam.mp4") is True


def test_extract_pcm_decodes_float32(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    samples = np.array([0.0, 0.5, -0.25, 1.0], dtype="<f4")
    captured: dict[str, list[str]] = {}

    def fake_run(command, **_kwargs):
        captured["command"] = command
        return FakeCompletedProcess(returncode=0, stdout=samples.tobytes() + b"\x00", stderr=b"")

    monkeypatch.setattr("subprocess.run", fake_run)

    decoded = FFmpeg(ffmpeg_path="/opt/ffmpeg").extract_pcm(
        tmp_path / "cam.mp4",
        start_seconds=12.5,
        duration_seconds=30.0,
        sample_rate=8000,
    )

    np.testing.assert_array_equal(decoded, samples)
    assert decoded.dtype == np.float32
    command = captured["command"]
    assert command[0] == "/opt/ffmpeg"
    assert command[command.index("-ss") + 1] == "12.500"
    assert command[command.index("-t") + 1] == "30.000"
    assert command[command.index("-ar") + 1] == "8000"
    assert command[command.index("-ac") + 1] == "1"
    assert command[-1] == "pipe:1"


def test_sample_fetcher_degrades_to_empty(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(*_args, **_kwargs):
        return FakeCompletedProcess(returncode=1, stdout=b"", stderr=b"Invalid data found")

    monkeypatch.setattr("subprocess.run", fake_run)
    fetcher = FFmpegSampleFetcher({"cam": tmp_path / "cam.mp4"})

    assert fetcher.fetch_samples("cam", 0.0, 30.0, 8000).size == 0
    assert fetcher.fetch_samples("unknown", 0.0, 30.0, 8000).size == 0
