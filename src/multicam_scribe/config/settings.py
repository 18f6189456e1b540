"""Typed views over the configuration mapping."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "AssemblyAISettings",
    "FFmpegSettings",
    "Settings",
    "SyncSettings",
    "TranscriptionSettings",
]


def _section(config: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    current: Any = config
    for key in keys:
        if not isinstance(current, Mapping):
            return {}
        current = current.get(key)
    return current if isinstance(current, Mapping) else {}


@dataclass(slots=True)
class SyncSettings:
    """Parameters for content-based offset estimation."""

    sample_rate_hz: int = 8_000
    window_seconds: float = 30.0
    duration_match_tolerance_seconds: float = 0.5
    max_workers: int = 4

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> SyncSettings:
        section = _section(config, "sync")
        return cls(
            sample_rate_hz=int(section.get("sample_rate_hz", 8_000)),
            window_seconds=float(section.get("window_seconds", 30.0)),
            duration_match_tolerance_seconds=float(
                section.get("duration_match_tolerance_seconds", 0.5)
            ),
            max_workers=max(1, int(section.get("max_workers", 4))),
        )


@dataclass(slots=True)
class TranscriptionSettings:
    """Defaults for multicam transcription runs."""

    segment_gap_seconds: float = 2.0
    max_workers: int = 4
    speech_models: tuple[str, ...] = field(default_factory=lambda: ("universal-2",))

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> TranscriptionSettings:
        section = _section(config, "transcription")
        models_raw = section.get("speech_models", ("universal-2",))
        if isinstance(models_raw, Sequence) and not isinstance(models_raw, str):
            models = tuple(str(model) for model in models_raw if str(model).strip())
        else:
            models = ("universal-2",)
        return cls(
            segment_gap_seconds=float(section.get("segment_gap_seconds", 2.0)),
            max_workers=max(1, int(section.get("max_workers", 4))),
            speech_models=models,
        )


@dataclass(slots=True)
class AssemblyAISettings:
    """Static configuration for the hosted transcription API client."""

    api_base_url: str = "https://api.assemblyai.com"
    api_key_env: str = "ASSEMBLYAI_API_KEY"
    timeout_seconds: float = 120.0
    max_retries: int = 2
    poll_interval_seconds: float = 3.0
    max_polls: int = 300

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> AssemblyAISettings:
        providers = config.get("providers")
        if not isinstance(providers, Mapping):
            raise TypeError("Configuration missing 'providers' section.")
        api_cfg = providers.get("assemblyai")
        if not isinstance(api_cfg, Mapping):
            raise TypeError("Configuration missing 'providers.assemblyai' section.")

        return cls(
            api_base_url=str(api_cfg.get("api_base_url", "https://api.assemblyai.com")).rstrip("/"),
            api_key_env=str(api_cfg.get("api_key_env", "ASSEMBLYAI_API_KEY")),
            timeout_seconds=float(api_cfg.get("timeout_seconds", 120.0)),
            max_retries=int(api_cfg.get("max_retries", 2)),
            poll_interval_seconds=float(api_cfg.get("poll_interval_seconds", 3.0)),
            max_polls=int(api_cfg.get("max_polls", 300)),
        )


@dataclass(slots=True)
class FFmpegSettings:
    """Binary locations for ffmpeg and ffprobe."""

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> FFmpegSettings:
        section = _section(config, "ffmpeg")
        return cls(
            ffmpeg_path=str(section.get("ffmpeg_path", "ffmpeg")),
            ffprobe_path=str(section.get("ffprobe_path", "ffprobe")),
        )


@dataclass(slots=True)
class Settings:
    """Every typed section of one loaded configuration.

    ``raw`` keeps the validated mapping for consumers that take the whole
    config, such as the transcription service factory. ``assemblyai`` is
    ``None`` when no provider section is configured.
    """

    raw: Mapping[str, Any]
    environment: str
    sync: SyncSettings
    transcription: TranscriptionSettings
    ffmpeg: FFmpegSettings
    assemblyai: AssemblyAISettings | None = None
    logging: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> Settings:
        assemblyai = (
            AssemblyAISettings.from_config(config)
            if _section(config, "providers", "assemblyai")
            else None
        )
        return cls(
            raw=config,
            environment=str(config.get("environment", "dev")),
            sync=SyncSettings.from_config(config),
            transcription=TranscriptionSettings.from_config(config),
            ffmpeg=FFmpegSettings.from_config(config),
            assemblyai=assemblyai,
            logging=_section(config, "logging"),
        )
