"""Configuration loading helpers."""

from __future__ import annotations

from .load import ConfigError, load_config, load_settings
from .settings import (
    AssemblyAISettings,
    FFmpegSettings,
    Settings,
    SyncSettings,
    TranscriptionSettings,
)

__all__ = [
    "AssemblyAISettings",
    "ConfigError",
    "FFmpegSettings",
    "Settings",
    "SyncSettings",
    "TranscriptionSettings",
    "load_config",
    "load_settings",
]
