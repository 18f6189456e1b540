"""Configuration loading helpers for Multicam-Scribe."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from copy import deepcopy
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft7Validator

from .settings import Settings

__all__ = ["ConfigError", "load_config", "load_settings"]

PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_DIR = PROJECT_ROOT / "configs"
SCHEMA_PATH = Path(__file__).with_name("schema.json")
ENV_PREFIX = "MULTICAM_SCRIBE_"
ENV_SEPARATOR = "__"
CONFIG_SUFFIXES = (".yaml", ".yml")


class ConfigError(RuntimeError):
    """Raised when configuration loading or validation fails."""


def load_config(
    env: str = "dev",
    *,
    config_dir: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    validate: bool = True,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load the raw configuration mapping for the requested environment.

    Layers, later ones winning:
        1. ``configs/{env}.yaml`` (or ``.yml``) from ``config_dir``.
        2. Programmatic ``overrides``.
        3. ``MULTICAM_SCRIBE_*`` variables from ``environ`` (defaults to
           ``os.environ``); ``__`` separates nesting levels, e.g.
           ``MULTICAM_SCRIBE_SYNC__MAX_WORKERS=8``.

    The merged result is validated against ``schema.json`` unless ``validate`` is false.
    """

    base_dir = Path(config_dir) if config_dir is not None else CONFIG_DIR
    layers = [
        _read_environment_file(base_dir, env),
        dict(overrides or {}),
        _overrides_from_environ(os.environ if environ is None else environ),
    ]

    config: dict[str, Any] = {}
    for layer in layers:
        config = _deep_merge(config, layer)

    if validate:
        _validate_config(config)
    return config


def load_settings(
    env: str = "dev",
    *,
    config_dir: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load, validate and type the configuration in one step."""
    config = load_config(
        env,
        config_dir=config_dir,
        overrides=overrides,
        environ=environ,
    )
    return Settings.from_config(config)


def _read_environment_file(base_dir: Path, env: str) -> dict[str, Any]:
    """Read ``{env}.yaml`` from ``base_dir``; the file root must be a mapping."""
    candidates = [base_dir / f"{env}{suffix}" for suffix in CONFIG_SUFFIXES]
    path = next((candidate for candidate in candidates if candidate.exists()), None)
    if path is None:
        raise FileNotFoundError(f"Configuration file not found for environment '{env}' in {base_dir}.")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping in {path}.")
    return data


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``overrides`` onto ``base`` without mutating either."""
    merged: dict[str, Any] = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _overrides_from_environ(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``MULTICAM_SCRIBE_A__B=value`` variables into ``{"a": {"b": value}}``.

    Keys are lower-cased with dashes mapped to underscores. Values are parsed as
    YAML scalars so ``"8"`` becomes ``8`` and ``"false"`` becomes ``False``.
    """
    overrides: dict[str, Any] = {}
    for name in sorted(environ):
        if not name.startswith(ENV_PREFIX):
            continue
        path = [
            token.strip().lower().replace("-", "_")
            for token in name[len(ENV_PREFIX) :].split(ENV_SEPARATOR)
            if token.strip()
        ]
        if not path:
            continue

        node = overrides
        for key in path[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = node[key] = {}
            node = child
        node[path[-1]] = _parse_scalar(environ[name])
    return overrides


def _parse_scalar(raw_value: str) -> Any:
    """Best-effort YAML conversion of an environment value; unparsable text stays a string."""
    if not raw_value:
        return raw_value
    try:
        return yaml.safe_load(raw_value)
    except yaml.YAMLError:
        return raw_value


@lru_cache(maxsize=1)
def _load_schema() -> dict[str, Any]:
    """Read ``schema.json`` once per process."""
    with SCHEMA_PATH.open("r", encoding="utf-8") as handle:
        schema = json.load(handle)
    if not isinstance(schema, dict):
        raise ConfigError("Configuration schema must be a JSON object.")
    return schema


def _validate_config(config: Mapping[str, Any]) -> None:
    """Raise ``ConfigError`` listing every schema violation as ``path: message``."""
    errors = sorted(
        Draft7Validator(_load_schema()).iter_errors(config),
        key=lambda err: [str(piece) for piece in err.path],
    )
    if not errors:
        return

    lines = [
        f"- {'.'.join(str(piece) for piece in error.path) or '<root>'}: {error.message}"
        for error in errors
    ]
    raise ConfigError("Configuration validation failed:\n" + "\n".join(lines)) from errors[0]
