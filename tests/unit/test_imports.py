"""Smoke tests ensuring packages import correctly."""

from __future__ import annotations

import importlib

import pytest


@pytest.mark.parametrize(
    "module",
    [
        "multicam_scribe",
        "multicam_scribe.cli",
        "multicam_scribe.pipelines.sync",
        "multicam_scribe.pipelines.asr",
        "multicam_scribe.pipelines.transcript",
    ],
)
def test_import_package(module: str) -> None:
    assert importlib.import_module(module) is not None
