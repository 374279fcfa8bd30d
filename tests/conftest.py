"""Shared fixtures for the Cadence test suite."""

from __future__ import annotations

import os

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    """Isolate each test from CADENCE_* variables, a stray .env and cached settings."""
    for var in [k for k in os.environ if k.startswith("CADENCE_")]:
        monkeypatch.delenv(var)

    # Settings.from_env reads .env from the working directory
    monkeypatch.chdir(tmp_path)

    import cadence.config.settings as settings_module

    settings_module._settings = None

    yield

    settings_module._settings = None
    # Drop sinks bound to captured streams or temporary files
    logger.remove()
