"""Tests for configuration management."""

import os
from pathlib import Path

import pytest

from cadence.config.settings import (
    ConfigError,
    Settings,
    generate_example_env,
    get_settings,
    load_env_file,
    load_settings,
)


def test_settings_defaults():
    """Test default settings."""
    settings = Settings()

    assert settings.store_path is None
    assert settings.default_timezone == "UTC"
    assert settings.max_buckets == 10_000
    assert settings.log_level == "INFO"
    assert settings.log_dir is None
    assert settings.event_log is None


def test_settings_with_string_paths():
    """Test settings converts string paths to Path."""
    settings = Settings(store_path="habits.yaml", log_dir="logs", event_log="logs/rollup.jsonl")

    assert settings.store_path == Path("habits.yaml")
    assert isinstance(settings.log_dir, Path)
    assert isinstance(settings.event_log, Path)


def test_invalid_default_timezone():
    """Invalid timezone produces a clear error."""
    with pytest.raises(ConfigError, match="CADENCE_DEFAULT_TZ"):
        Settings(default_timezone="Moon/Base")


def test_invalid_max_buckets():
    with pytest.raises(ConfigError, match="CADENCE_MAX_BUCKETS"):
        Settings(max_buckets=0)


def test_log_level_normalized():
    assert Settings(log_level="debug").log_level == "DEBUG"

    with pytest.raises(ConfigError, match="CADENCE_LOG_LEVEL"):
        Settings(log_level="chatty")


def test_load_env_file(tmp_path):
    """Test loading .env file with comments and quotes."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        """
# Store location
CADENCE_STORE_PATH="/data/habits.yaml"
CADENCE_DEFAULT_TZ='America/Toronto'

CADENCE_LOG_LEVEL=DEBUG
"""
    )

    load_env_file(env_file)

    assert os.environ["CADENCE_STORE_PATH"] == "/data/habits.yaml"
    assert os.environ["CADENCE_DEFAULT_TZ"] == "America/Toronto"
    assert os.environ["CADENCE_LOG_LEVEL"] == "DEBUG"


def test_settings_from_env(monkeypatch):
    """Test loading settings from environment."""
    monkeypatch.setenv("CADENCE_STORE_PATH", "/data/habits.yaml")
    monkeypatch.setenv("CADENCE_DEFAULT_TZ", "Europe/Brussels")
    monkeypatch.setenv("CADENCE_MAX_BUCKETS", "500")
    monkeypatch.setenv("CADENCE_EVENT_LOG", "/var/log/cadence/rollup.jsonl")

    settings = Settings.from_env()

    assert settings.store_path == Path("/data/habits.yaml")
    assert settings.default_timezone == "Europe/Brussels"
    assert settings.max_buckets == 500
    assert settings.event_log == Path("/var/log/cadence/rollup.jsonl")


def test_settings_from_env_file(tmp_path):
    env_file = tmp_path / "custom.env"
    env_file.write_text("CADENCE_DEFAULT_TZ=Asia/Tokyo\n")

    settings = Settings.from_env(env_file)

    assert settings.default_timezone == "Asia/Tokyo"


def test_settings_from_env_reads_dotenv_in_cwd(tmp_path):
    (tmp_path / ".env").write_text("CADENCE_MAX_BUCKETS=42\n")

    assert Settings.from_env().max_buckets == 42


def test_non_numeric_max_buckets(monkeypatch):
    monkeypatch.setenv("CADENCE_MAX_BUCKETS", "many")

    with pytest.raises(ConfigError, match="Invalid configuration"):
        Settings.from_env()


def test_load_settings_and_get_settings(monkeypatch):
    monkeypatch.setenv("CADENCE_DEFAULT_TZ", "America/Toronto")

    loaded = load_settings()

    assert get_settings() is loaded
    assert get_settings().default_timezone == "America/Toronto"


def test_get_settings_loads_lazily(monkeypatch):
    monkeypatch.setenv("CADENCE_LOG_LEVEL", "warning")

    settings = get_settings()

    assert settings.log_level == "WARNING"
    assert get_settings() is settings


def test_generate_example_env(tmp_path):
    output = tmp_path / ".env.example"

    example = generate_example_env(output)

    assert output.read_text(encoding="utf-8") == example
    for var in ("CADENCE_STORE_PATH", "CADENCE_DEFAULT_TZ", "CADENCE_MAX_BUCKETS", "CADENCE_LOG_LEVEL"):
        assert var in example


def test_example_env_loads_cleanly(tmp_path):
    """A fresh checkout with the example .env yields valid settings."""
    env_file = tmp_path / ".env"
    generate_example_env(env_file)

    settings = Settings.from_env(env_file)

    assert settings.default_timezone == "UTC"
    assert settings.max_buckets == 10_000
