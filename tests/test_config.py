"""Tests for settings loading."""
import pytest

from studio_calendar.config import ConfigError, load_settings


STUDIO_VARS = [
    "STUDIO_TIMEZONE",
    "STUDIO_WEEK_START",
    "STUDIO_GRID_START",
    "STUDIO_DAY_LENGTH_MINUTES",
    "STUDIO_SNAP_MINUTES",
    "STUDIO_API_BASE",
    "STUDIO_API_TOKEN",
    "STUDIO_API_TIMEOUT",
    "STUDIO_ENV",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in STUDIO_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings(use_dotenv=False)
    assert settings.time_zone == "UTC"
    assert settings.week_start_index == 0
    assert settings.grid_start_minutes == 420
    assert settings.day_length_minutes == 960
    assert settings.snap_minutes == 30
    assert settings.api_base is None
    assert settings.environment == "local"


def test_overrides(monkeypatch):
    monkeypatch.setenv("STUDIO_TIMEZONE", "Asia/Jerusalem")
    monkeypatch.setenv("STUDIO_WEEK_START", "1")
    monkeypatch.setenv("STUDIO_GRID_START", "06:30")
    monkeypatch.setenv("STUDIO_API_BASE", " https://studio.example ")
    monkeypatch.setenv("STUDIO_ENV", "staging")

    settings = load_settings(use_dotenv=False)
    assert settings.tz.key == "Asia/Jerusalem"
    assert settings.week_start_index == 1
    assert settings.grid_start_minutes == 390
    assert settings.api_base == "https://studio.example"
    assert settings.environment == "staging"


@pytest.mark.parametrize(
    "name, value, match",
    [
        ("STUDIO_TIMEZONE", "Nowhere/Land", "STUDIO_TIMEZONE"),
        ("STUDIO_WEEK_START", "7", "STUDIO_WEEK_START"),
        ("STUDIO_WEEK_START", "monday", "integer"),
        ("STUDIO_GRID_START", "7am", "HH:MM"),
        ("STUDIO_SNAP_MINUTES", "0", "STUDIO_SNAP_MINUTES"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value, match):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError, match=match):
        load_settings(use_dotenv=False)
