"""Configuration helpers for the studio calendar engine."""
from __future__ import annotations

from dataclasses import dataclass
import os
from datetime import tzinfo
from typing import Optional

from dotenv import load_dotenv

from .calendar.dates import parse_clock, resolve_timezone


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


@dataclass(slots=True)
class Settings:
    """Runtime configuration for the calendar API and CLI."""

    time_zone: str = "UTC"
    week_start_index: int = 0
    grid_start_minutes: int = 7 * 60
    day_length_minutes: int = 16 * 60
    snap_minutes: int = 30
    api_base: Optional[str] = None
    api_token: Optional[str] = None
    api_timeout_seconds: int = 15
    environment: str = "local"

    @property
    def tz(self) -> tzinfo:
        return resolve_timezone(self.time_zone)


def _int_var(name: str, default: int, *, minimum: int = 0, maximum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from exc
    if value < minimum or (maximum is not None and value > maximum):
        upper = f"..{maximum}" if maximum is not None else " or more"
        raise ConfigError(f"{name} must be {minimum}{upper}, got {value}.")
    return value


def load_settings(*, use_dotenv: bool = True) -> Settings:
    """Load settings from environment variables (and a local .env file).

    Returns:
        Settings with every value resolved.

    Raises:
        ConfigError: if a variable is present but malformed.
    """
    if use_dotenv:
        load_dotenv()

    time_zone = os.getenv("STUDIO_TIMEZONE", "UTC").strip() or "UTC"
    try:
        resolve_timezone(time_zone)
    except ValueError as exc:
        raise ConfigError(f"STUDIO_TIMEZONE is not a known time zone: {time_zone!r}") from exc

    grid_start = os.getenv("STUDIO_GRID_START", "07:00")
    try:
        grid_start_minutes = parse_clock(grid_start)
    except ValueError as exc:
        raise ConfigError(f"STUDIO_GRID_START must be HH:MM, got {grid_start!r}.") from exc

    api_base = (os.getenv("STUDIO_API_BASE") or "").strip() or None
    api_token = (os.getenv("STUDIO_API_TOKEN") or "").strip() or None

    return Settings(
        time_zone=time_zone,
        week_start_index=_int_var("STUDIO_WEEK_START", 0, maximum=6),
        grid_start_minutes=grid_start_minutes,
        day_length_minutes=_int_var("STUDIO_DAY_LENGTH_MINUTES", 16 * 60, minimum=1, maximum=24 * 60),
        snap_minutes=_int_var("STUDIO_SNAP_MINUTES", 30, minimum=1),
        api_base=api_base,
        api_token=api_token,
        api_timeout_seconds=_int_var("STUDIO_API_TIMEOUT", 15, minimum=1),
        environment=os.getenv("STUDIO_ENV", "local"),
    )
