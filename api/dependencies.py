"""Shared dependencies and helper functions for API routers.

Usage in routers:
    from api.dependencies import get_settings, get_schedule_client, resolve_zone
"""
from __future__ import annotations

import os
from datetime import tzinfo
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException

from studio_calendar.calendar import ScheduleClient, ScheduleError, load_client_from_settings
from studio_calendar.calendar.dates import resolve_timezone
from studio_calendar.config import ConfigError, Settings, load_settings


# =============================================================================
# Configuration Constants
# =============================================================================

ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    os.getenv("STUDIO_ALLOWED_FRONTEND", "").strip(),
]


# =============================================================================
# Settings and collaborators
# =============================================================================

@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    try:
        return load_settings()
    except ConfigError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def get_schedule_client(settings: Settings = Depends(get_settings)) -> ScheduleClient:
    """Client for the scheduling backend; 503 when it is not configured."""
    try:
        return load_client_from_settings(settings)
    except ScheduleError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def resolve_zone(name: Optional[str], settings: Settings) -> tzinfo:
    """Resolve a request's time zone, falling back to the studio default."""
    try:
        return resolve_timezone(name or settings.time_zone)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
