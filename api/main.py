"""FastAPI service for the studio calendar engine."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import ALLOWED_ORIGINS, get_settings
from api.routers import calendar_router
from studio_calendar.config import Settings

logger = logging.getLogger(__name__)


app = FastAPI(
    title="Studio Calendar API",
    version="0.1.0",
    description="Calendar view-models and rescheduling for the studio operations console.",
)

origins = [origin for origin in ALLOWED_ORIGINS if origin]

if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(calendar_router, prefix="/calendar", tags=["calendar"])


@app.get("/health")
def health_check(settings: Settings = Depends(get_settings)) -> dict:
    """Health check endpoint with service configuration status."""
    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "timeZone": settings.time_zone,
        "services": {
            "schedule_api": "configured" if settings.api_base else "not_configured",
        },
    }
