"""Calendar Router - view-models, navigation, rescheduling and export.

Handles:
- Range and navigation math for the calendar header
- View-model assembly from a supplied or fetched event feed
- Drag-and-drop reschedule commits
- CSV / iCalendar export
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from api.dependencies import get_schedule_client, get_settings, resolve_zone
from studio_calendar.calendar import (
    DateRange,
    EventInstance,
    ScheduleClient,
    ScheduleError,
    ViewOptions,
    build_calendar_view,
    customer_probe,
    export_csv,
    export_ics,
    get_range,
    normalize_mode,
    parse_date_key,
    parse_instant,
    shift_anchor,
    to_display_event,
)
from studio_calendar.calendar.dates import today
from studio_calendar.calendar.drag import build_commit_request, clamp_start, is_unchanged, snap_minutes
from studio_calendar.calendar.labels import range_label
from studio_calendar.calendar.ranges import normalize_week_start
from studio_calendar.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================

class CalendarViewRequest(BaseModel):
    """Request body for building a calendar view from a supplied feed."""
    mode: str = Field("week", description="day, week, month or list")
    anchor_date: Optional[str] = Field(None, alias="anchorDate", description="YYYY-MM-DD or DD/MM/YYYY")
    time_zone: Optional[str] = Field(None, alias="timeZone")
    week_start_index: Optional[int] = Field(None, alias="weekStartIndex", description="Sunday = 0")
    search: str = ""
    events: List[Dict[str, Any]] = Field(default_factory=list)
    customers: List[Dict[str, Any]] = Field(default_factory=list, description="Records with createdUtc")
    now: Optional[str] = Field(None, description="Reference instant (ISO); defaults to server time")

    model_config = ConfigDict(populate_by_name=True)


class RescheduleRequest(BaseModel):
    """Request body for committing a drag-and-drop move."""
    event: Dict[str, Any] = Field(..., description="Event feed record being moved")
    target_date_key: str = Field(..., alias="targetDateKey")
    minutes: float = Field(..., description="Offset from the grid origin, before snapping")
    time_zone: Optional[str] = Field(None, alias="timeZone")

    model_config = ConfigDict(populate_by_name=True)


class ExportRequest(BaseModel):
    """Request body for CSV / iCalendar export."""
    events: List[Dict[str, Any]] = Field(default_factory=list)
    time_zone: Optional[str] = Field(None, alias="timeZone")
    calendar_name: str = Field("Studio", alias="calendarName")

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Helpers
# =============================================================================

def _week_start(value: Optional[int], settings: Settings) -> int:
    return normalize_week_start(settings.week_start_index if value is None else value)


def _covers(outer: DateRange, inner: DateRange) -> bool:
    return outer.start <= inner.start and inner.end <= outer.end


def _view_options(settings: Settings, **overrides: Any) -> ViewOptions:
    return ViewOptions(
        grid_start_minutes=settings.grid_start_minutes,
        **overrides,
    )


# =============================================================================
# Navigation Endpoints
# =============================================================================

@router.get("/range")
def range_endpoint(
    mode: str = Query("week"),
    anchor: Optional[str] = Query(None, description="Anchor date"),
    week_start: Optional[int] = Query(None, alias="weekStart", ge=0, le=6),
    time_zone: Optional[str] = Query(None, alias="timeZone"),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Return the half-open fetch range and header label for a view."""
    tz = resolve_zone(time_zone, settings)
    view = normalize_mode(mode)
    week_start_index = _week_start(week_start, settings)
    anchor_date = parse_date_key(anchor, tz)
    span = get_range(view, anchor_date, week_start_index)
    return {
        **span.to_api_dict(),
        "mode": view,
        "label": range_label(view, anchor_date, span, week_start_index),
    }


@router.get("/shift")
def shift_endpoint(
    mode: str = Query("week"),
    anchor: Optional[str] = Query(None),
    direction: int = Query(1, ge=-1, le=1),
    time_zone: Optional[str] = Query(None, alias="timeZone"),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Move the anchor one unit backward or forward."""
    if direction == 0:
        raise HTTPException(status_code=400, detail="direction must be 1 or -1")
    tz = resolve_zone(time_zone, settings)
    shifted = shift_anchor(mode, parse_date_key(anchor, tz), direction)
    return {"mode": normalize_mode(mode), "anchor": shifted.isoformat()}


# =============================================================================
# View Endpoints
# =============================================================================

@router.post("/view")
def build_view_endpoint(
    request: CalendarViewRequest,
    settings: Settings = Depends(get_settings),
) -> dict:
    """Build a view-model from events supplied in the request body."""
    tz = resolve_zone(request.time_zone, settings)
    options = _view_options(
        settings,
        mode=request.mode,
        anchor_date=request.anchor_date,
        time_zone=tz,
        week_start_index=_week_start(request.week_start_index, settings),
        search_text=request.search,
        new_customer_probe=customer_probe(request.customers, tz),
        now=parse_instant(request.now),
    )
    return build_calendar_view(request.events, options).to_api_dict()


@router.get("/view")
def fetch_view_endpoint(
    mode: str = Query("week"),
    anchor: Optional[str] = Query(None),
    search: str = Query(""),
    week_start: Optional[int] = Query(None, alias="weekStart", ge=0, le=6),
    time_zone: Optional[str] = Query(None, alias="timeZone"),
    settings: Settings = Depends(get_settings),
    client: ScheduleClient = Depends(get_schedule_client),
) -> dict:
    """Fetch the range from the scheduling backend and build its view-model.

    Stats always cover the current week, so that week is fetched as well
    when the rendered range does not contain it.
    """
    tz = resolve_zone(time_zone, settings)
    week_start_index = _week_start(week_start, settings)
    span = get_range(mode, parse_date_key(anchor, tz), week_start_index)
    now = datetime.now(timezone.utc)
    current_week = get_range("week", today(tz, now), week_start_index)

    try:
        events = client.list_instances(span)
        stats_events = None
        if not _covers(span, current_week):
            stats_events = client.list_instances(current_week)
        customers = client.list_customers()
    except ScheduleError as e:
        raise HTTPException(status_code=502, detail=str(e))

    options = _view_options(
        settings,
        mode=mode,
        anchor_date=anchor,
        time_zone=tz,
        week_start_index=week_start_index,
        search_text=search,
        new_customer_probe=customer_probe(customers, tz),
        stats_events=stats_events,
        now=now,
    )
    return build_calendar_view(events, options).to_api_dict()


# =============================================================================
# Reschedule Endpoint
# =============================================================================

@router.post("/reschedule")
def reschedule_endpoint(
    request: RescheduleRequest,
    settings: Settings = Depends(get_settings),
    client: ScheduleClient = Depends(get_schedule_client),
) -> dict:
    """Commit a move of one session to a new day and snapped time."""
    tz = resolve_zone(request.time_zone, settings)
    instance = EventInstance.from_dict(request.event)
    if instance.start is None:
        raise HTTPException(status_code=400, detail="Event has no valid start")

    event = to_display_event(
        instance,
        tz,
        datetime.now(timezone.utc),
        grid_start_minutes=settings.grid_start_minutes,
    )
    if event.is_locked:
        raise HTTPException(status_code=400, detail="Holiday and birthday entries cannot be moved")

    minutes = clamp_start(
        snap_minutes(request.minutes, settings.snap_minutes),
        event.position.duration_minutes,
        settings.day_length_minutes,
    )
    target_key = parse_date_key(request.target_date_key, tz).isoformat()
    commit = build_commit_request(
        event, target_key, minutes, tz, grid_start_minutes=settings.grid_start_minutes
    )
    if is_unchanged(event, commit):
        return {"changed": False, "eventId": event.id}

    try:
        client.update_instance(commit)
    except ScheduleError as e:
        raise HTTPException(status_code=502, detail=str(e))

    logger.info("Rescheduled event %s to %s", commit.event_id, commit.new_start.isoformat())
    return {"changed": True, "eventId": commit.event_id, **commit.to_payload()}


# =============================================================================
# Export Endpoints
# =============================================================================

@router.post("/export/csv")
def export_csv_endpoint(
    request: ExportRequest,
    settings: Settings = Depends(get_settings),
) -> Response:
    tz = resolve_zone(request.time_zone, settings)
    events = [EventInstance.from_dict(item) for item in request.events]
    return Response(
        content=export_csv(events, tz),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="studio-calendar.csv"'},
    )


@router.post("/export/ics")
def export_ics_endpoint(request: ExportRequest) -> Response:
    events = [EventInstance.from_dict(item) for item in request.events]
    return Response(
        content=export_ics(events, request.calendar_name),
        media_type="text/calendar",
        headers={"Content-Disposition": 'attachment; filename="studio-calendar.ics"'},
    )
