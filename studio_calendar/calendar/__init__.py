"""Calendar view engine for the studio operations console.

This module turns a flat list of scheduled event instances into
render-ready view-models:
- Date math and time-zone aware day keys
- Fetch ranges and navigation per view mode (day, week, month, list)
- Day bucketing with birthday aggregation
- Day/week/month/list view assembly plus current-week stats
- Drag-and-drop rescheduling against the scheduling backend
"""
from __future__ import annotations

from .types import (
    BirthdayContact,
    CalendarStats,
    CalendarViewModel,
    DateRange,
    DayView,
    DisplayEvent,
    EventInstance,
    EventPosition,
    ListView,
    MonthCell,
    MonthView,
    TopSession,
    ViewMode,
    WeekDay,
)

from .dates import (
    parse_date_key,
    parse_instant,
    resolve_timezone,
    start_of_week,
)

from .ranges import (
    get_range,
    normalize_mode,
    shift_anchor,
)

from .bucketer import (
    BucketResult,
    bucket_events,
    to_display_event,
)

from .views import (
    ViewOptions,
    build_calendar_view,
    compute_stats,
    customer_probe,
)

from .drag import (
    CommitRequest,
    Committing,
    DragController,
    Dragging,
    DragState,
    DropTarget,
    GridGeometry,
    Hovering,
    Idle,
    begin_drag,
    cancel,
    drop,
    finish_commit,
    hover,
    is_unchanged,
    snap_minutes,
)

from .schedule_client import (
    ScheduleClient,
    ScheduleError,
    load_client_from_settings,
)

from .overlays import (
    BirthdayPerson,
    HolidayEntry,
    build_birthday_instances,
    build_holiday_instances,
)

from .export import (
    export_csv,
    export_ics,
)

__all__ = [
    # Types
    "BirthdayContact",
    "CalendarStats",
    "CalendarViewModel",
    "DateRange",
    "DayView",
    "DisplayEvent",
    "EventInstance",
    "EventPosition",
    "ListView",
    "MonthCell",
    "MonthView",
    "TopSession",
    "ViewMode",
    "WeekDay",
    # Dates and ranges
    "parse_date_key",
    "parse_instant",
    "resolve_timezone",
    "start_of_week",
    "get_range",
    "normalize_mode",
    "shift_anchor",
    # Bucketing and views
    "BucketResult",
    "bucket_events",
    "to_display_event",
    "ViewOptions",
    "build_calendar_view",
    "compute_stats",
    "customer_probe",
    # Drag
    "CommitRequest",
    "Committing",
    "DragController",
    "Dragging",
    "DragState",
    "DropTarget",
    "GridGeometry",
    "Hovering",
    "Idle",
    "begin_drag",
    "cancel",
    "drop",
    "finish_commit",
    "hover",
    "is_unchanged",
    "snap_minutes",
    # Scheduling backend
    "ScheduleClient",
    "ScheduleError",
    "load_client_from_settings",
    # Overlays and export
    "BirthdayPerson",
    "HolidayEntry",
    "build_birthday_instances",
    "build_holiday_instances",
    "export_csv",
    "export_ics",
]
