"""View Assembler - shapes bucketed events into per-mode view-models.

``build_calendar_view`` is the engine's public entry point: it runs the
bucketer once over the supplied events and produces the payload for the
requested mode, a range label and the current-week stats block.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .bucketer import (
    DEFAULT_DURATION_MINUTES,
    GRID_START_MINUTES,
    BucketResult,
    RawEvent,
    bucket_events,
)
from .dates import (
    add_days,
    date_key,
    first_of_month,
    parse_date_key,
    parse_instant,
    resolve_timezone,
    start_of_week,
    today,
)
from .labels import format_full_date, format_month_day, range_label, weekday_names
from .ranges import get_range, normalize_mode, normalize_week_start
from .types import (
    CalendarStats,
    CalendarViewModel,
    DateRange,
    DayView,
    DisplayEvent,
    ListView,
    MonthCell,
    MonthView,
    TopSession,
    WeekDay,
)

logger = logging.getLogger(__name__)


MONTH_PREVIEW_LIMIT = 3

NewCustomerProbe = Callable[[DateRange], int]


@dataclass(slots=True)
class ViewOptions:
    """Inputs for one calendar render."""

    mode: Optional[str] = "week"
    anchor_date: Union[str, date, None] = None
    time_zone: Union[str, tzinfo, None] = "UTC"
    week_start_index: int = 0
    search_text: str = ""
    new_customer_probe: Optional[NewCustomerProbe] = None
    stats_events: Optional[Iterable[RawEvent]] = None
    now: Optional[datetime] = None
    grid_start_minutes: int = GRID_START_MINUTES
    default_duration_minutes: int = DEFAULT_DURATION_MINUTES


def matches_search(event: DisplayEvent, term: str) -> bool:
    """Case-insensitive substring match over title, instructor, room and birthday names."""
    return not term or term in event.search_text


def _filtered(events: Iterable[DisplayEvent], term: str) -> List[DisplayEvent]:
    return [event for event in events if matches_search(event, term)]


def _build_day(result: BucketResult, anchor: date, term: str) -> DayView:
    key = anchor.isoformat()
    return DayView(
        date_key=key,
        label=format_full_date(anchor),
        events=_filtered(result.bucket(key), term),
    )


def _build_week(
    result: BucketResult, anchor: date, week_start: int, today_key: str, term: str
) -> List[WeekDay]:
    start = start_of_week(anchor, week_start)
    names = weekday_names(week_start)
    days: List[WeekDay] = []
    for offset in range(7):
        current = add_days(start, offset)
        key = current.isoformat()
        days.append(
            WeekDay(
                date_key=key,
                weekday=names[offset],
                date_label=format_month_day(current),
                events=_filtered(result.bucket(key), term),
                is_today=key == today_key,
            )
        )
    return days


def _build_month(
    result: BucketResult, anchor: date, span: DateRange, week_start: int, today_key: str, term: str
) -> MonthView:
    weeks: List[List[MonthCell]] = []
    for week in range(6):
        cells: List[MonthCell] = []
        for weekday in range(7):
            current = add_days(span.start, week * 7 + weekday)
            key = current.isoformat()
            events = _filtered(result.bucket(key), term)
            cells.append(
                MonthCell(
                    date_key=key,
                    day_number=current.day,
                    is_current_month=(current.year, current.month) == (anchor.year, anchor.month),
                    is_today=key == today_key,
                    previews=events[:MONTH_PREVIEW_LIMIT],
                    more_count=max(0, len(events) - MONTH_PREVIEW_LIMIT),
                )
            )
        weeks.append(cells)
    return MonthView(weeks=weeks, weekdays=weekday_names(week_start))


def _build_list(result: BucketResult, span: DateRange, term: str) -> ListView:
    items = [
        event
        for event in result.events
        if span.contains(event.date_key) and matches_search(event, term)
    ]
    items.sort(key=lambda event: event.start)
    return ListView(items=items)


def _is_session(event: DisplayEvent) -> bool:
    return not (event.is_cancelled or event.is_holiday or event.is_birthday)


def compute_stats(
    result: BucketResult,
    week: DateRange,
    new_customer_probe: Optional[NewCustomerProbe] = None,
) -> CalendarStats:
    """Aggregate the sessions of ``week``.

    The strongest session is the one with the most registrations; the first
    one seen wins ties (including a week where every session has zero).
    """
    sessions = [
        event for event in result.events if week.contains(event.date_key) and _is_session(event)
    ]
    sessions.sort(key=lambda event: event.start)

    top: Optional[DisplayEvent] = None
    for event in sessions:
        if top is None or event.source.registrations > top.source.registrations:
            top = event

    new_customers = new_customer_probe(week) if new_customer_probe else 0

    return CalendarStats(
        session_count=len(sessions),
        registration_count=sum(event.source.registrations for event in sessions),
        new_customer_count=int(new_customers or 0),
        top_session=TopSession(
            id=top.id,
            title=top.title,
            date_key=top.date_key,
            time_range=top.time_range,
            registrations=top.source.registrations,
        )
        if top
        else None,
    )


def customer_probe(records: Iterable[Dict[str, Any]], tz: tzinfo) -> NewCustomerProbe:
    """Build a probe counting customer records created inside a week range.

    Records carry their creation instant as ``createdUtc``, ``createdAtUtc``
    or ``created_at``.
    Records without a parseable instant are ignored.
    """
    created_keys = []
    for record in records:
        created = parse_instant(record.get("createdUtc") or record.get("createdAtUtc") or record.get("created_at"))
        if created is not None:
            created_keys.append(date_key(created, tz))

    def probe(week: DateRange) -> int:
        return sum(1 for key in created_keys if week.contains(key))

    return probe


def build_calendar_view(events: Iterable[RawEvent], options: ViewOptions) -> CalendarViewModel:
    """Build the view-model for one calendar screen.

    Args:
        events: EventInstance objects or raw feed dicts covering the fetch range
        options: Mode, anchor, zone, week start, search and stats inputs.
            ``stats_events`` covers the current week when ``events`` does not.

    Returns:
        CalendarViewModel with exactly one mode payload populated
    """
    tz = (
        options.time_zone
        if isinstance(options.time_zone, tzinfo)
        else resolve_timezone(options.time_zone)
    )
    now = parse_instant(options.now) or datetime.now(timezone.utc)
    mode = normalize_mode(options.mode)
    week_start = normalize_week_start(options.week_start_index)
    anchor = parse_date_key(options.anchor_date, tz)
    term = (options.search_text or "").strip().lower()
    today_date = today(tz, now)
    today_key = today_date.isoformat()

    def _bucket(feed: Iterable[RawEvent]) -> BucketResult:
        bucketed = bucket_events(
            feed,
            tz,
            now=now,
            grid_start_minutes=options.grid_start_minutes,
            default_duration_minutes=options.default_duration_minutes,
        )
        if bucketed.dropped:
            logger.info("Skipped %d events without a valid start", bucketed.dropped)
        return bucketed

    result = _bucket(events)

    span = get_range(mode, anchor, week_start)
    view = CalendarViewModel(
        mode=mode,
        anchor_date=anchor.isoformat(),
        range=span,
        range_label=range_label(mode, anchor, span, week_start),
        search=options.search_text or "",
    )

    if mode == "day":
        view.day = _build_day(result, anchor, term)
    elif mode == "month":
        view.month = _build_month(result, first_of_month(anchor), span, week_start, today_key, term)
    elif mode == "list":
        view.list_view = _build_list(result, span, term)
    else:
        view.week = _build_week(result, anchor, week_start, today_key, term)

    # The current week may lie outside the rendered range.
    stats_result = result if options.stats_events is None else _bucket(options.stats_events)
    view.stats = compute_stats(
        stats_result,
        get_range("week", today_date, week_start),
        options.new_customer_probe,
    )
    return view
