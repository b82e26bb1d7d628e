"""CSV and iCalendar export of scheduled sessions."""
from __future__ import annotations

import csv
import io
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable, List, Optional

from .dates import parse_instant, to_local
from .types import EventInstance


CSV_HEADER = ["Title", "Start", "End", "Instructor", "Room", "Status", "Description"]
ICS_PRODID = "-//Studio//Calendar Export//EN"

_ICS_STAMP = "%Y%m%dT%H%M%SZ"
_CSV_STAMP = "%Y-%m-%d %H:%M"


def _exportable(events: Iterable[EventInstance]) -> List[EventInstance]:
    # Overlays are display-only markers.
    rows = [event for event in events if event.start is not None and not event.is_overlay]
    rows.sort(key=lambda event: event.start)
    return rows


def _end_of(event: EventInstance) -> datetime:
    if event.end is not None:
        return event.end
    if event.duration_minutes:
        return event.start + timedelta(minutes=event.duration_minutes)
    return event.start


def export_csv(events: Iterable[EventInstance], tz: tzinfo) -> str:
    """Render sessions as CSV with local ``YYYY-MM-DD HH:MM`` times."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(CSV_HEADER)
    for event in _exportable(events):
        writer.writerow(
            [
                event.title,
                to_local(event.start, tz).strftime(_CSV_STAMP),
                to_local(_end_of(event), tz).strftime(_CSV_STAMP),
                event.instructor_name,
                event.room_name,
                event.status,
                event.description,
            ]
        )
    return buffer.getvalue()


def escape_ics(value: Optional[str]) -> str:
    """Escape a TEXT value: backslash, semicolon, comma and newlines."""
    if not value or not value.strip():
        return ""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def _ics_stamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(_ICS_STAMP)


def _ics_description(event: EventInstance) -> str:
    description = event.description or ""
    if event.instructor_name:
        line = f"Instructor: {event.instructor_name}"
        description = f"{description}\n{line}" if description.strip() else line
    return description


def export_ics(
    events: Iterable[EventInstance],
    calendar_name: str,
    now: Optional[datetime] = None,
) -> str:
    """Render sessions as an iCalendar document with UTC times."""
    stamp = _ics_stamp(parse_instant(now) or datetime.now(timezone.utc))
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICS_PRODID}",
        f"X-WR-CALNAME:{escape_ics(calendar_name)}",
    ]
    for event in _exportable(events):
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{event.id}@studio",
                f"DTSTAMP:{stamp}",
                f"DTSTART:{_ics_stamp(event.start)}",
                f"DTEND:{_ics_stamp(_end_of(event))}",
                f"SUMMARY:{escape_ics(event.title)}",
            ]
        )
        if event.room_name.strip():
            lines.append(f"LOCATION:{escape_ics(event.room_name)}")
        description = _ics_description(event)
        if description.strip():
            lines.append(f"DESCRIPTION:{escape_ics(description)}")
        if event.status == "Cancelled":
            lines.append("STATUS:CANCELLED")
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"
