"""Birthday and holiday overlay instances.

Overlays are all-day markers merged into the calendar feed next to the
scheduled sessions. They are anchored at local noon so that the day they
land on is stable in every zone offset the studio is likely to use.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from .dates import format_date_key, noon_anchor
from .types import EventInstance


BIRTHDAY_COLOR = "#fde68a"
HOLIDAY_COLOR = "#fca5a5"


@dataclass(frozen=True, slots=True)
class BirthdayPerson:
    """A staff member whose birthday is shown on the calendar."""

    id: str
    name: str
    date_of_birth: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BirthdayPerson":
        dob = data.get("dateOfBirth") or data.get("date_of_birth")
        if isinstance(dob, str):
            try:
                dob = date.fromisoformat(dob.strip()[:10])
            except ValueError:
                dob = None
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("displayName") or data.get("name") or ""),
            date_of_birth=dob if isinstance(dob, date) else None,
            email=data.get("email"),
            phone=data.get("phone"),
        )


@dataclass(frozen=True, slots=True)
class HolidayEntry:
    """One holiday date from a holiday calendar."""

    date: date
    title: str
    calendar_id: str = ""


def birthday_in_year(dob: date, year: int) -> date:
    """The birthday's date in ``year``; Feb 29 falls back to Feb 28."""
    day = dob.day
    if dob.month == 2 and day == 29 and not calendar.isleap(year):
        day = 28
    return date(year, dob.month, day)


def build_birthday_instances(
    people: Iterable[BirthdayPerson],
    from_date: date,
    to_date: date,
    tz: tzinfo,
    color: str = BIRTHDAY_COLOR,
) -> List[EventInstance]:
    """One birthday instance per person per birthday inside ``[from_date, to_date]``.

    People without a date of birth are skipped.
    """
    instances: List[EventInstance] = []
    for person in people:
        if person.date_of_birth is None:
            continue
        for year in range(from_date.year, to_date.year + 1):
            day = birthday_in_year(person.date_of_birth, year)
            if day < from_date or day > to_date:
                continue
            start = noon_anchor(day, tz).astimezone(timezone.utc)
            instances.append(
                EventInstance(
                    id=f"birthday-{person.id}-{format_date_key(day)}",
                    start=start,
                    end=start,
                    title=person.name,
                    color=color,
                    is_birthday=True,
                    birthday_name=person.name,
                    contact_email=person.email,
                    contact_phone=person.phone,
                )
            )
    return instances


def build_holiday_instances(
    entries: Iterable[HolidayEntry],
    tz: tzinfo,
    color: str = HOLIDAY_COLOR,
) -> List[EventInstance]:
    instances: List[EventInstance] = []
    for entry in entries:
        start = noon_anchor(entry.date, tz).astimezone(timezone.utc)
        prefix = f"holiday-{entry.calendar_id}" if entry.calendar_id else "holiday"
        instances.append(
            EventInstance(
                id=f"{prefix}-{format_date_key(entry.date)}",
                start=start,
                end=start,
                title=entry.title,
                color=color,
                is_holiday=True,
            )
        )
    return instances
