"""Date helpers for the calendar engine.

Calendar days are handled as ``date`` objects and identified by ``YYYY-MM-DD``
keys. Instants are timezone-aware datetimes; naive datetimes coming from the
scheduling backend are treated as UTC.

Weekday indexes follow the studio settings convention: Sunday = 0 through
Saturday = 6.
"""
from __future__ import annotations

import re
from calendar import monthrange
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_LOCALE_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

NOON = time(12, 0)


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Resolve a time zone name into a tzinfo.

    Supported forms:
      - None / "" / "UTC" / "Z" -> UTC
      - IANA names, e.g. "Asia/Jerusalem"
      - Fixed offsets: "+02:00", "+0200", "-05:00"

    Raises ValueError for unknown identifiers.
    """
    if name is None:
        return timezone.utc
    value = str(name).strip()
    if not value or value.upper() in {"UTC", "Z", "GMT"}:
        return timezone.utc

    match = _OFFSET_RE.match(value)
    if match:
        sign, hours, minutes = match.groups()
        if int(hours) > 23 or int(minutes) > 59:
            raise ValueError(f"Invalid timezone offset: {value!r}")
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        return timezone(offset if sign == "+" else -offset)

    try:
        return ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Invalid timezone identifier: {value!r}") from exc


def _ensure_utc(dt: datetime) -> datetime:
    """Ensure datetime is UTC timezone-aware.

    If naive, assumes UTC. If aware, converts to UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 instant into an aware UTC datetime.

    Returns None for missing or malformed values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _ensure_utc(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return _ensure_utc(parsed)


def to_local(instant: datetime, tz: tzinfo) -> datetime:
    """Convert an instant to wall-clock time in ``tz``."""
    return _ensure_utc(instant).astimezone(tz)


def today(tz: tzinfo, now: Optional[datetime] = None) -> date:
    return to_local(now or datetime.now(timezone.utc), tz).date()


def date_key(instant: datetime, tz: tzinfo) -> str:
    """Return the ``YYYY-MM-DD`` key of the local day ``instant`` falls on."""
    return format_date_key(to_local(instant, tz).date())


def format_date_key(value: date) -> str:
    return value.isoformat()


def parse_date_key(value: Any, tz: Optional[tzinfo] = None) -> date:
    """Parse a date input (``YYYY-MM-DD`` or ``DD/MM/YYYY``).

    Never raises: anything unparseable falls back to today in ``tz``.
    """
    if isinstance(value, datetime):
        return to_local(value, tz or timezone.utc).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value

    text = str(value or "").strip()
    match = _ISO_DATE_RE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
    else:
        match = _LOCALE_DATE_RE.match(text)
        if not match:
            return today(tz or timezone.utc)
        day, month, year = (int(part) for part in match.groups())

    try:
        return date(year, month, day)
    except ValueError:
        return today(tz or timezone.utc)


def noon_anchor(value: date, tz: tzinfo) -> datetime:
    """Return local noon on ``value`` as an aware datetime."""
    return datetime.combine(value, NOON, tzinfo=tz)


def weekday_index(value: date) -> int:
    """Weekday with Sunday = 0."""
    return (value.weekday() + 1) % 7


def start_of_week(value: date, week_start_index: int = 0) -> date:
    diff = (weekday_index(value) - week_start_index + 7) % 7
    return value - timedelta(days=diff)


def add_days(value: date, amount: int) -> date:
    return value + timedelta(days=amount)


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def add_months(value: date, amount: int) -> date:
    """Shift by calendar months, clamping the day to the target month length."""
    month_index = value.year * 12 + (value.month - 1) + amount
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, monthrange(year, month)[1])
    return date(year, month, day)


def add_years(value: date, amount: int) -> date:
    """Shift by whole years; Feb 29 lands on Feb 28 in non-leap years."""
    year = value.year + amount
    day = min(value.day, monthrange(year, value.month)[1])
    return date(year, value.month, day)


def minutes_since_midnight(local: datetime) -> int:
    return local.hour * 60 + local.minute


def parse_clock(value: str) -> int:
    """Parse ``HH:MM`` into minutes since midnight.

    Raises ValueError for malformed input.
    """
    hours_s, _, minutes_s = str(value).strip().partition(":")
    hours, minutes = int(hours_s), int(minutes_s or 0)
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid clock time: {value!r}")
    return hours * 60 + minutes
