"""Human-readable labels for calendar views (English, 24-hour clock)."""
from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import List

from .dates import add_days, start_of_week, to_local
from .types import DateRange, EventInstance


# Sunday-first, matching the studio weekday index
_WEEKDAY_SHORT = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

_CURRENCY_SYMBOLS = {
    "ILS": "₪",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def format_time(instant: datetime, tz: tzinfo) -> str:
    return to_local(instant, tz).strftime("%H:%M")


def format_time_range(start_label: str, end_label: str) -> str:
    return f"{start_label} - {end_label}" if end_label else start_label


def format_month_day(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}"


def format_full_date(value: date) -> str:
    return f"{value.strftime('%A, %b')} {value.day}, {value.year}"


def format_month_year(value: date) -> str:
    return value.strftime("%B %Y")


def weekday_names(week_start_index: int = 0) -> List[str]:
    return _WEEKDAY_SHORT[week_start_index:] + _WEEKDAY_SHORT[:week_start_index]


def format_money(cents: int, currency: str = "ILS") -> str:
    """Whole-unit price with the currency symbol, e.g. ``₪80``."""
    code = (currency or "ILS").upper()
    symbol = _CURRENCY_SYMBOLS.get(code, code)
    return f"{symbol}{(cents or 0) / 100:,.0f}"


def booked_summary(instance: EventInstance) -> str:
    """``booked / capacity``, plus the remote pair for hybrid sessions."""
    if instance.is_holiday or instance.is_birthday:
        return "-"
    summary = f"{instance.booked} / {instance.capacity}"
    if instance.remote_capacity > 0:
        summary += f" • {instance.remote_booked} / {instance.remote_capacity}"
    return summary


def range_label(mode: str, anchor: date, span: DateRange, week_start_index: int = 0) -> str:
    """Header label for the current view."""
    if mode == "day":
        return format_full_date(anchor)

    if mode == "month":
        return format_month_year(anchor)

    if mode == "list":
        last_day = add_days(span.end, -1)
        return f"{format_month_year(span.start)} - {format_month_year(last_day)}"

    week_start = start_of_week(anchor, week_start_index)
    week_end = add_days(week_start, 6)
    return f"{format_month_day(week_start)} - {format_month_day(week_end)}"
