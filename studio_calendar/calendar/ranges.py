"""Fetch/display windows for each calendar view mode.

All ranges are half-open ``[from, to)`` spans of calendar days:

- day:   the anchor day
- week:  seven days from the configured week start
- month: six full weeks starting at the week containing the 1st
- list:  one year from the first of the anchor's month
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from .dates import add_days, add_months, add_years, first_of_month, start_of_week
from .types import VIEW_MODES, DateRange, ViewMode


MONTH_GRID_DAYS = 42
DEFAULT_MODE: ViewMode = "week"


def normalize_mode(mode: Optional[str]) -> ViewMode:
    """Return a known view mode; anything unrecognized renders as a week."""
    value = (mode or "").strip().lower()
    if value in VIEW_MODES:
        return value  # type: ignore[return-value]
    return DEFAULT_MODE


def normalize_week_start(value: object) -> int:
    try:
        index = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    return index if 0 <= index <= 6 else 0


def get_range(mode: Optional[str], anchor: date, week_start_index: int = 0) -> DateRange:
    """Return the half-open day range the given mode must fetch and display."""
    view = normalize_mode(mode)
    week_start = normalize_week_start(week_start_index)

    if view == "day":
        return DateRange(anchor, add_days(anchor, 1))

    if view == "month":
        grid_start = start_of_week(first_of_month(anchor), week_start)
        return DateRange(grid_start, add_days(grid_start, MONTH_GRID_DAYS))

    if view == "list":
        start = first_of_month(anchor)
        return DateRange(start, add_years(start, 1))

    start = start_of_week(anchor, week_start)
    return DateRange(start, add_days(start, 7))


def shift_anchor(mode: Optional[str], anchor: date, direction: int) -> date:
    """Move the anchor by one unit of the mode (direction is +1 or -1).

    Month navigation lands on the first of the month so that repeated shifts
    never drift on short months.
    """
    view = normalize_mode(mode)

    if view == "day":
        return add_days(anchor, direction)

    if view == "month":
        return add_months(first_of_month(anchor), direction)

    if view == "list":
        return add_years(anchor, direction)

    return add_days(anchor, direction * 7)
