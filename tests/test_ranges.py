"""Tests for view ranges, navigation and header labels."""
from datetime import date

import pytest

from studio_calendar.calendar.labels import booked_summary, format_money, range_label, weekday_names
from studio_calendar.calendar.ranges import get_range, normalize_mode, shift_anchor
from studio_calendar.calendar.types import EventInstance


class TestGetRange:

    def test_week_range_sunday_start(self):
        span = get_range("week", date(2024, 3, 1), 0)
        assert span.to_api_dict() == {"from": "2024-02-25", "to": "2024-03-03"}

    def test_day_range(self):
        span = get_range("day", date(2024, 3, 1))
        assert (span.start, span.end) == (date(2024, 3, 1), date(2024, 3, 2))

    def test_month_range_is_six_weeks(self):
        span = get_range("month", date(2024, 2, 15), 0)
        assert span.start == date(2024, 1, 28)
        assert (span.end - span.start).days == 42

    def test_list_range_is_one_year_from_first_of_month(self):
        span = get_range("list", date(2024, 3, 17))
        assert (span.start, span.end) == (date(2024, 3, 1), date(2025, 3, 1))

    def test_unknown_mode_renders_as_week(self):
        assert normalize_mode("agenda") == "week"
        assert get_range("agenda", date(2024, 3, 1)) == get_range("week", date(2024, 3, 1))

    @pytest.mark.parametrize("mode", ["day", "week", "month", "list"])
    @pytest.mark.parametrize("week_start", [0, 1, 6])
    def test_anchor_inside_range(self, mode, week_start):
        anchor = date(2024, 2, 29)
        span = get_range(mode, anchor, week_start)
        assert span.start <= anchor < span.end


class TestShiftAnchor:

    @pytest.mark.parametrize("mode", ["day", "week"])
    def test_shift_is_invertible(self, mode):
        anchor = date(2024, 3, 1)
        assert shift_anchor(mode, shift_anchor(mode, anchor, 1), -1) == anchor

    def test_month_shift_lands_on_first(self):
        assert shift_anchor("month", date(2024, 1, 31), 1) == date(2024, 2, 1)
        assert shift_anchor("month", date(2024, 1, 31), -1) == date(2023, 12, 1)

    def test_month_shift_round_trip_keeps_month(self):
        anchor = date(2024, 3, 17)
        back = shift_anchor("month", shift_anchor("month", anchor, 1), -1)
        assert (back.year, back.month) == (2024, 3)

    def test_list_shift_moves_one_year(self):
        assert shift_anchor("list", date(2024, 3, 1), 1) == date(2025, 3, 1)

    def test_contiguous_weeks(self):
        anchor = date(2024, 3, 1)
        current = get_range("week", anchor)
        following = get_range("week", shift_anchor("week", anchor, 1))
        assert current.end == following.start

    def test_contiguous_days(self):
        anchor = date(2024, 2, 28)
        assert get_range("day", anchor).end == get_range("day", shift_anchor("day", anchor, 1)).start


class TestLabels:

    def test_week_label(self):
        anchor = date(2024, 3, 1)
        assert range_label("week", anchor, get_range("week", anchor)) == "Feb 25 - Mar 2"

    def test_day_and_month_labels(self):
        anchor = date(2024, 3, 1)
        assert range_label("day", anchor, get_range("day", anchor)) == "Friday, Mar 1, 2024"
        assert range_label("month", anchor, get_range("month", anchor)) == "March 2024"

    def test_list_label(self):
        anchor = date(2024, 3, 1)
        assert range_label("list", anchor, get_range("list", anchor)) == "March 2024 - February 2025"

    def test_weekday_names_rotate(self):
        assert weekday_names(0)[0] == "Sun"
        assert weekday_names(1) == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

    def test_format_money(self):
        assert format_money(8000, "ILS") == "₪80"
        assert format_money(1200, "usd") == "$12"
        assert format_money(500, "CHF") == "CHF5"

    def test_booked_summary(self):
        hybrid = EventInstance(id="1", start=None, capacity=10, booked=4, remote_capacity=5, remote_booked=2)
        assert booked_summary(hybrid) == "4 / 10 • 2 / 5"
        assert booked_summary(EventInstance(id="2", start=None, capacity=8, booked=8)) == "8 / 8"
        assert booked_summary(EventInstance(id="3", start=None, is_holiday=True)) == "-"
