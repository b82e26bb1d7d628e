"""Tests for view assembly and current-week stats."""
from datetime import datetime, timezone

import pytest

from studio_calendar.calendar.views import ViewOptions, build_calendar_view, customer_probe


def _options(now, **overrides):
    defaults = dict(mode="week", anchor_date="2024-03-06", time_zone="UTC", now=now)
    defaults.update(overrides)
    return ViewOptions(**defaults)


class TestModePayloads:

    def test_exactly_one_payload(self, make_event, now):
        for mode in ("day", "week", "month", "list"):
            view = build_calendar_view([], _options(now, mode=mode))
            payload = view.to_api_dict()
            present = [key for key in ("day", "week", "month", "list") if key in payload]
            assert present == [mode]
            assert payload[f"is{mode.capitalize()}"] is True

    def test_unknown_mode_falls_back_to_week(self, now):
        view = build_calendar_view([], _options(now, mode="timeline"))
        assert view.mode == "week"
        assert view.week is not None

    def test_day_view(self, make_event, now):
        events = [
            make_event("2024-03-06T09:00:00Z", title="Flow"),
            make_event("2024-03-07T09:00:00Z", title="Tomorrow"),
        ]
        view = build_calendar_view(events, _options(now, mode="day"))
        assert view.day.date_key == "2024-03-06"
        assert view.day.label == "Wednesday, Mar 6, 2024"
        assert [event.title for event in view.day.events] == ["Flow"]

    def test_week_view_has_seven_contiguous_days(self, make_event, now):
        view = build_calendar_view([make_event("2024-03-06T09:00:00Z")], _options(now, week_start_index=1))
        keys = [day.date_key for day in view.week]
        assert keys == [f"2024-03-{day:02d}" for day in range(4, 11)]
        assert view.week[0].weekday == "Mon"
        assert [day.is_today for day in view.week].count(True) == 1
        assert view.week[2].is_today is True
        assert len(view.week[2].events) == 1
        assert view.range_label == "Mar 4 - Mar 10"

    def test_month_grid(self, now):
        view = build_calendar_view([], _options(now, mode="month", anchor_date="2024-02-15"))
        cells = view.month.cells
        assert len(cells) == 42
        assert len(view.month.weeks) == 6
        assert cells[0].date_key == "2024-01-28"
        for cell in cells:
            assert cell.is_current_month == cell.date_key.startswith("2024-02")

    def test_month_previews_capped(self, make_event, now):
        events = [make_event(f"2024-02-15T{hour:02d}:00:00Z") for hour in range(8, 13)]
        view = build_calendar_view(events, _options(now, mode="month", anchor_date="2024-02-15"))
        cell = next(cell for cell in view.month.cells if cell.date_key == "2024-02-15")
        assert len(cell.previews) == 3
        assert cell.more_count == 2
        assert cell.to_api_dict()["hasEvents"] is True

    def test_list_view_counts_unmerged_events(self, make_event, now):
        events = [
            make_event("2024-03-10T09:00:00Z"),
            make_event("2024-03-02T09:00:00Z"),
            make_event("2024-06-10T12:00:00Z", isBirthday=True, birthdayName="A"),
            make_event("2024-06-10T12:00:00Z", isBirthday=True, birthdayName="B"),
            make_event(None),
            make_event("2025-03-01T09:00:00Z"),  # outside the year
        ]
        view = build_calendar_view(events, _options(now, mode="list"))
        items = view.list_view.items
        assert len(items) == 4
        assert items[0].date_key == "2024-03-02"
        assert items == sorted(items, key=lambda event: event.start)

    def test_anchor_defaults_to_today(self):
        view = build_calendar_view([], ViewOptions(mode="day", anchor_date="nonsense"))
        assert view.anchor_date == datetime.now(timezone.utc).date().isoformat()

    def test_invalid_time_zone_raises(self, now):
        with pytest.raises(ValueError):
            build_calendar_view([], _options(now, time_zone="Nowhere/Special"))


class TestSearch:

    def test_matches_title_instructor_and_room(self, make_event, now):
        events = [
            make_event("2024-03-06T09:00:00Z", title="Vinyasa"),
            make_event("2024-03-06T10:00:00Z", title="Pilates", instructorName="Noa"),
            make_event("2024-03-06T11:00:00Z", title="Barre", roomName="Hall B"),
        ]
        assert len(build_calendar_view(events, _options(now, mode="day", search_text="VIN")).day.events) == 1
        assert len(build_calendar_view(events, _options(now, mode="day", search_text="noa")).day.events) == 1
        assert len(build_calendar_view(events, _options(now, mode="day", search_text="hall")).day.events) == 1
        assert len(build_calendar_view(events, _options(now, mode="day", search_text="")).day.events) == 3

    def test_matches_any_birthday_name_on_aggregator(self, make_event, now):
        events = [
            make_event("2024-03-06T12:00:00Z", isBirthday=True, birthdayName="Maya"),
            make_event("2024-03-06T12:00:00Z", isBirthday=True, birthdayName="Liora"),
        ]
        found = build_calendar_view(events, _options(now, mode="day", search_text="liora")).day.events
        assert [event.id for event in found] == ["birthdays-2024-03-06"]
        assert found[0].title == "Birthday: Maya"

    def test_search_does_not_change_stats(self, make_event, now):
        events = [make_event("2024-03-06T09:00:00Z", title="Vinyasa", booked=3)]
        filtered = build_calendar_view(events, _options(now, search_text="zzz"))
        assert filtered.week[3].events == []
        assert filtered.stats.session_count == 1


class TestStats:

    def test_current_week_aggregates(self, make_event, now):
        events = [
            make_event("2024-03-04T09:00:00Z", title="Low", booked=2, remoteBooked=1),
            make_event("2024-03-05T09:00:00Z", title="High", booked=6),
            make_event("2024-03-06T09:00:00Z", title="Gone", booked=9, status="Cancelled"),
            make_event("2024-03-06T12:00:00Z", title="Purim", isHoliday=True),
            make_event("2024-03-12T09:00:00Z", title="Next week", booked=20),
        ]
        # Anchor in another month: stats still follow the week containing "now"
        stats = build_calendar_view(events, _options(now, anchor_date="2024-05-01")).stats

        assert stats.session_count == 2
        assert stats.registration_count == 9
        assert stats.top_session.title == "High"
        assert stats.top_session.registrations == 6

    def test_stats_feed_covers_week_outside_rendered_range(self, make_event, now):
        monday = make_event("2024-03-04T09:00:00Z", title="Yoga", booked=2)
        wednesday = make_event("2024-03-06T09:00:00Z", title="Yoga", booked=4)
        view = build_calendar_view(
            [wednesday],
            _options(now, mode="day", stats_events=[monday, wednesday]),
        )

        assert [event.title for event in view.day.events] == ["Yoga"]
        assert view.stats.session_count == 2
        assert view.stats.registration_count == 6

    def test_top_session_tie_keeps_first(self, make_event, now):
        events = [
            make_event("2024-03-05T09:00:00Z", title="Second", booked=0),
            make_event("2024-03-04T09:00:00Z", title="First", booked=0),
        ]
        stats = build_calendar_view(events, _options(now)).stats
        assert stats.top_session.title == "First"

    def test_empty_week(self, now):
        stats = build_calendar_view([], _options(now)).stats
        assert stats.session_count == 0
        assert stats.top_session is None
        assert stats.to_api_dict()["topSession"]["title"] == "-"

    def test_new_customer_probe(self, now):
        probe = customer_probe(
            [
                {"createdUtc": "2024-03-04T08:00:00Z"},
                {"createdUtc": "2024-03-09T23:00:00Z"},
                {"createdUtc": "2024-02-20T08:00:00Z"},
                {"createdUtc": None},
            ],
            timezone.utc,
        )
        stats = build_calendar_view([], _options(now, new_customer_probe=probe)).stats
        assert stats.new_customer_count == 2
