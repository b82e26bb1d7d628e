"""Tests for CSV and iCalendar export."""
import csv
import io
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from studio_calendar.calendar.export import escape_ics, export_csv, export_ics
from studio_calendar.calendar.types import EventInstance


UTC = timezone.utc


def _events():
    return [
        EventInstance(
            id="e2",
            start=datetime(2024, 3, 6, 16, tzinfo=UTC),
            end=datetime(2024, 3, 6, 17, tzinfo=UTC),
            title="Pilates, Level 2",
            room_name="Hall B",
            status="Cancelled",
        ),
        EventInstance(
            id="e1",
            start=datetime(2024, 3, 5, 9, tzinfo=UTC),
            end=datetime(2024, 3, 5, 10, tzinfo=UTC),
            title="Yoga",
            description="Bring a mat",
            instructor_name="Dana",
            room_name="Studio A",
        ),
        EventInstance(id="h1", start=datetime(2024, 3, 5, 12, tzinfo=UTC), title="Holiday", is_holiday=True),
        EventInstance(id="x", start=None, title="Broken"),
    ]


class TestCsv:

    def test_rows_in_local_time(self):
        text = export_csv(_events(), ZoneInfo("Asia/Jerusalem"))
        rows = list(csv.reader(io.StringIO(text)))

        assert rows[0] == ["Title", "Start", "End", "Instructor", "Room", "Status", "Description"]
        assert rows[1] == ["Yoga", "2024-03-05 11:00", "2024-03-05 12:00", "Dana", "Studio A", "Scheduled", "Bring a mat"]
        assert rows[2][0] == "Pilates, Level 2"
        assert rows[2][5] == "Cancelled"
        assert len(rows) == 3


class TestIcs:

    def test_escape(self):
        assert escape_ics("a,b;c\\d\ne") == "a\\,b\\;c\\\\d\\ne"
        assert escape_ics("   ") == ""
        assert escape_ics(None) == ""

    def test_document(self):
        text = export_ics(_events(), "Studio; Tel Aviv", now=datetime(2024, 3, 1, 8, tzinfo=UTC))
        lines = text.split("\r\n")

        assert lines[0] == "BEGIN:VCALENDAR"
        assert "X-WR-CALNAME:Studio\\; Tel Aviv" in lines
        assert lines.count("BEGIN:VEVENT") == 2
        assert "DTSTAMP:20240301T080000Z" in lines
        assert "DTSTART:20240305T090000Z" in lines
        assert "SUMMARY:Pilates\\, Level 2" in lines
        assert "DESCRIPTION:Bring a mat\\nInstructor: Dana" in lines
        assert "STATUS:CANCELLED" in lines
        assert "UID:e1@studio" in lines
        assert text.endswith("END:VCALENDAR\r\n")
