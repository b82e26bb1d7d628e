"""Shared fixtures for calendar engine tests."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest


@pytest.fixture
def now():
    """Fixed reference instant: Wednesday 2024-03-06 12:00 UTC."""
    return datetime(2024, 3, 6, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_event():
    """Factory for raw feed records in the scheduling backend's wire shape."""
    counter = {"n": 0}

    def _make(start, end=None, **overrides):
        counter["n"] += 1
        record = {
            "id": overrides.pop("id", f"evt-{counter['n']}"),
            "startUtc": start,
            "endUtc": end,
            "seriesTitle": overrides.pop("title", "Yoga"),
            "seriesColor": "#a7f3d0",
            "roomId": "room-1",
            "roomName": "Studio A",
            "instructorId": "inst-1",
            "instructorName": "Dana",
            "capacity": 12,
            "booked": 0,
            "remoteCapacity": 0,
            "remoteBooked": 0,
            "priceCents": 8000,
            "currency": "ILS",
            "status": "Scheduled",
        }
        record.update(overrides)
        return record

    return _make
