"""Calendar data types."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from .dates import parse_instant


ViewMode = Literal["day", "week", "month", "list"]
EventStatus = Literal["Scheduled", "Cancelled"]

VIEW_MODES: Tuple[str, ...] = ("day", "week", "month", "list")


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _normalize_status(value: Any) -> str:
    # The scheduling backend sends either the enum name or its ordinal.
    if value == 1 or str(value).strip().lower() == "cancelled":
        return "Cancelled"
    return "Scheduled"


@dataclass(frozen=True, slots=True)
class EventInstance:
    """One scheduled occurrence supplied by the scheduling collaborator."""

    id: str
    start: Optional[datetime]
    end: Optional[datetime] = None
    duration_minutes: Optional[int] = None

    # Inherited from the series
    title: str = ""
    icon: str = ""
    color: str = ""
    description: str = ""

    room_id: Optional[str] = None
    room_name: str = ""
    instructor_id: Optional[str] = None
    instructor_name: str = ""

    capacity: int = 0
    booked: int = 0
    remote_capacity: int = 0
    remote_booked: int = 0
    price_cents: int = 0
    currency: str = "ILS"

    status: EventStatus = "Scheduled"

    # Overlay flags
    is_holiday: bool = False
    is_birthday: bool = False

    # Birthday-only contact details
    birthday_name: str = ""
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    @property
    def registrations(self) -> int:
        """In-person plus remote bookings."""
        return self.booked + self.remote_booked

    @property
    def is_overlay(self) -> bool:
        return self.is_holiday or self.is_birthday

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventInstance":
        """Build an instance from a calendar feed record.

        Accepts the camelCase wire names (``startUtc``, ``seriesTitle`` ...)
        as well as the snake_case field names. A missing or malformed start
        is kept as ``None`` so the bucketer can drop it.
        """

        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        duration = pick("durationMinutes", "duration_minutes")
        return cls(
            id=str(pick("id", "Id", default="")),
            start=parse_instant(pick("startUtc", "StartUtc", "start")),
            end=parse_instant(pick("endUtc", "EndUtc", "end")),
            duration_minutes=_as_int(duration) if duration is not None else None,
            title=str(pick("seriesTitle", "title", default="")),
            icon=str(pick("seriesIcon", "icon", default="")),
            color=str(pick("seriesColor", "color", default="")),
            description=str(pick("seriesDescription", "description", default="")),
            room_id=pick("roomId", "RoomId", "room_id"),
            room_name=str(pick("roomName", "room_name", default="")),
            instructor_id=pick("instructorId", "InstructorId", "instructor_id"),
            instructor_name=str(pick("instructorName", "instructor_name", default="")),
            capacity=_as_int(pick("capacity", "Capacity")),
            booked=_as_int(pick("booked")),
            remote_capacity=_as_int(pick("remoteCapacity", "remote_capacity")),
            remote_booked=_as_int(pick("remoteBooked", "remote_booked")),
            price_cents=_as_int(pick("priceCents", "PriceCents", "price_cents")),
            currency=str(pick("currency", "Currency", default="ILS")),
            status=_normalize_status(pick("status", "Status", default="Scheduled")),
            is_holiday=bool(pick("isHoliday", "is_holiday", default=False)),
            is_birthday=bool(pick("isBirthday", "is_birthday", default=False)),
            birthday_name=str(pick("birthdayName", "birthday_name", default="")),
            contact_email=pick("contactEmail", "email", "contact_email"),
            contact_phone=pick("contactPhone", "phone", "contact_phone"),
        )


@dataclass(frozen=True, slots=True)
class BirthdayContact:
    """A person celebrated by a birthday aggregator."""

    name: str
    email: Optional[str] = None
    phone: Optional[str] = None

    def to_api_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "email": self.email, "phone": self.phone}


@dataclass(frozen=True, slots=True)
class EventPosition:
    """Placement of an event on the time grid, in minutes from the grid origin."""

    start_offset_minutes: int
    duration_minutes: int


@dataclass(frozen=True, slots=True)
class DisplayEvent:
    """Render-ready event derived from an EventInstance for one engine pass."""

    source: EventInstance
    date_key: str
    title: str
    start_time: str
    end_time: str
    time_range: str
    is_all_day: bool
    is_past: bool
    is_cancelled: bool
    is_locked: bool
    suppress_actions: bool
    position: EventPosition
    status_label: str = "Scheduled"
    price_label: str = ""
    booked_summary: str = ""
    people: Tuple[BirthdayContact, ...] = ()

    @property
    def id(self) -> str:
        return self.source.id

    @property
    def start(self) -> datetime:
        # Bucketed events always have a start.
        return self.source.start  # type: ignore[return-value]

    @property
    def is_holiday(self) -> bool:
        return self.source.is_holiday

    @property
    def is_birthday(self) -> bool:
        return self.source.is_birthday

    @property
    def search_text(self) -> str:
        parts = [self.title, self.source.instructor_name, self.source.room_name]
        parts.extend(person.name for person in self.people)
        return " ".join(part for part in parts if part).lower()

    def to_api_dict(self) -> Dict[str, Any]:
        """Return camelCase dict for the rendering collaborator."""
        src = self.source
        return {
            "id": src.id,
            "dateKey": self.date_key,
            "startUtc": src.start.isoformat() if src.start else None,
            "endUtc": src.end.isoformat() if src.end else None,
            "title": self.title,
            "icon": src.icon,
            "color": src.color,
            "roomId": src.room_id,
            "roomName": src.room_name,
            "instructorId": src.instructor_id,
            "instructorName": src.instructor_name,
            "capacity": src.capacity,
            "booked": src.booked,
            "remoteCapacity": src.remote_capacity,
            "remoteBooked": src.remote_booked,
            "price": self.price_label,
            "bookedSummary": self.booked_summary,
            "status": src.status,
            "statusLabel": self.status_label,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "timeRange": self.time_range,
            "isAllDay": self.is_all_day,
            "isHoliday": src.is_holiday,
            "isBirthday": src.is_birthday,
            "isPast": self.is_past,
            "isCancelled": self.is_cancelled,
            "isLocked": self.is_locked,
            "suppressActions": self.suppress_actions,
            "position": {
                "startOffsetMinutes": self.position.start_offset_minutes,
                "durationMinutes": self.position.duration_minutes,
            },
            "people": [person.to_api_dict() for person in self.people],
        }


@dataclass(frozen=True, slots=True)
class DateRange:
    """Half-open ``[start, end)`` span of calendar days."""

    start: date
    end: date

    @property
    def from_key(self) -> str:
        return self.start.isoformat()

    @property
    def to_key(self) -> str:
        return self.end.isoformat()

    def contains(self, key: str) -> bool:
        # ISO date keys order lexically.
        return self.from_key <= key < self.to_key

    def to_api_dict(self) -> Dict[str, str]:
        return {"from": self.from_key, "to": self.to_key}


# =============================================================================
# View-model payloads
# =============================================================================


def _events_dict(events: List[DisplayEvent]) -> List[Dict[str, Any]]:
    return [event.to_api_dict() for event in events]


@dataclass(slots=True)
class DayView:
    date_key: str
    label: str
    events: List[DisplayEvent] = field(default_factory=list)

    def to_api_dict(self) -> Dict[str, Any]:
        return {
            "dateKey": self.date_key,
            "label": self.label,
            "events": _events_dict(self.events),
            "hasEvents": bool(self.events),
        }


@dataclass(slots=True)
class WeekDay:
    date_key: str
    weekday: str
    date_label: str
    events: List[DisplayEvent] = field(default_factory=list)
    is_today: bool = False

    def to_api_dict(self) -> Dict[str, Any]:
        return {
            "dateKey": self.date_key,
            "weekday": self.weekday,
            "dateLabel": self.date_label,
            "events": _events_dict(self.events),
            "hasEvents": bool(self.events),
            "isToday": self.is_today,
        }


@dataclass(slots=True)
class MonthCell:
    date_key: str
    day_number: int
    is_current_month: bool
    is_today: bool
    previews: List[DisplayEvent] = field(default_factory=list)
    more_count: int = 0

    def to_api_dict(self) -> Dict[str, Any]:
        return {
            "dateKey": self.date_key,
            "label": self.day_number,
            "isCurrentMonth": self.is_current_month,
            "isToday": self.is_today,
            "eventsPreview": _events_dict(self.previews),
            "moreCount": self.more_count,
            "hasEvents": bool(self.previews) or self.more_count > 0,
        }


@dataclass(slots=True)
class MonthView:
    weeks: List[List[MonthCell]]
    weekdays: List[str]

    @property
    def cells(self) -> List[MonthCell]:
        return [cell for week in self.weeks for cell in week]

    def to_api_dict(self) -> Dict[str, Any]:
        return {
            "weeks": [{"days": [cell.to_api_dict() for cell in week]} for week in self.weeks],
            "weekdays": list(self.weekdays),
        }


@dataclass(slots=True)
class ListView:
    items: List[DisplayEvent] = field(default_factory=list)

    def to_api_dict(self) -> Dict[str, Any]:
        return {"items": _events_dict(self.items), "hasItems": bool(self.items)}


@dataclass(frozen=True, slots=True)
class TopSession:
    id: str
    title: str
    date_key: str
    time_range: str
    registrations: int


@dataclass(slots=True)
class CalendarStats:
    """Aggregate figures for the current week."""

    session_count: int = 0
    registration_count: int = 0
    new_customer_count: int = 0
    top_session: Optional[TopSession] = None

    def to_api_dict(self) -> Dict[str, Any]:
        top = self.top_session
        return {
            "sessionCount": self.session_count,
            "registrationCount": self.registration_count,
            "newCustomerCount": self.new_customer_count,
            "topSession": {
                "id": top.id if top else None,
                "title": top.title if top else "-",
                "dateKey": top.date_key if top else None,
                "timeRange": top.time_range if top else "",
                "registrations": top.registrations if top else 0,
            },
        }


@dataclass(slots=True)
class CalendarViewModel:
    """Everything the renderer needs for one calendar screen."""

    mode: ViewMode
    anchor_date: str
    range: DateRange
    range_label: str
    search: str = ""
    day: Optional[DayView] = None
    week: Optional[List[WeekDay]] = None
    month: Optional[MonthView] = None
    list_view: Optional[ListView] = None
    stats: CalendarStats = field(default_factory=CalendarStats)

    def to_api_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "view": self.mode,
            "focusDate": self.anchor_date,
            "range": self.range.to_api_dict(),
            "rangeLabel": self.range_label,
            "search": self.search,
            "isDay": self.mode == "day",
            "isWeek": self.mode == "week",
            "isMonth": self.mode == "month",
            "isList": self.mode == "list",
            "stats": self.stats.to_api_dict(),
        }
        if self.day is not None:
            payload["day"] = self.day.to_api_dict()
        if self.week is not None:
            payload["week"] = {"days": [day.to_api_dict() for day in self.week]}
        if self.month is not None:
            payload["month"] = self.month.to_api_dict()
        if self.list_view is not None:
            payload["list"] = self.list_view.to_api_dict()
        return payload
