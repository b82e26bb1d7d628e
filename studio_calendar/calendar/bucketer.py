"""Event Bucketer - groups raw event instances into per-day display buckets.

Runs in two explicit passes:

1. Normalize: every instance with a usable start becomes a DisplayEvent
   (date key, time labels, past/cancelled/locked flags, grid position) and is
   partitioned by local day and overlay kind. Instances without a parseable
   start are dropped and counted.
2. Fold: each day's birthday instances are reduced into a single aggregator
   event, then the day's bucket is ordered: all-day overlays first, then
   timed sessions by start.

The unmerged normalized events are kept alongside the buckets because the
list view shows one row per source instance.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone, tzinfo
from functools import reduce
from typing import Dict, Iterable, List, Optional, Union

from .dates import date_key, minutes_since_midnight, parse_instant, to_local
from .labels import booked_summary, format_money, format_time, format_time_range
from .types import BirthdayContact, DisplayEvent, EventInstance, EventPosition

logger = logging.getLogger(__name__)


GRID_START_MINUTES = 7 * 60  # 07:00 local
DEFAULT_DURATION_MINUTES = 60

RawEvent = Union[EventInstance, Dict]


@dataclass(slots=True)
class BucketResult:
    """Output of one bucketing pass."""

    buckets: Dict[str, List[DisplayEvent]]
    events: List[DisplayEvent]
    dropped: int = 0

    def bucket(self, key: str) -> List[DisplayEvent]:
        return list(self.buckets.get(key, []))


@dataclass(slots=True)
class _DayGroups:
    holidays: List[DisplayEvent] = field(default_factory=list)
    birthdays: List[DisplayEvent] = field(default_factory=list)
    timed: List[DisplayEvent] = field(default_factory=list)


def _coerce(record: RawEvent) -> EventInstance:
    if isinstance(record, EventInstance):
        # Callers may hand over naive datetimes; treat them as UTC.
        return replace(record, start=parse_instant(record.start), end=parse_instant(record.end))
    return EventInstance.from_dict(record)


def _duration_minutes(instance: EventInstance, default: int) -> int:
    """Explicit duration, else end - start, else the default."""
    if instance.duration_minutes and instance.duration_minutes > 0:
        return int(instance.duration_minutes)
    if instance.start and instance.end:
        span = int((instance.end - instance.start).total_seconds() // 60)
        if span > 0:
            return span
    return default


def _birthday_title(name: str) -> str:
    return f"Birthday: {name}" if name else "Birthday"


def to_display_event(
    instance: EventInstance,
    tz: tzinfo,
    now: datetime,
    *,
    grid_start_minutes: int = GRID_START_MINUTES,
    default_duration_minutes: int = DEFAULT_DURATION_MINUTES,
) -> DisplayEvent:
    """Derive every display field for one instance (which must have a start)."""
    if instance.start is None:
        raise ValueError(f"Event {instance.id!r} has no start instant")

    is_all_day = instance.is_holiday or instance.is_birthday
    is_cancelled = instance.status == "Cancelled"

    if is_all_day:
        start_label = end_label = time_range = ""
        is_past = False
    else:
        start_label = format_time(instance.start, tz)
        end_label = format_time(instance.end, tz) if instance.end else ""
        time_range = format_time_range(start_label, end_label)
        is_past = (instance.end or instance.start) < now

    local_start = to_local(instance.start, tz)
    position = EventPosition(
        start_offset_minutes=max(0, minutes_since_midnight(local_start) - grid_start_minutes),
        duration_minutes=_duration_minutes(instance, default_duration_minutes),
    )

    title = instance.title
    if instance.is_birthday:
        title = _birthday_title(instance.birthday_name or instance.title)

    return DisplayEvent(
        source=instance,
        date_key=date_key(instance.start, tz),
        title=title,
        start_time=start_label,
        end_time=end_label,
        time_range=time_range,
        is_all_day=is_all_day,
        is_past=is_past,
        is_cancelled=is_cancelled,
        is_locked=is_all_day,
        suppress_actions=is_all_day,
        position=position,
        status_label=instance.status,
        price_label=format_money(instance.price_cents, instance.currency),
        booked_summary=booked_summary(instance),
    )


def _birthday_contact(event: DisplayEvent) -> BirthdayContact:
    src = event.source
    return BirthdayContact(
        name=src.birthday_name or src.title,
        email=src.contact_email,
        phone=src.contact_phone,
    )


def _fold_birthday(aggregator: Optional[DisplayEvent], event: DisplayEvent) -> DisplayEvent:
    """Reducer: add one birthday event to the day's aggregator."""
    person = _birthday_contact(event)
    if aggregator is None:
        base = event
        source = replace(event.source, id=f"birthdays-{event.date_key}")
        people = (person,)
    else:
        base = aggregator
        source = aggregator.source
        people = aggregator.people + (person,)

    return replace(
        base,
        source=source,
        title=_birthday_title(people[0].name),
        people=people,
        is_locked=True,
        suppress_actions=True,
    )


def merge_birthdays(events: Iterable[DisplayEvent]) -> Optional[DisplayEvent]:
    """Collapse same-day birthday events into one aggregator (None if empty)."""
    return reduce(_fold_birthday, events, None)


def _sort_key(event: DisplayEvent):
    return (0 if event.is_all_day else 1, event.start)


def bucket_events(
    records: Iterable[RawEvent],
    tz: tzinfo,
    *,
    now: Optional[datetime] = None,
    grid_start_minutes: int = GRID_START_MINUTES,
    default_duration_minutes: int = DEFAULT_DURATION_MINUTES,
) -> BucketResult:
    """Normalize, partition and fold event records into day buckets.

    Args:
        records: EventInstance objects or raw feed dicts
        tz: Time zone that defines calendar days
        now: Reference instant for ``is_past`` (defaults to current UTC time)
        grid_start_minutes: Grid origin as minutes after local midnight
        default_duration_minutes: Duration used when none can be derived

    Returns:
        BucketResult with date-keyed buckets and the unmerged event list
    """
    reference = parse_instant(now) or datetime.now(timezone.utc)

    # Pass 1: normalize and partition by day and overlay kind
    normalized: List[DisplayEvent] = []
    groups: Dict[str, _DayGroups] = {}
    dropped = 0

    for record in records:
        instance = _coerce(record)
        if instance.start is None:
            dropped += 1
            logger.debug("Dropping event %r without a valid start instant", instance.id)
            continue

        event = to_display_event(
            instance,
            tz,
            reference,
            grid_start_minutes=grid_start_minutes,
            default_duration_minutes=default_duration_minutes,
        )
        normalized.append(event)

        day = groups.setdefault(event.date_key, _DayGroups())
        if instance.is_birthday:
            day.birthdays.append(event)
        elif instance.is_holiday:
            day.holidays.append(event)
        else:
            day.timed.append(event)

    # Pass 2: fold birthdays and order each day
    buckets: Dict[str, List[DisplayEvent]] = {}
    for key in sorted(groups):
        day = groups[key]
        aggregator = merge_birthdays(day.birthdays)
        entries = list(day.holidays)
        if aggregator is not None:
            entries.append(aggregator)
        entries.extend(day.timed)
        buckets[key] = sorted(entries, key=_sort_key)

    logger.debug(
        "Bucketed %d events into %d days (%d dropped)",
        len(normalized),
        len(buckets),
        dropped,
    )
    return BucketResult(buckets=buckets, events=normalized, dropped=dropped)
