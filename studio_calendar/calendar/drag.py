"""Drag Reposition Engine - drag a session to a new day and time.

The gesture is an explicit state machine::

    Idle -> Dragging -> (Hovering)* -> Committing -> Idle
                 \\            \\
                  +------------+--> Idle (cancelled)

Transitions are pure functions over immutable state objects so they can be
exercised without any rendering surface. ``DragController`` owns one
session's state together with the persistence collaborator that commits a
drop.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Any, Dict, Optional, Protocol, Tuple, Union

from .bucketer import GRID_START_MINUTES
from .dates import parse_date_key
from .types import DisplayEvent

logger = logging.getLogger(__name__)


SNAP_MINUTES = 30
DAY_LENGTH_MINUTES = 16 * 60  # 07:00 - 23:00


# =============================================================================
# Geometry and commit request
# =============================================================================


@dataclass(frozen=True, slots=True)
class GridGeometry:
    """Measured layout of a day column's time grid, in pixels."""

    top: float
    row_height: float
    minutes_per_row: int = 60

    @property
    def is_valid(self) -> bool:
        return (
            math.isfinite(self.top)
            and math.isfinite(self.row_height)
            and self.row_height > 0
            and self.minutes_per_row > 0
        )


@dataclass(frozen=True, slots=True)
class DropTarget:
    """A day cell the pointer is over; geometry is None until laid out."""

    date_key: str
    geometry: Optional[GridGeometry] = None


@dataclass(frozen=True, slots=True)
class CommitRequest:
    """Reschedule request handed to the persistence collaborator."""

    event_id: str
    new_start: datetime
    new_end: Optional[datetime] = None
    room_id: Optional[str] = None
    instructor_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "startUtc": _utc_iso(self.new_start),
            "roomId": self.room_id,
            "instructorId": self.instructor_id,
        }
        if self.new_end is not None:
            payload["endUtc"] = _utc_iso(self.new_end)
        return payload


def _utc_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# =============================================================================
# States
# =============================================================================


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Dragging:
    event: DisplayEvent
    grab_offset_px: float
    original_offset_minutes: int
    duration_minutes: int


@dataclass(frozen=True, slots=True)
class Hovering:
    event: DisplayEvent
    grab_offset_px: float
    original_offset_minutes: int
    duration_minutes: int
    target_date_key: str
    candidate_minutes: int


@dataclass(frozen=True, slots=True)
class Committing:
    event: DisplayEvent
    request: CommitRequest


DragState = Union[Idle, Dragging, Hovering, Committing]

IDLE = Idle()


# =============================================================================
# Geometry math
# =============================================================================


def snap_minutes(minutes: float, increment: int = SNAP_MINUTES) -> int:
    """Round to the nearest increment, halves rounding up."""
    if increment <= 1:
        return int(math.floor(minutes + 0.5))
    return int(math.floor(minutes / increment + 0.5)) * increment


def clamp_start(minutes: int, duration_minutes: int, day_length_minutes: int = DAY_LENGTH_MINUTES) -> int:
    """Keep the whole event inside the grid: ``[0, day_length - duration]``."""
    upper = max(0, day_length_minutes - duration_minutes)
    return min(max(minutes, 0), upper)


def pointer_to_minutes(pointer_y: float, grab_offset_px: float, geometry: GridGeometry) -> float:
    """Minutes from the grid origin for the dragged element's top edge."""
    offset_px = pointer_y - grab_offset_px - geometry.top
    return offset_px / geometry.row_height * geometry.minutes_per_row


def build_commit_request(
    event: DisplayEvent,
    target_date_key: str,
    offset_minutes: int,
    tz: tzinfo,
    *,
    grid_start_minutes: int = GRID_START_MINUTES,
) -> CommitRequest:
    """New start on the target day at ``grid origin + offset``, same duration."""
    target_day = parse_date_key(target_date_key, tz)
    local_midnight = datetime.combine(target_day, time(0), tzinfo=tz)
    new_start = (local_midnight + timedelta(minutes=grid_start_minutes + offset_minutes)).astimezone(
        timezone.utc
    )

    src = event.source
    new_end = None
    if src.start is not None and src.end is not None:
        new_end = new_start + (src.end - src.start)

    return CommitRequest(
        event_id=src.id,
        new_start=new_start,
        new_end=new_end,
        room_id=src.room_id,
        instructor_id=src.instructor_id,
    )


# =============================================================================
# Transitions
# =============================================================================


def begin_drag(state: DragState, event: DisplayEvent, grab_offset_px: float = 0.0) -> DragState:
    """Start dragging ``event``; only possible from Idle and for unlocked events."""
    if not isinstance(state, Idle) or event.is_locked:
        return state
    return Dragging(
        event=event,
        grab_offset_px=grab_offset_px,
        original_offset_minutes=event.position.start_offset_minutes,
        duration_minutes=event.position.duration_minutes,
    )


def hover(
    state: DragState,
    target: Optional[DropTarget],
    pointer_y: float,
    *,
    day_length_minutes: int = DAY_LENGTH_MINUTES,
    snap: int = SNAP_MINUTES,
) -> DragState:
    """Compute the candidate start for the pointer over ``target``.

    With no target under the pointer the gesture keeps dragging with no
    candidate. A target without usable geometry cancels the gesture.
    """
    if not isinstance(state, (Dragging, Hovering)):
        return state

    if target is None:
        return _without_candidate(state)

    if not target.date_key or target.geometry is None or not target.geometry.is_valid:
        logger.debug("Drop target geometry unavailable; cancelling drag")
        return IDLE

    raw = pointer_to_minutes(pointer_y, state.grab_offset_px, target.geometry)
    if not math.isfinite(raw):
        return IDLE
    candidate = clamp_start(snap_minutes(raw, snap), state.duration_minutes, day_length_minutes)

    return Hovering(
        event=state.event,
        grab_offset_px=state.grab_offset_px,
        original_offset_minutes=state.original_offset_minutes,
        duration_minutes=state.duration_minutes,
        target_date_key=target.date_key,
        candidate_minutes=candidate,
    )


def _without_candidate(state: Union[Dragging, Hovering]) -> Dragging:
    return Dragging(
        event=state.event,
        grab_offset_px=state.grab_offset_px,
        original_offset_minutes=state.original_offset_minutes,
        duration_minutes=state.duration_minutes,
    )


def is_unchanged(event: DisplayEvent, request: CommitRequest) -> bool:
    """True when ``request`` would leave ``event`` at the instant it already starts."""
    return event.source.start is not None and request.new_start == event.source.start


def drop(
    state: DragState,
    tz: tzinfo,
    *,
    grid_start_minutes: int = GRID_START_MINUTES,
) -> Tuple[DragState, Optional[CommitRequest]]:
    """Release the pointer.

    Returns ``(Committing, request)`` when the new start differs from the current one,
    otherwise ``(Idle, None)``. Dropping while not over a target cancels.
    """
    if isinstance(state, Dragging):
        return IDLE, None
    if not isinstance(state, Hovering):
        return state, None

    request = build_commit_request(
        state.event,
        state.target_date_key,
        state.candidate_minutes,
        tz,
        grid_start_minutes=grid_start_minutes,
    )
    if is_unchanged(state.event, request):
        return IDLE, None
    return Committing(event=state.event, request=request), request


def cancel(state: DragState) -> DragState:
    """Escape or drop outside the grid; committing gestures cannot be cancelled."""
    if isinstance(state, Committing):
        return state
    return IDLE


def finish_commit(state: DragState) -> DragState:
    if isinstance(state, Committing):
        return IDLE
    return state


# =============================================================================
# Controller
# =============================================================================


class SchedulePersistence(Protocol):
    def update_instance(self, request: CommitRequest) -> Any:
        ...


class DragController:
    """Owns the drag state of one calendar session.

    Construct one per session and pass it to whatever handles pointer input.
    After a successful commit the caller re-fetches events and rebuilds the
    view; the controller never patches a rendered view-model.
    """

    def __init__(
        self,
        persistence: SchedulePersistence,
        tz: tzinfo,
        *,
        grid_start_minutes: int = GRID_START_MINUTES,
        day_length_minutes: int = DAY_LENGTH_MINUTES,
        snap: int = SNAP_MINUTES,
    ) -> None:
        self._persistence = persistence
        self._tz = tz
        self._grid_start_minutes = grid_start_minutes
        self._day_length_minutes = day_length_minutes
        self._snap = snap
        self.state: DragState = IDLE

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    def start(self, event: DisplayEvent, grab_offset_px: float = 0.0) -> bool:
        """Begin a drag; returns False when the event is locked or a gesture is active."""
        was_idle = isinstance(self.state, Idle)
        self.state = begin_drag(self.state, event, grab_offset_px)
        return was_idle and isinstance(self.state, Dragging)

    def move(self, target: Optional[DropTarget], pointer_y: float) -> Optional[int]:
        """Update the candidate; returns the snapped minutes, or None off-grid or cancelled."""
        self.state = hover(
            self.state,
            target,
            pointer_y,
            day_length_minutes=self._day_length_minutes,
            snap=self._snap,
        )
        if isinstance(self.state, Hovering):
            return self.state.candidate_minutes
        return None

    def cancel(self) -> None:
        self.state = cancel(self.state)

    def drop(self) -> Optional[CommitRequest]:
        """Commit the hovered candidate.

        Returns the committed request, or None when nothing changed or the
        gesture was cancelled.

        Raises:
            ScheduleError: if the persistence collaborator rejects the update.
                The controller is back to Idle either way.
        """
        self.state, request = drop(self.state, self._tz, grid_start_minutes=self._grid_start_minutes)
        if request is None:
            return None

        try:
            self._persistence.update_instance(request)
        except Exception:
            logger.warning("Reschedule of event %s failed", request.event_id)
            self.state = finish_commit(self.state)
            raise

        logger.info(
            "Rescheduled event %s to %s",
            request.event_id,
            request.new_start.isoformat(),
        )
        self.state = finish_commit(self.state)
        return request
