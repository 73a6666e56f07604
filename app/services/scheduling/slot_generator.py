# app/services/scheduling/slot_generator.py
"""
Bookable start times for one business day.

Pure functions of their inputs: the calendar snapshot, the appointment list
and `now` are passed in, nothing is read from the clock or the database.
The same calendar rules back both slot listing and commit-time validation,
so every booking path agrees on what "free" means.
"""
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Any

from pydantic import BaseModel

from app.models.appointment import occupies_calendar
from app.services.scheduling.calendar_model import CalendarSnapshot
from app.services.scheduling.errors import (
    BusinessClosed, DurationExceedsWindow, InvalidSlot
)
from app.services.scheduling.intervals import Interval, contains, overlaps_any

DEFAULT_PROBE_MINUTES = 15

CLOSED_REASON = "closed"
NO_AVAILABILITY_REASON = "no availability"
DURATION_REASON = "service is longer than the opening hours"


class SlotStatus(str, Enum):
    OPEN = "open"
    CLOSURE = "closure"
    CLOSED = "closed"
    DURATION_EXCEEDS_WINDOW = "duration_exceeds_window"
    FULLY_BOOKED = "fully_booked"


class SlotResult(BaseModel):
    """Ordered candidate start times, or why there are none"""
    day: date
    duration_minutes: int
    slots: List[time] = []
    status: SlotStatus = SlotStatus.OPEN
    reason: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.status in (SlotStatus.CLOSURE, SlotStatus.CLOSED)

    def as_strings(self) -> List[str]:
        return [slot.strftime("%H:%M") for slot in self.slots]

    def offers(self, value: time) -> bool:
        return value.replace(second=0, microsecond=0) in self.slots

    def raise_for_status(self) -> None:
        """Raise the typed error for a closed day or an oversized service"""
        if self.is_closed:
            raise BusinessClosed(self.reason or CLOSED_REASON)
        if self.status == SlotStatus.DURATION_EXCEEDS_WINDOW:
            raise DurationExceedsWindow()


def busy_intervals(appointments: Iterable[Any], exclude_id=None) -> List[Interval]:
    """Intervals of appointments that still occupy the calendar.

    `exclude_id` drops one appointment, used when it is being moved.
    """
    return [
        Interval(appt.start_time, appt.end_time)
        for appt in appointments
        if occupies_calendar(appt.status) and (exclude_id is None or appt.id != exclude_id)
    ]


def _validate_duration(duration_minutes: int) -> None:
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")


def generate_slots(
        calendar: CalendarSnapshot,
        day: date,
        duration_minutes: int,
        existing_appointments: Iterable[Any],
        now: datetime,
        probe_minutes: int = DEFAULT_PROBE_MINUTES,
        exclude_id=None
) -> SlotResult:
    """List the start times on `day` where a `duration_minutes` service fits"""
    _validate_duration(duration_minutes)
    result = SlotResult(day=day, duration_minutes=duration_minutes)

    closure = calendar.closure_on(day)
    if closure is not None:
        return result.model_copy(update={"status": SlotStatus.CLOSURE, "reason": closure.reason})

    window = calendar.open_window(day)
    if window is None:
        return result.model_copy(update={"status": SlotStatus.CLOSED, "reason": CLOSED_REASON})

    if window.end - window.start < timedelta(minutes=duration_minutes):
        return result.model_copy(update={
            "status": SlotStatus.DURATION_EXCEEDS_WINDOW,
            "reason": DURATION_REASON,
        })

    breaks = calendar.breaks_on(day)
    booked = busy_intervals(existing_appointments, exclude_id=exclude_id)
    step = timedelta(minutes=probe_minutes)

    slots = []
    probe = window.start
    while probe < window.end:
        candidate = Interval.of(probe, duration_minutes)
        if candidate.end > window.end:
            break
        if probe > now and not overlaps_any(candidate, breaks) and not overlaps_any(candidate, booked):
            slots.append(probe.time())
        probe += step

    if not slots:
        return result.model_copy(update={
            "status": SlotStatus.FULLY_BOOKED,
            "reason": NO_AVAILABILITY_REASON,
        })
    return result.model_copy(update={"slots": slots})


def check_slot(
        calendar: CalendarSnapshot,
        start: datetime,
        duration_minutes: int,
        now: datetime
) -> Interval:
    """Validate a single start time against the calendar and return its interval.

    Raises BusinessClosed, DurationExceedsWindow or InvalidSlot. Conflicts
    with other appointments are the commit guard's job.
    """
    _validate_duration(duration_minutes)
    day = start.date()
    candidate = Interval.of(start, duration_minutes)

    closure = calendar.closure_on(day)
    if closure is not None:
        raise BusinessClosed(closure.reason)

    window = calendar.open_window(day)
    if window is None:
        raise BusinessClosed(CLOSED_REASON)

    if window.end - window.start < timedelta(minutes=duration_minutes):
        raise DurationExceedsWindow()

    if not contains(window, candidate):
        raise InvalidSlot("Requested time is outside business hours")

    if not start > now:
        raise InvalidSlot("Requested time has already passed")

    if overlaps_any(candidate, calendar.breaks_on(day)):
        raise InvalidSlot("Requested time overlaps a break")

    return candidate
