# app/services/scheduling/commit_guard.py
"""
Commit guard: the only write path for appointment times.

try_commit() is the pure conflict decision. CommitGuard.commit() runs it
against the freshly loaded appointment set while the per-business lock is
held, then writes and commits before releasing the lock.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.models.appointment import (
    Appointment, AppointmentStatus, BookingSource, INACTIVE_STATUSES, occupies_calendar
)
from app.services.scheduling.calendar_model import load_calendar_snapshot
from app.services.scheduling.errors import (
    BookingFailed, InvalidTransition, SchedulingError, SlotNoLongerAvailable
)
from app.services.scheduling.intervals import Interval, overlaps
from app.services.scheduling.locks import BookingLock, get_booking_lock
from app.services.scheduling.slot_generator import check_slot

logger = logging.getLogger(__name__)


class ProposedAppointment(BaseModel):
    """An appointment about to be written.

    With `replaces_id` set, the existing row is moved or reopened instead of
    inserting a new one; its current status must be in `allowed_current_statuses`.
    """
    business_id: UUID
    service_id: UUID
    start_time: datetime
    duration_minutes: int = Field(..., gt=0)
    status: Optional[AppointmentStatus] = None  # None keeps the existing status
    booking_source: BookingSource = BookingSource.CLIENT

    client_id: Optional[UUID] = None
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    client_notes: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    custom_fields_data: Dict[str, Any] = Field(default_factory=dict)

    replaces_id: Optional[UUID] = None
    allowed_current_statuses: FrozenSet[AppointmentStatus] = frozenset()
    # Reopening history skips calendar rules but never the conflict check
    validate_calendar: bool = True

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)

    @property
    def interval(self) -> Interval:
        return Interval(self.start_time, self.end_time)


class Committed(BaseModel):
    proposal: ProposedAppointment

    @property
    def accepted(self) -> bool:
        return True


class Rejected(BaseModel):
    reason: str = SlotNoLongerAvailable.code
    conflicting_ids: List[Any] = Field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return False

    def to_error(self) -> SlotNoLongerAvailable:
        return SlotNoLongerAvailable(reason=self.reason, conflicting_ids=self.conflicting_ids)


CommitDecision = Union[Committed, Rejected]


def try_commit(proposed: ProposedAppointment, latest_appointments: Iterable[Any]) -> CommitDecision:
    """Decide whether `proposed` can be written given the current appointments"""
    conflicting_ids = [
        appt.id
        for appt in latest_appointments
        if appt.business_id == proposed.business_id
        and occupies_calendar(appt.status)
        and (proposed.replaces_id is None or appt.id != proposed.replaces_id)
        and overlaps(proposed.interval, Interval(appt.start_time, appt.end_time))
    ]
    if conflicting_ids:
        return Rejected(conflicting_ids=conflicting_ids)
    return Committed(proposal=proposed)


def load_active_appointments(db: Session, business_id: UUID, day: date) -> List[Appointment]:
    """Appointments occupying any part of `day` for the business"""
    day_start = datetime.combine(day, time.min)
    day_end = day_start + timedelta(days=1)
    return db.query(Appointment).filter(
        Appointment.business_id == business_id,
        Appointment.status.notin_(list(INACTIVE_STATUSES)),
        Appointment.start_time < day_end,
        Appointment.end_time > day_start
    ).order_by(Appointment.start_time.asc()).populate_existing().all()


class CommitGuard:
    """Atomic check-then-write of appointments under a per-business lock"""

    def __init__(self, lock: Optional[BookingLock] = None, max_attempts: Optional[int] = None):
        self.lock = lock or get_booking_lock()
        self.max_attempts = max_attempts or get_settings().MAX_RETRY_ATTEMPTS

    def commit(self, db: Session, proposal: ProposedAppointment, now: datetime) -> Appointment:
        """Write the proposal or raise; transient storage errors are retried"""
        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.lock.hold(db, proposal.business_id):
                    try:
                        appointment = self._check_and_write(db, proposal, now)
                        db.commit()
                    except Exception:
                        db.rollback()
                        raise
            except SchedulingError as e:
                logger.info(
                    f"Rejected appointment for business {proposal.business_id} "
                    f"at {proposal.start_time.isoformat()}: {e.code}"
                )
                raise
            except OperationalError as e:
                # The failure may come from the row lock taken in hold(), outside the write block
                db.rollback()
                logger.warning(
                    f"Storage error committing appointment (attempt {attempt}/{self.max_attempts}): {e}"
                )
                if attempt == self.max_attempts:
                    raise BookingFailed() from e
                continue

            db.refresh(appointment)
            logger.info(
                f"Committed appointment {appointment.id} for business {appointment.business_id} "
                f"[{appointment.start_time.isoformat()} - {appointment.end_time.isoformat()}) "
                f"status={AppointmentStatus(appointment.status).value}"
            )
            return appointment

        raise BookingFailed()

    def _check_and_write(self, db: Session, proposal: ProposedAppointment, now: datetime) -> Appointment:
        existing = None
        if proposal.replaces_id is not None:
            existing = db.query(Appointment).filter(
                Appointment.id == proposal.replaces_id,
                Appointment.business_id == proposal.business_id
            ).populate_existing().one_or_none()
            if existing is None:
                raise InvalidTransition("Appointment no longer exists")
            if AppointmentStatus(existing.status) not in proposal.allowed_current_statuses:
                raise InvalidTransition(
                    f"Appointment is {AppointmentStatus(existing.status).value} and cannot be changed this way"
                )

        latest = load_active_appointments(db, proposal.business_id, proposal.start_time.date())

        if proposal.validate_calendar:
            calendar = load_calendar_snapshot(db, proposal.business_id)
            check_slot(calendar, proposal.start_time, proposal.duration_minutes, now)

        decision = try_commit(proposal, latest)
        if not decision.accepted:
            raise decision.to_error()

        if existing is not None:
            existing.start_time = proposal.start_time
            existing.end_time = proposal.end_time
            if proposal.status is not None:
                existing.status = proposal.status
            return existing

        appointment = Appointment(
            business_id=proposal.business_id,
            service_id=proposal.service_id,
            client_id=proposal.client_id,
            guest_name=proposal.guest_name,
            guest_phone=proposal.guest_phone,
            start_time=proposal.start_time,
            end_time=proposal.end_time,
            duration_minutes=proposal.duration_minutes,
            status=proposal.status or AppointmentStatus.PENDING,
            booking_source=proposal.booking_source,
            client_notes=proposal.client_notes,
            image_urls=list(proposal.image_urls),
            custom_fields_data=dict(proposal.custom_fields_data),
        )
        db.add(appointment)
        db.flush()
        return appointment
