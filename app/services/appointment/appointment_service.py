# ============================================================================
# app/services/appointment/appointment_service.py
# ============================================================================
"""Service for managing appointment status and notes"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.appointment import Appointment, AppointmentStatus, INACTIVE_STATUSES, can_transition
from app.services.scheduling.commit_guard import CommitGuard, ProposedAppointment
from app.services.scheduling.errors import InvalidTransition

logger = logging.getLogger(__name__)


class AppointmentService:
    """Handles appointment operations on the business side"""

    @staticmethod
    def get_appointment(db: Session, business_id: UUID, appointment_id: UUID) -> Optional[Appointment]:
        return db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.business_id == business_id
        ).first()

    @staticmethod
    def change_status(
            db: Session,
            appointment: Appointment,
            status: AppointmentStatus,
            guard: Optional[CommitGuard] = None,
            now: Optional[datetime] = None
    ) -> Appointment:
        """
        Move an appointment through its lifecycle.

        Restoring a cancelled or rejected appointment makes it occupy the
        calendar again, so it goes through the commit guard like a new booking
        and fails with SlotNoLongerAvailable if its time was taken meanwhile.
        """
        current = AppointmentStatus(appointment.status)
        target = AppointmentStatus(status)

        if current == target:
            return appointment
        if not can_transition(current, target):
            raise InvalidTransition(f"Cannot change appointment from {current.value} to {target.value}")

        if current in INACTIVE_STATUSES and target not in INACTIVE_STATUSES:
            guard = guard or CommitGuard()
            proposal = ProposedAppointment(
                business_id=appointment.business_id,
                service_id=appointment.service_id,
                start_time=appointment.start_time,
                duration_minutes=appointment.duration_minutes,
                status=target,
                replaces_id=appointment.id,
                allowed_current_statuses=frozenset({current}),
                validate_calendar=False,
            )
            restored = guard.commit(db, proposal, now or datetime.now())
            logger.info(f"Restored appointment {restored.id} to {target.value}")
            return restored

        appointment.status = target
        db.commit()
        db.refresh(appointment)
        logger.info(f"Appointment {appointment.id}: {current.value} -> {target.value}")
        return appointment

    @staticmethod
    def update_notes(
            db: Session,
            appointment: Appointment,
            public_notes: Optional[str] = None,
            private_notes: Optional[str] = None
    ) -> Appointment:
        """Business notes: public ones are shown to the client, private ones are not"""
        if public_notes is not None:
            appointment.business_public_notes = public_notes
        if private_notes is not None:
            appointment.business_private_notes = private_notes

        db.commit()
        db.refresh(appointment)
        return appointment
