# ===== app/services/availability/availability_service.py =====
from typing import Optional
from datetime import date, datetime
from uuid import UUID
from sqlalchemy.orm import Session
from app.config.settings import get_settings
from app.models.appointment import Appointment
from app.models.service import Service
from app.services.scheduling.calendar_model import load_calendar_snapshot
from app.services.scheduling.commit_guard import load_active_appointments
from app.services.scheduling.slot_generator import SlotResult, generate_slots
import logging

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Reads the calendar and appointments of a business and lists free slots"""

    @staticmethod
    def get_available_slots(
            db: Session,
            business_id: UUID,
            day: date,
            duration_minutes: int,
            now: Optional[datetime] = None,
            exclude_appointment_id: Optional[UUID] = None
    ) -> SlotResult:
        """
        Compute bookable start times for one day:
        1. Snapshot the calendar (hours, breaks, closures)
        2. Fetch appointments still occupying that day
        3. Run the slot generator against both

        Never cached: appointments change between calls.
        """
        now = now or datetime.now()
        calendar = load_calendar_snapshot(db, business_id)
        appointments = load_active_appointments(db, business_id, day)

        result = generate_slots(
            calendar,
            day,
            duration_minutes,
            appointments,
            now,
            probe_minutes=get_settings().SLOT_PROBE_INTERVAL_MINUTES,
            exclude_id=exclude_appointment_id,
        )

        logger.debug(
            f"Business {business_id} on {day.isoformat()}: {len(result.slots)} slots "
            f"for {duration_minutes}m ({result.status.value})"
        )
        return result

    @staticmethod
    def get_slots_for_service(
            db: Session,
            service: Service,
            day: date,
            now: Optional[datetime] = None
    ) -> SlotResult:
        """Slots sized by a service's current duration"""
        return AvailabilityService.get_available_slots(
            db, service.business_id, day, service.duration_minutes, now
        )

    @staticmethod
    def get_reschedule_slots(
            db: Session,
            appointment: Appointment,
            day: date,
            now: Optional[datetime] = None
    ) -> SlotResult:
        """Slots for moving an appointment; its own interval is not a conflict.

        Sized by the appointment's stored duration, not the service's current one.
        """
        return AvailabilityService.get_available_slots(
            db,
            appointment.business_id,
            day,
            appointment.duration_minutes,
            now,
            exclude_appointment_id=appointment.id,
        )
