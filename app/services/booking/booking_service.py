# ============================================================================
# app/services/booking/booking_service.py
# Runs booking sessions against the database - no FastAPI dependencies
# ============================================================================
"""Client bookings, staff manual bookings and reschedules"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.appointment import Appointment
from app.models.business import Business
from app.models.service import Service
from app.services.availability.availability_service import AvailabilityService
from app.services.booking.booking_session import BookingSession, ClientIdentity, SessionKind
from app.services.business.calendar_settings_service import CalendarSettingsService
from app.services.membership.membership_service import MembershipService
from app.services.scheduling.commit_guard import CommitGuard, ProposedAppointment
from app.services.scheduling.slot_generator import SlotResult

logger = logging.getLogger(__name__)


class BookingService:
    """Builds booking sessions wired to the database and the commit guard"""

    def __init__(self, db: Session, guard: Optional[CommitGuard] = None, now: Optional[datetime] = None):
        self.db = db
        self.guard = guard or CommitGuard()
        self.now = now or datetime.now()

    def _find_slots(self, business_id: UUID):
        def find(day: date, duration_minutes: int, exclude_id: Optional[UUID]) -> SlotResult:
            return AvailabilityService.get_available_slots(
                self.db, business_id, day, duration_minutes, self.now, exclude_appointment_id=exclude_id
            )
        return find

    def _commit(self, proposal: ProposedAppointment) -> Appointment:
        return self.guard.commit(self.db, proposal, self.now)

    def open_session(
            self,
            business: Business,
            kind: SessionKind,
            client: Optional[ClientIdentity] = None,
            appointment: Optional[Appointment] = None
    ) -> BookingSession:
        membership = MembershipService.get_status(
            self.db, business.id, client.client_id if client else None
        )
        form_fields = []
        if kind == SessionKind.CLIENT:
            form_fields = CalendarSettingsService.list_form_fields(self.db, business.id)
        return BookingSession(
            business_id=business.id,
            find_slots=self._find_slots(business.id),
            commit=self._commit,
            kind=kind,
            client=client,
            membership=membership,
            requires_membership=bool(business.requires_membership),
            appointment=appointment,
            form_fields=form_fields,
        )

    def book_for_client(
            self,
            business: Business,
            service: Service,
            day: date,
            slot: str,
            client: ClientIdentity,
            client_notes: Optional[str] = None,
            image_urls: Optional[List[str]] = None,
            custom_fields_data: Optional[Dict[str, Any]] = None
    ) -> Appointment:
        """Booking page flow: PENDING, or CONFIRMED for approved members"""
        session = self.open_session(business, SessionKind.CLIENT, client=client)
        session.select_service(service.id, service.duration_minutes)
        session.select_date(day)
        session.select_slot(slot)
        appointment = session.submit(client_notes, image_urls, custom_fields_data)
        logger.info(f"Client booking {appointment.id} at business {business.id} ({appointment.status})")
        return appointment

    def book_manually(
            self,
            business: Business,
            service: Service,
            day: date,
            slot: str,
            client: ClientIdentity,
            client_notes: Optional[str] = None
    ) -> Appointment:
        """Staff manual booking: always CONFIRMED, no membership gate"""
        session = self.open_session(business, SessionKind.STAFF, client=client)
        session.select_service(service.id, service.duration_minutes)
        session.select_date(day)
        session.select_slot(slot)
        appointment = session.submit(client_notes)
        logger.info(f"Manual booking {appointment.id} at business {business.id}")
        return appointment

    def reschedule(self, business: Business, appointment: Appointment, day: date, slot: str) -> Appointment:
        """Move an appointment, keeping its status and stored duration"""
        session = self.open_session(business, SessionKind.RESCHEDULE, appointment=appointment)
        session.select_date(day)
        session.select_slot(slot)
        moved = session.submit()
        logger.info(f"Rescheduled appointment {moved.id} to {moved.start_time.isoformat()}")
        return moved
