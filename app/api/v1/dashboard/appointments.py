
# ============================================================================
# FILE: app/api/v1/dashboard/appointments.py
# Business dashboard endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Query, Path
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from app.api.dependencies import get_booking_service, get_business_or_404, get_now
from app.config.database import get_db
from app.models.appointment import Appointment, AppointmentStatus
from app.models.business import Business
from app.schemas.scheduling import (
    ManualBookingRequest, NotesUpdateRequest, RescheduleRequest, SlotListResponse, StatusUpdateRequest
)
from app.services.appointment.appointment_query_service import AppointmentQueryService
from app.services.appointment.appointment_service import AppointmentService
from app.services.availability.availability_service import AvailabilityService
from app.services.booking.booking_service import BookingService
from app.services.booking.booking_session import ClientIdentity
from app.services.business.calendar_settings_service import CalendarSettingsService

router = APIRouter(prefix="/businesses/{business_id}/appointments", tags=["dashboard-appointments"])


def _get_appointment_or_404(db: Session, business: Business, appointment_id: UUID) -> Appointment:
    appointment = AppointmentService.get_appointment(db, business.id, appointment_id)
    if not appointment:
        raise HTTPException(
            status_code=404,
            detail=f"Appointment {appointment_id} not found"
        )
    return appointment


@router.get("")
async def list_appointments(
        start_date: Optional[date] = Query(None, description="Filter appointments on or after this date"),
        end_date: Optional[date] = Query(None, description="Filter appointments on or before this date"),
        status: Optional[AppointmentStatus] = Query(None, description="Filter by status"),
        view: Optional[str] = Query(None, pattern="^(active|history)$", description="active or history tab"),
        client_id: Optional[UUID] = Query(None, description="Filter by registered client"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """Get a list of appointments for the business."""
    return AppointmentQueryService.list_appointments(
        db=db,
        business_id=business.id,
        start_date=start_date,
        end_date=end_date,
        status=status,
        view=view,
        client_id=client_id,
        skip=skip,
        limit=limit
    )


@router.get("/day/{day}")
async def get_day_appointments(
        day: date = Path(..., description="Calendar day"),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """Appointments occupying the calendar on one day, earliest first."""
    return AppointmentQueryService.get_day_appointments(db, business.id, day)


@router.get("/stats/summary")
async def get_appointment_stats(
        business: Business = Depends(get_business_or_404),
        now: datetime = Depends(get_now),
        db: Session = Depends(get_db)
):
    """Dashboard counters."""
    return AppointmentQueryService.get_appointment_stats(db, business.id, today=now.date())


@router.get("/slots", response_model=SlotListResponse)
async def get_manual_booking_slots(
        service_id: UUID = Query(...),
        day: date = Query(..., alias="date"),
        business: Business = Depends(get_business_or_404),
        now: datetime = Depends(get_now),
        db: Session = Depends(get_db)
):
    """Free start times for a manual booking."""
    service = CalendarSettingsService.get_service(db, business.id, service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    result = AvailabilityService.get_slots_for_service(db, service, day, now)
    return SlotListResponse.from_result(result)


@router.post("", status_code=201)
def create_manual_booking(
        request: ManualBookingRequest,
        business: Business = Depends(get_business_or_404),
        booking: BookingService = Depends(get_booking_service)
):
    """
    Staff booking on behalf of a client or a walk-in guest.
    Always CONFIRMED; membership rules do not apply.
    """
    service = CalendarSettingsService.get_service(booking.db, business.id, request.service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    client = ClientIdentity(
        client_id=request.client_id,
        guest_name=request.guest_name,
        guest_phone=request.guest_phone,
    )
    appointment = booking.book_manually(
        business, service, request.date, request.time, client, client_notes=request.client_notes
    )
    return appointment.to_dict(include_private=True)


@router.get("/{appointment_id}")
async def get_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """Get detailed information about a specific appointment."""
    appointment = _get_appointment_or_404(db, business, appointment_id)
    return appointment.to_dict(include_private=True)


@router.get("/{appointment_id}/reschedule-slots", response_model=SlotListResponse)
async def get_reschedule_slots(
        appointment_id: UUID = Path(...),
        day: date = Query(..., alias="date"),
        business: Business = Depends(get_business_or_404),
        now: datetime = Depends(get_now),
        db: Session = Depends(get_db)
):
    """Free start times for moving an appointment; its current time counts as free."""
    appointment = _get_appointment_or_404(db, business, appointment_id)
    result = AvailabilityService.get_reschedule_slots(db, appointment, day, now)
    return SlotListResponse.from_result(result)


@router.post("/{appointment_id}/reschedule")
def reschedule_appointment(
        request: RescheduleRequest,
        appointment_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        booking: BookingService = Depends(get_booking_service)
):
    """Move a pending or confirmed appointment to another slot."""
    appointment = _get_appointment_or_404(booking.db, business, appointment_id)
    moved = booking.reschedule(business, appointment, request.date, request.time)
    return moved.to_dict(include_private=True)


@router.patch("/{appointment_id}/status")
def update_status(
        request: StatusUpdateRequest,
        appointment_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        booking: BookingService = Depends(get_booking_service)
):
    """Confirm, reject, cancel, complete or restore an appointment."""
    appointment = _get_appointment_or_404(booking.db, business, appointment_id)
    updated = AppointmentService.change_status(
        booking.db, appointment, request.status, guard=booking.guard, now=booking.now
    )
    return updated.to_dict(include_private=True)


@router.patch("/{appointment_id}/notes")
async def update_notes(
        request: NotesUpdateRequest,
        appointment_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """Business notes; private notes are never shown to the client."""
    appointment = _get_appointment_or_404(db, business, appointment_id)
    updated = AppointmentService.update_notes(
        db,
        appointment,
        public_notes=request.business_public_notes,
        private_notes=request.business_private_notes,
    )
    return updated.to_dict(include_private=True)
