# ============================================================================
# FILE: app/api/v1/public/booking.py
# Client booking page - thin HTTP layer over the booking services
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from app.api.dependencies import get_booking_service, get_now, get_public_business
from app.config.database import get_db
from app.models.business import Business
from app.schemas.scheduling import (
    ClientBookingRequest, GateResponse, MembershipRequest, SlotListResponse
)
from app.services.availability.availability_service import AvailabilityService
from app.services.booking.booking_service import BookingService
from app.services.booking.booking_session import ClientIdentity, membership_gate
from app.services.business.calendar_settings_service import CalendarSettingsService
from app.services.membership.membership_service import MembershipService

router = APIRouter(prefix="/businesses/{slug}", tags=["public-booking"])


@router.get("")
async def get_booking_page(
        business: Business = Depends(get_public_business),
        db: Session = Depends(get_db)
):
    """Business profile, its bookable services and booking form questions. Hidden prices are omitted."""
    services = CalendarSettingsService.list_services(db, business.id)
    form_fields = CalendarSettingsService.list_form_fields(db, business.id)
    return {
        "business": business.to_dict(),
        "services": [service.to_dict() for service in services],
        "form_fields": [field.to_dict() for field in form_fields],
    }


@router.get("/slots", response_model=SlotListResponse)
async def get_slots(
        service_id: UUID = Query(..., description="Service to size the slots by"),
        day: date = Query(..., alias="date", description="Day to list slots for"),
        business: Business = Depends(get_public_business),
        now: datetime = Depends(get_now),
        db: Session = Depends(get_db)
):
    """
    Available start times for a service on one day.
    A closed day comes back with no slots and the closure reason.
    """
    service = CalendarSettingsService.get_service(db, business.id, service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    result = AvailabilityService.get_slots_for_service(db, service, day, now)
    return SlotListResponse.from_result(result)


@router.get("/gate", response_model=GateResponse)
async def get_gate(
        client_id: Optional[UUID] = Query(None, description="Registered client; omit for guests"),
        business: Business = Depends(get_public_business),
        db: Session = Depends(get_db)
):
    """Whether this client may open the booking form"""
    membership = MembershipService.get_status(db, business.id, client_id)
    gate = membership_gate(bool(business.requires_membership), client_id, membership)
    return GateResponse(
        gate=gate.value,
        membership_status=membership,
        requires_membership=bool(business.requires_membership),
    )


@router.post("/membership", status_code=201)
async def request_membership(
        request: MembershipRequest,
        business: Business = Depends(get_public_business),
        db: Session = Depends(get_db)
):
    """Ask to join the business's client list"""
    membership = MembershipService.request_membership(db, business.id, request.client_id)
    return membership.to_dict()


@router.post("/appointments", status_code=201)
def create_appointment(
        request: ClientBookingRequest,
        business: Business = Depends(get_public_business),
        booking: BookingService = Depends(get_booking_service)
):
    """
    Book an appointment from the booking page.
    Approved club members are confirmed immediately; everyone else waits as PENDING.
    """
    service = CalendarSettingsService.get_service(booking.db, business.id, request.service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    client = ClientIdentity(
        client_id=request.client_id,
        guest_name=request.guest_name,
        guest_phone=request.guest_phone,
    )
    appointment = booking.book_for_client(
        business,
        service,
        request.date,
        request.time,
        client,
        client_notes=request.client_notes,
        image_urls=request.image_urls,
        custom_fields_data=request.custom_fields_data,
    )
    return appointment.to_dict()
