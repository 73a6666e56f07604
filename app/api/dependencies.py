# ============================================================================
# FILE: app/api/dependencies.py
# Shared lookups for the booking and dashboard routes
# ============================================================================
from fastapi import Depends, HTTPException, Path, status
from sqlalchemy.orm import Session
from datetime import datetime
from uuid import UUID

from app.config.database import get_db
from app.models.business import Business
from app.services.booking.booking_service import BookingService
from app.services.business.calendar_settings_service import CalendarSettingsService


def get_now() -> datetime:
    """Business-local wall clock; overridden in tests"""
    return datetime.now()


def get_booking_service(
        db: Session = Depends(get_db),
        now: datetime = Depends(get_now)
) -> BookingService:
    return BookingService(db, now=now)


def get_business_or_404(
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
) -> Business:
    """Dashboard routes: business by id"""
    business = CalendarSettingsService.get_business(db, business_id)
    if not business:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Business not found"
        )
    return business


def get_public_business(
        slug: str = Path(..., description="Public booking page slug"),
        db: Session = Depends(get_db)
) -> Business:
    """Booking page routes: active business by slug"""
    business = CalendarSettingsService.get_business_by_slug(db, slug)
    if not business:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Business not found"
        )
    return business
