# ============================================================================
# FILE: app/api/v1/dashboard/calendar.py
# Working calendar settings - thin HTTP layer
# ============================================================================

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session
from uuid import UUID

from app.api.dependencies import get_business_or_404
from app.config.database import get_db
from app.models.business import Business
from app.schemas.scheduling import (
    BreakCreateRequest, BreakUpdateRequest, ClosureCreateRequest, HoursUpdateRequest
)
from app.services.business.calendar_settings_service import CalendarSettingsService

router = APIRouter(prefix="/businesses/{business_id}", tags=["dashboard-calendar"])


@router.get("/calendar")
async def get_calendar(
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """Weekly hours, breaks and closures in one response"""
    return {
        "business_id": str(business.id),
        "hours": [h.to_dict() for h in CalendarSettingsService.list_hours(db, business.id)],
        "breaks": [b.to_dict() for b in CalendarSettingsService.list_breaks(db, business.id)],
        "closures": [c.to_dict() for c in CalendarSettingsService.list_closures(db, business.id)],
    }


# ========== WEEKLY HOURS ==========

@router.put("/hours/{day_of_week}")
async def update_hours(
        request: HoursUpdateRequest,
        day_of_week: int = Path(..., ge=0, le=6, description="0=Sunday, 6=Saturday"),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """
    Open or close a weekday.
    Opening without explicit times uses the default hours.
    """
    if not request.is_open:
        CalendarSettingsService.set_day_open(db, business.id, day_of_week, False)
        return {"day_of_week": day_of_week, "is_open": False}

    if request.start_time and request.end_time:
        hours = CalendarSettingsService.set_hours(
            db, business.id, day_of_week, request.start_time, request.end_time
        )
    else:
        hours = CalendarSettingsService.set_day_open(db, business.id, day_of_week, True)
    return hours.to_dict()


# ========== BREAKS ==========

@router.post("/breaks", status_code=201)
async def create_break(
        request: BreakCreateRequest,
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    brk = CalendarSettingsService.add_break(
        db, business.id, request.day_of_week, request.start_time, request.end_time
    )
    return brk.to_dict()


@router.patch("/breaks/{break_id}")
async def update_break(
        request: BreakUpdateRequest,
        break_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    brk = CalendarSettingsService.update_break(
        db, business.id, break_id, request.start_time, request.end_time
    )
    if not brk:
        raise HTTPException(status_code=404, detail="Break not found")
    return brk.to_dict()


@router.delete("/breaks/{break_id}", status_code=204)
async def delete_break(
        break_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    if not CalendarSettingsService.delete_break(db, business.id, break_id):
        raise HTTPException(status_code=404, detail="Break not found")


# ========== CLOSURES ==========

@router.post("/closures", status_code=201)
async def create_closure(
        request: ClosureCreateRequest,
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """Close the business for an inclusive date range (vacation, holiday)"""
    closure = CalendarSettingsService.add_closure(
        db, business.id, request.start_date, request.end_date, request.reason
    )
    return closure.to_dict()


@router.delete("/closures/{closure_id}", status_code=204)
async def delete_closure(
        closure_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    if not CalendarSettingsService.delete_closure(db, business.id, closure_id):
        raise HTTPException(status_code=404, detail="Closure not found")
