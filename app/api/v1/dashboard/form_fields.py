# app/api/v1/dashboard/form_fields.py
"""
Booking Form API Endpoints
Extra questions clients answer when booking
"""
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session
from uuid import UUID

from app.api.dependencies import get_business_or_404
from app.config.database import get_db
from app.models.business import Business
from app.schemas.scheduling import FormFieldCreate, FormFieldUpdate
from app.services.business.calendar_settings_service import CalendarSettingsService

router = APIRouter(prefix="/businesses/{business_id}/form-fields", tags=["dashboard-form-fields"])


@router.get("")
def list_form_fields(
        include_inactive: bool = False,
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    fields = CalendarSettingsService.list_form_fields(db, business.id, include_inactive=include_inactive)
    return {
        "total": len(fields),
        "form_fields": [f.to_dict() for f in fields]
    }


@router.post("", status_code=201)
def create_form_field(
        field_data: FormFieldCreate,
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """Add a question to the end of the booking form unless a position is given"""
    field = CalendarSettingsService.add_form_field(db, business.id, **field_data.model_dump())
    return field.to_dict()


@router.patch("/{field_id}")
def update_form_field(
        update_data: FormFieldUpdate,
        field_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    field = CalendarSettingsService.get_form_field(db, business.id, field_id)
    if not field:
        raise HTTPException(status_code=404, detail="Form field not found")

    field = CalendarSettingsService.update_form_field(db, field, **update_data.model_dump(exclude_unset=True))
    return field.to_dict()


@router.delete("/{field_id}", status_code=204)
def delete_form_field(
        field_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    if not CalendarSettingsService.delete_form_field(db, business.id, field_id):
        raise HTTPException(status_code=404, detail="Form field not found")
