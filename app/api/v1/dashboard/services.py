# app/api/v1/dashboard/services.py
"""
Service Management API Endpoints
Handles CRUD operations for business services
"""
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from app.api.dependencies import get_business_or_404
from app.config.database import get_db
from app.models.business import Business
from app.schemas.scheduling import ServiceCreate, ServiceUpdate
from app.services.business.calendar_settings_service import CalendarSettingsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/businesses/{business_id}/services", tags=["dashboard-services"])


def _service_to_response(service) -> dict:
    """Dashboard view: staff always see the stored price"""
    data = service.to_dict()
    data["price"] = float(service.price)
    return data


@router.post("", status_code=201)
def create_service(
        service_data: ServiceCreate,
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """
    Create a new service
    """
    service = CalendarSettingsService.create_service(
        db,
        business.id,
        name=service_data.name,
        duration_minutes=service_data.duration_minutes,
        price=service_data.price,
        description=service_data.description
    )
    return _service_to_response(service)


@router.get("")
def list_business_services(
        include_inactive: bool = False,
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """
    List all services for a business
    """
    services = CalendarSettingsService.list_services(db, business.id, include_inactive=include_inactive)
    return {
        "total": len(services),
        "services": [_service_to_response(s) for s in services]
    }


@router.patch("/{service_id}")
def update_service(
        update_data: ServiceUpdate,
        service_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """
    Update a service. Existing appointments keep the duration they were booked with.
    """
    service = CalendarSettingsService.get_service(db, business.id, service_id, active_only=False)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    service = CalendarSettingsService.update_service(db, service, **update_data.model_dump(exclude_unset=True))
    return _service_to_response(service)


@router.delete("/{service_id}")
def delete_service(
        service_id: UUID = Path(...),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """
    Soft delete: the service stops being bookable, its appointments stay
    """
    service = CalendarSettingsService.get_service(db, business.id, service_id, active_only=False)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    CalendarSettingsService.update_service(db, service, is_active=False)
    logger.info(f"Deactivated service {service_id}")
    return {"success": True, "message": "Service deactivated"}
