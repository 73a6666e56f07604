"""
Business Management Dashboard Routes
Registering a business and reading its profile
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from app.api.dependencies import get_business_or_404
from app.config.database import get_db
from app.models.business import Business
from app.schemas.scheduling import BusinessCreate
from app.services.business.calendar_settings_service import CalendarSettingsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/businesses", tags=["dashboard-business"])


@router.post("", status_code=201)
async def create_business(
        request: BusinessCreate,
        db: Session = Depends(get_db)
):
    """
    Register a business. It starts with no opening hours:
    every day is closed until hours are set.
    """
    business = CalendarSettingsService.create_business(
        db,
        name=request.name,
        slug=request.slug,
        description=request.description,
        requires_membership=request.requires_membership
    )
    return business.to_dict()


@router.get("/{business_id}")
async def get_business(business: Business = Depends(get_business_or_404)):
    return business.to_dict()
