# ============================================================================
# FILE: app/api/v1/dashboard/clients.py
# Client membership decisions - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Query, Path
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.api.dependencies import get_business_or_404
from app.config.database import get_db
from app.models.business import Business
from app.models.membership import MembershipStatus
from app.schemas.scheduling import MembershipDecisionRequest
from app.services.membership.membership_service import MembershipService

router = APIRouter(prefix="/businesses/{business_id}/clients", tags=["dashboard-clients"])


@router.get("")
async def list_clients(
        status: Optional[MembershipStatus] = Query(None, description="Filter by membership status"),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """Clients who asked to join, newest first."""
    return MembershipService.list_memberships(db, business.id, status)


@router.patch("/{user_id}")
async def decide_membership(
        request: MembershipDecisionRequest,
        user_id: UUID = Path(..., description="The client's user ID"),
        business: Business = Depends(get_business_or_404),
        db: Session = Depends(get_db)
):
    """Approve, reject or block a client."""
    membership = MembershipService.decide(db, business.id, user_id, request.status)
    if not membership:
        raise HTTPException(status_code=404, detail="Client not found")
    return membership.to_dict()
