# ============================================================================
# app/services/membership/membership_service.py
# ============================================================================
"""Client membership ("club") requests and staff decisions"""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.membership import BusinessClient, MembershipStatus
from app.services.scheduling.errors import InvalidTransition, MembershipRequired

logger = logging.getLogger(__name__)

# Decisions staff can take on a membership, keyed by target status
STAFF_DECISIONS = {
    MembershipStatus.APPROVED: frozenset({MembershipStatus.PENDING, MembershipStatus.REJECTED, MembershipStatus.BLOCKED}),
    MembershipStatus.REJECTED: frozenset({MembershipStatus.PENDING, MembershipStatus.APPROVED}),
    MembershipStatus.BLOCKED: frozenset({MembershipStatus.PENDING, MembershipStatus.APPROVED, MembershipStatus.REJECTED}),
}


class MembershipService:
    """Handles membership operations"""

    @staticmethod
    def get_membership(db: Session, business_id: UUID, user_id: UUID) -> Optional[BusinessClient]:
        return db.query(BusinessClient).filter(
            BusinessClient.business_id == business_id,
            BusinessClient.user_id == user_id
        ).first()

    @staticmethod
    def get_status(db: Session, business_id: UUID, user_id: Optional[UUID]) -> MembershipStatus:
        """Membership status of a client; NONE for guests and non-members"""
        if user_id is None:
            return MembershipStatus.NONE
        membership = MembershipService.get_membership(db, business_id, user_id)
        return MembershipStatus(membership.status) if membership else MembershipStatus.NONE

    @staticmethod
    def request_membership(db: Session, business_id: UUID, user_id: UUID) -> BusinessClient:
        """
        Client asks to join a business.
        Pending or approved requests are returned unchanged; a rejected one is reopened.
        """
        membership = MembershipService.get_membership(db, business_id, user_id)

        if membership is None:
            membership = BusinessClient(
                business_id=business_id,
                user_id=user_id,
                status=MembershipStatus.PENDING
            )
            db.add(membership)
        elif membership.status == MembershipStatus.BLOCKED:
            raise MembershipRequired(MembershipStatus.BLOCKED.value.lower(), "Client is blocked by this business")
        elif membership.status == MembershipStatus.REJECTED:
            membership.status = MembershipStatus.PENDING
        else:
            return membership

        db.commit()
        db.refresh(membership)
        logger.info(f"Membership request from {user_id} to business {business_id}")
        return membership

    @staticmethod
    def decide(
            db: Session,
            business_id: UUID,
            user_id: UUID,
            status: MembershipStatus
    ) -> Optional[BusinessClient]:
        """Staff approve, reject or block a client. Returns None if no such membership."""
        status = MembershipStatus(status)
        if status not in STAFF_DECISIONS:
            raise InvalidTransition(f"Cannot set membership to {status.value}")

        membership = MembershipService.get_membership(db, business_id, user_id)
        if membership is None:
            return None

        current = MembershipStatus(membership.status)
        if current == status:
            return membership
        if current not in STAFF_DECISIONS[status]:
            raise InvalidTransition(f"Cannot change membership from {current.value} to {status.value}")

        membership.status = status
        db.commit()
        db.refresh(membership)
        logger.info(f"Membership of {user_id} at business {business_id}: {current.value} -> {status.value}")
        return membership

    @staticmethod
    def list_memberships(
            db: Session,
            business_id: UUID,
            status: Optional[MembershipStatus] = None
    ) -> Dict[str, Any]:
        """Memberships of a business, newest first"""
        query = db.query(BusinessClient).filter(BusinessClient.business_id == business_id)
        if status:
            query = query.filter(BusinessClient.status == MembershipStatus(status))

        memberships: List[BusinessClient] = query.order_by(BusinessClient.created_at.desc()).all()
        return {
            "business_id": str(business_id),
            "total": len(memberships),
            "clients": [m.to_dict() for m in memberships],
        }
