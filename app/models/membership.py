# app/models/membership.py
"""Per-business client membership ("club") approvals"""
from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum, Uuid
from sqlalchemy.sql import func
import uuid
import enum

from app.models.base import Base


class MembershipStatus(str, enum.Enum):
    """Membership status of a registered client with a business.

    NONE is never stored: it is the absence of a row.
    """
    NONE = "NONE"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    BLOCKED = "BLOCKED"


class BusinessClient(Base):
    __tablename__ = "business_clients"
    __table_args__ = (
        UniqueConstraint("business_id", "user_id", name="uq_business_clients_member"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    status = Column(
        SQLEnum(MembershipStatus, name="membershipstatus"),
        default=MembershipStatus.PENDING,
        nullable=False
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<BusinessClient(business_id={self.business_id}, user_id={self.user_id}, status={self.status})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "user_id": str(self.user_id),
            "status": MembershipStatus(self.status).value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
