# app/models/business.py
"""
Business Model
Owner of the working calendar, services and client memberships
"""
from sqlalchemy import Column, String, Boolean, DateTime, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from app.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    address = Column(String(300), nullable=True)
    phone = Column(String(20), nullable=True)

    # Clients must hold an approved membership before they can book
    requires_membership = Column(Boolean, default=False, nullable=False)

    # Technical fields
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    # Relationships
    hours = relationship("BusinessHours", back_populates="business", cascade="all, delete-orphan")
    breaks = relationship("BusinessBreak", back_populates="business", cascade="all, delete-orphan")
    closures = relationship("BusinessClosure", back_populates="business", cascade="all, delete-orphan")
    services = relationship("Service", back_populates="business", cascade="all, delete-orphan")
    form_fields = relationship("FormField", back_populates="business", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "address": self.address,
            "phone": self.phone,
            "requires_membership": self.requires_membership,
            "is_active": self.is_active,
        }
