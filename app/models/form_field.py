# app/models/form_field.py
"""Extra questions a business adds to its booking form"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, Enum as SQLEnum, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum

from app.models.base import Base


class FormFieldType(str, enum.Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    NUMBER = "NUMBER"
    SELECT = "SELECT"      # Answer must be one of `options`
    BOOLEAN = "BOOLEAN"    # Yes / no


class FormField(Base):
    """One question on the booking form, answered into Appointment.custom_fields_data"""
    __tablename__ = "form_fields"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    label = Column(String(200), nullable=False)
    field_type = Column(
        SQLEnum(FormFieldType, name="formfieldtype"),
        default=FormFieldType.TEXT,
        nullable=False
    )
    is_required = Column(Boolean, default=False, nullable=False)
    options = Column(JSON, nullable=True)  # Choices for SELECT fields
    order_index = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    business = relationship("Business", back_populates="form_fields")

    def __repr__(self):
        return f"<FormField(id={self.id}, label={self.label}, type={self.field_type})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "label": self.label,
            "field_type": FormFieldType(self.field_type).value,
            "is_required": self.is_required,
            "options": self.options or [],
            "order_index": self.order_index,
            "is_active": self.is_active,
        }
