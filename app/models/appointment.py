# app/models/appointment.py
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, JSON, Enum as SQLEnum, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from datetime import datetime
import uuid
import enum

from app.models.base import Base


class AppointmentStatus(str, enum.Enum):
    """Appointment lifecycle status."""
    PENDING = "PENDING"        # Waiting for staff confirmation
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"      # Declined by staff, frees the slot
    CANCELLED = "CANCELLED"    # Frees the slot
    COMPLETED = "COMPLETED"


class BookingSource(str, enum.Enum):
    """Who created the appointment."""
    CLIENT = "CLIENT"
    STAFF = "STAFF"


# Statuses that no longer occupy calendar space
INACTIVE_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.REJECTED})

# Statuses that can be moved to another time
RESCHEDULABLE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED, AppointmentStatus.REJECTED, AppointmentStatus.CANCELLED
    }),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.REJECTED: frozenset({AppointmentStatus.PENDING}),
    AppointmentStatus.CANCELLED: frozenset({AppointmentStatus.PENDING}),
    AppointmentStatus.COMPLETED: frozenset(),
}


def occupies_calendar(status: AppointmentStatus) -> bool:
    return AppointmentStatus(status) not in INACTIVE_STATUSES


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return AppointmentStatus(target) in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(
        Uuid(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id = Column(Uuid(as_uuid=True), ForeignKey("services.id"), nullable=False)

    # Client info: registered client, or guest name + phone
    client_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    guest_name = Column(String, nullable=True)
    guest_phone = Column(String, nullable=True)

    # Business-local wall clock, no timezone
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    # Snapshot of the service duration at booking time
    duration_minutes = Column(Integer, nullable=False)

    # Status tracking
    status = Column(
        SQLEnum(AppointmentStatus, name="appointmentstatus"),
        default=AppointmentStatus.PENDING,
        nullable=False,
        index=True
    )
    booking_source = Column(
        SQLEnum(BookingSource, name="bookingsource"),
        default=BookingSource.CLIENT,
        nullable=False
    )

    # Notes and attachments
    client_notes = Column(Text, nullable=True)
    business_public_notes = Column(Text, nullable=True)   # Visible to the client
    business_private_notes = Column(Text, nullable=True)  # Staff only
    image_urls = Column(JSON, default=list)
    custom_fields_data = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    service = relationship("Service")

    def __repr__(self):
        return f"<Appointment(id={self.id}, start={self.start_time}, status={self.status})>"

    @property
    def occupies_calendar(self) -> bool:
        return occupies_calendar(self.status)

    @property
    def client_display_name(self) -> str:
        return self.guest_name or (str(self.client_id) if self.client_id else "Guest")

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start_time < end and start < self.end_time

    def to_dict(self, include_private=False):
        """Convert to dictionary for API responses"""
        data = {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "service_id": str(self.service_id),
            "client_id": str(self.client_id) if self.client_id else None,
            "guest_name": self.guest_name,
            "guest_phone": self.guest_phone,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "status": AppointmentStatus(self.status).value,
            "booking_source": BookingSource(self.booking_source).value,
            "client_notes": self.client_notes,
            "business_public_notes": self.business_public_notes,
            "image_urls": list(self.image_urls or []),
            "custom_fields_data": dict(self.custom_fields_data or {}),
        }
        if include_private:
            data["business_private_notes"] = self.business_private_notes
        return data
