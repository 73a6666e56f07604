"""
Pydantic schemas for the booking and calendar endpoints
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, List, Any
import datetime
from uuid import UUID

from app.models.appointment import AppointmentStatus
from app.models.form_field import FormFieldType
from app.models.membership import MembershipStatus

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ============================================================================
# Request Schemas (for incoming data)
# ============================================================================

class BusinessCreate(BaseModel):
    """Schema for registering a business"""
    name: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=200, pattern=r"^[a-z0-9-]+$")
    description: Optional[str] = None
    requires_membership: bool = False


class ClientBookingRequest(BaseModel):
    """Booking page submission"""
    service_id: UUID
    date: datetime.date
    time: str = Field(..., pattern=HHMM_PATTERN, description="Start time HH:MM")

    client_id: Optional[UUID] = Field(None, description="Registered client; omit for guests")
    guest_name: Optional[str] = Field(None, max_length=200)
    guest_phone: Optional[str] = Field(None, max_length=20)

    client_notes: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list, description="Uploaded media references")
    custom_fields_data: Dict[str, Any] = Field(default_factory=dict, description="Answers keyed by form field id")


class ManualBookingRequest(BaseModel):
    """Staff booking for a guest or a registered client"""
    service_id: UUID
    date: datetime.date
    time: str = Field(..., pattern=HHMM_PATTERN)

    client_id: Optional[UUID] = None
    guest_name: Optional[str] = Field(None, max_length=200)
    guest_phone: Optional[str] = Field(None, max_length=20)
    client_notes: Optional[str] = None


class RescheduleRequest(BaseModel):
    date: datetime.date
    time: str = Field(..., pattern=HHMM_PATTERN)


class StatusUpdateRequest(BaseModel):
    status: AppointmentStatus


class NotesUpdateRequest(BaseModel):
    business_public_notes: Optional[str] = None
    business_private_notes: Optional[str] = None


class MembershipRequest(BaseModel):
    client_id: UUID


class MembershipDecisionRequest(BaseModel):
    status: MembershipStatus

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in (MembershipStatus.APPROVED, MembershipStatus.REJECTED, MembershipStatus.BLOCKED):
            raise ValueError("Status must be APPROVED, REJECTED or BLOCKED")
        return v


class HoursUpdateRequest(BaseModel):
    """Open/close a weekday, optionally with explicit hours"""
    is_open: bool = True
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)


class BreakCreateRequest(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday, 6=Saturday")
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)


class BreakUpdateRequest(BaseModel):
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)


class ClosureCreateRequest(BaseModel):
    start_date: datetime.date
    end_date: datetime.date
    reason: Optional[str] = Field(None, max_length=200)


class FormFieldCreate(BaseModel):
    """A booking form question"""
    label: str = Field(..., min_length=1, max_length=200)
    field_type: FormFieldType = FormFieldType.TEXT
    is_required: bool = False
    options: Optional[List[str]] = Field(None, description="Choices for SELECT fields")
    order_index: Optional[int] = Field(None, ge=0, description="Defaults to last")


class FormFieldUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=200)
    field_type: Optional[FormFieldType] = None
    is_required: Optional[bool] = None
    options: Optional[List[str]] = None
    order_index: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ServiceCreate(BaseModel):
    """Request model for creating a service"""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    duration_minutes: int = Field(..., gt=0, description="Duration in minutes")
    price: float = Field(0, ge=0, description="0 hides the price from clients")


class ServiceUpdate(BaseModel):
    """Request model for updating a service"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    price: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


# ============================================================================
# Response Schemas (for outgoing data)
# ============================================================================

class SlotListResponse(BaseModel):
    """Bookable start times for one day, or why there are none"""
    date: datetime.date
    duration_minutes: int
    slots: List[str]
    status: str
    reason: Optional[str] = None

    @classmethod
    def from_result(cls, result) -> "SlotListResponse":
        return cls(
            date=result.day,
            duration_minutes=result.duration_minutes,
            slots=result.as_strings(),
            status=result.status.value,
            reason=result.reason,
        )


class GateResponse(BaseModel):
    gate: str
    membership_status: MembershipStatus
    requires_membership: bool
