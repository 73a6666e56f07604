# app/schemas/__init__.py
from .scheduling import (
    BusinessCreate,
    ClientBookingRequest,
    ManualBookingRequest,
    RescheduleRequest,
    StatusUpdateRequest,
    NotesUpdateRequest,
    MembershipRequest,
    MembershipDecisionRequest,
    HoursUpdateRequest,
    BreakCreateRequest,
    BreakUpdateRequest,
    ClosureCreateRequest,
    FormFieldCreate,
    FormFieldUpdate,
    ServiceCreate,
    ServiceUpdate,
    SlotListResponse,
    GateResponse
)

__all__ = [
    "BusinessCreate",
    "ClientBookingRequest",
    "ManualBookingRequest",
    "RescheduleRequest",
    "StatusUpdateRequest",
    "NotesUpdateRequest",
    "MembershipRequest",
    "MembershipDecisionRequest",
    "HoursUpdateRequest",
    "BreakCreateRequest",
    "BreakUpdateRequest",
    "ClosureCreateRequest",
    "FormFieldCreate",
    "FormFieldUpdate",
    "ServiceCreate",
    "ServiceUpdate",
    "SlotListResponse",
    "GateResponse",
]
