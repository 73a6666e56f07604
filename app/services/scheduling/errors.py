# app/services/scheduling/errors.py
"""Typed failures raised by the scheduling engine"""
from typing import Any, List, Optional


class SchedulingError(Exception):
    """Base class for every scheduling failure surfaced to callers"""
    code = "scheduling_error"
    status_code = 409
    recoverable = True

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.code, "detail": self.message, "recoverable": self.recoverable}


class BusinessClosed(SchedulingError):
    """The business is closed on the requested date"""
    code = "business_closed"

    def __init__(self, reason: str = "closed"):
        self.reason = reason
        super().__init__(f"Business closed: {reason}")


class DurationExceedsWindow(SchedulingError):
    """The service is longer than the business's open window on that date"""
    code = "duration_exceeds_window"


class InvalidSlot(SchedulingError):
    """The requested start time is not a bookable slot"""
    code = "invalid_slot"


class SlotNoLongerAvailable(SchedulingError):
    """The requested slot was taken; fetch the slots again and pick another"""
    code = "slot_no_longer_available"

    def __init__(
            self,
            message: Optional[str] = None,
            reason: Optional[str] = None,
            conflicting_ids: Optional[List[Any]] = None
    ):
        self.reason = reason or self.code
        # Appointments now occupying the slot; never sent to clients
        self.conflicting_ids = list(conflicting_ids or [])
        super().__init__(message)


class InvalidTransition(SchedulingError):
    """The requested state change is not allowed"""
    code = "invalid_transition"
    recoverable = False


class MembershipRequired(SchedulingError):
    """The client is not allowed to book with this business"""
    code = "membership_required"
    status_code = 403

    def __init__(self, gate: str, message: Optional[str] = None):
        self.gate = gate
        super().__init__(message or f"Booking not allowed: {gate}")

    def to_dict(self):
        data = super().to_dict()
        data["gate"] = self.gate
        return data


class BookingFailed(SchedulingError):
    """The appointment could not be saved, please try again later"""
    code = "booking_failed"
    status_code = 503
    recoverable = False
