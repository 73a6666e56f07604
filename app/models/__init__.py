# app/models/__init__.py
from .base import Base
from .business import Business
from .availability import BusinessHours, BusinessBreak, BusinessClosure
from .service import Service
from .appointment import Appointment, AppointmentStatus, BookingSource
from .membership import BusinessClient, MembershipStatus
from .form_field import FormField, FormFieldType

__all__ = [
    "Base",
    "Business",
    "BusinessHours",
    "BusinessBreak",
    "BusinessClosure",
    "Service",
    "Appointment",
    "AppointmentStatus",
    "BookingSource",
    "BusinessClient",
    "MembershipStatus",
    "FormField",
    "FormFieldType",
]
