"""Dates and plain appointment objects shared by the tests"""
from datetime import date, datetime, time, timedelta
from types import SimpleNamespace
import uuid

from app.models.appointment import AppointmentStatus

MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 6)
# Well before MONDAY so every slot that day is in the future
NOW = datetime(2030, 1, 1, 8, 0)


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime.combine(day, time(hour, minute))


def fake_appointment(start: datetime, minutes: int, status=AppointmentStatus.CONFIRMED, business_id=None):
    """Plain object with the attributes the pure engine functions read"""
    return SimpleNamespace(
        id=uuid.uuid4(),
        business_id=business_id,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        status=status,
    )
