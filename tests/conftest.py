"""Shared fixtures: in-memory database, a business open Mon-Fri and a 30 minute service."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base
from app.models.appointment import Appointment, AppointmentStatus, BookingSource
from app.services.booking.booking_service import BookingService
from app.services.business.calendar_settings_service import CalendarSettingsService
from app.services.scheduling.commit_guard import CommitGuard
from app.services.scheduling.locks import LocalBookingLock

from tests.helpers import NOW


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def business(db):
    """Open Monday to Friday 09:00-18:00, no breaks"""
    business = CalendarSettingsService.create_business(db, name="Studio Nine", slug="studio-nine")
    for weekday in range(1, 6):
        CalendarSettingsService.set_hours(db, business.id, weekday, "09:00", "18:00")
    return business


@pytest.fixture
def service(db, business):
    return CalendarSettingsService.create_service(db, business.id, name="Haircut", duration_minutes=30, price=40)


@pytest.fixture
def guard():
    return CommitGuard(lock=LocalBookingLock(timeout=5))


@pytest.fixture
def booking(db, guard):
    return BookingService(db, guard=guard, now=NOW)


@pytest.fixture
def make_appointment(db, business, service):
    """Insert an appointment row directly, bypassing the commit guard"""
    def make(start: datetime, duration_minutes: int = 30, status=AppointmentStatus.CONFIRMED, **kwargs):
        appointment = Appointment(
            business_id=business.id,
            service_id=service.id,
            start_time=start,
            end_time=start + timedelta(minutes=duration_minutes),
            duration_minutes=duration_minutes,
            status=status,
            booking_source=kwargs.pop("booking_source", BookingSource.CLIENT),
            guest_name=kwargs.pop("guest_name", "Walk In"),
            guest_phone=kwargs.pop("guest_phone", "555-0100"),
            **kwargs
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment
    return make
