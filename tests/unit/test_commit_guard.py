"""Tests for the commit guard: conflict decision, atomic write and retries."""
import threading
import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.models import Base
from app.models.appointment import Appointment, AppointmentStatus, BookingSource
from app.services.business.calendar_settings_service import CalendarSettingsService
from app.services.scheduling.commit_guard import (
    CommitGuard, ProposedAppointment, try_commit
)
from app.services.scheduling.errors import (
    BookingFailed, BusinessClosed, InvalidSlot, InvalidTransition, SlotNoLongerAvailable
)
from app.services.scheduling import locks
from app.services.scheduling.locks import LocalBookingLock

from tests.helpers import MONDAY, NOW, at, fake_appointment

BUSINESS_ID = uuid.uuid4()


def proposal_at(start, minutes=30, business_id=BUSINESS_ID, service_id=None, **kwargs):
    return ProposedAppointment(
        business_id=business_id,
        service_id=service_id or uuid.uuid4(),
        start_time=start,
        duration_minutes=minutes,
        guest_name="Ada",
        guest_phone="555-0101",
        **kwargs
    )


class TestTryCommit:
    """Pure conflict decision against the latest appointment list."""

    def test_free_interval_is_committed(self):
        decision = try_commit(proposal_at(at(10)), [])
        assert decision.accepted

    def test_overlap_is_rejected_with_conflicting_ids(self):
        existing = fake_appointment(at(10), 45, business_id=BUSINESS_ID)
        decision = try_commit(proposal_at(at(10, 30)), [existing])

        assert not decision.accepted
        assert decision.conflicting_ids == [existing.id]
        assert isinstance(decision.to_error(), SlotNoLongerAvailable)

    def test_rejection_error_keeps_conflict_details(self):
        first = fake_appointment(at(10), 30, business_id=BUSINESS_ID)
        second = fake_appointment(at(10, 30), 30, business_id=BUSINESS_ID)

        error = try_commit(proposal_at(at(10, 15), 30), [first, second]).to_error()

        assert error.reason == "slot_no_longer_available"
        assert error.conflicting_ids == [first.id, second.id]
        assert "conflicting_ids" not in error.to_dict()

    def test_touching_interval_is_committed(self):
        existing = fake_appointment(at(10), 30, business_id=BUSINESS_ID)
        assert try_commit(proposal_at(at(10, 30)), [existing]).accepted

    def test_cancelled_appointment_is_ignored(self):
        existing = fake_appointment(at(10), 30, status=AppointmentStatus.CANCELLED, business_id=BUSINESS_ID)
        assert try_commit(proposal_at(at(10)), [existing]).accepted

    def test_other_business_is_ignored(self):
        existing = fake_appointment(at(10), 30, business_id=uuid.uuid4())
        assert try_commit(proposal_at(at(10)), [existing]).accepted

    def test_replaced_appointment_does_not_conflict_with_itself(self):
        existing = fake_appointment(at(10), 30, business_id=BUSINESS_ID)
        decision = try_commit(proposal_at(at(10, 15), replaces_id=existing.id), [existing])
        assert decision.accepted


class TestCommitGuard:
    """Check-then-write against the database."""

    def test_commit_inserts_pending_appointment(self, db, business, service, guard):
        appointment = guard.commit(db, proposal_at(at(10), business_id=business.id, service_id=service.id), NOW)

        assert appointment.id is not None
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.end_time == at(10, 30)
        assert appointment.duration_minutes == 30
        assert appointment.booking_source == BookingSource.CLIENT
        assert db.query(Appointment).count() == 1

    def test_conflicting_commit_is_rejected(self, db, business, service, guard, make_appointment):
        make_appointment(at(10), 45)

        with pytest.raises(SlotNoLongerAvailable):
            guard.commit(db, proposal_at(at(10, 30), business_id=business.id, service_id=service.id), NOW)
        assert db.query(Appointment).count() == 1

    def test_cancelled_slot_can_be_booked_again(self, db, business, service, guard, make_appointment):
        make_appointment(at(10), 30, status=AppointmentStatus.CANCELLED)

        appointment = guard.commit(db, proposal_at(at(10), business_id=business.id, service_id=service.id), NOW)
        assert appointment.start_time == at(10)

    def test_closure_is_checked_at_commit(self, db, business, service, guard):
        CalendarSettingsService.add_closure(db, business.id, MONDAY, MONDAY, "Holiday")

        with pytest.raises(BusinessClosed):
            guard.commit(db, proposal_at(at(10), business_id=business.id, service_id=service.id), NOW)

    def test_past_start_is_rejected(self, db, business, service, guard):
        with pytest.raises(InvalidSlot):
            guard.commit(db, proposal_at(at(10), business_id=business.id, service_id=service.id), at(11))

    def test_move_may_overlap_its_own_old_interval(self, db, business, service, guard, make_appointment):
        existing = make_appointment(at(10), 30)
        proposal = proposal_at(
            at(10, 15),
            business_id=business.id,
            service_id=service.id,
            replaces_id=existing.id,
            allowed_current_statuses=frozenset({AppointmentStatus.CONFIRMED}),
        )

        moved = guard.commit(db, proposal, NOW)
        assert moved.id == existing.id
        assert moved.start_time == at(10, 15)
        assert moved.status == AppointmentStatus.CONFIRMED
        assert db.query(Appointment).count() == 1

    def test_replacing_requires_an_allowed_status(self, db, business, service, guard, make_appointment):
        existing = make_appointment(at(10), 30, status=AppointmentStatus.COMPLETED)
        proposal = proposal_at(
            at(11),
            business_id=business.id,
            service_id=service.id,
            replaces_id=existing.id,
            allowed_current_statuses=frozenset({AppointmentStatus.CONFIRMED}),
        )

        with pytest.raises(InvalidTransition):
            guard.commit(db, proposal, NOW)
        db.refresh(existing)
        assert existing.start_time == at(10)

    def test_storage_errors_are_retried_then_fail(self, db, business, service, monkeypatch):
        calls = []

        def flaky(self, db, proposal, now):
            calls.append(proposal)
            raise OperationalError("INSERT INTO appointments", {}, Exception("database is locked"))

        monkeypatch.setattr(CommitGuard, "_check_and_write", flaky)
        guard = CommitGuard(lock=LocalBookingLock(timeout=5), max_attempts=3)

        with pytest.raises(BookingFailed):
            guard.commit(db, proposal_at(at(10), business_id=business.id, service_id=service.id), NOW)
        assert len(calls) == 3

    def test_transient_storage_error_recovers(self, db, business, service, monkeypatch):
        original = CommitGuard._check_and_write
        calls = []

        def flaky_once(self, db, proposal, now):
            calls.append(proposal)
            if len(calls) == 1:
                raise OperationalError("INSERT INTO appointments", {}, Exception("database is locked"))
            return original(self, db, proposal, now)

        monkeypatch.setattr(CommitGuard, "_check_and_write", flaky_once)
        guard = CommitGuard(lock=LocalBookingLock(timeout=5), max_attempts=3)

        appointment = guard.commit(db, proposal_at(at(10), business_id=business.id, service_id=service.id), NOW)
        assert appointment.start_time == at(10)
        assert len(calls) == 2

    def test_failed_row_lock_rolls_back_before_retrying(self, db, business, service, monkeypatch):
        calls = {"lock": 0, "rollback": 0}
        lock_row = locks.lock_business_row
        rollback = db.rollback

        def lock_row_fails_once(session, business_id):
            calls["lock"] += 1
            if calls["lock"] == 1:
                raise OperationalError("SELECT ... FOR UPDATE", {}, Exception("could not obtain lock"))
            lock_row(session, business_id)

        def counting_rollback():
            calls["rollback"] += 1
            rollback()

        monkeypatch.setattr(locks, "lock_business_row", lock_row_fails_once)
        monkeypatch.setattr(db, "rollback", counting_rollback)
        guard = CommitGuard(lock=LocalBookingLock(timeout=5), max_attempts=3)

        appointment = guard.commit(db, proposal_at(at(10), business_id=business.id, service_id=service.id), NOW)

        assert appointment.start_time == at(10)
        assert calls["lock"] == 2
        assert calls["rollback"] >= 1


class TestConcurrentCommits:
    """Two racing commits for the same interval: exactly one wins."""

    def test_only_one_of_two_identical_commits_succeeds(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'race.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        setup = Session()
        business = CalendarSettingsService.create_business(setup, name="Race", slug="race")
        CalendarSettingsService.set_hours(setup, business.id, 1, "09:00", "18:00")
        service = CalendarSettingsService.create_service(setup, business.id, name="Cut", duration_minutes=30)
        business_id, service_id = business.id, service.id
        setup.close()

        guard = CommitGuard(lock=LocalBookingLock(timeout=10))
        barrier = threading.Barrier(2)
        outcomes = []
        outcomes_lock = threading.Lock()

        def attempt():
            session = Session()
            try:
                barrier.wait()
                guard.commit(session, proposal_at(at(10), business_id=business_id, service_id=service_id), NOW)
                result = "committed"
            except SlotNoLongerAvailable:
                result = "rejected"
            finally:
                session.close()
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(outcomes) == ["committed", "rejected"]

        check = Session()
        assert check.query(Appointment).count() == 1
        check.close()
        engine.dispose()
