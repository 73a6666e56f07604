# app/services/booking/booking_session.py
"""
Booking session state machine.

    BROWSING -> SERVICE_SELECTED -> DATE_SELECTED -> SLOT_SELECTED -> SUBMITTED -> COMMITTED
                                                                              \\-> REJECTED

The session holds no clock and no database handle. Slot lookup and the
commit are injected callables, so client bookings, staff manual bookings and
reschedules all run the same steps. COMMITTED and REJECTED are final: a new
attempt needs a new session.
"""
import logging
import math
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, model_validator

from app.config.settings import get_settings
from app.models.appointment import Appointment, AppointmentStatus, BookingSource, RESCHEDULABLE_STATUSES
from app.models.form_field import FormFieldType
from app.models.membership import MembershipStatus
from app.services.scheduling.commit_guard import ProposedAppointment
from app.services.scheduling.errors import (
    InvalidSlot, InvalidTransition, MembershipRequired, SchedulingError
)
from app.services.scheduling.slot_generator import SlotResult

logger = logging.getLogger(__name__)

SlotFinder = Callable[[date, int, Optional[UUID]], SlotResult]
Committer = Callable[[ProposedAppointment], Appointment]

YES_ANSWERS = frozenset({"yes", "true"})
NO_ANSWERS = frozenset({"no", "false"})


class SessionState(str, Enum):
    BROWSING = "browsing"
    SERVICE_SELECTED = "service_selected"
    DATE_SELECTED = "date_selected"
    SLOT_SELECTED = "slot_selected"
    SUBMITTED = "submitted"
    COMMITTED = "committed"
    REJECTED = "rejected"


TERMINAL_STATES = frozenset({SessionState.COMMITTED, SessionState.REJECTED})


class SessionKind(str, Enum):
    CLIENT = "client"          # Booking page
    STAFF = "staff"            # Manual booking from the dashboard
    RESCHEDULE = "reschedule"  # Moving an existing appointment


class GateDecision(str, Enum):
    PROCEED = "proceed"
    JOIN_REQUIRED = "join_required"          # Show the join-request action
    AWAITING_APPROVAL = "awaiting_approval"  # Join request still pending
    LOGIN_REQUIRED = "login_required"        # Guests cannot join a club
    BLOCKED = "blocked"


def membership_gate(
        requires_membership: bool,
        client_id: Optional[UUID],
        membership: MembershipStatus = MembershipStatus.NONE
) -> GateDecision:
    """Whether a client may open the booking form of a business"""
    membership = MembershipStatus(membership)
    if client_id is not None and membership == MembershipStatus.BLOCKED:
        return GateDecision.BLOCKED
    if not requires_membership:
        return GateDecision.PROCEED
    if client_id is None:
        return GateDecision.LOGIN_REQUIRED
    if membership == MembershipStatus.APPROVED:
        return GateDecision.PROCEED
    if membership == MembershipStatus.PENDING:
        return GateDecision.AWAITING_APPROVAL
    return GateDecision.JOIN_REQUIRED


def initial_status(
        kind: SessionKind,
        client_id: Optional[UUID],
        membership: MembershipStatus = MembershipStatus.NONE
) -> AppointmentStatus:
    """Status a new appointment is committed with"""
    if kind == SessionKind.STAFF:
        return AppointmentStatus.CONFIRMED
    if client_id is not None and MembershipStatus(membership) == MembershipStatus.APPROVED:
        return AppointmentStatus.CONFIRMED
    return AppointmentStatus.PENDING


def check_form_answers(form_fields: Iterable[Any], answers: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate booking form answers against the business's questions.

    Answers are keyed by field id. Required questions must be answered, every
    answer must fit its field type, and keys that match no active question are
    refused. Returns the cleaned answers: numbers parsed, yes/no as booleans,
    blank optional answers dropped.
    """
    fields = {str(field.id): field for field in form_fields}
    unknown = set(answers) - set(fields)
    if unknown:
        raise ValueError(f"Unknown form fields: {', '.join(sorted(unknown))}")

    cleaned = {}
    for key, field in fields.items():
        value = answers.get(key)
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            if field.is_required:
                raise ValueError(f"'{field.label}' is required")
            continue
        cleaned[key] = _coerce_answer(field, value)
    return cleaned


def _coerce_answer(field: Any, value: Any) -> Any:
    field_type = FormFieldType(field.field_type)

    if field_type == FormFieldType.NUMBER:
        if isinstance(value, bool):
            raise ValueError(f"'{field.label}' must be a number")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"'{field.label}' must be a number")
        if not math.isfinite(number):
            raise ValueError(f"'{field.label}' must be a number")
        return int(number) if number.is_integer() else number

    if field_type == FormFieldType.BOOLEAN:
        if isinstance(value, bool):
            return value
        answer = str(value).lower()
        if answer in YES_ANSWERS:
            return True
        if answer in NO_ANSWERS:
            return False
        raise ValueError(f"'{field.label}' must be yes or no")

    if field_type == FormFieldType.SELECT:
        if value not in (field.options or []):
            raise ValueError(f"'{field.label}' must be one of: {', '.join(field.options or [])}")
        return value

    if not isinstance(value, str):
        raise ValueError(f"'{field.label}' must be text")
    return value


class ClientIdentity(BaseModel):
    """A registered client id, or a guest's name and phone"""
    client_id: Optional[UUID] = None
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None

    @model_validator(mode="after")
    def require_contact(self):
        if self.client_id is None and not (self.guest_name and self.guest_phone):
            raise ValueError("Guest bookings need a name and a phone number")
        return self

    @property
    def is_guest(self) -> bool:
        return self.client_id is None


class BookingSession:
    """One booking attempt, from service choice to commit decision"""

    def __init__(
            self,
            business_id: UUID,
            find_slots: SlotFinder,
            commit: Committer,
            kind: SessionKind = SessionKind.CLIENT,
            client: Optional[ClientIdentity] = None,
            membership: MembershipStatus = MembershipStatus.NONE,
            requires_membership: bool = False,
            appointment: Optional[Appointment] = None,
            max_images: Optional[int] = None,
            form_fields: Optional[List[Any]] = None
    ):
        self.business_id = business_id
        self.kind = kind
        self.client = client
        self.membership = MembershipStatus(membership)
        self._find_slots = find_slots
        self._commit = commit
        self.max_images = max_images if max_images is not None else get_settings().MAX_APPOINTMENT_IMAGES
        # Active booking form questions; only client bookings answer them
        self.form_fields = list(form_fields or [])

        self.state = SessionState.BROWSING
        self.service_id: Optional[UUID] = None
        self.duration_minutes: Optional[int] = None
        self.day: Optional[date] = None
        self.slot_result: Optional[SlotResult] = None
        self.selected_time: Optional[time] = None
        self.appointment: Optional[Appointment] = None
        self.rejection: Optional[SchedulingError] = None
        self.replaces: Optional[Appointment] = None

        client_id = client.client_id if client else None
        if kind == SessionKind.CLIENT:
            self.gate = membership_gate(requires_membership, client_id, self.membership)
        else:
            self.gate = GateDecision.PROCEED

        if kind == SessionKind.RESCHEDULE:
            if appointment is None:
                raise ValueError("Reschedule sessions need the appointment being moved")
            if AppointmentStatus(appointment.status) not in RESCHEDULABLE_STATUSES:
                raise InvalidTransition(
                    f"Cannot reschedule a {AppointmentStatus(appointment.status).value} appointment"
                )
            self.replaces = appointment
            self.service_id = appointment.service_id
            self.duration_minutes = appointment.duration_minutes
            self.state = SessionState.SERVICE_SELECTED
        elif client is None:
            raise ValueError("Bookings need a client identity")

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def _ensure_active(self) -> None:
        if self.is_finished:
            raise InvalidTransition(f"Booking session already {self.state.value}; start a new one")
        if self.state == SessionState.SUBMITTED:
            raise InvalidTransition("Booking session is being submitted")
        if self.gate != GateDecision.PROCEED:
            raise MembershipRequired(self.gate.value)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def select_service(self, service_id: UUID, duration_minutes: int) -> None:
        """Pick the service; a chosen date is recomputed for the new duration"""
        self._ensure_active()
        if self.kind == SessionKind.RESCHEDULE:
            raise InvalidTransition("The service of a rescheduled appointment cannot change")
        if duration_minutes <= 0:
            raise ValueError("Service duration must be positive")

        self.service_id = service_id
        self.duration_minutes = duration_minutes
        self.selected_time = None
        self.slot_result = None
        self.state = SessionState.SERVICE_SELECTED

        if self.day is not None:
            self.select_date(self.day)

    def select_date(self, day: date) -> SlotResult:
        """Pick the date and generate its slots"""
        self._ensure_active()
        if self.state == SessionState.BROWSING:
            raise InvalidTransition("Select a service before choosing a date")

        exclude_id = self.replaces.id if self.replaces is not None else None
        self.day = day
        self.selected_time = None
        self.slot_result = self._find_slots(day, self.duration_minutes, exclude_id)
        self.state = SessionState.DATE_SELECTED
        return self.slot_result

    def select_slot(self, value: Union[time, str]) -> None:
        """Pick one of the offered start times"""
        self._ensure_active()
        if self.state not in (SessionState.DATE_SELECTED, SessionState.SLOT_SELECTED):
            raise InvalidTransition("Select a date before choosing a time")

        chosen = _parse_time(value)
        if not self.slot_result.offers(chosen):
            self.slot_result.raise_for_status()
            raise InvalidSlot(f"{chosen.strftime('%H:%M')} is not an available time")

        self.selected_time = chosen
        self.state = SessionState.SLOT_SELECTED

    def submit(
            self,
            client_notes: Optional[str] = None,
            image_urls: Optional[List[str]] = None,
            custom_fields_data: Optional[Dict[str, Any]] = None
    ) -> Appointment:
        """Commit the chosen slot; on any scheduling error the session ends REJECTED"""
        self._ensure_active()
        if self.state != SessionState.SLOT_SELECTED:
            raise InvalidTransition("Select a time before submitting")

        image_urls = list(image_urls or [])
        if len(image_urls) > self.max_images:
            raise ValueError(f"At most {self.max_images} images can be attached")

        custom_fields_data = custom_fields_data or {}
        if self.kind == SessionKind.CLIENT:
            custom_fields_data = check_form_answers(self.form_fields, custom_fields_data)

        proposal = self._build_proposal(client_notes, image_urls, custom_fields_data)
        self.state = SessionState.SUBMITTED

        try:
            self.appointment = self._commit(proposal)
        except SchedulingError as e:
            self.rejection = e
            self.state = SessionState.REJECTED
            logger.info(f"Booking session for business {self.business_id} rejected: {e.code}")
            raise
        except Exception:
            self.state = SessionState.REJECTED
            raise

        self.state = SessionState.COMMITTED
        return self.appointment

    def _build_proposal(
            self,
            client_notes: Optional[str],
            image_urls: List[str],
            custom_fields_data: Dict[str, Any]
    ) -> ProposedAppointment:
        start = datetime.combine(self.day, self.selected_time)

        if self.kind == SessionKind.RESCHEDULE:
            return ProposedAppointment(
                business_id=self.business_id,
                service_id=self.service_id,
                start_time=start,
                duration_minutes=self.duration_minutes,
                replaces_id=self.replaces.id,
                allowed_current_statuses=RESCHEDULABLE_STATUSES,
            )

        return ProposedAppointment(
            business_id=self.business_id,
            service_id=self.service_id,
            start_time=start,
            duration_minutes=self.duration_minutes,
            status=initial_status(self.kind, self.client.client_id, self.membership),
            booking_source=BookingSource.STAFF if self.kind == SessionKind.STAFF else BookingSource.CLIENT,
            client_id=self.client.client_id,
            guest_name=self.client.guest_name,
            guest_phone=self.client.guest_phone,
            client_notes=client_notes,
            image_urls=image_urls,
            custom_fields_data=custom_fields_data,
        )


def _parse_time(value: Union[time, str]) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        raise InvalidSlot(f"Invalid time {value!r}, expected HH:MM")
