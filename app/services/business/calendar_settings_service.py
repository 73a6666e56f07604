# ============================================================================
# app/services/business/calendar_settings_service.py
# ============================================================================
"""
Business-side configuration feeding the scheduling engine:
weekly hours, breaks, closures, services and booking form fields.
"""
import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.models.availability import BusinessBreak, BusinessClosure, BusinessHours
from app.models.business import Business
from app.models.form_field import FormField, FormFieldType
from app.models.service import Service

logger = logging.getLogger(__name__)

TimeLike = Union[time, str]
FORM_FIELD_ATTRIBUTES = frozenset({"label", "field_type", "is_required", "options", "order_index", "is_active"})


def parse_time(value: TimeLike) -> time:
    """Accept a time or an "HH:MM" string; seconds are dropped"""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    try:
        return datetime.strptime(value[:5], "%H:%M").time()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")


def _ordered_times(start: TimeLike, end: TimeLike):
    start, end = parse_time(start), parse_time(end)
    if not start < end:
        raise ValueError("Start time must be before end time")
    return start, end


def _check_day(day_of_week: int) -> None:
    if not 0 <= day_of_week <= 6:
        raise ValueError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")


class CalendarSettingsService:
    """Handles business calendar and service configuration"""

    # ------------------------------------------------------------------
    # Businesses
    # ------------------------------------------------------------------

    @staticmethod
    def create_business(
            db: Session,
            name: str,
            slug: str,
            description: Optional[str] = None,
            requires_membership: bool = False
    ) -> Business:
        if db.query(Business).filter(Business.slug == slug).first():
            raise ValueError(f"Slug '{slug}' is already taken")

        business = Business(
            name=name,
            slug=slug,
            description=description,
            requires_membership=requires_membership,
            is_active=True
        )
        db.add(business)
        db.commit()
        db.refresh(business)
        logger.info(f"Created business {business.id}: {business.name}")
        return business

    @staticmethod
    def get_business(db: Session, business_id: UUID) -> Optional[Business]:
        return db.query(Business).filter(Business.id == business_id).first()

    @staticmethod
    def get_business_by_slug(db: Session, slug: str) -> Optional[Business]:
        return db.query(Business).filter(Business.slug == slug, Business.is_active.is_(True)).first()

    # ------------------------------------------------------------------
    # Weekly hours
    # ------------------------------------------------------------------

    @staticmethod
    def list_hours(db: Session, business_id: UUID) -> List[BusinessHours]:
        return db.query(BusinessHours).filter(
            BusinessHours.business_id == business_id
        ).order_by(BusinessHours.day_of_week).all()

    @staticmethod
    def set_day_open(db: Session, business_id: UUID, day_of_week: int, is_open: bool) -> Optional[BusinessHours]:
        """Open a weekday with default hours, or close it by removing its rule"""
        _check_day(day_of_week)
        existing = db.query(BusinessHours).filter(
            BusinessHours.business_id == business_id,
            BusinessHours.day_of_week == day_of_week
        ).first()

        if not is_open:
            if existing:
                db.delete(existing)
                db.commit()
                logger.info(f"Business {business_id} closed on weekday {day_of_week}")
            return None

        if existing:
            return existing

        settings = get_settings()
        hours = BusinessHours(
            business_id=business_id,
            day_of_week=day_of_week,
            start_time=parse_time(settings.DEFAULT_OPEN_TIME),
            end_time=parse_time(settings.DEFAULT_CLOSE_TIME),
            is_active=True
        )
        db.add(hours)
        db.commit()
        db.refresh(hours)
        logger.info(f"Business {business_id} opened on weekday {day_of_week}")
        return hours

    @staticmethod
    def set_hours(db: Session, business_id: UUID, day_of_week: int, start: TimeLike, end: TimeLike) -> BusinessHours:
        """Set a weekday's opening hours, opening the day if needed"""
        _check_day(day_of_week)
        start, end = _ordered_times(start, end)

        hours = db.query(BusinessHours).filter(
            BusinessHours.business_id == business_id,
            BusinessHours.day_of_week == day_of_week
        ).first()
        if hours is None:
            hours = BusinessHours(business_id=business_id, day_of_week=day_of_week, is_active=True)
            db.add(hours)

        hours.start_time = start
        hours.end_time = end
        db.commit()
        db.refresh(hours)
        return hours

    # ------------------------------------------------------------------
    # Breaks
    # ------------------------------------------------------------------

    @staticmethod
    def list_breaks(db: Session, business_id: UUID) -> List[BusinessBreak]:
        return db.query(BusinessBreak).filter(
            BusinessBreak.business_id == business_id
        ).order_by(BusinessBreak.day_of_week, BusinessBreak.start_time).all()

    @staticmethod
    def add_break(
            db: Session,
            business_id: UUID,
            day_of_week: int,
            start: Optional[TimeLike] = None,
            end: Optional[TimeLike] = None
    ) -> BusinessBreak:
        """Add a break; it may lie partly outside hours, where it has no effect"""
        _check_day(day_of_week)
        settings = get_settings()
        start, end = _ordered_times(start or settings.DEFAULT_BREAK_START, end or settings.DEFAULT_BREAK_END)

        brk = BusinessBreak(business_id=business_id, day_of_week=day_of_week, start_time=start, end_time=end)
        db.add(brk)
        db.commit()
        db.refresh(brk)
        return brk

    @staticmethod
    def update_break(
            db: Session,
            business_id: UUID,
            break_id: UUID,
            start: Optional[TimeLike] = None,
            end: Optional[TimeLike] = None
    ) -> Optional[BusinessBreak]:
        brk = db.query(BusinessBreak).filter(
            BusinessBreak.id == break_id,
            BusinessBreak.business_id == business_id
        ).first()
        if brk is None:
            return None

        brk.start_time, brk.end_time = _ordered_times(start or brk.start_time, end or brk.end_time)
        db.commit()
        db.refresh(brk)
        return brk

    @staticmethod
    def delete_break(db: Session, business_id: UUID, break_id: UUID) -> bool:
        deleted = db.query(BusinessBreak).filter(
            BusinessBreak.id == break_id,
            BusinessBreak.business_id == business_id
        ).delete()
        db.commit()
        return deleted > 0

    # ------------------------------------------------------------------
    # Closures
    # ------------------------------------------------------------------

    @staticmethod
    def list_closures(db: Session, business_id: UUID) -> List[BusinessClosure]:
        return db.query(BusinessClosure).filter(
            BusinessClosure.business_id == business_id
        ).order_by(BusinessClosure.start_date).all()

    @staticmethod
    def add_closure(
            db: Session,
            business_id: UUID,
            start_date: date,
            end_date: date,
            reason: Optional[str] = None
    ) -> BusinessClosure:
        """Close the business for an inclusive date range; overlapping ranges are allowed"""
        if end_date < start_date:
            raise ValueError("Closure end date must not be before its start date")

        closure = BusinessClosure(
            business_id=business_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason or get_settings().DEFAULT_CLOSURE_REASON
        )
        db.add(closure)
        db.commit()
        db.refresh(closure)
        logger.info(f"Business {business_id} closed {start_date} .. {end_date}: {closure.reason}")
        return closure

    @staticmethod
    def delete_closure(db: Session, business_id: UUID, closure_id: UUID) -> bool:
        deleted = db.query(BusinessClosure).filter(
            BusinessClosure.id == closure_id,
            BusinessClosure.business_id == business_id
        ).delete()
        db.commit()
        return deleted > 0

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    @staticmethod
    def list_services(db: Session, business_id: UUID, include_inactive: bool = False) -> List[Service]:
        query = db.query(Service).filter(Service.business_id == business_id)
        if not include_inactive:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.created_at).all()

    @staticmethod
    def get_service(db: Session, business_id: UUID, service_id: UUID, active_only: bool = True) -> Optional[Service]:
        query = db.query(Service).filter(Service.id == service_id, Service.business_id == business_id)
        if active_only:
            query = query.filter(Service.is_active.is_(True))
        return query.first()

    @staticmethod
    def create_service(
            db: Session,
            business_id: UUID,
            name: str,
            duration_minutes: int,
            price: float = 0,
            description: Optional[str] = None
    ) -> Service:
        if duration_minutes <= 0:
            raise ValueError("Service duration must be positive")
        if price < 0:
            raise ValueError("Service price cannot be negative")

        service = Service(
            business_id=business_id,
            name=name,
            description=description,
            duration_minutes=duration_minutes,
            price=Decimal(str(price)),
            is_active=True
        )
        db.add(service)
        db.commit()
        db.refresh(service)
        logger.info(f"Created service {service.id}: {service.name}")
        return service

    @staticmethod
    def update_service(
            db: Session,
            service: Service,
            name: Optional[str] = None,
            duration_minutes: Optional[int] = None,
            price: Optional[float] = None,
            description: Optional[str] = None,
            is_active: Optional[bool] = None
    ) -> Service:
        """Existing appointments keep their stored duration when the service changes"""
        if duration_minutes is not None:
            if duration_minutes <= 0:
                raise ValueError("Service duration must be positive")
            service.duration_minutes = duration_minutes
        if price is not None:
            if price < 0:
                raise ValueError("Service price cannot be negative")
            service.price = Decimal(str(price))
        if name is not None:
            service.name = name
        if description is not None:
            service.description = description
        if is_active is not None:
            service.is_active = is_active

        db.commit()
        db.refresh(service)
        logger.info(f"Updated service {service.id}")
        return service

    # ------------------------------------------------------------------
    # Booking form fields
    # ------------------------------------------------------------------

    @staticmethod
    def list_form_fields(db: Session, business_id: UUID, include_inactive: bool = False) -> List[FormField]:
        """Booking form questions in display order"""
        query = db.query(FormField).filter(FormField.business_id == business_id)
        if not include_inactive:
            query = query.filter(FormField.is_active.is_(True))
        return query.order_by(FormField.order_index, FormField.created_at).all()

    @staticmethod
    def get_form_field(db: Session, business_id: UUID, field_id: UUID) -> Optional[FormField]:
        return db.query(FormField).filter(
            FormField.id == field_id,
            FormField.business_id == business_id
        ).first()

    @staticmethod
    def add_form_field(
            db: Session,
            business_id: UUID,
            label: str,
            field_type: FormFieldType = FormFieldType.TEXT,
            is_required: bool = False,
            options: Optional[List[str]] = None,
            order_index: Optional[int] = None
    ) -> FormField:
        """Add a question; without an explicit position it goes last"""
        field_type = FormFieldType(field_type)
        label = (label or "").strip()
        if not label:
            raise ValueError("Form field label cannot be empty")
        options = _check_options(field_type, options)

        if order_index is None:
            order_index = db.query(FormField).filter(FormField.business_id == business_id).count() + 1

        field = FormField(
            business_id=business_id,
            label=label,
            field_type=field_type,
            is_required=is_required,
            options=options,
            order_index=order_index,
            is_active=True
        )
        db.add(field)
        db.commit()
        db.refresh(field)
        logger.info(f"Added form field {field.id} ({field_type.value}) to business {business_id}")
        return field

    @staticmethod
    def update_form_field(db: Session, field: FormField, **changes) -> FormField:
        """Apply changes to label, field_type, is_required, options, order_index or is_active"""
        unknown = set(changes) - FORM_FIELD_ATTRIBUTES
        if unknown:
            raise ValueError(f"Cannot update form field attributes: {', '.join(sorted(unknown))}")

        if "label" in changes:
            label = (changes["label"] or "").strip()
            if not label:
                raise ValueError("Form field label cannot be empty")
            changes["label"] = label

        field_type = FormFieldType(changes.get("field_type") or field.field_type)
        options = changes["options"] if "options" in changes else field.options
        changes["field_type"] = field_type
        changes["options"] = _check_options(field_type, options)

        for key, value in changes.items():
            if value is None and key in ("is_required", "order_index", "is_active"):
                continue
            setattr(field, key, value)

        db.commit()
        db.refresh(field)
        return field

    @staticmethod
    def delete_form_field(db: Session, business_id: UUID, field_id: UUID) -> bool:
        """Answers already stored on appointments are kept"""
        deleted = db.query(FormField).filter(
            FormField.id == field_id,
            FormField.business_id == business_id
        ).delete()
        db.commit()
        return deleted > 0


def _check_options(field_type: FormFieldType, options: Optional[List[str]]) -> Optional[List[str]]:
    if field_type != FormFieldType.SELECT:
        return None
    options = [str(option).strip() for option in (options or []) if str(option).strip()]
    if not options:
        raise ValueError("SELECT fields need at least one option")
    return options
