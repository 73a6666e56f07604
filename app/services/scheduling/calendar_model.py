# app/services/scheduling/calendar_model.py
"""
Read-only snapshot of one business's working calendar.

Loaded once per availability query or commit and never refreshed while in
use; concurrent edits to hours only affect later queries.
"""
from datetime import date, time
from typing import List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from app.models.availability import BusinessHours, BusinessBreak, BusinessClosure
from app.services.scheduling.intervals import Interval, merge


def day_of_week(day: date) -> int:
    """Weekday index used by calendar rules: 0=Sunday ... 6=Saturday"""
    return (day.weekday() + 1) % 7


class HoursRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_of_week: int
    start_time: time
    end_time: time


class BreakRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_of_week: int
    start_time: time
    end_time: time


class ClosureRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date
    reason: str = "Vacation"

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class CalendarSnapshot(BaseModel):
    """Weekly hours, breaks and closures of one business"""
    model_config = ConfigDict(frozen=True)

    business_id: UUID
    hours: Tuple[HoursRule, ...] = ()
    breaks: Tuple[BreakRule, ...] = ()
    closures: Tuple[ClosureRange, ...] = ()

    def closure_on(self, day: date) -> Optional[ClosureRange]:
        """First closure covering the date, if any"""
        return next((c for c in self.closures if c.covers(day)), None)

    def hours_for(self, day: date) -> Optional[HoursRule]:
        weekday = day_of_week(day)
        return next((h for h in self.hours if h.day_of_week == weekday), None)

    def open_window(self, day: date) -> Optional[Interval]:
        """Opening hours anchored to the date; None when closed that weekday"""
        rule = self.hours_for(day)
        if rule is None:
            return None
        window = Interval.on_date(day, rule.start_time, rule.end_time)
        # No wraparound past midnight
        return None if window.is_empty else window

    def breaks_on(self, day: date) -> List[Interval]:
        """Union of the weekday's breaks anchored to the date"""
        weekday = day_of_week(day)
        return merge(
            Interval.on_date(day, b.start_time, b.end_time)
            for b in self.breaks
            if b.day_of_week == weekday
        )


def load_calendar_snapshot(db: Session, business_id: UUID) -> CalendarSnapshot:
    """Fetch hours, breaks and closures for a business in one go"""
    hours = db.query(BusinessHours).filter(
        BusinessHours.business_id == business_id,
        BusinessHours.is_active.is_(True)
    ).all()
    breaks = db.query(BusinessBreak).filter(BusinessBreak.business_id == business_id).all()
    closures = db.query(BusinessClosure).filter(
        BusinessClosure.business_id == business_id
    ).order_by(BusinessClosure.start_date.asc()).all()

    return CalendarSnapshot(
        business_id=business_id,
        hours=tuple(
            HoursRule(day_of_week=h.day_of_week, start_time=h.start_time, end_time=h.end_time)
            for h in hours
        ),
        breaks=tuple(
            BreakRule(day_of_week=b.day_of_week, start_time=b.start_time, end_time=b.end_time)
            for b in breaks
        ),
        closures=tuple(
            ClosureRange(start_date=c.start_date, end_date=c.end_date, reason=c.reason)
            for c in closures
        ),
    )
