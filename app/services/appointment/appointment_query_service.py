# ============================================================================
# FILE: app/services/appointment/appointment_query_service.py
# Read-only dashboard queries - no FastAPI dependencies, fully testable
# ============================================================================
from sqlalchemy.orm import Session
from datetime import datetime, date, time, timedelta
from typing import Optional, Dict, Any
from uuid import UUID

from app.models.appointment import Appointment, AppointmentStatus, INACTIVE_STATUSES

# Dashboard tabs
ACTIVE_STATUSES = [AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED]
HISTORY_STATUSES = [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.REJECTED]


class AppointmentQueryService:
    """Listing and statistics for the business dashboard."""

    @staticmethod
    def list_appointments(
            db: Session,
            business_id: UUID,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            status: Optional[AppointmentStatus] = None,
            view: Optional[str] = None,
            client_id: Optional[UUID] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Dict[str, Any]:
        """Get paginated list of appointments with filters.

        `view` is "active" (pending/confirmed) or "history" (completed/cancelled/rejected).
        """
        query = db.query(Appointment).filter(Appointment.business_id == business_id)

        if start_date:
            query = query.filter(Appointment.start_time >= datetime.combine(start_date, time.min))
        if end_date:
            query = query.filter(Appointment.start_time < datetime.combine(end_date, time.min) + timedelta(days=1))
        if status:
            query = query.filter(Appointment.status == AppointmentStatus(status))
        if view == "active":
            query = query.filter(Appointment.status.in_(ACTIVE_STATUSES))
        elif view == "history":
            query = query.filter(Appointment.status.in_(HISTORY_STATUSES))
        if client_id:
            query = query.filter(Appointment.client_id == client_id)

        query = query.order_by(Appointment.start_time.desc())
        total = query.count()
        appointments = query.offset(skip).limit(limit).all()

        return {
            "business_id": str(business_id),
            "total_appointments": total,
            "page": {
                "skip": skip,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if total > 0 else 0
            },
            "filters": {
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "status": AppointmentStatus(status).value if status else None,
                "view": view,
            },
            "appointments": [appt.to_dict(include_private=True) for appt in appointments]
        }

    @staticmethod
    def get_day_appointments(
            db: Session,
            business_id: UUID,
            day: date
    ) -> Dict[str, Any]:
        """Appointments still occupying the calendar on one day, in order."""
        day_start = datetime.combine(day, time.min)

        appointments = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.start_time >= day_start,
            Appointment.start_time < day_start + timedelta(days=1),
            Appointment.status.notin_(list(INACTIVE_STATUSES))
        ).order_by(Appointment.start_time.asc()).all()

        return {
            "business_id": str(business_id),
            "date": day.isoformat(),
            "total_appointments": len(appointments),
            "appointments": [appt.to_dict(include_private=True) for appt in appointments]
        }

    @staticmethod
    def get_appointment_stats(
            db: Session,
            business_id: UUID,
            today: Optional[date] = None
    ) -> Dict[str, Any]:
        """Dashboard counters: today's active appointments and those waiting for confirmation."""
        today = today or date.today()
        day_start = datetime.combine(today, time.min)

        appointments = db.query(Appointment).filter(Appointment.business_id == business_id).all()

        by_status = {}
        for appt in appointments:
            status = AppointmentStatus(appt.status).value
            by_status[status] = by_status.get(status, 0) + 1

        today_count = sum(
            1 for appt in appointments
            if day_start <= appt.start_time < day_start + timedelta(days=1)
            and appt.occupies_calendar
        )

        return {
            "business_id": str(business_id),
            "date": today.isoformat(),
            "total_appointments": len(appointments),
            "today_appointments": today_count,
            "pending_appointments": by_status.get(AppointmentStatus.PENDING.value, 0),
            "by_status": by_status,
        }
