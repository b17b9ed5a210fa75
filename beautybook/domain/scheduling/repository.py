"""Scheduling repository - Availability and calendar queries"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import BLOCKING_STATUSES, Appointment, Availability


class SchedulingRepository:
    """Repository for availability and booked-interval lookups"""

    @staticmethod
    def get_active_availability(db: Session, provider_id: str, weekday: int) -> Optional[Availability]:
        """Get the active open-hours rule for a provider and weekday"""
        return (
            db.query(Availability)
            .filter(
                Availability.provider_id == provider_id,
                Availability.day_of_week == weekday,
                Availability.active.is_(True),
            )
            .first()
        )

    @staticmethod
    def get_weekly_availability(db: Session, provider_id: str) -> list[Availability]:
        """Get every availability row for a provider, Sunday first"""
        return (
            db.query(Availability)
            .filter(Availability.provider_id == provider_id)
            .order_by(Availability.day_of_week)
            .all()
        )

    @staticmethod
    def replace_weekly_availability(db: Session, provider_id: str, rows: list[dict]) -> list[Availability]:
        """Replace a provider's weekly hours in a single commit"""
        db.query(Availability).filter(Availability.provider_id == provider_id).delete()
        for row in rows:
            db.add(Availability(provider_id=provider_id, **row))
        db.commit()
        return SchedulingRepository.get_weekly_availability(db, provider_id)

    @staticmethod
    def get_blocking_appointments(
        db: Session,
        provider_id: str,
        day: date,
        exclude_appointment_id: Optional[str] = None,
    ) -> list[Appointment]:
        """Get SCHEDULED/CONFIRMED appointments holding time on a provider's calendar"""
        query = db.query(Appointment).filter(
            Appointment.provider_id == provider_id,
            Appointment.date == day,
            Appointment.status.in_(BLOCKING_STATUSES),
        )
        if exclude_appointment_id:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.order_by(Appointment.start_time).all()
