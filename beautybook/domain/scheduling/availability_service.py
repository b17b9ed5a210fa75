"""Availability service - Slot calculation and weekly hours management"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_SERVICE_DURATION, SLOT_INTERVAL_MINUTES
from ...models import ProviderProfile, Service
from ...shared.errors import NotFoundError, ValidationError
from .conflicts import intervals_overlap
from .repository import SchedulingRepository
from .schemas import WeeklyAvailabilityUpdate
from .time_utils import day_of_week, minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)


def get_available_slots(
    db: Session,
    provider_id: str,
    day: date,
    service_duration_minutes: int = DEFAULT_SERVICE_DURATION,
    now: Optional[datetime] = None,
) -> dict:
    """
    Compute bookable start times for a provider on a date.

    Candidates start at the day's opening time and step by the slot
    interval while the whole service still fits before closing. A candidate
    is unavailable when it overlaps a SCHEDULED/CONFIRMED appointment or,
    for today, when it is not after the current time.
    """
    if service_duration_minutes <= 0:
        raise ValidationError("Service duration must be positive")

    now = now or datetime.now()
    availability = SchedulingRepository.get_active_availability(db, provider_id, day_of_week(day))
    if not availability:
        return {
            "available": False,
            "message": "Provider is not available on this day",
            "slots": [],
        }

    booked = SchedulingRepository.get_blocking_appointments(db, provider_id, day)
    open_minutes = time_to_minutes(availability.start_time)
    close_minutes = time_to_minutes(availability.end_time)
    is_today = day == now.date()
    is_past_day = day < now.date()
    current_minutes = now.hour * 60 + now.minute

    slots = []
    candidate = open_minutes
    while candidate + service_duration_minutes <= close_minutes:
        start = minutes_to_time(candidate)
        end = minutes_to_time(candidate + service_duration_minutes)
        conflict = any(intervals_overlap(start, end, a.start_time, a.end_time) for a in booked)
        past = is_past_day or (is_today and candidate <= current_minutes)
        slots.append({"time": start, "available": not conflict and not past})
        candidate += SLOT_INTERVAL_MINUTES

    return {
        "available": True,
        "date": day.isoformat(),
        "providerId": provider_id,
        "businessHours": {"start": availability.start_time, "end": availability.end_time},
        "slots": slots,
    }


class AvailabilityService:
    """Service layer for provider availability"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def get_slots(self, provider_id: str, day: date, service_id: Optional[str] = None) -> dict:
        """Resolve the service duration and compute slots"""
        provider = self.db.query(ProviderProfile).filter(ProviderProfile.id == provider_id).first()
        if not provider:
            raise NotFoundError("Provider not found")

        duration = DEFAULT_SERVICE_DURATION
        if service_id:
            service = self.db.query(Service).filter(Service.id == service_id).first()
            if service:
                duration = service.duration
            else:
                logger.warning(f"⚠️ Unknown service {service_id}, using default duration {duration}m")

        return get_available_slots(self.db, provider_id, day, duration)

    def get_weekly(self, provider: ProviderProfile) -> list:
        return self.repo.get_weekly_availability(self.db, provider.id)

    def update_weekly(self, provider: ProviderProfile, data: WeeklyAvailabilityUpdate) -> list:
        """Replace the provider's weekly hours"""
        rows = [
            {
                "day_of_week": d.dayOfWeek,
                "start_time": d.startTime,
                "end_time": d.endTime,
                "active": d.active,
            }
            for d in data.days
        ]
        availability = self.repo.replace_weekly_availability(self.db, provider.id, rows)
        logger.info(f"✅ Weekly availability updated for provider {provider.id}: {len(rows)} days")
        return availability
