"""Conflict detection for a provider's booked intervals"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from .repository import SchedulingRepository

logger = logging.getLogger(__name__)


def intervals_overlap(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """
    Half-open overlap test for [a_start, a_end) and [b_start, b_end).

    Covers every configuration, including one interval fully inside the
    other. Back-to-back intervals (a_end == b_start) do not overlap.
    Zero-padded HH:MM strings compare chronologically.
    """
    return b_start < a_end and b_end > a_start


def has_conflict(
    db: Session,
    provider_id: str,
    day: date,
    start_time: str,
    end_time: str,
    exclude_appointment_id: Optional[str] = None,
) -> bool:
    """Check a proposed interval against the provider's SCHEDULED/CONFIRMED appointments"""
    existing = SchedulingRepository.get_blocking_appointments(
        db, provider_id, day, exclude_appointment_id
    )
    for appointment in existing:
        if intervals_overlap(start_time, end_time, appointment.start_time, appointment.end_time):
            logger.info(
                f"⚠️ Conflict for provider {provider_id} on {day}: {start_time}-{end_time} "
                f"overlaps appointment {appointment.id} ({appointment.start_time}-{appointment.end_time})"
            )
            return True
    return False
