"""Availability router - Slot lookup and weekly hours endpoints"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_provider
from ...database import get_db
from ...models import ProviderProfile
from .availability_service import AvailabilityService
from .schemas import AvailabilityResponse, AvailableSlotsResponse, WeeklyAvailabilityUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def _to_response(row) -> AvailabilityResponse:
    return AvailabilityResponse(
        id=row.id,
        dayOfWeek=row.day_of_week,
        startTime=row.start_time,
        endTime=row.end_time,
        active=row.active,
    )


@router.get("", response_model=AvailableSlotsResponse, response_model_exclude_none=True)
async def get_availability(
    providerId: str = Query(...),
    day: date = Query(..., alias="date"),
    serviceId: Optional[str] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Get bookable time slots for a provider on a date (public)"""
    return service.get_slots(providerId, day, serviceId)


@router.get("/weekly", response_model=list[AvailabilityResponse])
async def get_weekly_availability(
    provider: ProviderProfile = Depends(get_current_provider),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Get the current provider's weekly hours"""
    return [_to_response(row) for row in service.get_weekly(provider)]


@router.put("/weekly", response_model=list[AvailabilityResponse])
async def update_weekly_availability(
    data: WeeklyAvailabilityUpdate,
    provider: ProviderProfile = Depends(get_current_provider),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Replace the current provider's weekly hours"""
    return [_to_response(row) for row in service.update_weekly(provider, data)]
