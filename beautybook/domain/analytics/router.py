"""Analytics router - Provider dashboard statistics"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_provider
from ...database import get_db
from ...models import ProviderProfile
from .service import DEFAULT_RANGE_DAYS, AnalyticsService

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


def get_analytics_service(db: Session = Depends(get_db)) -> AnalyticsService:
    """Dependency injection for AnalyticsService"""
    return AnalyticsService(db)


@router.get("")
async def get_analytics(
    range_days: int = Query(DEFAULT_RANGE_DAYS, alias="range"),
    provider: ProviderProfile = Depends(get_current_provider),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Revenue, retention, cancellations and peak hours for the current provider"""
    return service.get_analytics(provider, range_days)
