"""Analytics service - Loads a provider's rows for a date range and aggregates them"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment, ProviderProfile, Review, Service, Staff
from ...shared.errors import ValidationError
from . import aggregator

logger = logging.getLogger(__name__)

DEFAULT_RANGE_DAYS = 30
MAX_RANGE_DAYS = 365


class AnalyticsService:
    """Service layer for provider analytics"""

    def __init__(self, db: Session):
        self.db = db

    def get_analytics(self, provider: ProviderProfile, range_days: int = DEFAULT_RANGE_DAYS, today: Optional[date] = None) -> dict:
        """Analytics for [today - range_days, today]"""
        if range_days < 1 or range_days > MAX_RANGE_DAYS:
            raise ValidationError(f"range must be between 1 and {MAX_RANGE_DAYS} days")

        end_date = today or date.today()
        start_date = end_date - timedelta(days=range_days)

        appointments = (
            self.db.query(Appointment)
            .filter(
                Appointment.provider_id == provider.id,
                Appointment.date >= start_date,
                Appointment.date <= end_date,
            )
            .all()
        )
        reviews = (
            self.db.query(Review)
            .filter(
                Review.provider_id == provider.id,
                Review.created_at >= datetime.combine(start_date, datetime.min.time()),
                Review.created_at < datetime.combine(end_date + timedelta(days=1), datetime.min.time()),
            )
            .all()
        )
        service_names = {s.id: s.name for s in self.db.query(Service).filter(Service.provider_id == provider.id)}
        staff_names = {s.id: s.name for s in self.db.query(Staff).filter(Staff.provider_id == provider.id)}

        logger.info(
            f"📊 Analytics for provider {provider.id}: {len(appointments)} appointments "
            f"{start_date} to {end_date}"
        )

        return {
            "summary": aggregator.build_summary(appointments, reviews),
            "revenue": {"daily": aggregator.daily_revenue(appointments)},
            "services": aggregator.service_performance(appointments, service_names),
            "staff": aggregator.staff_performance(appointments, staff_names),
            "status": aggregator.status_distribution(appointments),
            "peakHours": aggregator.peak_hours(appointments),
            "dateRange": {"start": start_date.isoformat(), "end": end_date.isoformat(), "days": range_days},
        }
