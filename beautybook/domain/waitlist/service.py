"""Waitlist service - Joining, listing and leaving provider waitlists"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import WAITLIST_ACTIVE, WAITLIST_CANCELLED, User, WaitlistEntry
from ...shared.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..scheduling.conflicts import intervals_overlap
from .repository import WaitlistRepository
from .schemas import WaitlistCreate

logger = logging.getLogger(__name__)


class WaitlistService:
    """Service layer for customer waitlist entries"""

    def __init__(self, db: Session, now: Optional[datetime] = None):
        self.db = db
        self.repo = WaitlistRepository()
        self._now = now

    def now(self) -> datetime:
        return self._now or datetime.now()

    def join(self, customer: User, data: WaitlistCreate) -> WaitlistEntry:
        service = self.repo.get_service(self.db, data.serviceId)
        if not service:
            raise NotFoundError("Service not found")
        if service.provider_id != data.providerId:
            raise ValidationError("Service does not belong to this provider")
        if data.date < self.now().date():
            raise ValidationError("Cannot join waitlist for past dates")

        if self.repo.get_active_entry(self.db, customer.id, data.providerId, data.serviceId, data.date):
            raise ConflictError("You are already on the waitlist for this service on this date")

        if data.startTime and data.endTime:
            for booked in self.repo.get_customer_bookings(self.db, customer.id, data.date):
                if intervals_overlap(data.startTime, data.endTime, booked.start_time, booked.end_time):
                    raise ConflictError("You already have an appointment booked for this time")

        entry = self.repo.create(
            self.db,
            customer_id=customer.id,
            provider_id=data.providerId,
            service_id=data.serviceId,
            date=data.date,
            start_time=data.startTime,
            end_time=data.endTime,
            flexible=data.flexible,
            notes=data.notes,
            status=WAITLIST_ACTIVE,
        )
        logger.info(f"📝 User {customer.id} joined waitlist {entry.id} for provider {data.providerId} on {data.date}")
        return self.repo.get_by_id(self.db, entry.id)

    def list_entries(self, customer: User) -> list[WaitlistEntry]:
        return self.repo.list_for_customer(self.db, customer.id)

    def cancel(self, customer: User, entry_id: str) -> WaitlistEntry:
        entry = self.repo.get_by_id(self.db, entry_id)
        if not entry:
            raise NotFoundError("Waitlist entry not found")
        if entry.customer_id != customer.id:
            raise ForbiddenError("You do not have permission to cancel this waitlist entry")

        entry.status = WAITLIST_CANCELLED
        self.db.commit()
        logger.info(f"🗑️ Waitlist entry {entry.id} cancelled by user {customer.id}")
        return entry
