"""Waitlist repository - Database operations for waitlist entries"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import (
    BLOCKING_STATUSES,
    WAITLIST_ACTIVE,
    Appointment,
    Service,
    User,
    WaitlistEntry,
)


class WaitlistRepository:
    """Repository for waitlist database operations"""

    @staticmethod
    def _with_relations(db: Session):
        return db.query(WaitlistEntry).options(
            joinedload(WaitlistEntry.customer).joinedload(User.customer_profile),
            joinedload(WaitlistEntry.provider),
            joinedload(WaitlistEntry.service),
        )

    @staticmethod
    def get_by_id(db: Session, entry_id: str) -> Optional[WaitlistEntry]:
        return WaitlistRepository._with_relations(db).filter(WaitlistEntry.id == entry_id).first()

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_active_entry(
        db: Session, customer_id: str, provider_id: str, service_id: str, day: date
    ) -> Optional[WaitlistEntry]:
        return (
            db.query(WaitlistEntry)
            .filter(
                WaitlistEntry.customer_id == customer_id,
                WaitlistEntry.provider_id == provider_id,
                WaitlistEntry.service_id == service_id,
                WaitlistEntry.date == day,
                WaitlistEntry.status == WAITLIST_ACTIVE,
            )
            .first()
        )

    @staticmethod
    def get_customer_bookings(db: Session, customer_id: str, day: date) -> list[Appointment]:
        """The customer's own SCHEDULED/CONFIRMED appointments on a day"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.customer_id == customer_id,
                Appointment.date == day,
                Appointment.status.in_(BLOCKING_STATUSES),
            )
            .all()
        )

    @staticmethod
    def list_for_customer(db: Session, customer_id: str) -> list[WaitlistEntry]:
        return (
            WaitlistRepository._with_relations(db)
            .filter(WaitlistEntry.customer_id == customer_id)
            .order_by(WaitlistEntry.created_at.desc(), WaitlistEntry.date)
            .all()
        )

    @staticmethod
    def get_active_for_day(db: Session, provider_id: str, day: date) -> list[WaitlistEntry]:
        """Active entries for a provider's day, oldest first"""
        return (
            WaitlistRepository._with_relations(db)
            .filter(
                WaitlistEntry.provider_id == provider_id,
                WaitlistEntry.date == day,
                WaitlistEntry.status == WAITLIST_ACTIVE,
            )
            .order_by(WaitlistEntry.created_at, WaitlistEntry.id)
            .all()
        )

    @staticmethod
    def create(db: Session, **entry_data) -> WaitlistEntry:
        entry = WaitlistEntry(**entry_data)
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry
