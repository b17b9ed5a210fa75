"""Review repository - Database operations for reviews"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import STATUS_COMPLETED, Appointment, ProviderProfile, Review


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_by_id(db: Session, review_id: str) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()

    @staticmethod
    def get_page(db: Session, provider_id: str, limit: int, offset: int) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.customer))
            .filter(Review.provider_id == provider_id)
            .order_by(Review.created_at.desc(), Review.id)
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def count(db: Session, provider_id: str) -> int:
        return db.query(func.count(Review.id)).filter(Review.provider_id == provider_id).scalar() or 0

    @staticmethod
    def rating_counts(db: Session, provider_id: str) -> list[tuple[int, int]]:
        return (
            db.query(Review.rating, func.count(Review.id))
            .filter(Review.provider_id == provider_id)
            .group_by(Review.rating)
            .all()
        )

    @staticmethod
    def rating_aggregate(db: Session, provider_id: str) -> tuple[Optional[float], int]:
        """(average rating, review count) across all of a provider's reviews"""
        avg, count = (
            db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.provider_id == provider_id)
            .one()
        )
        return avg, count or 0

    @staticmethod
    def find_existing(db: Session, customer_id: str, provider_id: str) -> Optional[Review]:
        return (
            db.query(Review)
            .filter(Review.customer_id == customer_id, Review.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def find_completed_appointment(
        db: Session, customer_id: str, provider_id: str, appointment_id: Optional[str] = None
    ) -> Optional[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.customer_id == customer_id,
            Appointment.provider_id == provider_id,
            Appointment.status == STATUS_COMPLETED,
        )
        if appointment_id:
            query = query.filter(Appointment.id == appointment_id)
        return query.first()

    @staticmethod
    def get_provider(db: Session, provider_id: str) -> Optional[ProviderProfile]:
        return db.query(ProviderProfile).filter(ProviderProfile.id == provider_id).first()

    @staticmethod
    def create(db: Session, **review_data) -> Review:
        """Add a review. Caller commits."""
        review = Review(**review_data)
        db.add(review)
        db.flush()
        return review
