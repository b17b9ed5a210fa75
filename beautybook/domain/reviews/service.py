"""Review service - Business logic for provider reviews and ratings"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Review, User
from ...shared.errors import ForbiddenError, NotFoundError, ValidationError
from .repository import ReviewRepository
from .schemas import ReviewCreate, ReviewUpdate

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def recalculate_provider_rating(db: Session, provider_id: str) -> tuple[float, int]:
    """
    Recompute a provider's denormalized average rating and review count
    from all of their reviews. Safe to call repeatedly. Caller commits.
    """
    provider = ReviewRepository.get_provider(db, provider_id)
    if not provider:
        return 0.0, 0
    avg, count = ReviewRepository.rating_aggregate(db, provider_id)
    provider.average_rating = round(float(avg), 2) if avg is not None else 0.0
    provider.review_count = count
    return provider.average_rating, provider.review_count


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def list_reviews(self, provider_id: str, limit: int = 10, offset: int = 0) -> dict:
        """Newest-first page of reviews with the provider's rating distribution"""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)

        reviews = self.repo.get_page(self.db, provider_id, limit, offset)
        total = self.repo.count(self.db, provider_id)

        distribution = {rating: 0 for rating in range(1, 6)}
        for rating, count in self.repo.rating_counts(self.db, provider_id):
            distribution[rating] = count

        return {
            "reviews": reviews,
            "total": total,
            "ratingDistribution": distribution,
            "pagination": {"limit": limit, "offset": offset, "hasMore": offset + len(reviews) < total},
        }

    def create_review(self, user: User, data: ReviewCreate) -> Review:
        if not self.repo.get_provider(self.db, data.providerId):
            raise NotFoundError("Provider not found")
        if self.repo.find_existing(self.db, user.id, data.providerId):
            raise ValidationError("You have already reviewed this provider")

        completed = self.repo.find_completed_appointment(self.db, user.id, data.providerId, data.appointmentId)

        try:
            review = self.repo.create(
                self.db,
                customer_id=user.id,
                provider_id=data.providerId,
                appointment_id=completed.id if completed else None,
                rating=data.rating,
                comment=data.comment,
                verified=completed is not None,
            )
            recalculate_provider_rating(self.db, data.providerId)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError("You have already reviewed this provider") from e

        self.db.refresh(review)
        logger.info(f"⭐ Review {review.id} ({review.rating}/5) created for provider {review.provider_id}")
        return review

    def _get_own_review(self, user: User, review_id: str) -> Review:
        review = self.repo.get_by_id(self.db, review_id)
        if not review:
            raise NotFoundError("Review not found")
        if review.customer_id != user.id:
            raise ForbiddenError("Not authorized to modify this review")
        return review

    def update_review(self, user: User, review_id: str, data: ReviewUpdate) -> Review:
        review = self._get_own_review(user, review_id)
        if data.rating is not None:
            review.rating = data.rating
        if data.comment is not None:
            review.comment = data.comment
        self.db.flush()
        recalculate_provider_rating(self.db, review.provider_id)
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"✏️ Review {review.id} updated")
        return review

    def delete_review(self, user: User, review_id: str) -> None:
        review = self._get_own_review(user, review_id)
        provider_id = review.provider_id
        self.db.delete(review)
        self.db.flush()
        recalculate_provider_rating(self.db, provider_id)
        self.db.commit()
        logger.info(f"🗑️ Review {review_id} deleted")
