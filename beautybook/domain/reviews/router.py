"""Review router - Provider review endpoints"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Review, User
from .schemas import ReviewCreate, ReviewCustomer, ReviewListResponse, ReviewResponse, ReviewUpdate
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


def to_response(r: Review) -> ReviewResponse:
    customer = None
    if r.customer:
        customer = ReviewCustomer(
            id=r.customer.id,
            firstName=r.customer.first_name,
            lastName=r.customer.last_name,
            imageUrl=r.customer.image_url,
        )
    return ReviewResponse(
        id=r.id,
        providerId=r.provider_id,
        customerId=r.customer_id,
        appointmentId=r.appointment_id,
        rating=r.rating,
        comment=r.comment,
        verified=r.verified,
        customer=customer,
        createdAt=r.created_at,
    )


@router.get("", response_model=ReviewListResponse)
async def get_reviews(
    providerId: str = Query(...),
    limit: int = Query(10),
    offset: int = Query(0),
    service: ReviewService = Depends(get_review_service),
):
    """Get a provider's reviews (public)"""
    result = service.list_reviews(providerId, limit, offset)
    result["reviews"] = [to_response(r) for r in result["reviews"]]
    return result


@router.post("", status_code=201)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Review a provider"""
    review = service.create_review(current_user, data)
    return {"success": True, "review": to_response(review)}


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Edit your own review"""
    return to_response(service.update_review(current_user, review_id, data))


@router.delete("/{review_id}")
async def delete_review(
    review_id: str,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Delete your own review"""
    service.delete_review(current_user, review_id)
    return {"success": True}
