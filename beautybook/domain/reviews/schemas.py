"""Review domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


def _check_rating(v):
    if v is not None and not 1 <= v <= 5:
        raise ValueError("Rating must be between 1 and 5")
    return v


def _check_comment(v):
    if v is not None:
        v = v.strip()
        if not v:
            raise ValueError("Comment is required")
    return v


class ReviewCreate(BaseModel):
    providerId: str
    rating: int
    comment: str
    appointmentId: Optional[str] = None

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        return _check_rating(v)

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v):
        return _check_comment(v)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = None
    comment: Optional[str] = None

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        return _check_rating(v)

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v):
        return _check_comment(v)


class ReviewCustomer(BaseModel):
    id: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    imageUrl: Optional[str] = None


class ReviewResponse(BaseModel):
    id: str
    providerId: str
    customerId: str
    appointmentId: Optional[str] = None
    rating: int
    comment: str
    verified: bool
    customer: Optional[ReviewCustomer] = None
    createdAt: Optional[datetime] = None


class Pagination(BaseModel):
    limit: int
    offset: int
    hasMore: bool


class ReviewListResponse(BaseModel):
    reviews: list[ReviewResponse]
    total: int
    ratingDistribution: dict[int, int]
    pagination: Pagination
