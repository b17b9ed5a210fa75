"""Customer router - Account settings and favorites endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Favorite, User
from .schemas import (
    FavoriteCreate,
    FavoriteProvider,
    FavoriteResponse,
    NotificationPreferences,
    ProviderSummary,
    UserProfileResponse,
    UserProfileUpdate,
)
from .service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


def _profile_response(user: User) -> UserProfileResponse:
    profile = user.customer_profile
    provider = user.provider_profile
    preferences = None
    if profile:
        preferences = NotificationPreferences(
            emailEnabled=profile.email_enabled,
            smsEnabled=profile.sms_enabled,
            reminderBefore24h=profile.reminder_before_24h,
            reminderBefore2h=profile.reminder_before_2h,
        )
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        firstName=user.first_name,
        lastName=user.last_name,
        imageUrl=user.image_url,
        role=user.role,
        phone=profile.phone if profile else None,
        isProvider=provider is not None,
        providerProfile=(
            ProviderSummary(id=provider.id, businessName=provider.business_name, bookingSlug=provider.booking_slug)
            if provider
            else None
        ),
        notificationPreferences=preferences,
    )


def _favorite_response(f: Favorite) -> FavoriteResponse:
    p = f.provider
    return FavoriteResponse(
        id=f.id,
        providerId=f.provider_id,
        createdAt=f.created_at,
        provider=FavoriteProvider(
            id=p.id,
            businessName=p.business_name,
            title=p.title,
            city=p.city,
            imageUrl=p.user.image_url if p.user else None,
            bookingSlug=p.booking_slug,
            averageRating=p.average_rating or 0,
            reviewCount=p.review_count or 0,
        ),
    )


# ============================================================================
# PROFILE
# ============================================================================


@router.get("/api/users/profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get the signed-in user's account and notification preferences"""
    return {"user": _profile_response(current_user)}


@router.put("/api/users/profile")
async def update_profile(
    data: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
):
    """Update name, phone number and notification preferences"""
    user = service.update_profile(current_user, data)
    return {"success": True, "message": "Profile updated successfully", "user": _profile_response(user)}


# ============================================================================
# FAVORITES
# ============================================================================


@router.get("/api/favorites")
async def get_favorites(
    current_user: User = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
):
    favorites = service.list_favorites(current_user)
    return {"favorites": [_favorite_response(f) for f in favorites]}


@router.post("/api/favorites", status_code=201)
async def add_favorite(
    data: FavoriteCreate,
    current_user: User = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
):
    favorite = service.add_favorite(current_user, data)
    return {"success": True, "message": "Added to favorites", "favoriteId": favorite.id}


@router.delete("/api/favorites")
async def remove_favorite(
    providerId: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
):
    service.remove_favorite(current_user, providerId)
    return {"success": True, "message": "Removed from favorites"}
