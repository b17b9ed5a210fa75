"""Provider router - Provider accounts, service catalog, staff and discovery endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_provider, get_current_user, get_optional_user
from ...database import get_db
from ...models import ProviderProfile, Service, Staff, User
from ...shared.errors import ValidationError
from ..reviews.router import to_response as review_response
from .account_service import ProviderAccountService
from .schemas import (
    BookingSettingsUpdate,
    ProviderListItem,
    ProviderProfileResponse,
    ProviderProfileUpdate,
    ProviderRegister,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
    StaffCreate,
    StaffResponse,
)
from .service import ProviderService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Providers"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    """Dependency injection for ProviderService"""
    return ProviderService(db)


def get_account_service(db: Session = Depends(get_db)) -> ProviderAccountService:
    """Dependency injection for ProviderAccountService"""
    return ProviderAccountService(db)


def _profile_response(p: ProviderProfile) -> ProviderProfileResponse:
    return ProviderProfileResponse(
        id=p.id,
        userId=p.user_id,
        businessName=p.business_name,
        title=p.title,
        bio=p.bio,
        phone=p.phone,
        address=p.address,
        city=p.city,
        state=p.state,
        bookingSlug=p.booking_slug,
        publicBookingEnabled=p.public_booking_enabled,
        qrCodeEnabled=p.qr_code_enabled,
        cancellationPolicy=p.cancellation_policy,
        customCancellationHours=p.custom_cancellation_hours,
        customCancellationFee=p.custom_cancellation_fee,
        averageRating=p.average_rating or 0,
        reviewCount=p.review_count or 0,
        calendarSyncEnabled=p.calendar_sync_enabled,
    )


def _service_response(s: Service) -> ServiceResponse:
    return ServiceResponse(
        id=s.id,
        providerId=s.provider_id,
        name=s.name,
        description=s.description,
        duration=s.duration,
        price=s.price,
        category=s.category,
        active=s.active,
    )


def _staff_response(s: Staff) -> StaffResponse:
    return StaffResponse(
        id=s.id, providerId=s.provider_id, name=s.name, email=s.email, title=s.title, active=s.active
    )


def _resolve_provider_id(provider_id: Optional[str], user: Optional[User]) -> str:
    """Explicit providerId, else the signed-in provider's own id"""
    if provider_id:
        return provider_id
    if user and user.provider_profile:
        return user.provider_profile.id
    raise ValidationError("providerId is required")


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/api/services", response_model=list[ServiceResponse])
async def get_services(
    providerId: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    user: Optional[User] = Depends(get_optional_user),
    service: ProviderService = Depends(get_provider_service),
):
    """List a provider's services (public with providerId, else your own)"""
    provider_id = _resolve_provider_id(providerId, user)
    return [_service_response(s) for s in service.list_services(provider_id, category, active)]


@router.get("/api/services/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: str, service: ProviderService = Depends(get_provider_service)):
    return _service_response(service.get_service(service_id))


@router.post("/api/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    provider: ProviderProfile = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    """Add a service to your catalog"""
    return _service_response(service.create_service(provider, data))


@router.put("/api/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    provider: ProviderProfile = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return _service_response(service.update_service(provider, service_id, data))


@router.delete("/api/services/{service_id}")
async def delete_service(
    service_id: str,
    provider: ProviderProfile = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    service.delete_service(provider, service_id)
    return {"success": True, "message": "Service deleted successfully"}


# ============================================================================
# STAFF
# ============================================================================


@router.get("/api/staff", response_model=list[StaffResponse])
async def get_staff(
    providerId: Optional[str] = Query(None),
    user: Optional[User] = Depends(get_optional_user),
    service: ProviderService = Depends(get_provider_service),
):
    """List staff (public with providerId, else your own)"""
    provider_id = _resolve_provider_id(providerId, user)
    return [_staff_response(s) for s in service.list_staff(provider_id)]


@router.post("/api/staff", response_model=StaffResponse, status_code=201)
async def create_staff(
    data: StaffCreate,
    provider: ProviderProfile = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return _staff_response(service.create_staff(provider, data))


# ============================================================================
# PUBLIC PROFILE
# ============================================================================


@router.get("/api/providers/public/{slug}")
async def get_public_provider(slug: str, service: ProviderService = Depends(get_provider_service)):
    """Public booking page data for a provider"""
    result = service.get_public_profile(slug)
    result["services"] = [_service_response(s) for s in result["services"]]
    return result


# ============================================================================
# PROVIDER ACCOUNT
# ============================================================================


@router.get("/api/providers/register")
async def get_registration_status(
    current_user: User = Depends(get_current_user),
    service: ProviderAccountService = Depends(get_account_service),
):
    """Whether the signed-in user can still register as a provider"""
    return service.registration_status(current_user)


@router.post("/api/providers/register", status_code=201)
async def register_provider(
    data: ProviderRegister,
    current_user: User = Depends(get_current_user),
    service: ProviderAccountService = Depends(get_account_service),
):
    """Create a provider profile for the signed-in user"""
    provider = service.register(current_user, data)
    return {
        "success": True,
        "message": "Provider registered successfully",
        "provider": _profile_response(provider),
    }


@router.get("/api/provider/profile")
async def get_provider_profile(
    current_user: User = Depends(get_current_user),
    service: ProviderAccountService = Depends(get_account_service),
):
    return {"provider": _profile_response(service.get_own_profile(current_user))}


@router.put("/api/provider/profile")
async def update_provider_profile(
    data: ProviderProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: ProviderAccountService = Depends(get_account_service),
):
    """Update business details shown on the public profile"""
    provider = service.update_profile(current_user, data)
    return {"success": True, "provider": _profile_response(provider)}


@router.patch("/api/provider/booking-settings")
async def update_booking_settings(
    data: BookingSettingsUpdate,
    provider: ProviderProfile = Depends(get_current_provider),
    service: ProviderAccountService = Depends(get_account_service),
):
    """Booking slug, public booking, QR code and cancellation terms"""
    provider = service.update_booking_settings(provider, data)
    return {"success": True, "provider": _profile_response(provider)}


@router.get("/api/provider/customers")
async def get_provider_customers(
    provider: ProviderProfile = Depends(get_current_provider),
    service: ProviderAccountService = Depends(get_account_service),
):
    """Customers who have booked with you, highest spend first"""
    return service.list_customers(provider)


# ============================================================================
# DISCOVERY
# ============================================================================


@router.get("/api/providers")
async def list_providers(
    city: Optional[str] = Query(None),
    minRating: Optional[float] = Query(None, ge=0, le=5),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    minPrice: Optional[float] = Query(None, ge=0),
    maxPrice: Optional[float] = Query(None, ge=0),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ProviderAccountService = Depends(get_account_service),
):
    """Search providers accepting public bookings, best rated first"""
    results = service.list_providers(city, minRating, search, category, minPrice, maxPrice, limit, offset)
    providers = [
        ProviderListItem(
            id=p.id,
            businessName=p.business_name,
            title=p.title,
            bio=p.bio,
            city=p.city,
            state=p.state,
            imageUrl=p.user.image_url if p.user else None,
            bookingSlug=p.booking_slug,
            averageRating=p.average_rating or 0,
            reviewCount=p.review_count or 0,
            services=[_service_response(s) for s in services],
        )
        for p, services in results
    ]
    return {"providers": providers, "count": len(providers)}


@router.get("/api/providers/{provider_id}")
async def get_provider(provider_id: str, service: ProviderAccountService = Depends(get_account_service)):
    """Provider detail with services, weekly hours and recent reviews"""
    detail = service.get_provider_detail(provider_id)
    provider = detail["provider"]
    return {
        "provider": {
            "id": provider.id,
            "businessName": provider.business_name,
            "title": provider.title,
            "bio": provider.bio,
            "phone": provider.phone,
            "address": provider.address,
            "city": provider.city,
            "state": provider.state,
            "imageUrl": provider.user.image_url if provider.user else None,
            "bookingSlug": provider.booking_slug,
            "publicBookingEnabled": provider.public_booking_enabled,
            "averageRating": provider.average_rating or 0,
            "reviewCount": provider.review_count or 0,
            "cancellationPolicy": provider.cancellation_policy,
            "cancellationPolicyDetails": detail["cancellationPolicyDetails"],
        },
        "services": [_service_response(s) for s in detail["services"]],
        "availability": [
            {"dayOfWeek": a.day_of_week, "startTime": a.start_time, "endTime": a.end_time}
            for a in detail["availability"]
        ],
        "reviews": [review_response(r) for r in detail["reviews"]],
        "ratingDistribution": detail["ratingDistribution"],
    }
