"""Provider account service - Registration, business profile, booking settings and customers"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import ROLE_ADMIN, ROLE_PROVIDER, ProviderProfile, User
from ...shared.errors import NotFoundError, ValidationError
from ...shared.validators import slugify
from ..appointments.policy import POLICY_DESCRIPTIONS
from .repository import ProviderRepository
from .schemas import BookingSettingsUpdate, ProviderProfileUpdate, ProviderRegister

logger = logging.getLogger(__name__)

SLUG_TAKEN_MESSAGE = "This booking slug is already taken. Please choose another."
NO_PROFILE_MESSAGE = "Provider profile not found. Please register as a provider first."

# Weekdays 09:00-18:00, Saturday 10:00-16:00, closed Sunday
DEFAULT_AVAILABILITY = [
    *({"day_of_week": day, "start_time": "09:00", "end_time": "18:00"} for day in range(1, 6)),
    {"day_of_week": 6, "start_time": "10:00", "end_time": "16:00"},
]

PROFILE_FIELDS = {
    "businessName": "business_name",
    "title": "title",
    "bio": "bio",
    "phone": "phone",
    "address": "address",
    "city": "city",
    "state": "state",
}

SERVICES_PER_LISTING = 5


class ProviderAccountService:
    """Service layer for a provider's own account and marketplace listing"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    def _unique_slug(self, name: str) -> str:
        base = slugify(name) or "provider"
        slug = base
        suffix = 2
        while self.repo.slug_taken(self.db, slug):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    # ========================================================================
    # REGISTRATION
    # ========================================================================

    def registration_status(self, user: User) -> dict:
        provider = user.provider_profile
        return {
            "canRegister": provider is None,
            "hasProviderProfile": provider is not None,
            "provider": (
                {"id": provider.id, "businessName": provider.business_name, "bookingSlug": provider.booking_slug}
                if provider
                else None
            ),
        }

    def register(self, user: User, data: ProviderRegister) -> ProviderProfile:
        """Turn a signed-in user into a provider with default weekly hours"""
        if user.provider_profile:
            raise ValidationError("User already has a provider profile")

        if user.role != ROLE_ADMIN:
            user.role = ROLE_PROVIDER

        try:
            provider = self.repo.create_provider(
                self.db,
                user,
                DEFAULT_AVAILABILITY,
                business_name=data.businessName,
                title=data.title,
                bio=data.bio,
                phone=data.phone,
                address=data.address,
                city=data.city,
                state=data.state,
                booking_slug=self._unique_slug(data.businessName),
            )
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Provider registration race for user {user.id}: {e}")
            raise ValidationError("User already has a provider profile") from e

        logger.info(f"🏪 Provider {provider.id} ({provider.business_name}) registered by user {user.id}")
        return provider

    # ========================================================================
    # PROFILE AND SETTINGS
    # ========================================================================

    def get_own_profile(self, user: User) -> ProviderProfile:
        if not user.provider_profile:
            raise NotFoundError(NO_PROFILE_MESSAGE)
        return user.provider_profile

    def update_profile(self, user: User, data: ProviderProfileUpdate) -> ProviderProfile:
        provider = self.get_own_profile(user)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("businessName") is None:
            updates.pop("businessName", None)
        changes = {PROFILE_FIELDS[field]: value for field, value in updates.items()}
        provider = self.repo.update_provider(self.db, provider, **changes)
        logger.info(f"📝 Provider {provider.id} profile updated: {sorted(changes)}")
        return provider

    def update_booking_settings(self, provider: ProviderProfile, data: BookingSettingsUpdate) -> ProviderProfile:
        updates = data.model_dump(exclude_unset=True)
        changes = {}

        slug = updates.get("bookingSlug")
        if slug and slug != provider.booking_slug:
            if self.repo.slug_taken(self.db, slug, exclude_provider_id=provider.id):
                raise ValidationError(SLUG_TAKEN_MESSAGE)
            changes["booking_slug"] = slug

        if updates.get("publicBookingEnabled") is not None:
            changes["public_booking_enabled"] = updates["publicBookingEnabled"]
        if updates.get("qrCodeEnabled") is not None:
            changes["qr_code_enabled"] = updates["qrCodeEnabled"]
        if updates.get("cancellationPolicy") is not None:
            changes["cancellation_policy"] = updates["cancellationPolicy"]

        # Explicit null clears a custom term
        if "customCancellationHours" in updates:
            changes["custom_cancellation_hours"] = updates["customCancellationHours"]
        if "customCancellationFee" in updates:
            changes["custom_cancellation_fee"] = updates["customCancellationFee"]

        try:
            provider = self.repo.update_provider(self.db, provider, **changes)
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError(SLUG_TAKEN_MESSAGE) from e

        logger.info(f"⚙️ Provider {provider.id} booking settings updated: {sorted(changes)}")
        return provider

    # ========================================================================
    # DISCOVERY
    # ========================================================================

    def list_providers(
        self,
        city: Optional[str] = None,
        min_rating: Optional[float] = None,
        search: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[tuple[ProviderProfile, list]]:
        """Public providers with a preview of their active services"""
        providers = self.repo.search_providers(
            self.db, city, min_rating, search, category, min_price, max_price, limit, offset
        )
        return [
            (p, self.repo.get_services(self.db, p.id, active=True)[:SERVICES_PER_LISTING]) for p in providers
        ]

    def get_provider_detail(self, provider_id: str) -> dict:
        provider = self.repo.get_provider(self.db, provider_id)
        if not provider:
            raise NotFoundError("Provider not found")

        reviews = self.repo.get_recent_reviews(self.db, provider.id)
        distribution = {rating: 0 for rating in range(1, 6)}
        for review in self.repo.get_reviews(self.db, provider.id):
            distribution[review.rating] = distribution.get(review.rating, 0) + 1

        return {
            "provider": provider,
            "services": self.repo.get_services(self.db, provider.id, active=True),
            "availability": self.repo.get_availability(self.db, provider.id),
            "cancellationPolicyDetails": POLICY_DESCRIPTIONS.get(provider.cancellation_policy, []),
            "reviews": reviews,
            "ratingDistribution": distribution,
        }

    # ========================================================================
    # CUSTOMERS
    # ========================================================================

    def list_customers(self, provider: ProviderProfile) -> dict:
        """Per-customer totals aggregated from the provider's appointments"""
        customers = {}
        for appointment in self.repo.get_customer_appointments(self.db, provider.id):
            customer = appointment.customer
            entry = customers.get(customer.id)
            if entry is None:
                profile = customer.customer_profile
                entry = customers[customer.id] = {
                    "id": customer.id,
                    "name": " ".join(filter(None, [customer.first_name, customer.last_name])) or "Unknown",
                    "email": customer.email,
                    "phone": profile.phone if profile else None,
                    "imageUrl": customer.image_url,
                    "totalAppointments": 0,
                    "totalSpent": 0.0,
                    "lastVisit": None,
                    "ratings": [],
                    "joinedDate": customer.created_at.date().isoformat() if customer.created_at else None,
                }
            entry["totalAppointments"] += 1
            entry["totalSpent"] = round(entry["totalSpent"] + appointment.amount, 2)
            visit = appointment.date.isoformat()
            if entry["lastVisit"] is None or visit > entry["lastVisit"]:
                entry["lastVisit"] = visit

        for review in self.repo.get_reviews(self.db, provider.id):
            if review.customer_id in customers:
                customers[review.customer_id]["ratings"].append(review.rating)

        results = []
        for entry in customers.values():
            ratings = entry.pop("ratings")
            entry["averageRating"] = round(sum(ratings) / len(ratings), 1) if ratings else None
            results.append(entry)
        results.sort(key=lambda c: c["totalSpent"], reverse=True)

        total_revenue = round(sum(c["totalSpent"] for c in results), 2)
        rated = [c["averageRating"] for c in results if c["averageRating"] is not None]
        return {
            "customers": results,
            "stats": {
                "totalCustomers": len(results),
                "totalRevenue": total_revenue,
                "averageCustomerValue": round(total_revenue / len(results)) if results else 0,
                "averageRating": round(sum(rated) / len(rated), 1) if rated else 0,
            },
        }
