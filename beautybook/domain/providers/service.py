"""Provider service - Service catalog, staff and public profile logic"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ProviderProfile, Service, Staff
from ...shared.errors import ForbiddenError, NotFoundError, ValidationError
from ..appointments.policy import POLICY_DESCRIPTIONS
from .repository import ProviderRepository
from .schemas import ServiceCreate, ServiceUpdate, StaffCreate

logger = logging.getLogger(__name__)


class ProviderService:
    """Service layer for a provider's catalog and staff"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    # Services

    def list_services(
        self, provider_id: str, category: Optional[str] = None, active: Optional[bool] = None
    ) -> list[Service]:
        return self.repo.get_services(self.db, provider_id, category, active)

    def get_service(self, service_id: str) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def _get_own_service(self, provider: ProviderProfile, service_id: str) -> Service:
        service = self.get_service(service_id)
        if service.provider_id != provider.id:
            raise ForbiddenError("You do not have permission to modify this service")
        return service

    def create_service(self, provider: ProviderProfile, data: ServiceCreate) -> Service:
        service = self.repo.create_service(
            self.db,
            provider.id,
            name=data.name,
            description=data.description,
            duration=data.duration,
            price=data.price,
            category=data.category,
            active=True,
        )
        logger.info(f"✅ Service {service.id} ({service.name}) created for provider {provider.id}")
        return service

    def update_service(self, provider: ProviderProfile, service_id: str, data: ServiceUpdate) -> Service:
        service = self._get_own_service(provider, service_id)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        return self.repo.update_service(self.db, service, **updates)

    def delete_service(self, provider: ProviderProfile, service_id: str, today: Optional[date] = None) -> None:
        service = self._get_own_service(provider, service_id)
        if self.repo.count_upcoming_appointments(self.db, service.id, today or date.today()):
            raise ValidationError(
                "Cannot delete service with upcoming appointments. Please cancel or complete them first."
            )
        self.repo.delete_service(self.db, service)
        logger.info(f"🗑️ Service {service_id} deleted by provider {provider.id}")

    # Staff

    def list_staff(self, provider_id: str) -> list[Staff]:
        return self.repo.get_staff(self.db, provider_id)

    def create_staff(self, provider: ProviderProfile, data: StaffCreate) -> Staff:
        staff = self.repo.create_staff(self.db, provider.id, name=data.name, email=data.email, title=data.title)
        logger.info(f"👤 Staff {staff.id} added to provider {provider.id}")
        return staff

    # Public profile

    def get_public_profile(self, slug: str) -> dict:
        provider = self.repo.get_provider_by_slug(self.db, slug)
        if not provider:
            raise NotFoundError("Provider not found")
        if not provider.public_booking_enabled:
            raise ForbiddenError("Public booking is not available for this provider")

        services = self.repo.get_services(self.db, provider.id, active=True)
        return {
            "provider": {
                "id": provider.id,
                "businessName": provider.business_name,
                "bio": provider.bio,
                "phone": provider.phone,
                "address": provider.address,
                "city": provider.city,
                "imageUrl": provider.user.image_url if provider.user else None,
                "averageRating": provider.average_rating,
                "reviewCount": provider.review_count,
                "cancellationPolicy": provider.cancellation_policy,
                "cancellationPolicyDetails": POLICY_DESCRIPTIONS.get(provider.cancellation_policy, []),
            },
            "services": services,
        }
