"""Provider repository - Database operations for provider accounts, services, staff and discovery"""

from datetime import date
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from ...models import (
    BLOCKING_STATUSES,
    STATUS_CANCELLED,
    Appointment,
    Availability,
    ProviderProfile,
    Review,
    Service,
    Staff,
    User,
)


class ProviderRepository:
    """Repository for provider catalog database operations"""

    @staticmethod
    def get_provider(db: Session, provider_id: str) -> Optional[ProviderProfile]:
        return (
            db.query(ProviderProfile)
            .options(joinedload(ProviderProfile.user))
            .filter(ProviderProfile.id == provider_id)
            .first()
        )

    @staticmethod
    def get_provider_by_slug(db: Session, slug: str) -> Optional[ProviderProfile]:
        return (
            db.query(ProviderProfile)
            .options(joinedload(ProviderProfile.user))
            .filter(ProviderProfile.booking_slug == slug)
            .first()
        )

    @staticmethod
    def get_services(
        db: Session, provider_id: str, category: Optional[str] = None, active: Optional[bool] = None
    ) -> list[Service]:
        query = db.query(Service).filter(Service.provider_id == provider_id)
        if category:
            query = query.filter(Service.category == category)
        if active is not None:
            query = query.filter(Service.active == active)
        return query.order_by(Service.category, Service.name).all()

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def create_service(db: Session, provider_id: str, **service_data) -> Service:
        service = Service(provider_id=provider_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            setattr(service, key, value)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def delete_service(db: Session, service: Service) -> None:
        db.delete(service)
        db.commit()

    @staticmethod
    def count_upcoming_appointments(db: Session, service_id: str, today: date) -> int:
        return (
            db.query(Appointment)
            .filter(
                Appointment.service_id == service_id,
                Appointment.date >= today,
                Appointment.status.in_(BLOCKING_STATUSES),
            )
            .count()
        )

    @staticmethod
    def get_staff(db: Session, provider_id: str) -> list[Staff]:
        return (
            db.query(Staff)
            .filter(Staff.provider_id == provider_id)
            .order_by(Staff.created_at.desc(), Staff.name)
            .all()
        )

    @staticmethod
    def create_staff(db: Session, provider_id: str, **staff_data) -> Staff:
        staff = Staff(provider_id=provider_id, **staff_data)
        db.add(staff)
        db.commit()
        db.refresh(staff)
        return staff

    # Accounts

    @staticmethod
    def create_provider(db: Session, user: User, availability: list[dict], **profile_data) -> ProviderProfile:
        """Create the profile and its default weekly hours in one commit"""
        profile = ProviderProfile(user_id=user.id, **profile_data)
        db.add(profile)
        db.flush()
        for row in availability:
            db.add(Availability(provider_id=profile.id, **row))
        db.commit()
        db.refresh(profile)
        return profile

    @staticmethod
    def update_provider(db: Session, provider: ProviderProfile, **updates) -> ProviderProfile:
        for key, value in updates.items():
            setattr(provider, key, value)
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def slug_taken(db: Session, slug: str, exclude_provider_id: Optional[str] = None) -> bool:
        query = db.query(ProviderProfile.id).filter(ProviderProfile.booking_slug == slug)
        if exclude_provider_id:
            query = query.filter(ProviderProfile.id != exclude_provider_id)
        return query.first() is not None

    # Discovery

    @staticmethod
    def search_providers(
        db: Session,
        city: Optional[str] = None,
        min_rating: Optional[float] = None,
        search: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ProviderProfile]:
        query = (
            db.query(ProviderProfile)
            .options(joinedload(ProviderProfile.user))
            .filter(ProviderProfile.public_booking_enabled.is_(True))
        )
        if city:
            query = query.filter(ProviderProfile.city.ilike(f"%{city}%"))
        if min_rating is not None:
            query = query.filter(ProviderProfile.average_rating >= min_rating)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    ProviderProfile.business_name.ilike(pattern),
                    ProviderProfile.title.ilike(pattern),
                    ProviderProfile.bio.ilike(pattern),
                )
            )

        # Service filters match providers with at least one qualifying active service
        service_filters = []
        if category:
            service_filters.append(Service.category.ilike(category))
        if min_price is not None:
            service_filters.append(Service.price >= min_price)
        if max_price is not None:
            service_filters.append(Service.price <= max_price)
        if service_filters:
            query = query.filter(ProviderProfile.services.any(and_(Service.active.is_(True), *service_filters)))

        return (
            query.order_by(
                ProviderProfile.average_rating.desc(),
                ProviderProfile.review_count.desc(),
                ProviderProfile.business_name,
            )
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_recent_reviews(db: Session, provider_id: str, limit: int = 10) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.customer))
            .filter(Review.provider_id == provider_id)
            .order_by(Review.created_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_availability(db: Session, provider_id: str) -> list[Availability]:
        return (
            db.query(Availability)
            .filter(Availability.provider_id == provider_id, Availability.active.is_(True))
            .order_by(Availability.day_of_week)
            .all()
        )

    # Customers

    @staticmethod
    def get_customer_appointments(db: Session, provider_id: str) -> list[Appointment]:
        """Non-cancelled appointments with their customers, newest first"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.customer).joinedload(User.customer_profile))
            .filter(Appointment.provider_id == provider_id, Appointment.status != STATUS_CANCELLED)
            .order_by(Appointment.date.desc())
            .all()
        )

    @staticmethod
    def get_reviews(db: Session, provider_id: str) -> list[Review]:
        return db.query(Review).filter(Review.provider_id == provider_id).all()
