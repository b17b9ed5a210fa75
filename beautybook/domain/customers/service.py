"""Customer service - Account settings and favorite providers"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import CustomerProfile, Favorite, User
from ...shared.errors import NotFoundError, ValidationError
from .repository import CustomerRepository
from .schemas import FavoriteCreate, UserProfileUpdate

logger = logging.getLogger(__name__)

# Request field -> CustomerProfile column
PREFERENCE_FIELDS = {
    "emailEnabled": "email_enabled",
    "smsEnabled": "sms_enabled",
    "reminderBefore24h": "reminder_before_24h",
    "reminderBefore2h": "reminder_before_2h",
}


class CustomerService:
    """Service layer for a signed-in user's own account"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    # Profile

    def update_profile(self, user: User, data: UserProfileUpdate) -> User:
        updates = data.model_dump(exclude_unset=True)

        if "firstName" in updates:
            user.first_name = updates["firstName"]
        if "lastName" in updates:
            user.last_name = updates["lastName"]

        profile = user.customer_profile
        if profile is None:
            profile = CustomerProfile()
            user.customer_profile = profile

        if "phone" in updates:
            profile.phone = updates["phone"] or None
        for field, column in PREFERENCE_FIELDS.items():
            if updates.get(field) is not None:
                setattr(profile, column, updates[field])

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"👤 Profile updated for user {user.id}: {sorted(updates)}")
        return user

    # Favorites

    def list_favorites(self, user: User) -> list[Favorite]:
        return self.repo.list_favorites(self.db, user.id)

    def add_favorite(self, user: User, data: FavoriteCreate) -> Favorite:
        if not self.repo.get_provider(self.db, data.providerId):
            raise NotFoundError("Provider not found")
        if self.repo.get_favorite(self.db, user.id, data.providerId):
            raise ValidationError("Provider is already in your favorites")

        try:
            favorite = self.repo.create_favorite(self.db, user.id, data.providerId)
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError("Provider is already in your favorites") from e

        logger.info(f"⭐ User {user.id} favorited provider {data.providerId}")
        return favorite

    def remove_favorite(self, user: User, provider_id: str) -> None:
        if not provider_id:
            raise ValidationError("Provider ID is required")
        favorite = self.repo.get_favorite(self.db, user.id, provider_id)
        if not favorite:
            raise NotFoundError("Favorite not found")
        self.repo.delete_favorite(self.db, favorite)
        logger.info(f"🗑️ User {user.id} removed provider {provider_id} from favorites")
