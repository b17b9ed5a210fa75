"""Customer repository - Database operations for favorites"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Favorite, ProviderProfile


class CustomerRepository:
    """Repository for customer-owned records"""

    @staticmethod
    def get_provider(db: Session, provider_id: str) -> Optional[ProviderProfile]:
        return db.query(ProviderProfile).filter(ProviderProfile.id == provider_id).first()

    @staticmethod
    def get_favorite(db: Session, user_id: str, provider_id: str) -> Optional[Favorite]:
        return (
            db.query(Favorite)
            .filter(Favorite.user_id == user_id, Favorite.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def list_favorites(db: Session, user_id: str) -> list[Favorite]:
        return (
            db.query(Favorite)
            .options(joinedload(Favorite.provider).joinedload(ProviderProfile.user))
            .filter(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id)
            .all()
        )

    @staticmethod
    def create_favorite(db: Session, user_id: str, provider_id: str) -> Favorite:
        favorite = Favorite(user_id=user_id, provider_id=provider_id)
        db.add(favorite)
        db.commit()
        db.refresh(favorite)
        return favorite

    @staticmethod
    def delete_favorite(db: Session, favorite: Favorite) -> None:
        db.delete(favorite)
        db.commit()
