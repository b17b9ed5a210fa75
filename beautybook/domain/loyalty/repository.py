"""Loyalty repository - Points ledger and coupon queries"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Coupon, CustomerProfile, PointsTransaction


class LoyaltyRepository:
    """Repository for points and coupons"""

    @staticmethod
    def get_points_history(db: Session, profile_id: str, limit: int = 20) -> list[PointsTransaction]:
        return (
            db.query(PointsTransaction)
            .filter(PointsTransaction.customer_profile_id == profile_id)
            .order_by(PointsTransaction.created_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def find_transaction(db: Session, profile_id: str, type_: str, reference_id: str) -> Optional[PointsTransaction]:
        return (
            db.query(PointsTransaction)
            .filter(
                PointsTransaction.customer_profile_id == profile_id,
                PointsTransaction.type == type_,
                PointsTransaction.reference_id == reference_id,
            )
            .first()
        )

    @staticmethod
    def add_transaction(
        db: Session,
        profile: CustomerProfile,
        type_: str,
        amount: int,
        description: str,
        reference_id: Optional[str] = None,
    ) -> PointsTransaction:
        """Record a ledger entry. Caller commits."""
        transaction = PointsTransaction(
            customer_profile_id=profile.id,
            type=type_,
            amount=amount,
            description=description,
            reference_id=reference_id,
        )
        db.add(transaction)
        return transaction

    @staticmethod
    def get_coupons(db: Session, provider_id: str) -> list[Coupon]:
        return (
            db.query(Coupon)
            .filter(Coupon.provider_id == provider_id)
            .order_by(Coupon.created_at.desc())
            .all()
        )

    @staticmethod
    def get_coupon_by_code(db: Session, code: str) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.code == code).first()

    @staticmethod
    def create_coupon(db: Session, **coupon_data) -> Coupon:
        coupon = Coupon(**coupon_data)
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon
