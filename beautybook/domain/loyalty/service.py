"""Loyalty service - Membership, points and coupons"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import PAYMENT_PAID, STATUS_COMPLETED, Appointment, Coupon, CustomerProfile, ProviderProfile
from ...shared.errors import ValidationError
from .coupons import calculate_coupon_discount, normalize_code, validate_coupon
from .membership import (
    REWARDS,
    calculate_points_for_booking,
    can_redeem_reward,
    get_membership_level,
    get_reward,
    membership_summary,
)
from .repository import LoyaltyRepository
from .schemas import CouponCreate

logger = logging.getLogger(__name__)

TRANSACTION_EARN = "EARN"
TRANSACTION_REDEEM = "REDEEM"


class LoyaltyService:
    """Service layer for customer membership and points"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LoyaltyRepository()

    def get_summary(self, profile: CustomerProfile) -> dict:
        """Membership status, recent points history and the rewards catalog"""
        summary = membership_summary(profile.loyalty_points, profile.lifetime_points)
        history = self.repo.get_points_history(self.db, profile.id)
        summary["pointsHistory"] = [
            {
                "id": t.id,
                "type": t.type,
                "amount": t.amount,
                "description": t.description,
                "referenceId": t.reference_id,
                "createdAt": t.created_at,
            }
            for t in history
        ]
        summary["rewards"] = [
            {**reward, "canRedeem": can_redeem_reward(reward, summary["tier"], profile.loyalty_points)}
            for reward in REWARDS
        ]
        return summary

    def redeem(self, profile: CustomerProfile, reward_id: str) -> dict:
        """Spend points on a catalog reward"""
        reward = get_reward(reward_id)
        if not reward:
            raise ValidationError("Invalid reward")

        tier = get_membership_level(profile.lifetime_points)["tier"]
        if profile.loyalty_points < reward["pointsCost"]:
            raise ValidationError(
                "Insufficient points",
                details={"required": reward["pointsCost"], "current": profile.loyalty_points},
            )
        if not can_redeem_reward(reward, tier, profile.loyalty_points):
            raise ValidationError(f"{reward['name']} requires {reward['minTier']} membership")

        profile.loyalty_points -= reward["pointsCost"]
        self.repo.add_transaction(
            self.db,
            profile,
            TRANSACTION_REDEEM,
            -reward["pointsCost"],
            f"Redeemed: {reward['name']}",
            reward["id"],
        )
        self.db.commit()
        logger.info(f"🎁 Profile {profile.id} redeemed {reward['id']} for {reward['pointsCost']} points")
        return {"success": True, "reward": reward, "remainingPoints": profile.loyalty_points}

    def award_points_for_appointment(self, appointment: Appointment) -> int:
        """
        Credit points for a completed, paid appointment once.
        Returns points awarded (0 when not eligible or already credited).
        """
        if appointment.status != STATUS_COMPLETED or appointment.payment_status != PAYMENT_PAID:
            return 0

        profile = appointment.customer.customer_profile
        if not profile:
            return 0
        if self.repo.find_transaction(self.db, profile.id, TRANSACTION_EARN, appointment.id):
            return 0

        tier = get_membership_level(profile.lifetime_points)["tier"]
        points = calculate_points_for_booking(appointment.amount, tier)
        if points <= 0:
            return 0

        profile.loyalty_points += points
        profile.lifetime_points += points
        self.repo.add_transaction(
            self.db,
            profile,
            TRANSACTION_EARN,
            points,
            f"Earned for {appointment.service.name}",
            appointment.id,
        )
        self.db.commit()
        logger.info(f"⭐ Awarded {points} points ({tier}) for appointment {appointment.id}")
        return points


class CouponService:
    """Service layer for provider coupons"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LoyaltyRepository()

    def list_coupons(self, provider: ProviderProfile) -> list[Coupon]:
        return self.repo.get_coupons(self.db, provider.id)

    def create_coupon(self, provider: ProviderProfile, data: CouponCreate) -> Coupon:
        if self.repo.get_coupon_by_code(self.db, data.code):
            raise ValidationError("Coupon code already exists")

        try:
            coupon = self.repo.create_coupon(
                self.db,
                provider_id=provider.id,
                code=data.code,
                name=data.name,
                description=data.description,
                discount_type=data.discountType,
                discount_value=data.discountValue,
                max_discount=data.maxDiscount,
                min_purchase=data.minPurchase,
                start_date=data.startDate,
                end_date=data.endDate,
                usage_limit=data.usageLimit,
            )
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError("Coupon code already exists") from e

        logger.info(f"🏷️ Coupon {coupon.code} created for provider {provider.id}")
        return coupon

    def apply_coupon(self, code: str, provider_id: str, amount: float, today: Optional[date] = None) -> tuple[Coupon, float]:
        """
        Validate a coupon for a booking and count its use.
        Caller commits together with the booking.
        """
        coupon = self.repo.get_coupon_by_code(self.db, normalize_code(code))
        if not coupon:
            raise ValidationError("Invalid coupon code")

        validate_coupon(coupon, provider_id, amount, today or date.today())
        discount = calculate_coupon_discount(coupon, amount)
        coupon.used_count += 1
        return coupon, discount
