"""Loyalty router - Membership status, reward redemption and provider coupons"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_customer_profile, get_current_provider
from ...database import get_db
from ...models import CustomerProfile, ProviderProfile
from .schemas import CouponCreate, CouponResponse, RedeemRequest
from .service import CouponService, LoyaltyService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Loyalty"])


def get_loyalty_service(db: Session = Depends(get_db)) -> LoyaltyService:
    """Dependency injection for LoyaltyService"""
    return LoyaltyService(db)


def get_coupon_service(db: Session = Depends(get_db)) -> CouponService:
    """Dependency injection for CouponService"""
    return CouponService(db)


def _coupon_response(c) -> CouponResponse:
    return CouponResponse(
        id=c.id,
        code=c.code,
        name=c.name,
        description=c.description,
        discountType=c.discount_type,
        discountValue=c.discount_value,
        maxDiscount=c.max_discount,
        minPurchase=c.min_purchase,
        startDate=c.start_date,
        endDate=c.end_date,
        usageLimit=c.usage_limit,
        usedCount=c.used_count,
        active=c.active,
    )


# ============================================================================
# MEMBERSHIP
# ============================================================================


@router.get("/api/loyalty")
async def get_loyalty_status(
    profile: CustomerProfile = Depends(get_current_customer_profile),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    """Get the current customer's membership tier, points and rewards"""
    return service.get_summary(profile)


@router.post("/api/loyalty/redeem")
async def redeem_reward(
    data: RedeemRequest,
    profile: CustomerProfile = Depends(get_current_customer_profile),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    """Redeem points for a reward"""
    return service.redeem(profile, data.rewardId)


# ============================================================================
# COUPONS
# ============================================================================


@router.get("/api/marketing/coupons", response_model=list[CouponResponse])
async def get_coupons(
    provider: ProviderProfile = Depends(get_current_provider),
    service: CouponService = Depends(get_coupon_service),
):
    """Get all coupons for the current provider"""
    return [_coupon_response(c) for c in service.list_coupons(provider)]


@router.post("/api/marketing/coupons", response_model=CouponResponse, status_code=201)
async def create_coupon(
    data: CouponCreate,
    provider: ProviderProfile = Depends(get_current_provider),
    service: CouponService = Depends(get_coupon_service),
):
    """Create a coupon"""
    return _coupon_response(service.create_coupon(provider, data))
