"""Coupon validation and discount calculation"""

from datetime import date

from ...models import Coupon
from ...shared.errors import ValidationError

DISCOUNT_PERCENTAGE = "PERCENTAGE"
DISCOUNT_FIXED = "FIXED"
DISCOUNT_TYPES = (DISCOUNT_PERCENTAGE, DISCOUNT_FIXED)


def normalize_code(code: str) -> str:
    return code.strip().upper()


def validate_coupon(coupon: Coupon, provider_id: str, amount: float, today: date) -> None:
    """Raise ValidationError unless the coupon applies to this booking"""
    if not coupon.active:
        raise ValidationError("Coupon is not active")
    if coupon.provider_id != provider_id:
        raise ValidationError("Coupon is not valid for this provider")
    if today < coupon.start_date:
        raise ValidationError("Coupon is not valid yet")
    if coupon.end_date and today > coupon.end_date:
        raise ValidationError("Coupon has expired")
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        raise ValidationError("Coupon usage limit reached")
    if coupon.min_purchase and amount < coupon.min_purchase:
        raise ValidationError(f"Minimum purchase of ${coupon.min_purchase:.2f} required for this coupon")


def calculate_coupon_discount(coupon: Coupon, amount: float) -> float:
    """
    Discount for an amount.

    Percentage discounts are capped by max_discount when set; fixed
    discounts never exceed the amount.
    """
    if coupon.discount_type == DISCOUNT_PERCENTAGE:
        discount = amount * coupon.discount_value / 100
        if coupon.max_discount is not None:
            discount = min(discount, coupon.max_discount)
    else:
        discount = coupon.discount_value
    return round(min(discount, amount), 2)
