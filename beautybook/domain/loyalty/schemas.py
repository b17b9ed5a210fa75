"""Loyalty and coupon schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_choice
from .coupons import DISCOUNT_PERCENTAGE, DISCOUNT_TYPES, normalize_code


class RedeemRequest(BaseModel):
    rewardId: str


class PointsTransactionResponse(BaseModel):
    id: str
    type: str
    amount: int
    description: Optional[str] = None
    referenceId: Optional[str] = None
    createdAt: Optional[datetime] = None


class CouponCreate(BaseModel):
    """Schema for creating a coupon"""

    code: str
    name: str
    description: Optional[str] = None
    discountType: str
    discountValue: float
    maxDiscount: Optional[float] = None
    minPurchase: Optional[float] = None
    startDate: date
    endDate: Optional[date] = None
    usageLimit: Optional[int] = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        v = normalize_code(v)
        if not v:
            raise ValueError("Coupon code is required")
        return v

    @field_validator("discountType")
    @classmethod
    def validate_discount_type(cls, v):
        return validate_choice(v.upper(), DISCOUNT_TYPES, "discountType")

    @field_validator("discountValue")
    @classmethod
    def validate_discount_value(cls, v):
        if v <= 0:
            raise ValueError("discountValue must be positive")
        return v

    @model_validator(mode="after")
    def validate_ranges(self):
        if self.discountType == DISCOUNT_PERCENTAGE and self.discountValue > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.endDate and self.endDate < self.startDate:
            raise ValueError("endDate must not be before startDate")
        return self


class CouponResponse(BaseModel):
    id: str
    code: str
    name: str
    description: Optional[str] = None
    discountType: str
    discountValue: float
    maxDiscount: Optional[float] = None
    minPurchase: Optional[float] = None
    startDate: date
    endDate: Optional[date] = None
    usageLimit: Optional[int] = None
    usedCount: int
    active: bool
