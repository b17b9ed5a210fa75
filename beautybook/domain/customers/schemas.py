"""Customer domain schemas - Pydantic models for account settings and favorites"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_phone


class NotificationPreferences(BaseModel):
    emailEnabled: bool
    smsEnabled: bool
    reminderBefore24h: bool
    reminderBefore2h: bool


class UserProfileUpdate(BaseModel):
    """Partial update; omitted fields keep their current value"""

    firstName: Optional[str] = None
    lastName: Optional[str] = None
    phone: Optional[str] = None
    emailEnabled: Optional[bool] = None
    smsEnabled: Optional[bool] = None
    reminderBefore24h: Optional[bool] = None
    reminderBefore2h: Optional[bool] = None

    @field_validator("firstName", "lastName")
    @classmethod
    def strip_names(cls, v):
        if v is None:
            return v
        return v.strip() or None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        if v is None:
            return v
        # Empty string clears the number
        return validate_phone(v.strip()) or ""


class ProviderSummary(BaseModel):
    id: str
    businessName: str
    bookingSlug: Optional[str] = None


class UserProfileResponse(BaseModel):
    id: str
    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    imageUrl: Optional[str] = None
    role: str
    phone: Optional[str] = None
    isProvider: bool
    providerProfile: Optional[ProviderSummary] = None
    notificationPreferences: Optional[NotificationPreferences] = None


class FavoriteCreate(BaseModel):
    providerId: str

    @field_validator("providerId")
    @classmethod
    def require_provider(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Provider ID is required")
        return v


class FavoriteProvider(BaseModel):
    id: str
    businessName: str
    title: Optional[str] = None
    city: Optional[str] = None
    imageUrl: Optional[str] = None
    bookingSlug: Optional[str] = None
    averageRating: float
    reviewCount: int


class FavoriteResponse(BaseModel):
    id: str
    providerId: str
    createdAt: Optional[datetime] = None
    provider: FavoriteProvider
