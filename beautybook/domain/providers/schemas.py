"""Provider domain schemas - Pydantic models for provider accounts, services, staff and discovery"""

from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models import CANCELLATION_POLICIES
from ...shared.validators import slugify, validate_choice, validate_email, validate_phone


def _check_duration(v):
    if v is not None and v <= 0:
        raise ValueError("Duration must be greater than 0")
    return v


def _check_price(v):
    if v is not None and v < 0:
        raise ValueError("Price cannot be negative")
    return v


class ServiceCreate(BaseModel):
    name: str
    description: Optional[str] = None
    duration: int
    price: float
    category: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        return _check_duration(v)

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        return _check_price(v)


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = None
    price: Optional[float] = None
    category: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        return _check_duration(v)

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        return _check_price(v)


class ServiceResponse(BaseModel):
    id: str
    providerId: str
    name: str
    description: Optional[str] = None
    duration: int
    price: float
    category: Optional[str] = None
    active: bool


class StaffCreate(BaseModel):
    name: str
    email: Optional[str] = None
    title: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class StaffResponse(BaseModel):
    id: str
    providerId: str
    name: str
    email: Optional[str] = None
    title: Optional[str] = None
    active: bool


# ============================================================================
# PROVIDER ACCOUNT
# ============================================================================


def _check_custom_cancellation(hours, fee):
    if hours is not None and hours < 0:
        raise ValueError("customCancellationHours cannot be negative")
    if fee is not None and not 0 <= fee <= 100:
        raise ValueError("customCancellationFee must be between 0 and 100")


class ProviderRegister(BaseModel):
    businessName: str
    title: Optional[str] = None
    bio: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    @field_validator("businessName")
    @classmethod
    def validate_business_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Business name is required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class ProviderProfileUpdate(BaseModel):
    """Partial update of the public business details"""

    businessName: Optional[str] = None
    title: Optional[str] = None
    bio: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    @field_validator("businessName")
    @classmethod
    def validate_business_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Business name cannot be empty")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class BookingSettingsUpdate(BaseModel):
    bookingSlug: Optional[str] = None
    publicBookingEnabled: Optional[bool] = None
    qrCodeEnabled: Optional[bool] = None
    cancellationPolicy: Optional[str] = None
    customCancellationHours: Optional[float] = None
    customCancellationFee: Optional[float] = None

    @field_validator("bookingSlug")
    @classmethod
    def validate_slug(cls, v):
        if v is None:
            return v
        slug = slugify(v)
        if not slug:
            raise ValueError("Booking slug must contain letters or numbers")
        return slug

    @field_validator("cancellationPolicy")
    @classmethod
    def validate_policy(cls, v):
        return validate_choice(v, CANCELLATION_POLICIES, "cancellationPolicy")

    @model_validator(mode="after")
    def validate_custom_terms(self):
        _check_custom_cancellation(self.customCancellationHours, self.customCancellationFee)
        return self


class ProviderProfileResponse(BaseModel):
    id: str
    userId: str
    businessName: str
    title: Optional[str] = None
    bio: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    bookingSlug: Optional[str] = None
    publicBookingEnabled: bool
    qrCodeEnabled: bool
    cancellationPolicy: str
    customCancellationHours: Optional[float] = None
    customCancellationFee: Optional[float] = None
    averageRating: float
    reviewCount: int
    calendarSyncEnabled: bool


class ProviderListItem(BaseModel):
    id: str
    businessName: str
    title: Optional[str] = None
    bio: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    imageUrl: Optional[str] = None
    bookingSlug: Optional[str] = None
    averageRating: float
    reviewCount: int
    services: list[ServiceResponse]


class CustomerSummary(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    imageUrl: Optional[str] = None
    totalAppointments: int
    totalSpent: float
    lastVisit: Optional[str] = None
    averageRating: Optional[float] = None
    joinedDate: Optional[str] = None
