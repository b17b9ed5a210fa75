"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models import APPOINTMENT_STATUSES
from ...shared.validators import parse_clock_time, validate_choice, validate_email, validate_phone, validate_time


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment"""

    providerId: str
    serviceId: str
    date: date
    startTime: str
    endTime: Optional[str] = None  # Derived from the service duration when omitted
    notes: Optional[str] = None
    couponCode: Optional[str] = None
    staffId: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def validate_start(cls, v):
        return validate_time(v)

    @field_validator("endTime")
    @classmethod
    def validate_end(cls, v):
        if v is None:
            return v
        return validate_time(v, allow_end_of_day=True)

    @model_validator(mode="after")
    def validate_range(self):
        if self.endTime and self.endTime <= self.startTime:
            raise ValueError("endTime must be after startTime")
        return self


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment"""

    date: date
    startTime: str
    endTime: str

    @field_validator("startTime")
    @classmethod
    def validate_start(cls, v):
        return validate_time(v)

    @field_validator("endTime")
    @classmethod
    def validate_end(cls, v):
        return validate_time(v, allow_end_of_day=True)

    @model_validator(mode="after")
    def validate_range(self):
        if self.endTime <= self.startTime:
            raise ValueError("endTime must be after startTime")
        return self


class GuestCustomerInfo(BaseModel):
    firstName: str
    lastName: Optional[str] = None
    email: str
    phone: str
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def require_contact(cls, data):
        if isinstance(data, dict) and not all(data.get(key) for key in ("firstName", "email", "phone")):
            raise ValueError("Customer information incomplete")
        return data

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class GuestBookingCreate(BaseModel):
    """Booking from a provider's public page without an account"""

    providerSlug: str
    serviceId: str
    date: date
    time: str  # "14:30" or "2:30 PM"
    customerInfo: GuestCustomerInfo

    @model_validator(mode="before")
    @classmethod
    def require_fields(cls, data):
        required = ("providerSlug", "serviceId", "date", "time", "customerInfo")
        if isinstance(data, dict) and not all(data.get(key) for key in required):
            raise ValueError("Missing required fields")
        return data

    @field_validator("time")
    @classmethod
    def validate_clock_time(cls, v):
        return parse_clock_time(v)


class AppointmentCancel(BaseModel):
    reason: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, APPOINTMENT_STATUSES, "status")


class AppointmentAssign(BaseModel):
    staffId: Optional[str] = None  # None unassigns


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: str
    customerId: str
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    providerId: str
    providerName: Optional[str] = None
    serviceId: str
    serviceName: Optional[str] = None
    assignedToId: Optional[str] = None
    assignedToName: Optional[str] = None
    date: date
    startTime: str
    endTime: str
    status: str
    paymentStatus: str
    amount: float
    tipAmount: float
    discountAmount: float
    couponCode: Optional[str] = None
    depositRequired: bool
    depositAmount: Optional[float] = None
    depositPaid: bool
    cancellationPolicy: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None


class RefundInfo(BaseModel):
    amount: float
    percentage: float
    feeAmount: float
    reason: str
    refundId: Optional[str] = None


class CancelResponse(BaseModel):
    success: bool = True
    appointment: AppointmentResponse
    refund: RefundInfo
