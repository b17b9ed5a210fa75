"""Waitlist domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_time


class WaitlistCreate(BaseModel):
    """Join the waitlist for a service on a date, optionally for a preferred slot"""

    providerId: str
    serviceId: str
    date: date
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    flexible: bool = True
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def require_target(cls, data):
        if isinstance(data, dict) and not all(data.get(key) for key in ("providerId", "serviceId", "date")):
            raise ValueError("Provider, service, and date are required")
        return data

    @field_validator("startTime")
    @classmethod
    def validate_start(cls, v):
        if v is None:
            return v
        return validate_time(v)

    @field_validator("endTime")
    @classmethod
    def validate_end(cls, v):
        if v is None:
            return v
        return validate_time(v, allow_end_of_day=True)

    @model_validator(mode="after")
    def validate_range(self):
        if self.startTime and self.endTime and self.endTime <= self.startTime:
            raise ValueError("endTime must be after startTime")
        return self


class WaitlistResponse(BaseModel):
    id: str
    customerId: str
    providerId: str
    providerName: Optional[str] = None
    serviceId: str
    serviceName: Optional[str] = None
    date: date
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    flexible: bool
    notes: Optional[str] = None
    status: str
    notifiedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
