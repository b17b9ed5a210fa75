"""Scheduling domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_time


class AvailabilityDay(BaseModel):
    """Open hours for one weekday (0 = Sunday)"""

    dayOfWeek: int
    startTime: str
    endTime: str
    active: bool = True

    @field_validator("dayOfWeek")
    @classmethod
    def validate_day(cls, v):
        if not 0 <= v <= 6:
            raise ValueError("dayOfWeek must be between 0 (Sunday) and 6 (Saturday)")
        return v

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
        if self.startTime >= self.endTime:
            raise ValueError("startTime must be before endTime")
        return self


class WeeklyAvailabilityUpdate(BaseModel):
    """Full replacement of a provider's weekly hours"""

    days: list[AvailabilityDay]

    @field_validator("days")
    @classmethod
    def validate_unique_days(cls, v):
        seen = [d.dayOfWeek for d in v]
        if len(seen) != len(set(seen)):
            raise ValueError("Each dayOfWeek may appear only once")
        return v


class AvailabilityResponse(BaseModel):
    id: str
    dayOfWeek: int
    startTime: str
    endTime: str
    active: bool


class Slot(BaseModel):
    time: str
    available: bool


class BusinessHours(BaseModel):
    start: str
    end: str


class AvailableSlotsResponse(BaseModel):
    """Bookable start times for a provider on a date"""

    available: bool
    slots: list[Slot]
    message: Optional[str] = None
    date: Optional[str] = None
    providerId: Optional[str] = None
    businessHours: Optional[BusinessHours] = None
