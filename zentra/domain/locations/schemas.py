"""Location schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import WEEKDAYS, validate_phone, validate_time
from ..businesses.schemas import Address


class DayHours(BaseModel):
    open: str = "09:00"
    close: str = "17:00"
    closed: bool = False

    @field_validator("open", "close")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


def check_hours(hours: Optional[dict]) -> Optional[dict]:
    if hours is None:
        return hours
    unknown = [day for day in hours if day not in WEEKDAYS]
    if unknown:
        raise ValueError(f"Unknown weekday: {unknown[0]}")
    return hours


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[Address] = None
    phone: Optional[str] = None
    hours: dict[str, DayHours] = {}
    isPrimary: bool = False

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("hours")
    @classmethod
    def check_weekdays(cls, v):
        return check_hours(v)


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[Address] = None
    phone: Optional[str] = None
    hours: Optional[dict[str, DayHours]] = None
    isPrimary: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("hours")
    @classmethod
    def check_weekdays(cls, v):
        return check_hours(v)


class LocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: Optional[dict] = None
    phone: Optional[str] = None
    hours: dict = {}
    isPrimary: bool
    createdAt: Optional[datetime] = None
