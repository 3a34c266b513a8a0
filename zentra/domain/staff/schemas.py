"""Staff domain schemas"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_email, validate_phone, validate_schedule


class StaffCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    services: list[int] = []
    schedule: dict = {}
    joinDate: Optional[date] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("schedule")
    @classmethod
    def check_schedule(cls, v):
        return validate_schedule(v)


class StaffUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    services: Optional[list[int]] = None
    schedule: Optional[dict] = None
    status: Optional[Literal["active", "inactive"]] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("schedule")
    @classmethod
    def check_schedule(cls, v):
        return validate_schedule(v)


class StaffResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    services: list[int] = []
    schedule: dict = {}
    status: str
    joinDate: Optional[date] = None
    createdAt: Optional[datetime] = None
