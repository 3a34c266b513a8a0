"""Client domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_email, validate_phone


class ClientCreate(BaseModel):
    """Schema for creating a client"""

    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    birthday: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class ClientUpdate(BaseModel):
    """Schema for updating a client"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    birthday: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class ClientResponse(BaseModel):
    """Schema for client response"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    birthday: Optional[date] = None
    notes: Optional[str] = None
    loyaltyPoints: int = 0
    membershipLevel: str = "bronze"
    totalVisits: int = 0
    totalSpent: float = 0.0
    lastVisit: Optional[datetime] = None
    createdAt: Optional[datetime] = None


class ClientsDataResponse(BaseModel):
    clients: list[ClientResponse]
    business: dict
