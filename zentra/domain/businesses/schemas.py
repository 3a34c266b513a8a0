"""Business domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_email, validate_phone, validate_time

BusinessType = Literal["salon", "spa", "nails", "beauty", "massage", "aesthetics", "other"]


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None
    country: Optional[str] = None


class NotificationSettings(BaseModel):
    email: bool = True
    sms: bool = False


class BusinessSettings(BaseModel):
    """Partial settings update; omitted keys keep their stored value"""

    timezone: Optional[str] = None
    currency: Optional[str] = None
    bookingBuffer: Optional[int] = Field(None, ge=0, le=240)
    cancellationPolicy: Optional[str] = None
    depositRequired: Optional[bool] = None
    depositPercentage: Optional[float] = Field(None, ge=0, le=100)
    notifications: Optional[NotificationSettings] = None


class BusinessCreate(BaseModel):
    """Schema for onboarding a new business"""

    businessName: str = Field(..., min_length=1, max_length=255)
    ownerName: str = Field(..., min_length=1, max_length=255)
    email: str
    phone: Optional[str] = None
    businessType: BusinessType = "other"
    address: Optional[Address] = None
    currency: str = "gbp"
    timezone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v):
        return v.lower()


class BusinessUpdate(BaseModel):
    businessName: Optional[str] = Field(None, min_length=1, max_length=255)
    ownerName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    businessType: Optional[BusinessType] = None
    address: Optional[Address] = None
    settings: Optional[BusinessSettings] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class DailyReminderSettings(BaseModel):
    enabled: bool = False
    sendTime: str = "18:00"
    recipientStaffId: Optional[int] = None

    @field_validator("sendTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class ClientReminderSettings(BaseModel):
    enabled: bool = False
    daysBefore: int = Field(1, ge=0, le=14)


class ReminderSettingsUpdate(BaseModel):
    dailyReminders: Optional[DailyReminderSettings] = None
    clientReminders: Optional[ClientReminderSettings] = None


class BusinessResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    businessName: str
    ownerName: Optional[str] = None
    email: str
    phone: Optional[str] = None
    businessType: str
    address: Optional[dict] = None
    settings: Optional[dict] = None
    currency: str
    stripeConnected: bool
    subscriptionPlan: Optional[str] = None
    subscriptionStatus: Optional[str] = None
    trialEnd: Optional[datetime] = None
    dailyReminders: Optional[dict] = None
    clientReminders: Optional[dict] = None
    createdAt: Optional[datetime] = None


class PublicService(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    duration: int
    price: float
    depositRequired: bool


class PublicStaff(BaseModel):
    id: int
    name: str
    role: Optional[str] = None
    services: list[int] = []
    schedule: dict = {}


class PublicBusinessResponse(BaseModel):
    """What the public booking page needs to render"""

    id: int
    businessName: str
    businessType: str
    address: Optional[dict] = None
    currency: str
    depositRequired: bool
    depositPercentage: float
    acceptsCardPayments: bool
    services: list[PublicService]
    staff: list[PublicStaff]
