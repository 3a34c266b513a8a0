"""Appointment domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_email, validate_phone, validate_time

AppointmentStatus = Literal["pending", "confirmed", "completed", "cancelled", "no-show"]
PaymentMethod = Literal["card", "cash", "online"]


class AppointmentCreate(BaseModel):
    """Appointment booked by the business from the dashboard"""

    serviceId: int
    staffId: Optional[int] = None
    clientId: Optional[int] = None
    clientName: Optional[str] = None
    clientEmail: Optional[str] = None
    clientPhone: Optional[str] = None
    date: dt.date
    startTime: str
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    price: Optional[float] = Field(None, ge=0)
    status: AppointmentStatus = "confirmed"
    notes: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @field_validator("clientEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("clientPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class AppointmentUpdate(BaseModel):
    staffId: Optional[int] = None
    date: Optional[dt.date] = None
    startTime: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    price: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class StatusUpdate(BaseModel):
    status: AppointmentStatus


class PaymentRecord(BaseModel):
    amount: float = Field(..., gt=0)
    method: PaymentMethod
    transactionId: Optional[str] = None


class AftercareRequest(BaseModel):
    """A saved template by id, or a one-off name and content"""

    templateId: Optional[int] = None
    templateName: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)


class PublicBookingCreate(BaseModel):
    """Booking made by a client from the public booking page"""

    serviceId: int
    staffId: Optional[int] = None
    date: dt.date
    startTime: str
    clientName: str = Field(..., min_length=1, max_length=255)
    clientEmail: str
    clientPhone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @field_validator("clientEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("clientPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class PaymentInfo(BaseModel):
    method: Optional[str] = None
    status: str
    amount: float
    depositAmount: Optional[float] = None
    depositPaid: bool = False
    transactionId: Optional[str] = None
    stripePaymentIntentId: Optional[str] = None
    paidViaLink: bool = False
    remainingBalance: Optional[float] = None


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    businessId: int
    clientId: Optional[int] = None
    staffId: Optional[int] = None
    serviceId: Optional[int] = None
    clientName: Optional[str] = None
    clientEmail: Optional[str] = None
    clientPhone: Optional[str] = None
    serviceName: Optional[str] = None
    staffName: Optional[str] = None
    date: dt.date
    startTime: str
    endTime: Optional[str] = None
    duration: int
    price: float
    status: str
    notes: Optional[str] = None
    payment: PaymentInfo
    reminderSent: bool = False
    createdAt: Optional[dt.datetime] = None


class PublicAppointmentResponse(BaseModel):
    """What the pay-by-link page shows"""

    id: int
    businessId: int
    businessName: str
    serviceName: Optional[str] = None
    clientName: Optional[str] = None
    date: dt.date
    startTime: str
    price: float
    amountDue: float
    currency: str
    paymentStatus: str
    acceptsCardPayments: bool


class CalendarDataResponse(BaseModel):
    appointments: list[AppointmentResponse]
    clients: list[dict]
    staff: list[dict]
    services: list[dict]
    business: dict


class PaymentsDataResponse(BaseModel):
    appointments: list[AppointmentResponse]
    business: dict
