"""Voucher domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_email, validate_phone


class VoucherPurchaseRequest(BaseModel):
    """Gift voucher bought from the public voucher page"""

    businessId: int
    amount: float = Field(..., gt=0, le=10000)
    currency: str = "gbp"
    recipientName: str = Field(..., min_length=1, max_length=255)
    recipientEmail: str
    purchaserName: str = Field(..., min_length=1, max_length=255)
    purchaserEmail: str
    purchaserPhone: Optional[str] = None
    message: Optional[str] = Field(None, max_length=450)

    @field_validator("recipientEmail", "purchaserEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("purchaserPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v):
        return v.lower()


class CreateVoucherRequest(VoucherPurchaseRequest):
    """Issue the voucher once the client-side payment has completed"""

    paymentIntentId: Optional[str] = None
    sessionId: Optional[str] = None


class ManualVoucherCreate(BaseModel):
    amount: float = Field(..., gt=0, le=10000)
    recipientName: str = Field(..., min_length=1, max_length=255)
    recipientEmail: str
    purchaserName: Optional[str] = None
    purchaserEmail: Optional[str] = None
    message: Optional[str] = Field(None, max_length=450)
    expiryDate: Optional[datetime] = None
    sendEmail: bool = True

    @field_validator("recipientEmail", "purchaserEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class ValidateVoucherRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    businessId: int
    amount: float = Field(0, ge=0)


class RedeemVoucherRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    amount: float = Field(..., gt=0)


class VoucherSummary(BaseModel):
    id: int
    code: str
    value: float
    balance: float
    originalValue: float
    currency: str
    expiryDate: datetime


class ValidateVoucherResponse(BaseModel):
    valid: bool
    voucher: VoucherSummary


class VoucherResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    value: float
    originalValue: float
    balance: float
    currency: str
    recipientName: str
    recipientEmail: str
    purchaserName: Optional[str] = None
    purchaserEmail: Optional[str] = None
    message: Optional[str] = None
    expiryDate: datetime
    status: str
    redeemed: bool
    redeemedAmount: float
    source: str
    createdAt: Optional[datetime] = None
