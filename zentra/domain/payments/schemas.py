"""Payment schemas - Stripe Connect, client payments and refunds"""

from typing import Optional

from pydantic import BaseModel, Field


class PaymentIntentRequest(BaseModel):
    """Required fields are checked by the service so callers get a 400, not a 422"""

    businessId: Optional[int] = None
    amount: Optional[float] = None
    currency: str = "gbp"
    appointmentId: Optional[int] = None
    isDeposit: bool = False
    receiptEmail: Optional[str] = None


class PaymentIntentResponse(BaseModel):
    clientSecret: str
    paymentIntentId: str


class RefundRequest(BaseModel):
    paymentIntentId: str = Field(..., min_length=1)
    amount: Optional[float] = Field(None, gt=0)
    reason: Optional[str] = Field(None, max_length=500)


class RefundResponse(BaseModel):
    success: bool
    refundId: str
    amount: float
    status: str


class AccountStatusResponse(BaseModel):
    connected: bool
    accountId: Optional[str] = None
    chargesEnabled: bool = False
    payoutsEnabled: bool = False
    detailsSubmitted: bool = False
    currentlyDue: list[str] = []
