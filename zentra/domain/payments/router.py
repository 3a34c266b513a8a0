"""Stripe router - Connect onboarding, client payments, refunds and the webhook"""

import logging

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import Business
from ...services.stripe_service import StripeNotConfiguredError, stripe_service
from .schemas import (
    AccountStatusResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    RefundRequest,
    RefundResponse,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stripe", tags=["Stripe"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


# ============================================================================
# CONNECT ONBOARDING
# ============================================================================


@router.post("/create-connect-account")
async def create_connect_account(
    business: Business = Depends(get_current_business_with_access),
    service: PaymentService = Depends(get_payment_service),
):
    """Create a Standard connected account for the business if it has none"""
    return service.create_connect_account(business)


@router.post("/account-link")
async def create_account_link(
    business: Business = Depends(get_current_business_with_access),
    service: PaymentService = Depends(get_payment_service),
):
    return service.create_account_link(business)


@router.get("/account-status", response_model=AccountStatusResponse)
async def get_account_status(
    business: Business = Depends(get_current_business_with_access),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_account_status(business)


# ============================================================================
# PAYMENTS
# ============================================================================


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    data: PaymentIntentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """Public: card payment for an appointment (full amount or deposit)"""
    return service.create_payment_intent(data)


@router.post("/create-refund", response_model=RefundResponse)
async def create_refund(
    data: RefundRequest,
    business: Business = Depends(get_current_business_with_access),
    service: PaymentService = Depends(get_payment_service),
):
    """Refund a client payment; omit amount for a full refund"""
    return service.create_refund(data, business)


# ============================================================================
# WEBHOOK
# ============================================================================


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None, alias="Stripe-Signature"),
    service: PaymentService = Depends(get_payment_service),
):
    """
    Stripe webhook for the platform account.

    Handles appointment payments, voucher purchases and subscription lifecycle.
    """
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    payload = await request.body()
    try:
        event = stripe_service.parse_webhook(payload, stripe_signature)
    except StripeNotConfiguredError as e:
        logger.error("❌ STRIPE_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=500, detail="Webhook not configured") from e
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.warning(f"⚠️ Invalid Stripe webhook signature: {e}")
        raise HTTPException(status_code=400, detail="Invalid signature") from e

    try:
        await service.handle_event(event)
    except SQLAlchemyError as e:
        service.db.rollback()
        logger.error(f"❌ Failed to process Stripe event {event.get('id')}: {e}")
        raise HTTPException(status_code=500, detail="Webhook processing failed") from e

    return {"received": True}
