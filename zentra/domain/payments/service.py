"""
Payment service - Stripe Connect onboarding, client payments, refunds and webhooks

Client payments are destination charges: the PaymentIntent lives on the platform
account and its funds transfer to the business's connected account.
"""

import logging

import stripe
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...currency import from_smallest_unit, to_smallest_unit
from ...models import Business
from ...services.stripe_service import StripeNotConfiguredError, stripe_http_error, stripe_service
from ..appointments.repository import AppointmentRepository
from ..appointments.service import AppointmentService
from ..billing.service import SubscriptionService
from ..businesses.repository import BusinessRepository
from ..vouchers.service import VOUCHER_PURCHASE, VoucherService
from .schemas import PaymentIntentRequest, RefundRequest

logger = logging.getLogger(__name__)

STRIPE_ERRORS = (stripe.StripeError, StripeNotConfiguredError)


class PaymentService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Connect
    # ------------------------------------------------------------------

    def create_connect_account(self, business: Business) -> dict:
        if business.stripe_account_id:
            return {"accountId": business.stripe_account_id, "created": False}

        try:
            account = stripe_service.create_connect_account(
                email=business.email,
                business_name=business.business_name,
                metadata={"businessId": str(business.id)},
            )
        except STRIPE_ERRORS as e:
            logger.error(f"❌ Connect account creation failed for business {business.id}: {e}")
            raise stripe_http_error(e) from e

        business.stripe_account_id = account["id"]
        self.db.commit()
        return {"accountId": account["id"], "created": True}

    def create_account_link(self, business: Business) -> dict:
        if not business.stripe_account_id:
            raise HTTPException(status_code=400, detail="No Stripe account connected")
        try:
            link = stripe_service.create_account_link(business.stripe_account_id)
        except STRIPE_ERRORS as e:
            raise stripe_http_error(e) from e
        return {"url": link["url"]}

    def get_account_status(self, business: Business) -> dict:
        if not business.stripe_account_id:
            return {"connected": False, "accountId": None}
        try:
            account = stripe_service.retrieve_account(business.stripe_account_id)
        except STRIPE_ERRORS as e:
            raise stripe_http_error(e) from e

        charges_enabled = bool(account.get("charges_enabled"))
        payouts_enabled = bool(account.get("payouts_enabled"))
        requirements = account.get("requirements") or {}
        return {
            "connected": charges_enabled and payouts_enabled,
            "accountId": account["id"],
            "chargesEnabled": charges_enabled,
            "payoutsEnabled": payouts_enabled,
            "detailsSubmitted": bool(account.get("details_submitted")),
            "currentlyDue": list(requirements.get("currently_due") or []),
        }

    # ------------------------------------------------------------------
    # Client payments
    # ------------------------------------------------------------------

    def create_payment_intent(self, data: PaymentIntentRequest) -> dict:
        if data.businessId is None or data.amount is None:
            raise HTTPException(status_code=400, detail="Missing required fields")
        if data.amount <= 0:
            raise HTTPException(status_code=400, detail="Amount must be greater than zero")

        business = BusinessRepository.get_by_id(self.db, data.businessId)
        if not business:
            raise HTTPException(status_code=404, detail="Business not found")
        if not business.stripe_account_id:
            raise HTTPException(status_code=400, detail="This business has not connected Stripe yet")

        metadata = {
            "businessId": str(business.id),
            "appointmentId": str(data.appointmentId or ""),
            "stripeAccountId": business.stripe_account_id,
            "isDeposit": "true" if data.isDeposit else "false",
        }
        try:
            intent = stripe_service.create_destination_payment_intent(
                amount=to_smallest_unit(data.amount, data.currency),
                currency=data.currency,
                destination=business.stripe_account_id,
                metadata=metadata,
                description=f"{business.business_name} appointment",
                receipt_email=data.receiptEmail,
            )
        except STRIPE_ERRORS as e:
            logger.error(f"❌ Payment intent failed for business {business.id}: {e}")
            raise stripe_http_error(e) from e

        return {"clientSecret": intent["client_secret"], "paymentIntentId": intent["id"]}

    def create_refund(self, data: RefundRequest, business: Business) -> dict:
        try:
            intent = stripe_service.retrieve_payment_intent(data.paymentIntentId)
        except STRIPE_ERRORS as e:
            raise stripe_http_error(e) from e

        if (intent.get("metadata") or {}).get("businessId") != str(business.id):
            raise HTTPException(status_code=404, detail="Payment not found")

        amount = to_smallest_unit(data.amount, intent["currency"]) if data.amount is not None else None
        try:
            refund = stripe_service.create_refund(
                data.paymentIntentId,
                amount=amount,
                metadata={"reason": data.reason or "", "businessId": str(business.id)},
            )
        except STRIPE_ERRORS as e:
            logger.error(f"❌ Refund failed for {data.paymentIntentId}: {e}")
            raise stripe_http_error(e) from e

        appointment = AppointmentRepository.get_by_payment_intent(self.db, data.paymentIntentId)
        if appointment and appointment.business_id == business.id:
            appointment.payment_status = "refunded"
            self.db.commit()
            logger.info(f"↩️ Appointment {appointment.id} marked refunded")

        return {
            "success": True,
            "refundId": refund["id"],
            "amount": from_smallest_unit(refund["amount"], intent["currency"]),
            "status": refund["status"],
        }

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def handle_event(self, event: dict) -> None:
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}
        logger.info(f"🔔 Stripe webhook {event.get('id')} type={event_type}")

        if event_type == "payment_intent.succeeded":
            await self._payment_intent_succeeded(obj)
        elif event_type == "checkout.session.completed":
            await self._checkout_completed(obj)
        elif event_type in ("customer.subscription.updated", "customer.subscription.deleted"):
            SubscriptionService(self.db).sync_from_stripe(obj, deleted=event_type.endswith("deleted"))
        else:
            logger.info(f"ℹ️ Unhandled Stripe event type {event_type}")

    async def _payment_intent_succeeded(self, intent: dict) -> None:
        metadata = intent.get("metadata") or {}

        if metadata.get("type") == VOUCHER_PURCHASE:
            await VoucherService(self.db).issue_from_stripe(
                metadata, intent["amount"], intent["currency"], intent["id"]
            )
            return

        appointment_id = metadata.get("appointmentId")
        if not appointment_id or not metadata.get("businessId"):
            return

        appointment = AppointmentRepository.get_by_id(self.db, int(appointment_id), int(metadata["businessId"]))
        if not appointment:
            logger.warning(f"⚠️ Payment {intent['id']} references unknown appointment {appointment_id}")
            return

        AppointmentService(self.db).apply_stripe_payment(
            appointment, from_smallest_unit(intent["amount"], intent["currency"]), intent["id"]
        )

    async def _checkout_completed(self, session: dict) -> None:
        metadata = session.get("metadata") or {}

        if metadata.get("type") == "subscription":
            SubscriptionService(self.db).activate_from_checkout(session)
        elif metadata.get("type") == VOUCHER_PURCHASE:
            await VoucherService(self.db).issue_from_stripe(
                metadata,
                session["amount_total"],
                session["currency"],
                session.get("payment_intent"),
                session_id=session["id"],
            )
