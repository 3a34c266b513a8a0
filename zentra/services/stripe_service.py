"""Stripe service - Connect accounts, client payments and platform subscriptions"""

import json
import logging
from typing import Optional

import stripe
from fastapi import HTTPException

from ..config import FRONTEND_URL, STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET

logger = logging.getLogger(__name__)


class StripeNotConfiguredError(Exception):
    """STRIPE_SECRET_KEY is missing"""


def stripe_error_message(error: Exception) -> str:
    """Human readable message from a Stripe exception"""
    return getattr(error, "user_message", None) or str(error) or "Stripe request failed"


def stripe_http_error(error: Exception) -> HTTPException:
    """Map a Stripe failure to the HTTP error returned to the caller"""
    if isinstance(error, StripeNotConfiguredError):
        return HTTPException(status_code=503, detail="Payment processing is not configured")
    return HTTPException(status_code=400, detail=stripe_error_message(error))


class StripeService:
    """
    Thin wrapper around the Stripe SDK.

    Every method returns the Stripe object (a dict subclass) and lets
    ``stripe.StripeError`` propagate so callers decide the HTTP status.
    """

    def __init__(self, api_key: Optional[str] = None, webhook_secret: Optional[str] = None):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; payment endpoints will fail until configured")
        else:
            stripe.api_key = self.api_key
            logger.info("Stripe client initialized")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _require(self) -> None:
        if not self.api_key:
            raise StripeNotConfiguredError("Stripe is not configured")

    # ------------------------------------------------------------------
    # Connect
    # ------------------------------------------------------------------

    def create_connect_account(self, email: str, business_name: str, metadata: dict):
        self._require()
        account = stripe.Account.create(
            type="standard",
            email=email,
            business_profile={"name": business_name},
            capabilities={"card_payments": {"requested": True}, "transfers": {"requested": True}},
            metadata=metadata,
        )
        logger.info(f"✅ Created Stripe Connect account {account['id']} for {email}")
        return account

    def create_account_link(self, account_id: str):
        self._require()
        return stripe.AccountLink.create(
            account=account_id,
            refresh_url=f"{FRONTEND_URL}/dashboard/settings?stripe_refresh=true",
            return_url=f"{FRONTEND_URL}/dashboard/settings?stripe_connected=true",
            type="account_onboarding",
        )

    def retrieve_account(self, account_id: str):
        self._require()
        return stripe.Account.retrieve(account_id)

    # ------------------------------------------------------------------
    # Client payments
    # ------------------------------------------------------------------

    def create_destination_payment_intent(
        self,
        amount: int,
        currency: str,
        destination: str,
        metadata: dict,
        description: Optional[str] = None,
        receipt_email: Optional[str] = None,
    ):
        """PaymentIntent on the platform whose funds transfer to the connected account"""
        self._require()
        params = {
            "amount": amount,
            "currency": currency.lower(),
            "payment_method_types": ["card"],
            "transfer_data": {"destination": destination},
            "metadata": metadata,
        }
        if description:
            params["description"] = description
        if receipt_email:
            params["receipt_email"] = receipt_email

        intent = stripe.PaymentIntent.create(**params)
        logger.info(f"💳 Created payment intent {intent['id']} for {amount} {currency} -> {destination}")
        return intent

    def retrieve_payment_intent(self, payment_intent_id: str):
        self._require()
        return stripe.PaymentIntent.retrieve(payment_intent_id)

    def create_refund(self, payment_intent_id: str, amount: Optional[int] = None, metadata: Optional[dict] = None):
        """Refund a payment intent; amount None refunds the full charge"""
        self._require()
        params = {
            "payment_intent": payment_intent_id,
            "reason": "requested_by_customer",
            "metadata": metadata or {},
        }
        if amount is not None:
            params["amount"] = amount
        refund = stripe.Refund.create(**params)
        logger.info(f"↩️ Created refund {refund['id']} for {payment_intent_id}")
        return refund

    def create_checkout_session(self, **params):
        self._require()
        session = stripe.checkout.Session.create(**params)
        logger.info(f"🧾 Created checkout session {session['id']} ({params.get('mode')})")
        return session

    def retrieve_checkout_session(self, session_id: str):
        self._require()
        return stripe.checkout.Session.retrieve(session_id)

    # ------------------------------------------------------------------
    # Platform subscriptions
    # ------------------------------------------------------------------

    def create_customer(self, email: str, name: str, metadata: dict):
        self._require()
        return stripe.Customer.create(email=email, name=name, metadata=metadata)

    def get_active_subscription(self, customer_id: str):
        """First active subscription for the customer, or None"""
        self._require()
        subscriptions = stripe.Subscription.list(customer=customer_id, status="active", limit=1)
        data = subscriptions["data"]
        return data[0] if data else None

    def cancel_at_period_end(self, subscription_id: str):
        self._require()
        return stripe.Subscription.modify(subscription_id, cancel_at_period_end=True)

    def change_subscription_price(self, subscription, price_id: str, metadata: dict):
        self._require()
        return stripe.Subscription.modify(
            subscription["id"],
            items=[{"id": subscription["items"]["data"][0]["id"], "price": price_id}],
            proration_behavior="always_invoice",
            metadata=metadata,
        )

    def retrieve_price(self, price_id: str):
        self._require()
        return stripe.Price.retrieve(price_id)

    def create_monthly_price(self, unit_amount: int, currency: str, product_name: str):
        self._require()
        product = stripe.Product.create(
            name=product_name, description="Monthly subscription for Zentra booking platform"
        )
        return stripe.Price.create(
            currency=currency,
            unit_amount=unit_amount,
            recurring={"interval": "month"},
            product=product["id"],
        )

    def latest_invoice_payment_intent(self, subscription) -> Optional[str]:
        """Payment intent that paid the subscription's most recent invoice"""
        self._require()
        invoice_id = subscription.get("latest_invoice")
        if not invoice_id:
            return None
        if isinstance(invoice_id, dict):
            invoice_id = invoice_id.get("id")
        invoice = stripe.Invoice.retrieve(invoice_id)
        payment_intent = invoice.get("payment_intent")
        if isinstance(payment_intent, dict):
            return payment_intent.get("id")
        return payment_intent

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def parse_webhook(self, payload: bytes, signature: str) -> dict:
        """
        Verify the Stripe-Signature header and return the event as a plain dict.

        Raises:
            stripe.SignatureVerificationError: Invalid signature
        """
        if not self.webhook_secret:
            raise StripeNotConfiguredError("STRIPE_WEBHOOK_SECRET is not configured")
        stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        return json.loads(payload)


stripe_service = StripeService(STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET)
