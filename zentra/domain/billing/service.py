"""
Subscription service - Zentra's own plans billed through Stripe Checkout

Plan state on the business row is only a mirror: Stripe is the source of
truth and webhooks keep the mirror current.
"""

import logging
import time
from datetime import datetime
from typing import Optional

import stripe
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...currency import from_smallest_unit, to_smallest_unit
from ...models import Business
from ...plan_limits import (
    LIMIT_TYPES,
    SUBSCRIPTION_PLANS,
    count_usage,
    check_limit,
    get_active_plan,
    get_price_id,
)
from ...services.stripe_service import StripeNotConfiguredError, stripe_http_error, stripe_service
from ..businesses.repository import BusinessRepository

logger = logging.getLogger(__name__)

STRIPE_ERRORS = (stripe.StripeError, StripeNotConfiguredError)

# Plan detection accepts amounts within this many units of the list price
PRICE_TOLERANCE = 1


def detect_plan(subscription) -> Optional[str]:
    """
    Work out which plan a Stripe subscription is on.

    Checks subscription metadata first, then the configured price ids, then
    falls back to matching the unit amount against the plan prices.
    """
    plan_name = (subscription.get("metadata") or {}).get("planName")
    if plan_name and plan_name.lower() in SUBSCRIPTION_PLANS:
        return plan_name.lower()

    price = subscription["items"]["data"][0]["price"]
    for plan_id in SUBSCRIPTION_PLANS:
        configured = get_price_id(plan_id)
        if configured and configured == price.get("id"):
            return plan_id

    unit_amount = price.get("unit_amount")
    if unit_amount:
        amount = from_smallest_unit(unit_amount, price.get("currency") or "gbp")
        for plan_id, plan in SUBSCRIPTION_PLANS.items():
            if abs(amount - plan["price"]) <= PRICE_TOLERANCE:
                return plan_id

    return None


def billing_period(subscription) -> tuple[Optional[int], Optional[int]]:
    """Current period bounds as unix timestamps; newer API versions keep them on the item"""
    start = subscription.get("current_period_start")
    end = subscription.get("current_period_end")
    if start and end:
        return start, end
    item = subscription["items"]["data"][0]
    return item.get("current_period_start"), item.get("current_period_end")


def prorated_refund(
    old_price: float,
    new_price: float,
    period_start: int,
    period_end: int,
    now: int,
    available: float,
) -> float:
    """Unused share of the price difference, never more than what can still be refunded"""
    duration = period_end - period_start
    if duration <= 86400:
        return 0.0
    remaining = max(0, period_end - now)
    refund = round((old_price - new_price) * remaining / duration, 2)
    return max(0.0, min(refund, available))


class SubscriptionService:
    def __init__(self, db: Session):
        self.db = db

    # ========================================================================
    # QUERIES
    # ========================================================================

    @staticmethod
    def list_plans() -> list[dict]:
        return list(SUBSCRIPTION_PLANS.values())

    def check_limit(self, business: Business, limit_type: str) -> dict:
        if limit_type not in LIMIT_TYPES:
            raise HTTPException(status_code=400, detail=f"Invalid limit type: {limit_type}")

        plan = get_active_plan(business)
        limit = plan["limits"][limit_type]
        current = count_usage(self.db, business, limit_type)
        return {
            "allowed": check_limit(limit, current),
            "current": current,
            "limit": limit,
            "plan": plan["id"],
        }

    def _active_subscription(self, business: Business):
        if not business.stripe_customer_id:
            return None
        try:
            return stripe_service.get_active_subscription(business.stripe_customer_id)
        except STRIPE_ERRORS as e:
            raise stripe_http_error(e) from e

    def get_current(self, business: Business) -> dict:
        subscription = self._active_subscription(business)
        if not subscription:
            return {"subscription": None, "message": "No active subscription found"}

        price = subscription["items"]["data"][0]["price"]
        plan_id = detect_plan(subscription)
        _, period_end = billing_period(subscription)
        return {
            "subscription": {
                "id": subscription["id"],
                "status": subscription["status"],
                "plan": {
                    "id": plan_id or "unknown",
                    "name": SUBSCRIPTION_PLANS[plan_id]["name"] if plan_id else "Unknown Plan",
                },
                "currentPeriodEnd": datetime.utcfromtimestamp(period_end).isoformat() if period_end else None,
                "cancelAtPeriodEnd": bool(subscription.get("cancel_at_period_end")),
                "priceId": price.get("id"),
            },
            "message": "Subscription found",
        }

    # ========================================================================
    # CHECKOUT / CHANGES
    # ========================================================================

    def create(self, business: Business, plan_id: str) -> dict:
        plan = SUBSCRIPTION_PLANS.get(plan_id)
        if not plan:
            raise HTTPException(status_code=400, detail="Invalid plan selected")

        if self._active_subscription(business):
            raise HTTPException(
                status_code=400,
                detail={
                    "message": "You already have an active subscription. Use update to change plans.",
                    "redirectToUpdate": True,
                },
            )

        try:
            if not business.stripe_customer_id:
                customer = stripe_service.create_customer(
                    email=business.email,
                    name=business.business_name,
                    metadata={"businessId": str(business.id)},
                )
                business.stripe_customer_id = customer["id"]
                self.db.commit()
                logger.info(f"👤 Created Stripe customer {customer['id']} for business {business.id}")

            price_id = get_price_id(plan_id)
            if price_id:
                line_item = {"price": price_id, "quantity": 1}
            else:
                line_item = {
                    "price_data": {
                        "currency": plan["currency"],
                        "unit_amount": to_smallest_unit(plan["price"], plan["currency"]),
                        "recurring": {"interval": plan["interval"]},
                        "product_data": {"name": f"Zentra {plan['name']} Plan"},
                    },
                    "quantity": 1,
                }

            metadata = {"businessId": str(business.id), "planName": plan["name"], "type": "subscription"}
            session = stripe_service.create_checkout_session(
                mode="subscription",
                customer=business.stripe_customer_id,
                line_items=[line_item],
                success_url=f"{FRONTEND_URL}/dashboard/subscription?success=true&session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{FRONTEND_URL}/dashboard/subscription?canceled=true",
                metadata=metadata,
                subscription_data={"metadata": metadata},
            )
        except STRIPE_ERRORS as e:
            logger.error(f"❌ Subscription checkout failed for business {business.id}: {e}")
            raise stripe_http_error(e) from e

        return {"sessionId": session["id"], "url": session.get("url")}

    def cancel(self, business: Business) -> dict:
        subscription = self._active_subscription(business)
        if not subscription:
            raise HTTPException(status_code=404, detail="No active subscription found")

        try:
            updated = stripe_service.cancel_at_period_end(subscription["id"])
        except STRIPE_ERRORS as e:
            raise stripe_http_error(e) from e

        _, period_end = billing_period(updated)
        logger.info(f"🛑 Subscription {subscription['id']} set to cancel at period end")
        return {
            "success": True,
            "cancelAtPeriodEnd": True,
            "currentPeriodEnd": datetime.utcfromtimestamp(period_end).isoformat() if period_end else None,
        }

    def update(self, business: Business, plan_id: str) -> dict:
        plan = SUBSCRIPTION_PLANS.get(plan_id)
        if not plan:
            raise HTTPException(status_code=400, detail="Invalid plan selected")

        subscription = self._active_subscription(business)
        if not subscription:
            raise HTTPException(status_code=404, detail="No active subscription found")

        current_plan_id = detect_plan(subscription)
        current_price_id = subscription["items"]["data"][0]["price"].get("id")
        new_price_id = get_price_id(plan_id)
        if current_plan_id == plan_id or (new_price_id and new_price_id == current_price_id):
            raise HTTPException(status_code=400, detail="You are already on this plan")

        refund_amount = 0.0
        refund_id = None
        current_price = SUBSCRIPTION_PLANS[current_plan_id]["price"] if current_plan_id else 0
        if plan["price"] < current_price:
            refund_amount, refund_id = self._downgrade_refund(subscription, current_price, plan["price"])

        try:
            if not new_price_id:
                price = stripe_service.create_monthly_price(
                    to_smallest_unit(plan["price"], plan["currency"]), plan["currency"], f"Zentra {plan['name']} Plan"
                )
                new_price_id = price["id"]
            stripe_service.change_subscription_price(
                subscription,
                new_price_id,
                metadata={"businessId": str(business.id), "planName": plan["name"]},
            )
        except STRIPE_ERRORS as e:
            logger.error(f"❌ Plan change failed for business {business.id}: {e}")
            raise stripe_http_error(e) from e

        business.subscription_plan = plan_id
        self.db.commit()
        logger.info(f"🔁 Business {business.id} moved {current_plan_id} -> {plan_id}")

        return {
            "success": True,
            "plan": plan_id,
            "isDowngrade": plan["price"] < current_price,
            "refundAmount": refund_amount,
            "refundId": refund_id,
        }

    def _downgrade_refund(self, subscription, old_price: float, new_price: float) -> tuple[float, Optional[str]]:
        """Refund the unused part of the current period; failures never block the plan change"""
        try:
            payment_intent_id = stripe_service.latest_invoice_payment_intent(subscription)
            period_start, period_end = billing_period(subscription)
            if not payment_intent_id or not period_start or not period_end:
                logger.warning(f"⚠️ No refundable payment found for subscription {subscription['id']}")
                return 0.0, None

            intent = stripe_service.retrieve_payment_intent(payment_intent_id)
            currency = intent["currency"]
            available = from_smallest_unit(intent["amount"] - (intent.get("amount_refunded") or 0), currency)
            amount = prorated_refund(old_price, new_price, period_start, period_end, int(time.time()), available)
            if amount <= 0:
                return 0.0, None

            refund = stripe_service.create_refund(
                payment_intent_id,
                amount=to_smallest_unit(amount, currency),
                metadata={"subscription_id": subscription["id"], "reason": "Subscription downgrade proration"},
            )
            logger.info(f"💸 Downgrade refund {refund['id']} of {amount} for {subscription['id']}")
            return amount, refund["id"]
        except STRIPE_ERRORS as e:
            logger.error(f"❌ Downgrade refund failed for {subscription['id']}: {e}")
            return 0.0, None

    # ========================================================================
    # WEBHOOK MIRRORING
    # ========================================================================

    def activate_from_checkout(self, session: dict) -> None:
        metadata = session.get("metadata") or {}
        business_id = metadata.get("businessId")
        business = BusinessRepository.get_by_id(self.db, int(business_id)) if business_id else None
        if not business:
            logger.warning(f"⚠️ Subscription checkout {session.get('id')} has no known business")
            return

        plan_name = (metadata.get("planName") or "").lower()
        if session.get("customer"):
            business.stripe_customer_id = session["customer"]
        if plan_name in SUBSCRIPTION_PLANS:
            business.subscription_plan = plan_name
        business.subscription_status = "active"
        business.stripe_subscription_id = session.get("subscription")
        business.trial_ended_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"✅ Business {business.id} subscribed to {plan_name}")

    def sync_from_stripe(self, subscription: dict, deleted: bool = False) -> None:
        business = BusinessRepository.get_by_stripe_customer_id(self.db, subscription.get("customer"))
        if not business:
            logger.warning(f"⚠️ Subscription {subscription.get('id')} has no known business")
            return

        if deleted:
            business.subscription_status = "canceled"
        else:
            business.subscription_status = subscription.get("status")
            plan_id = detect_plan(subscription)
            if plan_id:
                business.subscription_plan = plan_id
        business.stripe_subscription_id = subscription.get("id")
        self.db.commit()
        logger.info(f"🔄 Business {business.id} subscription now {business.subscription_status}")
