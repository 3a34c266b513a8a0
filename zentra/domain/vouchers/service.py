"""Voucher service - Purchase, issue, validation and redemption of gift vouchers"""

import logging
import secrets
import string
from datetime import datetime
from typing import Optional

import stripe
from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...currency import from_smallest_unit, to_smallest_unit
from ...email_service import send_voucher_emails
from ...models import Business, Voucher
from ...services.stripe_service import StripeNotConfiguredError, stripe_http_error, stripe_service
from ..businesses.repository import BusinessRepository
from .repository import VoucherRepository
from .schemas import CreateVoucherRequest, ManualVoucherCreate, VoucherPurchaseRequest

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 10
VOUCHER_PURCHASE = "voucher_purchase"


def generate_voucher_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def purchase_metadata(data: VoucherPurchaseRequest) -> dict:
    """Stripe metadata carrying everything needed to issue the voucher from a webhook"""
    return {
        "type": VOUCHER_PURCHASE,
        "businessId": str(data.businessId),
        "voucherValue": str(data.amount),
        "currency": data.currency,
        "recipientName": data.recipientName,
        "recipientEmail": data.recipientEmail,
        "purchaserName": data.purchaserName,
        "purchaserEmail": data.purchaserEmail,
        "purchaserPhone": data.purchaserPhone or "",
        "message": data.message or "",
    }


def details_from_metadata(metadata: dict) -> dict:
    return {
        "recipient_name": metadata.get("recipientName") or "Voucher holder",
        "recipient_email": metadata.get("recipientEmail"),
        "purchaser_name": metadata.get("purchaserName") or None,
        "purchaser_email": metadata.get("purchaserEmail") or None,
        "purchaser_phone": metadata.get("purchaserPhone") or None,
        "message": metadata.get("message") or None,
    }


class VoucherService:
    """Service layer for voucher business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VoucherRepository()

    def _get_business(self, business_id: int) -> Business:
        business = BusinessRepository.get_by_id(self.db, business_id)
        if not business:
            raise HTTPException(status_code=404, detail="Business not found")
        return business

    def _get_connected_business(self, business_id: int) -> Business:
        business = self._get_business(business_id)
        if not business.stripe_account_id:
            raise HTTPException(status_code=400, detail="This business has not connected Stripe yet")
        return business

    def _unique_code(self) -> str:
        code = generate_voucher_code()
        while self.repo.get_by_code(self.db, code):
            code = generate_voucher_code()
        return code

    # ------------------------------------------------------------------
    # Purchase
    # ------------------------------------------------------------------

    def create_payment_intent(self, data: VoucherPurchaseRequest) -> dict:
        business = self._get_connected_business(data.businessId)
        try:
            intent = stripe_service.create_destination_payment_intent(
                amount=to_smallest_unit(data.amount, data.currency),
                currency=data.currency,
                destination=business.stripe_account_id,
                metadata=purchase_metadata(data),
                description=f"Gift voucher - {business.business_name}",
                receipt_email=data.purchaserEmail,
            )
        except (stripe.StripeError, StripeNotConfiguredError) as e:
            logger.error(f"❌ Voucher payment intent failed for business {business.id}: {e}")
            raise stripe_http_error(e) from e

        return {"clientSecret": intent["client_secret"], "paymentIntentId": intent["id"]}

    def create_checkout(self, data: VoucherPurchaseRequest) -> dict:
        business = self._get_connected_business(data.businessId)
        metadata = purchase_metadata(data)
        try:
            session = stripe_service.create_checkout_session(
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": data.currency,
                            "product_data": {
                                "name": f"Gift voucher - {business.business_name}",
                                "description": f"For {data.recipientName}",
                            },
                            "unit_amount": to_smallest_unit(data.amount, data.currency),
                        },
                        "quantity": 1,
                    }
                ],
                payment_intent_data={
                    "transfer_data": {"destination": business.stripe_account_id},
                    "metadata": metadata,
                },
                customer_email=data.purchaserEmail,
                metadata=metadata,
                success_url=f"{FRONTEND_URL}/voucher-success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{FRONTEND_URL}/vouchers/{business.id}",
            )
        except (stripe.StripeError, StripeNotConfiguredError) as e:
            logger.error(f"❌ Voucher checkout failed for business {business.id}: {e}")
            raise stripe_http_error(e) from e

        return {"sessionId": session["id"], "url": session["url"]}

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    async def issue_voucher(
        self,
        business: Business,
        value: float,
        currency: str,
        details: dict,
        source: str = "online_purchase",
        payment_intent_id: Optional[str] = None,
        session_id: Optional[str] = None,
        expiry_date: Optional[datetime] = None,
        send_emails: bool = True,
    ) -> tuple[Voucher, bool]:
        """
        Store a voucher and email it. Idempotent on payment intent / session id.

        Returns:
            (voucher, created)
        """
        existing = self.repo.get_by_payment(self.db, payment_intent_id, session_id)
        if existing:
            logger.info(f"ℹ️ Voucher {existing.code} already issued for this payment")
            return existing, False

        now = datetime.utcnow()
        voucher = self.repo.create(
            self.db,
            business_id=business.id,
            code=self._unique_code(),
            value=value,
            original_value=value,
            balance=value,
            currency=currency.lower(),
            expiry_date=expiry_date or now + relativedelta(years=1),
            status="active",
            redeemed=False,
            redeemed_amount=0.0,
            source=source,
            stripe_payment_intent_id=payment_intent_id,
            stripe_session_id=session_id,
            **details,
        )
        logger.info(f"🎁 Voucher {voucher.code} issued for business {business.id} ({value} {currency})")

        if send_emails:
            results = await send_voucher_emails(voucher, business.business_name)
            logger.info(f"📧 Voucher {voucher.code} emails: {results}")

        return voucher, True

    def _check_purchase_metadata(self, metadata: Optional[dict], business_id: int) -> None:
        metadata = metadata or {}
        if metadata.get("type") != VOUCHER_PURCHASE or str(metadata.get("businessId")) != str(business_id):
            logger.warning(f"⚠️ Rejected voucher issue for business {business_id}: payment is not a voucher purchase")
            raise HTTPException(status_code=400, detail="Payment is not a voucher purchase for this business")

    def _verify_payment(self, data: CreateVoucherRequest) -> tuple[float, Optional[str]]:
        """Amount actually paid, and the payment intent behind it"""
        try:
            if data.paymentIntentId:
                intent = stripe_service.retrieve_payment_intent(data.paymentIntentId)
                if intent["status"] != "succeeded":
                    raise HTTPException(status_code=400, detail="Payment has not completed")
                self._check_purchase_metadata(intent.get("metadata"), data.businessId)
                return from_smallest_unit(intent["amount"], intent["currency"]), data.paymentIntentId

            session = stripe_service.retrieve_checkout_session(data.sessionId)
            if session["payment_status"] != "paid":
                raise HTTPException(status_code=400, detail="Payment has not completed")
            self._check_purchase_metadata(session.get("metadata"), data.businessId)
            return from_smallest_unit(session["amount_total"], session["currency"]), session.get("payment_intent")
        except (stripe.StripeError, StripeNotConfiguredError) as e:
            logger.error(f"❌ Could not verify voucher payment: {e}")
            raise stripe_http_error(e) from e

    async def create_from_payment(self, data: CreateVoucherRequest) -> tuple[Voucher, bool]:
        if not data.paymentIntentId and not data.sessionId:
            raise HTTPException(status_code=400, detail="paymentIntentId or sessionId is required")

        business = self._get_business(data.businessId)
        existing = self.repo.get_by_payment(self.db, data.paymentIntentId, data.sessionId)
        if existing:
            return existing, False

        value, payment_intent_id = self._verify_payment(data)
        details = {
            "recipient_name": data.recipientName,
            "recipient_email": data.recipientEmail,
            "purchaser_name": data.purchaserName,
            "purchaser_email": data.purchaserEmail,
            "purchaser_phone": data.purchaserPhone,
            "message": data.message,
        }
        return await self.issue_voucher(
            business,
            value,
            data.currency,
            details,
            payment_intent_id=payment_intent_id,
            session_id=data.sessionId,
        )

    async def issue_from_stripe(
        self, metadata: dict, amount: int, currency: str, payment_intent_id: Optional[str], session_id: Optional[str] = None
    ) -> Optional[Voucher]:
        """Voucher purchase confirmed by a webhook event"""
        business = BusinessRepository.get_by_id(self.db, int(metadata.get("businessId") or 0))
        if not business:
            logger.error(f"❌ Voucher webhook for unknown business {metadata.get('businessId')}")
            return None
        if not metadata.get("recipientEmail"):
            logger.error(f"❌ Voucher webhook missing recipient email for {payment_intent_id or session_id}")
            return None

        voucher, _ = await self.issue_voucher(
            business,
            from_smallest_unit(amount, currency),
            currency,
            details_from_metadata(metadata),
            payment_intent_id=payment_intent_id,
            session_id=session_id,
        )
        return voucher

    async def create_manual(self, data: ManualVoucherCreate, business: Business) -> Voucher:
        details = {
            "recipient_name": data.recipientName,
            "recipient_email": data.recipientEmail,
            "purchaser_name": data.purchaserName,
            "purchaser_email": data.purchaserEmail,
            "message": data.message,
        }
        voucher, _ = await self.issue_voucher(
            business,
            data.amount,
            business.currency,
            details,
            source="manual",
            expiry_date=data.expiryDate,
            send_emails=data.sendEmail,
        )
        return voucher

    # ------------------------------------------------------------------
    # Validate / redeem
    # ------------------------------------------------------------------

    def validate(self, code: str, business_id: int, amount: float = 0) -> Voucher:
        voucher = self.repo.get_by_code(self.db, code.strip(), business_id)
        if not voucher:
            raise HTTPException(status_code=404, detail="Invalid voucher code")

        if voucher.status != "active" or voucher.redeemed:
            raise HTTPException(status_code=400, detail="This voucher has already been used")

        if voucher.expiry_date and datetime.utcnow() > voucher.expiry_date:
            raise HTTPException(status_code=400, detail="This voucher has expired")

        if voucher.balance < (amount or 0):
            raise HTTPException(
                status_code=400,
                detail={"message": "Insufficient voucher balance", "availableBalance": voucher.balance},
            )

        return voucher

    def redeem(self, code: str, amount: float, business: Business) -> Voucher:
        voucher = self.validate(code, business.id, amount)

        voucher.balance = round(voucher.balance - amount, 2)
        voucher.redeemed_amount = round((voucher.redeemed_amount or 0) + amount, 2)
        if voucher.balance <= 0:
            voucher.balance = 0.0
            voucher.redeemed = True
            voucher.status = "redeemed"
        self.db.commit()
        self.db.refresh(voucher)
        logger.info(f"💳 Voucher {voucher.code} redeemed {amount}, balance {voucher.balance}")
        return voucher

    def list_vouchers(self, business: Business) -> list[Voucher]:
        return self.repo.get_all(self.db, business.id)

    def cancel(self, voucher_id: int, business: Business) -> Voucher:
        voucher = self.repo.get_by_id(self.db, voucher_id, business.id)
        if not voucher:
            raise HTTPException(status_code=404, detail="Voucher not found")
        if voucher.redeemed:
            raise HTTPException(status_code=400, detail="A fully redeemed voucher cannot be cancelled")

        voucher.status = "cancelled"
        self.db.commit()
        self.db.refresh(voucher)
        logger.info(f"🚫 Voucher {voucher.code} cancelled by business {business.id}")
        return voucher
