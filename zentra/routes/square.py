"""
Square OAuth and Payments Integration
Per-business Square connection used as an alternative card processor
"""

import logging
import secrets
import uuid
from datetime import datetime
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import get_current_business_with_access
from ..currency import from_smallest_unit, to_smallest_unit
from ..database import get_db
from ..domain.appointments.repository import AppointmentRepository
from ..domain.appointments.service import apply_payment
from ..domain.businesses.repository import BusinessRepository
from ..models import Business
from ..models_square import SquareIntegration
from ..services import square_service
from ..services.square_service import SquareAPIError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/square", tags=["Square"])


# Pydantic Models
class SquareStatusResponse(BaseModel):
    connected: bool
    merchantId: Optional[str] = None
    merchantName: Optional[str] = None
    locationId: Optional[str] = None


class SquarePaymentRequest(BaseModel):
    businessId: int
    sourceId: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    currency: str = "USD"
    appointmentId: Optional[int] = None
    note: Optional[str] = Field(None, max_length=500)


class SquareRefundRequest(BaseModel):
    paymentId: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    currency: str = "USD"
    reason: Optional[str] = Field(None, max_length=192)


# Helper Functions
def _get_integration(db: Session, business_id: int) -> Optional[SquareIntegration]:
    return (
        db.query(SquareIntegration)
        .filter(SquareIntegration.business_id == business_id, SquareIntegration.is_active.is_(True))
        .first()
    )


def _square_http_error(error: Exception) -> HTTPException:
    if isinstance(error, SquareAPIError):
        return HTTPException(status_code=error.status_code, detail=error.detail)
    return HTTPException(status_code=502, detail="Square is unreachable")


def _parse_expiry(expires_at: Optional[str]) -> Optional[datetime]:
    if not expires_at:
        return None
    try:
        return datetime.fromisoformat(expires_at.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        logger.warning(f"Failed to parse Square expires_at: {expires_at}")
        return None


# Routes
@router.post("/oauth/initiate")
async def initiate_oauth(business: Business = Depends(get_current_business_with_access)):
    """Authorization URL for the Square OAuth 2.0 flow"""
    if not square_service.is_configured():
        raise HTTPException(status_code=500, detail="Square not configured")

    state = secrets.token_urlsafe(32)
    logger.info(f"🟦 Square OAuth initiated for business {business.id}")
    return {"oauthUrl": square_service.build_authorize_url(state), "state": state}


@router.get("/callback-handler")
async def oauth_callback_handler(
    code: str,
    state: Optional[str] = None,
    business: Business = Depends(get_current_business_with_access),
    db: Session = Depends(get_db),
):
    """
    Complete the Square OAuth 2.0 flow.

    Exchanges the code for tokens, looks up the merchant and its active
    location, and stores the tokens encrypted.
    """
    if not square_service.is_configured():
        raise HTTPException(status_code=500, detail="Square not configured")

    try:
        token_data = await square_service.exchange_code(code)
        access_token = token_data.get("access_token")
        merchant_id = token_data.get("merchant_id")
        if not access_token or not merchant_id:
            raise HTTPException(status_code=400, detail="Invalid token response from Square")

        merchant = await square_service.get_merchant(access_token)
        location_id = await square_service.get_location_id(access_token)
    except (SquareAPIError, httpx.HTTPError) as e:
        raise _square_http_error(e) from e

    refresh_token = token_data.get("refresh_token")
    integration = db.query(SquareIntegration).filter(SquareIntegration.business_id == business.id).first()
    if not integration:
        integration = SquareIntegration(business_id=business.id)
        db.add(integration)

    integration.merchant_id = merchant_id
    integration.merchant_name = merchant.get("business_name")
    integration.location_id = location_id
    integration.access_token = square_service.encrypt_token(access_token)
    integration.refresh_token = square_service.encrypt_token(refresh_token) if refresh_token else None
    integration.token_expires_at = _parse_expiry(token_data.get("expires_at"))
    integration.is_active = True
    db.commit()

    logger.info(f"✅ Square connected for business {business.id} (merchant {merchant_id})")
    return {"success": True, "merchantId": merchant_id, "locationId": location_id}


@router.get("/status", response_model=SquareStatusResponse)
async def get_status(
    business: Business = Depends(get_current_business_with_access),
    db: Session = Depends(get_db),
):
    integration = _get_integration(db, business.id)
    if not integration:
        return SquareStatusResponse(connected=False)
    return SquareStatusResponse(
        connected=True,
        merchantId=integration.merchant_id,
        merchantName=integration.merchant_name,
        locationId=integration.location_id,
    )


@router.post("/disconnect")
async def disconnect(
    business: Business = Depends(get_current_business_with_access),
    db: Session = Depends(get_db),
):
    integration = _get_integration(db, business.id)
    if not integration:
        raise HTTPException(status_code=404, detail="Square not connected")

    integration.is_active = False
    db.commit()
    logger.info(f"🔌 Square disconnected for business {business.id}")
    return {"success": True}


@router.post("/fetch-locations")
async def fetch_locations(
    business: Business = Depends(get_current_business_with_access),
    db: Session = Depends(get_db),
):
    """Refresh the stored location id from Square"""
    integration = _get_integration(db, business.id)
    if not integration:
        raise HTTPException(status_code=400, detail="Square not connected")

    try:
        location_id = await square_service.get_location_id(square_service.decrypt_token(integration.access_token))
    except (SquareAPIError, httpx.HTTPError) as e:
        raise _square_http_error(e) from e

    integration.location_id = location_id
    db.commit()
    return {"success": True, "locationId": location_id}


@router.post("/create-payment")
async def create_payment(data: SquarePaymentRequest, db: Session = Depends(get_db)):
    """Public: charge a card nonce from the Square Web Payments SDK"""
    business = BusinessRepository.get_by_id(db, data.businessId)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")

    integration = _get_integration(db, business.id)
    if not integration:
        raise HTTPException(status_code=400, detail="Square not connected")

    access_token = square_service.decrypt_token(integration.access_token)
    try:
        if not integration.location_id:
            integration.location_id = await square_service.get_location_id(access_token)
            db.commit()
        if not integration.location_id:
            raise HTTPException(status_code=400, detail="Square location not configured. Please reconnect Square.")

        payload = {
            "source_id": data.sourceId,
            "idempotency_key": str(uuid.uuid4()),
            "amount_money": {
                "amount": to_smallest_unit(data.amount, data.currency),
                "currency": data.currency.upper(),
            },
            "location_id": integration.location_id,
        }
        if data.appointmentId:
            payload["reference_id"] = str(data.appointmentId)
        if data.note:
            payload["note"] = data.note

        payment = await square_service.create_payment(access_token, payload)
    except (SquareAPIError, httpx.HTTPError) as e:
        raise _square_http_error(e) from e

    if data.appointmentId:
        appointment = AppointmentRepository.get_by_id(db, data.appointmentId, business.id)
        if appointment:
            paid = payment.get("amount_money", {}).get("amount")
            apply_payment(
                appointment, from_smallest_unit(paid, data.currency) if paid is not None else data.amount
            )
            appointment.payment_method = "card"
            appointment.transaction_id = payment.get("id")
            db.commit()

    logger.info(f"💳 Square payment {payment.get('id')} for business {business.id}")
    return {"success": True, "paymentId": payment.get("id"), "payment": payment}


@router.post("/create-refund")
async def create_refund(
    data: SquareRefundRequest,
    business: Business = Depends(get_current_business_with_access),
    db: Session = Depends(get_db),
):
    integration = _get_integration(db, business.id)
    if not integration:
        raise HTTPException(status_code=400, detail="Square not connected")

    payload = {
        "idempotency_key": str(uuid.uuid4()),
        "payment_id": data.paymentId,
        "amount_money": {
            "amount": to_smallest_unit(data.amount, data.currency),
            "currency": data.currency.upper(),
        },
    }
    if data.reason:
        payload["reason"] = data.reason

    try:
        refund = await square_service.create_refund(square_service.decrypt_token(integration.access_token), payload)
    except (SquareAPIError, httpx.HTTPError) as e:
        raise _square_http_error(e) from e

    logger.info(f"↩️ Square refund {refund.get('id')} for payment {data.paymentId}")
    return {"success": True, "refundId": refund.get("id"), "status": refund.get("status")}
