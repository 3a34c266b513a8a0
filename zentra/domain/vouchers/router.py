"""Voucher router - public purchase/validation and owner management"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import Business, Voucher
from ...rate_limiter import voucher_validate_limiter
from .schemas import (
    CreateVoucherRequest,
    ManualVoucherCreate,
    RedeemVoucherRequest,
    ValidateVoucherRequest,
    ValidateVoucherResponse,
    VoucherPurchaseRequest,
    VoucherResponse,
    VoucherSummary,
)
from .service import VoucherService

router = APIRouter(prefix="/vouchers", tags=["Vouchers"])


def get_voucher_service(db: Session = Depends(get_db)) -> VoucherService:
    """Dependency injection for VoucherService"""
    return VoucherService(db)


def voucher_to_response(v: Voucher) -> VoucherResponse:
    return VoucherResponse(
        id=v.id,
        code=v.code,
        value=v.value,
        originalValue=v.original_value,
        balance=v.balance,
        currency=v.currency,
        recipientName=v.recipient_name,
        recipientEmail=v.recipient_email,
        purchaserName=v.purchaser_name,
        purchaserEmail=v.purchaser_email,
        message=v.message,
        expiryDate=v.expiry_date,
        status=v.status,
        redeemed=v.redeemed,
        redeemedAmount=v.redeemed_amount or 0.0,
        source=v.source,
        createdAt=v.created_at,
    )


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@router.post("/create-payment-intent")
async def create_voucher_payment_intent(
    data: VoucherPurchaseRequest,
    service: VoucherService = Depends(get_voucher_service),
):
    """Destination charge to the business's Stripe account for an embedded card form"""
    return service.create_payment_intent(data)


@router.post("/create-checkout")
async def create_voucher_checkout(
    data: VoucherPurchaseRequest,
    service: VoucherService = Depends(get_voucher_service),
):
    """Hosted Stripe Checkout for a voucher purchase"""
    return service.create_checkout(data)


@router.post("/create-voucher")
async def create_voucher(
    data: CreateVoucherRequest,
    service: VoucherService = Depends(get_voucher_service),
):
    """Issue the voucher after payment; repeated calls return the same voucher"""
    voucher, created = await service.create_from_payment(data)
    return {
        "success": True,
        "created": created,
        "voucherId": voucher.id,
        "voucherCode": voucher.code,
        "expiryDate": voucher.expiry_date.isoformat(),
    }


@router.post("/validate", response_model=ValidateVoucherResponse)
async def validate_voucher(
    data: ValidateVoucherRequest,
    service: VoucherService = Depends(get_voucher_service),
    _: None = Depends(voucher_validate_limiter),
):
    voucher = service.validate(data.code, data.businessId, data.amount)
    return ValidateVoucherResponse(
        valid=True,
        voucher=VoucherSummary(
            id=voucher.id,
            code=voucher.code,
            value=voucher.value,
            balance=voucher.balance,
            originalValue=voucher.original_value,
            currency=voucher.currency,
            expiryDate=voucher.expiry_date,
        ),
    )


# ============================================================================
# OWNER ENDPOINTS
# ============================================================================


@router.get("", response_model=list[VoucherResponse])
async def list_vouchers(
    business: Business = Depends(get_current_business_with_access),
    service: VoucherService = Depends(get_voucher_service),
):
    return [voucher_to_response(v) for v in service.list_vouchers(business)]


@router.post("/manual", response_model=VoucherResponse, status_code=201)
async def create_manual_voucher(
    data: ManualVoucherCreate,
    business: Business = Depends(get_current_business_with_access),
    service: VoucherService = Depends(get_voucher_service),
):
    """Voucher issued without payment (gifts, compensation, in-store sales)"""
    return voucher_to_response(await service.create_manual(data, business))


@router.post("/redeem", response_model=VoucherResponse)
async def redeem_voucher(
    data: RedeemVoucherRequest,
    business: Business = Depends(get_current_business_with_access),
    service: VoucherService = Depends(get_voucher_service),
):
    return voucher_to_response(service.redeem(data.code, data.amount, business))


@router.patch("/{voucher_id}/cancel", response_model=VoucherResponse)
async def cancel_voucher(
    voucher_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: VoucherService = Depends(get_voucher_service),
):
    return voucher_to_response(service.cancel(voucher_id, business))
