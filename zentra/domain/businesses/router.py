"""Business router - Onboarding, profile, settings and public booking page"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_business, get_firebase_claims
from ...database import get_db
from ...models import Business
from .schemas import (
    BusinessCreate,
    BusinessResponse,
    BusinessUpdate,
    PublicBusinessResponse,
    PublicService,
    PublicStaff,
    ReminderSettingsUpdate,
)
from .service import BusinessService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/businesses", tags=["Businesses"])


def get_business_service(db: Session = Depends(get_db)) -> BusinessService:
    """Dependency injection for BusinessService"""
    return BusinessService(db)


def business_to_response(business: Business) -> BusinessResponse:
    return BusinessResponse(
        id=business.id,
        businessName=business.business_name,
        ownerName=business.owner_name,
        email=business.email,
        phone=business.phone,
        businessType=business.business_type,
        address=business.address,
        settings=business.settings,
        currency=business.currency,
        stripeConnected=bool(business.stripe_account_id),
        subscriptionPlan=business.subscription_plan,
        subscriptionStatus=business.subscription_status,
        trialEnd=business.trial_end,
        dailyReminders=business.daily_reminders,
        clientReminders=business.client_reminders,
        createdAt=business.created_at,
    )


# ============================================================================
# OWNER ENDPOINTS
# ============================================================================


@router.post("", response_model=BusinessResponse, status_code=201)
async def create_business(
    data: BusinessCreate,
    claims: dict = Depends(get_firebase_claims),
    service: BusinessService = Depends(get_business_service),
):
    """Onboard the authenticated user's business"""
    business = await service.onboard(claims["uid"], data)
    return business_to_response(business)


@router.get("/me", response_model=BusinessResponse)
async def get_my_business(business: Business = Depends(get_current_business)):
    return business_to_response(business)


@router.patch("/me", response_model=BusinessResponse)
async def update_my_business(
    data: BusinessUpdate,
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    """Update profile fields and merge settings"""
    return business_to_response(service.update(business, data))


@router.put("/me/reminders", response_model=BusinessResponse)
async def update_reminder_settings(
    data: ReminderSettingsUpdate,
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    return business_to_response(service.update_reminders(business, data))


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@router.get("/{business_id}/public", response_model=PublicBusinessResponse)
async def get_public_business(
    business_id: int,
    service: BusinessService = Depends(get_business_service),
):
    """Public booking page data - no authentication required"""
    business, services, staff = service.get_public(business_id)
    settings = business.settings or {}
    return PublicBusinessResponse(
        id=business.id,
        businessName=business.business_name,
        businessType=business.business_type,
        address=business.address,
        currency=business.currency,
        depositRequired=bool(settings.get("depositRequired")),
        depositPercentage=float(settings.get("depositPercentage") or 0),
        acceptsCardPayments=bool(business.stripe_account_id),
        services=[
            PublicService(
                id=s.id,
                name=s.name,
                description=s.description,
                category=s.category,
                duration=s.duration,
                price=s.price,
                depositRequired=s.deposit_required,
            )
            for s in services
        ],
        staff=[
            PublicStaff(
                id=m.id,
                name=m.name,
                role=m.role,
                services=m.services or [],
                schedule=m.schedule or {},
            )
            for m in staff
        ],
    )
