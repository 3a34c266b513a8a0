"""Billing router - Subscriptions, plan limits, trial status and API usage"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api_tracking import get_usage_stats
from ...auth import get_current_business
from ...database import get_db
from ...models import Business
from ...plan_limits import get_trial_status
from .schemas import (
    CheckoutResponse,
    LimitCheckResponse,
    SubscriptionCreate,
    SubscriptionUpdate,
    TrialStatusResponse,
)
from .service import SubscriptionService

router = APIRouter(tags=["Billing"])


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    """Dependency injection for SubscriptionService"""
    return SubscriptionService(db)


# ============================================================================
# SUBSCRIPTIONS
# ============================================================================


@router.get("/subscriptions/plans")
async def list_plans():
    return {"plans": SubscriptionService.list_plans()}


@router.post("/subscriptions/create", response_model=CheckoutResponse)
async def create_subscription(
    data: SubscriptionCreate,
    business: Business = Depends(get_current_business),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Start a Stripe Checkout session for a plan"""
    return service.create(business, data.planId)


@router.get("/subscriptions/current")
async def get_current_subscription(
    business: Business = Depends(get_current_business),
    service: SubscriptionService = Depends(get_subscription_service),
):
    return service.get_current(business)


@router.post("/subscriptions/cancel")
async def cancel_subscription(
    business: Business = Depends(get_current_business),
    service: SubscriptionService = Depends(get_subscription_service),
):
    return service.cancel(business)


@router.post("/subscriptions/update")
async def update_subscription(
    data: SubscriptionUpdate,
    business: Business = Depends(get_current_business),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Switch plans; downgrades refund the unused part of the period"""
    return service.update(business, data.planId)


@router.get("/subscriptions/limits", response_model=LimitCheckResponse)
async def check_subscription_limit(
    type: str = Query(..., description="staff, clients, appointments or locations"),
    business: Business = Depends(get_current_business),
    service: SubscriptionService = Depends(get_subscription_service),
):
    return service.check_limit(business, type)


# ============================================================================
# TRIAL / USAGE
# ============================================================================


@router.get("/trial/status", response_model=TrialStatusResponse)
async def trial_status(business: Business = Depends(get_current_business)):
    return get_trial_status(business)


@router.get("/usage/stats")
async def usage_stats(
    business: Business = Depends(get_current_business),
    db: Session = Depends(get_db),
):
    return get_usage_stats(db, business)
