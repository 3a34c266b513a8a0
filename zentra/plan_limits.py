"""
Subscription plans, per-plan limits and the free trial window.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .config import (
    STRIPE_BUSINESS_PRICE_ID,
    STRIPE_PROFESSIONAL_PRICE_ID,
    STRIPE_STARTER_PRICE_ID,
    TRIAL_DAYS,
)
from .models import Appointment, Business, Client, Location, Staff

UNLIMITED = -1

# Monthly prices are in GBP
SUBSCRIPTION_PLANS = {
    "starter": {
        "id": "starter",
        "name": "Starter",
        "price": 29,
        "currency": "gbp",
        "interval": "month",
        "limits": {
            "staff": 1,
            "locations": 1,
            "clients": 1000,
            "appointments": 5000,
            "apiCalls": 10000,
        },
        "features": {
            "multiLocation": False,
            "staffManagement": False,
            "advancedReporting": False,
            "apiAccess": False,
            "whiteLabel": False,
            "prioritySupport": False,
        },
    },
    "professional": {
        "id": "professional",
        "name": "Professional",
        "price": 79,
        "currency": "gbp",
        "interval": "month",
        "limits": {
            "staff": 5,
            "locations": 1,
            "clients": 5000,
            "appointments": 25000,
            "apiCalls": 25000,
        },
        "features": {
            "multiLocation": False,
            "staffManagement": True,
            "advancedReporting": True,
            "apiAccess": False,
            "whiteLabel": False,
            "prioritySupport": True,
        },
    },
    "business": {
        "id": "business",
        "name": "Business",
        "price": 149,
        "currency": "gbp",
        "interval": "month",
        "limits": {
            "staff": UNLIMITED,
            "locations": 3,
            "clients": 25000,
            "appointments": 100000,
            "apiCalls": 50000,
        },
        "features": {
            "multiLocation": True,
            "staffManagement": True,
            "advancedReporting": True,
            "apiAccess": True,
            "whiteLabel": True,
            "prioritySupport": True,
        },
    },
}

# Trial businesses get the starter allowance
TRIAL_PLAN = {
    "id": "trial",
    "name": "Free Trial",
    "price": 0,
    "currency": "gbp",
    "interval": "month",
    "limits": dict(SUBSCRIPTION_PLANS["starter"]["limits"]),
    "features": dict(SUBSCRIPTION_PLANS["starter"]["features"]),
}

LIMIT_TYPES = ("staff", "clients", "appointments", "locations")


def get_price_id(plan_id: str) -> Optional[str]:
    """Configured Stripe price for a plan, if any"""
    return {
        "starter": STRIPE_STARTER_PRICE_ID,
        "professional": STRIPE_PROFESSIONAL_PRICE_ID,
        "business": STRIPE_BUSINESS_PRICE_ID,
    }.get(plan_id)


def get_plan(plan_id: Optional[str]) -> dict:
    if plan_id and plan_id.lower() in SUBSCRIPTION_PLANS:
        return SUBSCRIPTION_PLANS[plan_id.lower()]
    return TRIAL_PLAN


def get_active_plan(business: Business) -> dict:
    """Plan whose limits apply right now: the paid plan when active, otherwise the trial"""
    if business.subscription_status == "active" and business.subscription_plan:
        return get_plan(business.subscription_plan)
    return TRIAL_PLAN


def check_limit(limit: int, current_count: int) -> bool:
    """True when one more item fits under the limit"""
    if limit == UNLIMITED:
        return True
    return current_count < limit


def count_usage(db: Session, business: Business, limit_type: str) -> int:
    """Current usage for a limited resource"""
    if limit_type == "staff":
        return db.query(func.count(Staff.id)).filter(Staff.business_id == business.id).scalar() or 0
    if limit_type == "clients":
        return db.query(func.count(Client.id)).filter(Client.business_id == business.id).scalar() or 0
    if limit_type == "appointments":
        return (
            db.query(func.count(Appointment.id))
            .filter(Appointment.business_id == business.id)
            .scalar()
            or 0
        )
    if limit_type == "locations":
        return db.query(func.count(Location.id)).filter(Location.business_id == business.id).scalar() or 0
    raise ValueError(f"Unknown limit type: {limit_type}")


def can_add(db: Session, business: Business, limit_type: str) -> tuple[bool, str]:
    """
    Check whether the business may create one more item of the given type.

    Returns:
        (allowed, error_message)
    """
    plan = get_active_plan(business)
    limit = plan["limits"][limit_type]
    current = count_usage(db, business, limit_type)

    if check_limit(limit, current):
        return True, ""

    return (
        False,
        f"You've reached your {plan['name']} plan limit of {limit} {limit_type}. "
        "Upgrade your plan to add more.",
    )


def trial_window(business: Business) -> tuple[datetime, datetime]:
    start = business.trial_start or business.created_at or datetime.utcnow()
    end = business.trial_end or start + timedelta(days=TRIAL_DAYS)
    return start, end


def get_trial_status(business: Business, now: Optional[datetime] = None) -> dict:
    """
    Trial state for a business.

    An active paid subscription overrides the trial entirely.
    """
    now = now or datetime.utcnow()
    start, end = trial_window(business)

    if business.subscription_status == "active" and business.subscription_plan:
        return {
            "isActive": False,
            "isExpired": False,
            "daysRemaining": 0,
            "totalDays": TRIAL_DAYS,
            "trialStart": start.isoformat(),
            "trialEnd": end.isoformat(),
            "hasSubscription": True,
            "overridden": True,
        }

    seconds_left = (end - now).total_seconds()
    days_remaining = max(0, math.ceil(seconds_left / 86400))
    is_expired = now > end

    return {
        "isActive": not is_expired,
        "isExpired": is_expired,
        "daysRemaining": days_remaining,
        "totalDays": TRIAL_DAYS,
        "trialStart": start.isoformat(),
        "trialEnd": end.isoformat(),
        "hasSubscription": False,
        "overridden": False,
    }


def has_access(business: Business, now: Optional[datetime] = None) -> bool:
    """Active subscription or a running trial"""
    status = get_trial_status(business, now)
    return status["hasSubscription"] or status["isActive"]
