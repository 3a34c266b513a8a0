"""Billing schemas - Platform subscriptions, limits and trial"""

from typing import Optional

from pydantic import BaseModel


class SubscriptionCreate(BaseModel):
    planId: str


class SubscriptionUpdate(BaseModel):
    planId: str


class CheckoutResponse(BaseModel):
    sessionId: str
    url: Optional[str] = None


class LimitCheckResponse(BaseModel):
    allowed: bool
    current: int
    limit: int
    plan: str


class TrialStatusResponse(BaseModel):
    isActive: bool
    isExpired: bool
    daysRemaining: int
    totalDays: int
    trialStart: str
    trialEnd: str
    hasSubscription: bool
    overridden: bool
