"""Loyalty domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LoyaltySettings(BaseModel):
    pointsPerDollar: float = Field(1, ge=0)
    birthdayBonus: int = Field(50, ge=0)
    referralBonus: int = Field(100, ge=0)
    expirationMonths: int = Field(12, ge=0)


class Reward(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=255)
    pointsCost: int = Field(..., gt=0)
    active: bool = True


class LoyaltyProgramUpdate(BaseModel):
    active: bool
    settings: LoyaltySettings = LoyaltySettings()
    rewards: list[Reward] = []


class LoyaltyProgramResponse(BaseModel):
    active: bool
    settings: LoyaltySettings
    rewards: list[Reward]


class PointsAdjustment(BaseModel):
    points: int = Field(..., description="Positive to add, negative to remove")
    reason: str = Field(..., min_length=1, max_length=255)


class RedeemRewardRequest(BaseModel):
    rewardId: str


class LoyaltyTransactionResponse(BaseModel):
    id: int
    type: str
    points: int
    reason: Optional[str] = None
    relatedId: Optional[str] = None
    createdAt: Optional[datetime] = None


class ClientLoyaltyResponse(BaseModel):
    clientId: int
    clientName: str
    points: int
    tier: str
    discount: int
    pointsExpired: int
    history: list[LoyaltyTransactionResponse]
