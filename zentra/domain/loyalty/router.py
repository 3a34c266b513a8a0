"""Loyalty router - Program settings and client point balances"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api_tracking import track_api_usage
from ...auth import get_current_business_with_access
from ...database import get_db
from ...loyalty import get_loyalty_tier, get_tier_discount
from ...models import Business, Client, LoyaltyTransaction
from .schemas import (
    ClientLoyaltyResponse,
    LoyaltyProgramResponse,
    LoyaltyProgramUpdate,
    LoyaltyTransactionResponse,
    PointsAdjustment,
    RedeemRewardRequest,
)
from .service import LoyaltyService

router = APIRouter(prefix="/loyalty", tags=["Loyalty"], dependencies=[Depends(track_api_usage)])


def get_loyalty_service(db: Session = Depends(get_db)) -> LoyaltyService:
    """Dependency injection for LoyaltyService"""
    return LoyaltyService(db)


def client_loyalty_response(client: Client, history: list[LoyaltyTransaction]) -> ClientLoyaltyResponse:
    tier = get_loyalty_tier(client.loyalty_points or 0)
    return ClientLoyaltyResponse(
        clientId=client.id,
        clientName=client.name,
        points=client.loyalty_points or 0,
        tier=tier,
        discount=get_tier_discount(tier),
        pointsExpired=client.points_expired or 0,
        history=[
            LoyaltyTransactionResponse(
                id=t.id,
                type=t.type,
                points=t.points,
                reason=t.reason,
                relatedId=t.related_id,
                createdAt=t.created_at,
            )
            for t in history
        ],
    )


@router.get("/program", response_model=LoyaltyProgramResponse)
async def get_program(
    business: Business = Depends(get_current_business_with_access),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    return service.get_program(business)


@router.put("/program", response_model=LoyaltyProgramResponse)
async def update_program(
    data: LoyaltyProgramUpdate,
    business: Business = Depends(get_current_business_with_access),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    return service.update_program(business, data)


@router.get("/clients/{client_id}", response_model=ClientLoyaltyResponse)
async def get_client_loyalty(
    client_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    """Points, tier, tier discount and transaction history"""
    client, history = service.get_client_loyalty(client_id, business)
    return client_loyalty_response(client, history)


@router.post("/clients/{client_id}/adjust", response_model=ClientLoyaltyResponse)
async def adjust_client_points(
    client_id: int,
    data: PointsAdjustment,
    business: Business = Depends(get_current_business_with_access),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    service.adjust_points(client_id, data, business)
    client, history = service.get_client_loyalty(client_id, business)
    return client_loyalty_response(client, history)


@router.post("/clients/{client_id}/redeem", response_model=ClientLoyaltyResponse)
async def redeem_reward(
    client_id: int,
    data: RedeemRewardRequest,
    business: Business = Depends(get_current_business_with_access),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    service.redeem_reward(client_id, data.rewardId, business)
    client, history = service.get_client_loyalty(client_id, business)
    return client_loyalty_response(client, history)
