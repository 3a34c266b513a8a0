"""Loyalty service - Program configuration and manual point movements"""

import logging
import uuid

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...loyalty import apply_points, get_program, record_transaction
from ...models import Business, Client, LoyaltyTransaction
from ..clients.repository import ClientRepository
from .schemas import LoyaltyProgramUpdate, PointsAdjustment

logger = logging.getLogger(__name__)


class LoyaltyService:
    def __init__(self, db: Session):
        self.db = db
        self.clients = ClientRepository()

    def get_program(self, business: Business) -> dict:
        return get_program(business)

    def update_program(self, business: Business, data: LoyaltyProgramUpdate) -> dict:
        rewards = []
        for reward in data.rewards:
            entry = reward.model_dump()
            entry["id"] = entry["id"] or uuid.uuid4().hex[:8]
            rewards.append(entry)

        business.loyalty_program = {
            "active": data.active,
            "settings": data.settings.model_dump(),
            "rewards": rewards,
        }
        self.db.commit()
        self.db.refresh(business)
        logger.info(f"✅ Loyalty program updated for business {business.id} (active={data.active})")
        return get_program(business)

    def _get_client(self, client_id: int, business: Business) -> Client:
        client = self.clients.get_client_by_id(self.db, client_id, business.id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def get_client_loyalty(self, client_id: int, business: Business) -> tuple[Client, list[LoyaltyTransaction]]:
        client = self._get_client(client_id, business)
        history = (
            self.db.query(LoyaltyTransaction)
            .filter(LoyaltyTransaction.client_id == client.id)
            .order_by(LoyaltyTransaction.created_at.desc(), LoyaltyTransaction.id.desc())
            .all()
        )
        return client, history

    def adjust_points(self, client_id: int, data: PointsAdjustment, business: Business) -> Client:
        client = self._get_client(client_id, business)
        if data.points == 0:
            raise HTTPException(status_code=400, detail="Points adjustment cannot be zero")
        if (client.loyalty_points or 0) + data.points < 0:
            raise HTTPException(status_code=400, detail="Adjustment would make the points balance negative")

        apply_points(client, data.points)
        record_transaction(self.db, client, "adjusted", data.points, data.reason)
        self.db.commit()
        self.db.refresh(client)
        logger.info(f"🔧 Adjusted client {client.id} points by {data.points}: {data.reason}")
        return client

    def redeem_reward(self, client_id: int, reward_id: str, business: Business) -> Client:
        client = self._get_client(client_id, business)
        program = get_program(business)

        reward = next((r for r in program["rewards"] if r.get("id") == reward_id and r.get("active")), None)
        if not reward:
            raise HTTPException(status_code=404, detail="Reward not found")

        cost = int(reward["pointsCost"])
        if (client.loyalty_points or 0) < cost:
            raise HTTPException(status_code=400, detail="Insufficient loyalty points")

        apply_points(client, -cost)
        record_transaction(self.db, client, "redeemed", -cost, f"Redeemed: {reward['name']}", reward_id)
        self.db.commit()
        self.db.refresh(client)
        logger.info(f"🎁 Client {client.id} redeemed '{reward['name']}' for {cost} points")
        return client
