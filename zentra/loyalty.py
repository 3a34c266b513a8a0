"""
Loyalty points
Point calculation, membership tiers and the ledger of point movements
"""

import logging
import math
from typing import Optional

from sqlalchemy.orm import Session

from .models import Business, Client, LoyaltyTransaction

logger = logging.getLogger(__name__)

DEFAULT_LOYALTY_SETTINGS = {
    "pointsPerDollar": 1,
    "birthdayBonus": 50,
    "referralBonus": 100,
    "expirationMonths": 12,
}

DEFAULT_LOYALTY_PROGRAM = {
    "active": False,
    "settings": DEFAULT_LOYALTY_SETTINGS,
    "rewards": [],
}

TIER_THRESHOLDS = (("Gold", 300), ("Silver", 100))
TIER_DISCOUNTS = {"Gold": 15, "Silver": 10, "Bronze": 5}


def get_program(business: Business) -> dict:
    """Loyalty program with defaults filled in"""
    program = business.loyalty_program or {}
    return {
        "active": bool(program.get("active")),
        "settings": {**DEFAULT_LOYALTY_SETTINGS, **(program.get("settings") or {})},
        "rewards": list(program.get("rewards") or []),
    }


def calculate_points(amount: float, points_per_dollar: float = 1) -> int:
    return math.floor(amount * points_per_dollar)


def get_loyalty_tier(points: int) -> str:
    for tier, threshold in TIER_THRESHOLDS:
        if points >= threshold:
            return tier
    return "Bronze"


def get_tier_discount(tier: str) -> int:
    """Discount percentage for a tier; unknown tiers get none"""
    return TIER_DISCOUNTS.get(tier, 0)


def record_transaction(
    db: Session,
    client: Client,
    transaction_type: str,
    points: int,
    reason: str,
    related_id: Optional[str] = None,
) -> LoyaltyTransaction:
    """Add a ledger entry; the caller commits"""
    transaction = LoyaltyTransaction(
        business_id=client.business_id,
        client_id=client.id,
        type=transaction_type,
        points=points,
        reason=reason,
        related_id=related_id,
    )
    db.add(transaction)
    return transaction


def apply_points(client: Client, delta: int) -> None:
    """Change the balance and keep membership_level in step"""
    client.loyalty_points = (client.loyalty_points or 0) + delta
    client.membership_level = get_loyalty_tier(client.loyalty_points).lower()


def award_loyalty_points(
    db: Session,
    business: Business,
    client: Client,
    amount: float,
    reason: str = "Appointment payment",
    related_id: Optional[str] = None,
) -> bool:
    """
    Award points for money spent.

    Returns:
        False when the program is inactive or the amount earns no points
    """
    program = get_program(business)
    if not program["active"]:
        logger.info(f"ℹ️ Loyalty program inactive for business {business.id}")
        return False

    points = calculate_points(amount, program["settings"]["pointsPerDollar"] or 1)
    if points <= 0:
        return False

    apply_points(client, points)
    record_transaction(db, client, "earned", points, reason, related_id)
    db.commit()
    logger.info(f"✅ Awarded {points} loyalty points to client {client.id} (business {business.id})")
    return True
