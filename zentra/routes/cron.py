"""
Cron Routes
HTTP triggers for the scheduled jobs, for schedulers that call URLs instead
of running the ARQ worker
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from ..config import CRON_SECRET
from ..database import get_db
from ..services import reminder_service

logger = logging.getLogger(__name__)


async def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Require "Bearer <CRON_SECRET>" whenever a secret is configured"""
    if not CRON_SECRET:
        logger.warning("⚠️ CRON_SECRET not set - cron endpoints are unauthenticated")
        return
    if not authorization or not secrets.compare_digest(authorization, f"Bearer {CRON_SECRET}"):
        raise HTTPException(status_code=401, detail="Unauthorized")


router = APIRouter(prefix="/cron", tags=["Cron"], dependencies=[Depends(verify_cron_secret)])


@router.get("/client-reminders")
async def client_reminders(db: Session = Depends(get_db)):
    return {"success": True, **await reminder_service.send_client_reminders(db)}


@router.get("/daily-reminders")
async def daily_reminders(
    hour: Optional[int] = Query(None, ge=0, le=23),
    db: Session = Depends(get_db),
):
    """Tomorrow's schedule; pass the current UTC hour to honour each business's send time"""
    return {"success": True, **await reminder_service.send_daily_reminders(db, hour=hour)}


@router.get("/birthday-bonus")
async def birthday_bonus(db: Session = Depends(get_db)):
    return {"success": True, **await reminder_service.award_birthday_bonuses(db)}


@router.get("/expire-points")
async def expire_points(db: Session = Depends(get_db)):
    return {"success": True, **reminder_service.expire_loyalty_points(db)}
