"""Blocked time service"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import BlockedTime, Business
from ...shared.validators import time_to_minutes
from ..staff.repository import StaffRepository
from .repository import BlockedTimeRepository
from .schemas import BlockedTimeCreate

logger = logging.getLogger(__name__)


def blocks_slot(blocked: BlockedTime, start: int, end: int) -> bool:
    """True when the block overlaps [start, end) minutes of its day"""
    if not blocked.start_time or not blocked.end_time:
        return True
    return start < time_to_minutes(blocked.end_time) and end > time_to_minutes(blocked.start_time)


class BlockedTimeService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = BlockedTimeRepository()

    def get_blocked_times(
        self, business: Business, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[BlockedTime]:
        return self.repo.get_all(self.db, business.id, start, end)

    def create_blocked_time(self, data: BlockedTimeCreate, business: Business) -> BlockedTime:
        if data.endDate and data.endDate < data.startDate:
            raise HTTPException(status_code=400, detail="endDate cannot be before startDate")
        if (data.startTime is None) != (data.endTime is None):
            raise HTTPException(status_code=400, detail="startTime and endTime must be given together")
        if data.startTime and time_to_minutes(data.startTime) >= time_to_minutes(data.endTime):
            raise HTTPException(status_code=400, detail="startTime must be before endTime")
        if data.staffId is not None and not StaffRepository.get_by_id(self.db, data.staffId, business.id):
            raise HTTPException(status_code=404, detail="Staff member not found")

        blocked = self.repo.create(
            self.db,
            business.id,
            staff_id=data.staffId,
            start_date=data.startDate,
            end_date=data.endDate or data.startDate,
            start_time=data.startTime,
            end_time=data.endTime,
            reason=data.reason,
        )
        logger.info(
            f"⛔ Blocked {blocked.start_date} to {blocked.end_date} for business {business.id} "
            f"(staff {blocked.staff_id or 'all'})"
        )
        return blocked

    def delete_blocked_time(self, blocked_id: int, business: Business) -> dict:
        blocked = self.repo.get_by_id(self.db, blocked_id, business.id)
        if not blocked:
            raise HTTPException(status_code=404, detail="Blocked time not found")
        self.repo.delete(self.db, blocked)
        return {"message": "Blocked time removed"}
