"""Blocked time repository"""

from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import BlockedTime


class BlockedTimeRepository:
    """Repository for blocked time database operations"""

    @staticmethod
    def get_all(db: Session, business_id: int, start: Optional[date] = None, end: Optional[date] = None) -> list[BlockedTime]:
        query = db.query(BlockedTime).filter(BlockedTime.business_id == business_id)
        if start:
            query = query.filter(BlockedTime.end_date >= start)
        if end:
            query = query.filter(BlockedTime.start_date <= end)
        return query.order_by(BlockedTime.start_date, BlockedTime.start_time).all()

    @staticmethod
    def get_covering(db: Session, business_id: int, day: date, staff_id: Optional[int]) -> list[BlockedTime]:
        """Blocks on a given day that apply to the staff member, or to everyone"""
        staff_filter = BlockedTime.staff_id.is_(None)
        if staff_id is not None:
            staff_filter = or_(staff_filter, BlockedTime.staff_id == staff_id)
        return (
            db.query(BlockedTime)
            .filter(
                BlockedTime.business_id == business_id,
                BlockedTime.start_date <= day,
                BlockedTime.end_date >= day,
                staff_filter,
            )
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, blocked_id: int, business_id: int) -> Optional[BlockedTime]:
        return (
            db.query(BlockedTime)
            .filter(BlockedTime.id == blocked_id, BlockedTime.business_id == business_id)
            .first()
        )

    @staticmethod
    def create(db: Session, business_id: int, **fields) -> BlockedTime:
        blocked = BlockedTime(business_id=business_id, **fields)
        db.add(blocked)
        db.commit()
        db.refresh(blocked)
        return blocked

    @staticmethod
    def delete(db: Session, blocked: BlockedTime) -> None:
        db.delete(blocked)
        db.commit()
