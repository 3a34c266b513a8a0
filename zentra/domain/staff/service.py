"""Staff service - Business logic for staff members"""

import logging
from datetime import date

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Business, Staff
from ...plan_limits import can_add
from .repository import StaffRepository
from .schemas import StaffCreate, StaffUpdate

logger = logging.getLogger(__name__)


class StaffService:
    """Service layer for staff business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = StaffRepository()

    def get_staff(self, business: Business) -> list[Staff]:
        return self.repo.get_all(self.db, business.id)

    def get_member(self, staff_id: int, business: Business) -> Staff:
        member = self.repo.get_by_id(self.db, staff_id, business.id)
        if not member:
            raise HTTPException(status_code=404, detail="Staff member not found")
        return member

    def create_member(self, data: StaffCreate, business: Business) -> Staff:
        allowed, error_message = can_add(self.db, business, "staff")
        if not allowed:
            logger.warning(f"⚠️ Business {business.id} reached staff limit: {error_message}")
            raise HTTPException(status_code=403, detail=error_message)

        member = self.repo.create(
            self.db,
            business.id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            role=data.role,
            services=data.services,
            schedule=data.schedule,
            status="active",
            join_date=data.joinDate or date.today(),
        )
        logger.info(f"✅ Staff member {member.id} added to business {business.id}")
        return member

    def update_member(self, staff_id: int, data: StaffUpdate, business: Business) -> Staff:
        member = self.get_member(staff_id, business)
        return self.repo.update(self.db, member, **data.model_dump(exclude_none=True))

    def delete_member(self, staff_id: int, business: Business) -> dict:
        member = self.get_member(staff_id, business)
        self.repo.delete(self.db, member)
        logger.info(f"🗑️ Staff member {staff_id} removed from business {business.id}")
        return {"message": "Staff member deleted"}
