"""Staff repository - Database operations for staff members"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Staff


class StaffRepository:
    """Repository for staff database operations"""

    @staticmethod
    def get_all(db: Session, business_id: int) -> list[Staff]:
        return db.query(Staff).filter(Staff.business_id == business_id).order_by(Staff.name).all()

    @staticmethod
    def get_by_id(db: Session, staff_id: int, business_id: int) -> Optional[Staff]:
        return (
            db.query(Staff)
            .filter(Staff.id == staff_id, Staff.business_id == business_id)
            .first()
        )

    @staticmethod
    def create(db: Session, business_id: int, **fields) -> Staff:
        member = Staff(business_id=business_id, **fields)
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    @staticmethod
    def update(db: Session, member: Staff, **updates) -> Staff:
        for key, value in updates.items():
            if value is not None and hasattr(member, key):
                setattr(member, key, value)
        db.commit()
        db.refresh(member)
        return member

    @staticmethod
    def delete(db: Session, member: Staff) -> None:
        db.delete(member)
        db.commit()
