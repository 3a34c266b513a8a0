"""Business repository - Database operations for businesses"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Business, Service, Staff


class BusinessRepository:
    """Repository for business database operations"""

    @staticmethod
    def get_by_id(db: Session, business_id: int) -> Optional[Business]:
        return db.query(Business).filter(Business.id == business_id).first()

    @staticmethod
    def get_by_owner_uid(db: Session, owner_uid: str) -> Optional[Business]:
        return db.query(Business).filter(Business.owner_uid == owner_uid).first()

    @staticmethod
    def get_by_stripe_customer_id(db: Session, customer_id: str) -> Optional[Business]:
        return db.query(Business).filter(Business.stripe_customer_id == customer_id).first()

    @staticmethod
    def create(db: Session, **fields) -> Business:
        business = Business(**fields)
        db.add(business)
        db.commit()
        db.refresh(business)
        return business

    @staticmethod
    def update(db: Session, business: Business, **updates) -> Business:
        """Apply updates; None values are skipped"""
        for key, value in updates.items():
            if value is not None and hasattr(business, key):
                setattr(business, key, value)
        db.commit()
        db.refresh(business)
        return business

    @staticmethod
    def get_active_services(db: Session, business_id: int) -> list[Service]:
        return (
            db.query(Service)
            .filter(Service.business_id == business_id, Service.active.is_(True))
            .order_by(Service.category, Service.name)
            .all()
        )

    @staticmethod
    def get_active_staff(db: Session, business_id: int) -> list[Staff]:
        return (
            db.query(Staff)
            .filter(Staff.business_id == business_id, Staff.status == "active")
            .order_by(Staff.name)
            .all()
        )

    @staticmethod
    def get_with_daily_reminders(db: Session) -> list[Business]:
        return [b for b in db.query(Business).all() if (b.daily_reminders or {}).get("enabled")]

    @staticmethod
    def get_with_client_reminders(db: Session) -> list[Business]:
        return [b for b in db.query(Business).all() if (b.client_reminders or {}).get("enabled")]

    @staticmethod
    def get_with_active_loyalty(db: Session) -> list[Business]:
        return [b for b in db.query(Business).all() if (b.loyalty_program or {}).get("active")]
