"""Catalog repository - Database operations for services"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Service


class ServiceRepository:
    """Repository for service database operations"""

    @staticmethod
    def get_all(db: Session, business_id: int, active_only: bool = False) -> list[Service]:
        query = db.query(Service).filter(Service.business_id == business_id)
        if active_only:
            query = query.filter(Service.active.is_(True))
        return query.order_by(Service.category, Service.name).all()

    @staticmethod
    def get_by_id(db: Session, service_id: int, business_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.business_id == business_id)
            .first()
        )

    @staticmethod
    def create(db: Session, business_id: int, **fields) -> Service:
        service = Service(business_id=business_id, **fields)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def delete(db: Session, service: Service) -> None:
        db.delete(service)
        db.commit()
