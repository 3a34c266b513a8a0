"""Catalog service - Business logic for the service menu"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Business, Service
from .repository import ServiceRepository
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)

FIELD_MAP = {
    "name": "name",
    "description": "description",
    "category": "category",
    "duration": "duration",
    "price": "price",
    "depositRequired": "deposit_required",
    "active": "active",
}


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRepository()

    def get_services(self, business: Business, active_only: bool = False) -> list[Service]:
        return self.repo.get_all(self.db, business.id, active_only)

    def get_service(self, service_id: int, business: Business) -> Service:
        service = self.repo.get_by_id(self.db, service_id, business.id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def create_service(self, data: ServiceCreate, business: Business) -> Service:
        fields = {FIELD_MAP[k]: v for k, v in data.model_dump().items()}
        service = self.repo.create(self.db, business.id, **fields)
        logger.info(f"✅ Service '{service.name}' ({service.id}) created for business {business.id}")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate, business: Business) -> Service:
        service = self.get_service(service_id, business)
        updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_none=True).items()}
        return self.repo.update(self.db, service, **updates)

    def delete_service(self, service_id: int, business: Business) -> dict:
        service = self.get_service(service_id, business)
        self.repo.delete(self.db, service)
        return {"message": "Service deleted"}
