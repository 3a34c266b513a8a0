"""Aftercare template service"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import AftercareTemplate, Business
from .repository import AftercareTemplateRepository
from .schemas import AftercareTemplateCreate, AftercareTemplateUpdate

logger = logging.getLogger(__name__)


class AftercareTemplateService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = AftercareTemplateRepository()

    def get_templates(self, business: Business, category: Optional[str] = None) -> list[AftercareTemplate]:
        return self.repo.get_all(self.db, business.id, category)

    def get_template(self, template_id: int, business: Business) -> AftercareTemplate:
        template = self.repo.get_by_id(self.db, template_id, business.id)
        if not template:
            raise HTTPException(status_code=404, detail="Aftercare template not found")
        return template

    def create_template(self, data: AftercareTemplateCreate, business: Business) -> AftercareTemplate:
        template = self.repo.create(self.db, business.id, **data.model_dump())
        logger.info(f"📝 Aftercare template '{template.name}' ({template.id}) created for business {business.id}")
        return template

    def update_template(self, template_id: int, data: AftercareTemplateUpdate, business: Business) -> AftercareTemplate:
        template = self.get_template(template_id, business)
        return self.repo.update(self.db, template, **data.model_dump(exclude_none=True))

    def delete_template(self, template_id: int, business: Business) -> dict:
        template = self.get_template(template_id, business)
        self.repo.delete(self.db, template)
        return {"message": "Aftercare template deleted"}
