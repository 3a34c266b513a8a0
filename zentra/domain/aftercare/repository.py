"""Aftercare template repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import AftercareTemplate


class AftercareTemplateRepository:
    """Repository for aftercare template database operations"""

    @staticmethod
    def get_all(db: Session, business_id: int, category: Optional[str] = None) -> list[AftercareTemplate]:
        query = db.query(AftercareTemplate).filter(AftercareTemplate.business_id == business_id)
        if category:
            query = query.filter(AftercareTemplate.category == category)
        return query.order_by(AftercareTemplate.created_at.desc(), AftercareTemplate.id.desc()).all()

    @staticmethod
    def get_by_id(db: Session, template_id: int, business_id: int) -> Optional[AftercareTemplate]:
        return (
            db.query(AftercareTemplate)
            .filter(AftercareTemplate.id == template_id, AftercareTemplate.business_id == business_id)
            .first()
        )

    @staticmethod
    def create(db: Session, business_id: int, **fields) -> AftercareTemplate:
        template = AftercareTemplate(business_id=business_id, **fields)
        db.add(template)
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def update(db: Session, template: AftercareTemplate, **updates) -> AftercareTemplate:
        for key, value in updates.items():
            if value is not None and hasattr(template, key):
                setattr(template, key, value)
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def delete(db: Session, template: AftercareTemplate) -> None:
        db.delete(template)
        db.commit()
