"""Consultation repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Consultation


class ConsultationRepository:
    @staticmethod
    def get_all(db: Session, business_id: int, client_id: Optional[int] = None) -> list[Consultation]:
        query = db.query(Consultation).filter(Consultation.business_id == business_id)
        if client_id:
            query = query.filter(Consultation.client_id == client_id)
        return query.order_by(Consultation.date.desc(), Consultation.start_time).all()

    @staticmethod
    def get_by_id(db: Session, consultation_id: int, business_id: int) -> Optional[Consultation]:
        return (
            db.query(Consultation)
            .filter(Consultation.id == consultation_id, Consultation.business_id == business_id)
            .first()
        )

    @staticmethod
    def create(db: Session, business_id: int, **fields) -> Consultation:
        consultation = Consultation(business_id=business_id, **fields)
        db.add(consultation)
        db.commit()
        db.refresh(consultation)
        return consultation

    @staticmethod
    def update(db: Session, consultation: Consultation, **updates) -> Consultation:
        for key, value in updates.items():
            if value is not None and hasattr(consultation, key):
                setattr(consultation, key, value)
        db.commit()
        db.refresh(consultation)
        return consultation

    @staticmethod
    def delete(db: Session, consultation: Consultation) -> None:
        db.delete(consultation)
        db.commit()
