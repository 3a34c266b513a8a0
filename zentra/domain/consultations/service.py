"""Consultation service"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Business, Consultation
from ..clients.repository import ClientRepository
from ..staff.repository import StaffRepository
from .repository import ConsultationRepository
from .schemas import ConsultationCreate, ConsultationUpdate

logger = logging.getLogger(__name__)

FIELD_MAP = {
    "clientId": "client_id",
    "staffId": "staff_id",
    "type": "type",
    "date": "date",
    "startTime": "start_time",
    "duration": "duration",
    "status": "status",
    "meetingLink": "meeting_link",
    "notes": "notes",
    "rating": "rating",
    "feedback": "feedback",
}


class ConsultationService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ConsultationRepository()

    def get_consultations(self, business: Business, client_id: Optional[int] = None) -> list[Consultation]:
        return self.repo.get_all(self.db, business.id, client_id)

    def get_consultation(self, consultation_id: int, business: Business) -> Consultation:
        consultation = self.repo.get_by_id(self.db, consultation_id, business.id)
        if not consultation:
            raise HTTPException(status_code=404, detail="Consultation not found")
        return consultation

    def _check_staff(self, staff_id: Optional[int], business: Business) -> None:
        if staff_id is not None and not StaffRepository.get_by_id(self.db, staff_id, business.id):
            raise HTTPException(status_code=404, detail="Staff member not found")

    def create_consultation(self, data: ConsultationCreate, business: Business) -> Consultation:
        if not ClientRepository.get_client_by_id(self.db, data.clientId, business.id):
            raise HTTPException(status_code=404, detail="Client not found")
        self._check_staff(data.staffId, business)

        fields = {FIELD_MAP[k]: v for k, v in data.model_dump().items()}
        consultation = self.repo.create(self.db, business.id, status="scheduled", **fields)
        logger.info(f"🗓️ Consultation {consultation.id} scheduled for client {data.clientId}")
        return consultation

    def update_consultation(self, consultation_id: int, data: ConsultationUpdate, business: Business) -> Consultation:
        consultation = self.get_consultation(consultation_id, business)
        self._check_staff(data.staffId, business)
        updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_none=True).items()}
        return self.repo.update(self.db, consultation, **updates)

    def delete_consultation(self, consultation_id: int, business: Business) -> dict:
        consultation = self.get_consultation(consultation_id, business)
        self.repo.delete(self.db, consultation)
        return {"message": "Consultation deleted"}
