"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Appointment, Business, Client, Consultation, LoyaltyTransaction
from ...plan_limits import can_add
from .repository import ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(self, business: Business, search: Optional[str] = None) -> list[Client]:
        return self.repo.get_clients(self.db, business.id, search)

    def get_client(self, client_id: int, business: Business) -> Client:
        client = self.repo.get_client_by_id(self.db, client_id, business.id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def create_client(self, data: ClientCreate, business: Business) -> Client:
        """Create a new client with plan limit check"""
        logger.info(f"📥 Creating client for business {business.id}")

        allowed, error_message = can_add(self.db, business, "clients")
        if not allowed:
            logger.warning(f"⚠️ Business {business.id} reached client limit: {error_message}")
            raise HTTPException(status_code=403, detail=error_message)

        if data.email and self.repo.get_client_by_email(self.db, business.id, data.email):
            raise HTTPException(status_code=409, detail="A client with this email already exists")

        return self.repo.create_client(
            self.db,
            business.id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            birthday=data.birthday,
            notes=data.notes,
        )

    def update_client(self, client_id: int, data: ClientUpdate, business: Business) -> Client:
        client = self.get_client(client_id, business)
        return self.repo.update_client(self.db, client, **data.model_dump(exclude_none=True))

    def delete_client(self, client_id: int, business: Business) -> dict:
        client = self.get_client(client_id, business)
        # Appointment history stays; it keeps the denormalized client name
        self.db.query(Appointment).filter(Appointment.client_id == client.id).update(
            {Appointment.client_id: None}, synchronize_session=False
        )
        self.db.query(LoyaltyTransaction).filter(LoyaltyTransaction.client_id == client.id).delete(
            synchronize_session=False
        )
        self.db.query(Consultation).filter(Consultation.client_id == client.id).delete(
            synchronize_session=False
        )
        self.repo.delete_client(self.db, client)
        logger.info(f"🗑️ Client {client_id} deleted from business {business.id}")
        return {"message": "Client deleted"}
