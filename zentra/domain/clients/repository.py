"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Client


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_clients(db: Session, business_id: int, search: Optional[str] = None) -> list[Client]:
        """Get all clients for a business, optionally filtered by name/email substring"""
        query = db.query(Client).filter(Client.business_id == business_id)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(func.lower(Client.name).like(pattern), func.lower(Client.email).like(pattern))
            )
        return query.order_by(Client.name).all()

    @staticmethod
    def get_client_by_id(db: Session, client_id: int, business_id: int) -> Optional[Client]:
        return (
            db.query(Client)
            .filter(Client.id == client_id, Client.business_id == business_id)
            .first()
        )

    @staticmethod
    def get_client_by_email(db: Session, business_id: int, email: str) -> Optional[Client]:
        return (
            db.query(Client)
            .filter(Client.business_id == business_id, func.lower(Client.email) == email.lower())
            .first()
        )

    @staticmethod
    def create_client(db: Session, business_id: int, **client_data) -> Client:
        client = Client(business_id=business_id, **client_data)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(client, key):
                setattr(client, key, value)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        db.delete(client)
        db.commit()

    @staticmethod
    def find_or_create_by_email(
        db: Session, business_id: int, name: str, email: str, phone: Optional[str] = None
    ) -> tuple[Client, bool]:
        """
        Client with this email in the business, created when missing.

        Returns:
            (client, created)
        """
        client = ClientRepository.get_client_by_email(db, business_id, email)
        if client:
            if phone and not client.phone:
                client.phone = phone
                db.commit()
            return client, False
        return ClientRepository.create_client(db, business_id, name=name, email=email.lower(), phone=phone), True
