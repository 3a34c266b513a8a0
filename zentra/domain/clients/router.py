"""Client router - FastAPI endpoints for client operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api_tracking import track_api_usage
from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import Business, Client
from ..businesses.router import business_to_response
from .schemas import ClientCreate, ClientResponse, ClientsDataResponse, ClientUpdate
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"], dependencies=[Depends(track_api_usage)])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


def client_to_response(client: Client) -> ClientResponse:
    return ClientResponse(
        id=client.id,
        name=client.name,
        email=client.email,
        phone=client.phone,
        birthday=client.birthday,
        notes=client.notes,
        loyaltyPoints=client.loyalty_points or 0,
        membershipLevel=client.membership_level or "bronze",
        totalVisits=client.total_visits or 0,
        totalSpent=client.total_spent or 0.0,
        lastVisit=client.last_visit,
        createdAt=client.created_at,
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    search: Optional[str] = Query(None),
    business: Business = Depends(get_current_business_with_access),
    service: ClientService = Depends(get_client_service),
):
    """Get all clients, optionally filtered by name or email"""
    return [client_to_response(c) for c in service.get_clients(business, search)]


@router.get("/data", response_model=ClientsDataResponse)
async def get_clients_data(
    business: Business = Depends(get_current_business_with_access),
    service: ClientService = Depends(get_client_service),
):
    """Clients page payload: every client plus the business profile"""
    return ClientsDataResponse(
        clients=[client_to_response(c) for c in service.get_clients(business)],
        business=business_to_response(business).model_dump(mode="json"),
    )


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: ClientService = Depends(get_client_service),
):
    return client_to_response(service.get_client(client_id, business))


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    business: Business = Depends(get_current_business_with_access),
    service: ClientService = Depends(get_client_service),
):
    """Create a new client"""
    return client_to_response(service.create_client(data, business))


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    business: Business = Depends(get_current_business_with_access),
    service: ClientService = Depends(get_client_service),
):
    return client_to_response(service.update_client(client_id, data, business))


@router.delete("/{client_id}")
async def delete_client(
    client_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: ClientService = Depends(get_client_service),
):
    return service.delete_client(client_id, business)
