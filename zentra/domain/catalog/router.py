"""Catalog router - FastAPI endpoints for the service menu"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api_tracking import track_api_usage
from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import Business, Service
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService

router = APIRouter(prefix="/services", tags=["Services"], dependencies=[Depends(track_api_usage)])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


def service_to_response(service: Service) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        name=service.name,
        description=service.description,
        category=service.category,
        duration=service.duration,
        price=service.price,
        depositRequired=service.deposit_required,
        active=service.active,
        createdAt=service.created_at,
    )


@router.get("", response_model=list[ServiceResponse])
async def list_services(
    active_only: bool = Query(False),
    business: Business = Depends(get_current_business_with_access),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return [service_to_response(s) for s in catalog.get_services(business, active_only)]


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: int,
    business: Business = Depends(get_current_business_with_access),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return service_to_response(catalog.get_service(service_id, business))


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    business: Business = Depends(get_current_business_with_access),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return service_to_response(catalog.create_service(data, business))


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    business: Business = Depends(get_current_business_with_access),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return service_to_response(catalog.update_service(service_id, data, business))


@router.delete("/{service_id}")
async def delete_service(
    service_id: int,
    business: Business = Depends(get_current_business_with_access),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.delete_service(service_id, business)
