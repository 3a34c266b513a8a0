"""Location router - FastAPI endpoints for business locations"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api_tracking import track_api_usage
from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import Business, Location
from .schemas import LocationCreate, LocationResponse, LocationUpdate
from .service import LocationService

router = APIRouter(prefix="/locations", tags=["Locations"], dependencies=[Depends(track_api_usage)])


def get_location_service(db: Session = Depends(get_db)) -> LocationService:
    """Dependency injection for LocationService"""
    return LocationService(db)


def location_to_response(location: Location) -> LocationResponse:
    return LocationResponse(
        id=location.id,
        name=location.name,
        address=location.address,
        phone=location.phone,
        hours=location.hours or {},
        isPrimary=location.is_primary,
        createdAt=location.created_at,
    )


@router.get("", response_model=list[LocationResponse])
async def list_locations(
    business: Business = Depends(get_current_business_with_access),
    service: LocationService = Depends(get_location_service),
):
    return [location_to_response(location) for location in service.get_locations(business)]


@router.post("", response_model=LocationResponse, status_code=201)
async def create_location(
    data: LocationCreate,
    business: Business = Depends(get_current_business_with_access),
    service: LocationService = Depends(get_location_service),
):
    return location_to_response(service.create_location(data, business))


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: int,
    data: LocationUpdate,
    business: Business = Depends(get_current_business_with_access),
    service: LocationService = Depends(get_location_service),
):
    return location_to_response(service.update_location(location_id, data, business))


@router.delete("/{location_id}")
async def delete_location(
    location_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: LocationService = Depends(get_location_service),
):
    return service.delete_location(location_id, business)
