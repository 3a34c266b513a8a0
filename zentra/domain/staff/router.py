"""Staff router - FastAPI endpoints for staff members"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api_tracking import track_api_usage
from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import Business, Staff
from .schemas import StaffCreate, StaffResponse, StaffUpdate
from .service import StaffService

router = APIRouter(prefix="/staff", tags=["Staff"], dependencies=[Depends(track_api_usage)])


def get_staff_service(db: Session = Depends(get_db)) -> StaffService:
    """Dependency injection for StaffService"""
    return StaffService(db)


def staff_to_response(member: Staff) -> StaffResponse:
    return StaffResponse(
        id=member.id,
        name=member.name,
        email=member.email,
        phone=member.phone,
        role=member.role,
        services=member.services or [],
        schedule=member.schedule or {},
        status=member.status,
        joinDate=member.join_date,
        createdAt=member.created_at,
    )


@router.get("", response_model=list[StaffResponse])
async def list_staff(
    business: Business = Depends(get_current_business_with_access),
    service: StaffService = Depends(get_staff_service),
):
    return [staff_to_response(m) for m in service.get_staff(business)]


@router.get("/{staff_id}", response_model=StaffResponse)
async def get_staff_member(
    staff_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: StaffService = Depends(get_staff_service),
):
    return staff_to_response(service.get_member(staff_id, business))


@router.post("", response_model=StaffResponse, status_code=201)
async def create_staff_member(
    data: StaffCreate,
    business: Business = Depends(get_current_business_with_access),
    service: StaffService = Depends(get_staff_service),
):
    """Add a staff member; subject to the plan's staff limit"""
    return staff_to_response(service.create_member(data, business))


@router.patch("/{staff_id}", response_model=StaffResponse)
async def update_staff_member(
    staff_id: int,
    data: StaffUpdate,
    business: Business = Depends(get_current_business_with_access),
    service: StaffService = Depends(get_staff_service),
):
    return staff_to_response(service.update_member(staff_id, data, business))


@router.delete("/{staff_id}")
async def delete_staff_member(
    staff_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: StaffService = Depends(get_staff_service),
):
    return service.delete_member(staff_id, business)
