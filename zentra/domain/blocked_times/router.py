"""Blocked time router - FastAPI endpoints for calendar blocks"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api_tracking import track_api_usage
from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import BlockedTime, Business
from .schemas import BlockedTimeCreate, BlockedTimeResponse
from .service import BlockedTimeService

router = APIRouter(prefix="/blocked-times", tags=["Blocked Times"], dependencies=[Depends(track_api_usage)])


def get_blocked_time_service(db: Session = Depends(get_db)) -> BlockedTimeService:
    """Dependency injection for BlockedTimeService"""
    return BlockedTimeService(db)


def blocked_time_to_response(blocked: BlockedTime) -> BlockedTimeResponse:
    return BlockedTimeResponse(
        id=blocked.id,
        staffId=blocked.staff_id,
        startDate=blocked.start_date,
        endDate=blocked.end_date,
        startTime=blocked.start_time,
        endTime=blocked.end_time,
        allDay=blocked.start_time is None,
        reason=blocked.reason,
        createdAt=blocked.created_at,
    )


@router.get("", response_model=list[BlockedTimeResponse])
async def list_blocked_times(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    business: Business = Depends(get_current_business_with_access),
    service: BlockedTimeService = Depends(get_blocked_time_service),
):
    return [blocked_time_to_response(b) for b in service.get_blocked_times(business, start, end)]


@router.post("", response_model=BlockedTimeResponse, status_code=201)
async def create_blocked_time(
    data: BlockedTimeCreate,
    business: Business = Depends(get_current_business_with_access),
    service: BlockedTimeService = Depends(get_blocked_time_service),
):
    return blocked_time_to_response(service.create_blocked_time(data, business))


@router.delete("/{blocked_id}")
async def delete_blocked_time(
    blocked_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: BlockedTimeService = Depends(get_blocked_time_service),
):
    return service.delete_blocked_time(blocked_id, business)
