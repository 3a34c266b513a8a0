"""Consultation router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api_tracking import track_api_usage
from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import Business, Consultation
from .schemas import ConsultationCreate, ConsultationResponse, ConsultationUpdate
from .service import ConsultationService

router = APIRouter(prefix="/consultations", tags=["Consultations"], dependencies=[Depends(track_api_usage)])


def get_consultation_service(db: Session = Depends(get_db)) -> ConsultationService:
    """Dependency injection for ConsultationService"""
    return ConsultationService(db)


def consultation_to_response(c: Consultation) -> ConsultationResponse:
    return ConsultationResponse(
        id=c.id,
        clientId=c.client_id,
        staffId=c.staff_id,
        type=c.type,
        date=c.date,
        startTime=c.start_time,
        duration=c.duration,
        status=c.status,
        meetingLink=c.meeting_link,
        notes=c.notes,
        rating=c.rating,
        feedback=c.feedback,
        createdAt=c.created_at,
    )


@router.get("", response_model=list[ConsultationResponse])
async def list_consultations(
    client_id: Optional[int] = Query(None),
    business: Business = Depends(get_current_business_with_access),
    service: ConsultationService = Depends(get_consultation_service),
):
    return [consultation_to_response(c) for c in service.get_consultations(business, client_id)]


@router.get("/{consultation_id}", response_model=ConsultationResponse)
async def get_consultation(
    consultation_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: ConsultationService = Depends(get_consultation_service),
):
    return consultation_to_response(service.get_consultation(consultation_id, business))


@router.post("", response_model=ConsultationResponse, status_code=201)
async def create_consultation(
    data: ConsultationCreate,
    business: Business = Depends(get_current_business_with_access),
    service: ConsultationService = Depends(get_consultation_service),
):
    return consultation_to_response(service.create_consultation(data, business))


@router.patch("/{consultation_id}", response_model=ConsultationResponse)
async def update_consultation(
    consultation_id: int,
    data: ConsultationUpdate,
    business: Business = Depends(get_current_business_with_access),
    service: ConsultationService = Depends(get_consultation_service),
):
    return consultation_to_response(service.update_consultation(consultation_id, data, business))


@router.delete("/{consultation_id}")
async def delete_consultation(
    consultation_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: ConsultationService = Depends(get_consultation_service),
):
    return service.delete_consultation(consultation_id, business)
