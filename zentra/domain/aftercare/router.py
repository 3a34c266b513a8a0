"""Aftercare router - FastAPI endpoints for aftercare templates"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api_tracking import track_api_usage
from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import AftercareTemplate, Business
from .schemas import AftercareTemplateCreate, AftercareTemplateResponse, AftercareTemplateUpdate
from .service import AftercareTemplateService

router = APIRouter(
    prefix="/aftercare-templates", tags=["Aftercare"], dependencies=[Depends(track_api_usage)]
)


def get_aftercare_service(db: Session = Depends(get_db)) -> AftercareTemplateService:
    """Dependency injection for AftercareTemplateService"""
    return AftercareTemplateService(db)


def template_to_response(template: AftercareTemplate) -> AftercareTemplateResponse:
    return AftercareTemplateResponse(
        id=template.id,
        name=template.name,
        description=template.description,
        category=template.category,
        content=template.content,
        createdAt=template.created_at,
        updatedAt=template.updated_at,
    )


@router.get("", response_model=list[AftercareTemplateResponse])
async def list_templates(
    category: Optional[str] = Query(None),
    business: Business = Depends(get_current_business_with_access),
    service: AftercareTemplateService = Depends(get_aftercare_service),
):
    return [template_to_response(t) for t in service.get_templates(business, category)]


@router.get("/{template_id}", response_model=AftercareTemplateResponse)
async def get_template(
    template_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: AftercareTemplateService = Depends(get_aftercare_service),
):
    return template_to_response(service.get_template(template_id, business))


@router.post("", response_model=AftercareTemplateResponse, status_code=201)
async def create_template(
    data: AftercareTemplateCreate,
    business: Business = Depends(get_current_business_with_access),
    service: AftercareTemplateService = Depends(get_aftercare_service),
):
    return template_to_response(service.create_template(data, business))


@router.patch("/{template_id}", response_model=AftercareTemplateResponse)
async def update_template(
    template_id: int,
    data: AftercareTemplateUpdate,
    business: Business = Depends(get_current_business_with_access),
    service: AftercareTemplateService = Depends(get_aftercare_service),
):
    return template_to_response(service.update_template(template_id, data, business))


@router.delete("/{template_id}")
async def delete_template(
    template_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: AftercareTemplateService = Depends(get_aftercare_service),
):
    return service.delete_template(template_id, business)
