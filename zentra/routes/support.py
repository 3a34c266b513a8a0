"""
Support Routes
Contact form tickets and the owner's ticket history
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth import get_current_business
from ..database import get_db
from ..email_service import send_support_ticket_emails
from ..models import Business, SupportTicket
from ..rate_limiter import support_ticket_limiter

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/support", tags=["Support"])


class SupportTicketCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    subject: Optional[str] = Field(None, max_length=255)
    message: Optional[str] = Field(None, max_length=5000)
    businessId: Optional[int] = None
    businessName: Optional[str] = Field(None, max_length=255)


class SupportTicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    subject: str
    message: str
    status: str
    businessId: Optional[int] = None
    businessName: Optional[str] = None
    createdAt: Optional[datetime] = None


def ticket_to_response(ticket: SupportTicket) -> SupportTicketResponse:
    return SupportTicketResponse(
        id=ticket.id,
        name=ticket.name,
        email=ticket.email,
        subject=ticket.subject,
        message=ticket.message,
        status=ticket.status,
        businessId=ticket.business_id,
        businessName=ticket.business_name,
        createdAt=ticket.created_at,
    )


@router.post("/create-ticket", status_code=201)
async def create_ticket(
    data: SupportTicketCreate,
    db: Session = Depends(get_db),
    _: None = Depends(support_ticket_limiter),
):
    """Public contact form; emails the support inbox and the requester"""
    fields = (data.name, data.email, data.subject, data.message)
    if not all(value and value.strip() for value in fields):
        raise HTTPException(status_code=400, detail="Missing required fields")

    ticket = SupportTicket(
        business_id=data.businessId,
        business_name=data.businessName,
        name=data.name.strip(),
        email=data.email.strip(),
        subject=data.subject.strip(),
        message=data.message.strip(),
        status="open",
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    logger.info(f"🎫 Support ticket {ticket.id} created by {ticket.email}")

    await send_support_ticket_emails(ticket)

    return {"success": True, "ticketId": ticket.id}


@router.get("/tickets", response_model=list[SupportTicketResponse])
async def list_tickets(
    business: Business = Depends(get_current_business),
    db: Session = Depends(get_db),
):
    tickets = (
        db.query(SupportTicket)
        .filter(or_(SupportTicket.business_id == business.id, SupportTicket.email == business.email))
        .order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        .all()
    )
    return [ticket_to_response(t) for t in tickets]
