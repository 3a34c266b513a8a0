"""Appointment routers - dashboard CRUD, public bookings, calendar and payments payloads"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...api_tracking import track_api_usage
from ...auth import get_current_business_with_access
from ...database import get_db
from ...models import Appointment, Business
from ..businesses.repository import BusinessRepository
from ..businesses.router import business_to_response
from ..catalog.repository import ServiceRepository
from ..catalog.router import service_to_response
from ..clients.repository import ClientRepository
from ..clients.router import client_to_response
from ..staff.repository import StaffRepository
from ..staff.router import staff_to_response
from .repository import AppointmentRepository
from .schemas import (
    AftercareRequest,
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    CalendarDataResponse,
    PaymentInfo,
    PaymentRecord,
    PaymentsDataResponse,
    PublicAppointmentResponse,
    PublicBookingCreate,
    StatusUpdate,
)
from .service import AppointmentService, amount_due

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"], dependencies=[Depends(track_api_usage)])
public_router = APIRouter(prefix="/public", tags=["Public Booking"])
calendar_router = APIRouter(prefix="/calendar", tags=["Calendar"], dependencies=[Depends(track_api_usage)])
payments_data_router = APIRouter(prefix="/payments", tags=["Payments"], dependencies=[Depends(track_api_usage)])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def appointment_to_response(a: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=a.id,
        businessId=a.business_id,
        clientId=a.client_id,
        staffId=a.staff_id,
        serviceId=a.service_id,
        clientName=a.client_name,
        clientEmail=a.client_email,
        clientPhone=a.client_phone,
        serviceName=a.service_name,
        staffName=a.staff_name,
        date=a.date,
        startTime=a.start_time,
        endTime=a.end_time,
        duration=a.duration,
        price=a.price,
        status=a.status,
        notes=a.notes,
        payment=PaymentInfo(
            method=a.payment_method,
            status=a.payment_status,
            amount=a.amount_paid or 0.0,
            depositAmount=a.deposit_amount,
            depositPaid=a.deposit_paid,
            transactionId=a.transaction_id,
            stripePaymentIntentId=a.stripe_payment_intent_id,
            paidViaLink=a.paid_via_link,
            remainingBalance=a.remaining_balance,
        ),
        reminderSent=a.reminder_sent,
        createdAt=a.created_at,
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    staff_id: Optional[int] = Query(None),
    business: Business = Depends(get_current_business_with_access),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments in an optional date range, optionally for one staff member"""
    return [appointment_to_response(a) for a in service.get_appointments(business, start, end, staff_id)]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: AppointmentService = Depends(get_appointment_service),
):
    return appointment_to_response(service.get_appointment(appointment_id, business))


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    business: Business = Depends(get_current_business_with_access),
    service: AppointmentService = Depends(get_appointment_service),
):
    return appointment_to_response(service.create_appointment(data, business))


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    business: Business = Depends(get_current_business_with_access),
    service: AppointmentService = Depends(get_appointment_service),
):
    return appointment_to_response(service.update_appointment(appointment_id, data, business))


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.delete_appointment(appointment_id, business)


# ============================================================================
# STATUS, PAYMENTS AND CLIENT EMAILS
# ============================================================================


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: StatusUpdate,
    business: Business = Depends(get_current_business_with_access),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Change status; completing an appointment credits the client's visit and loyalty points"""
    return appointment_to_response(service.update_status(appointment_id, data.status, business))


@router.post("/{appointment_id}/payment", response_model=AppointmentResponse)
async def record_payment(
    appointment_id: int,
    data: PaymentRecord,
    business: Business = Depends(get_current_business_with_access),
    service: AppointmentService = Depends(get_appointment_service),
):
    return appointment_to_response(service.record_payment(appointment_id, data, business))


@router.post("/{appointment_id}/send-payment-link")
async def send_payment_link(
    appointment_id: int,
    business: Business = Depends(get_current_business_with_access),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.send_payment_link(appointment_id, business)


@router.post("/{appointment_id}/aftercare")
async def send_aftercare(
    appointment_id: int,
    data: AftercareRequest,
    business: Business = Depends(get_current_business_with_access),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.send_aftercare(appointment_id, data, business)


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@public_router.post("/{business_id}/bookings", response_model=AppointmentResponse, status_code=201)
async def create_public_booking(
    business_id: int,
    data: PublicBookingCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Booking from the public booking page - no authentication required"""
    return appointment_to_response(service.create_public_booking(business_id, data))


@public_router.get("/appointments/{appointment_id}", response_model=PublicAppointmentResponse)
async def get_public_appointment(appointment_id: int, db: Session = Depends(get_db)):
    """Details for the pay-by-link page"""
    appointment = AppointmentRepository.get_by_id(db, appointment_id)
    business = BusinessRepository.get_by_id(db, appointment.business_id) if appointment else None
    if not appointment or not business:
        raise HTTPException(status_code=404, detail="Appointment not found")

    return PublicAppointmentResponse(
        id=appointment.id,
        businessId=business.id,
        businessName=business.business_name,
        serviceName=appointment.service_name,
        clientName=appointment.client_name,
        date=appointment.date,
        startTime=appointment.start_time,
        price=appointment.price,
        amountDue=amount_due(appointment),
        currency=business.currency,
        paymentStatus=appointment.payment_status,
        acceptsCardPayments=bool(business.stripe_account_id),
    )


# ============================================================================
# PAGE PAYLOADS
# ============================================================================


@calendar_router.get("/data", response_model=CalendarDataResponse)
async def get_calendar_data(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    business: Business = Depends(get_current_business_with_access),
    db: Session = Depends(get_db),
):
    """Everything the calendar page needs in one request"""
    appointments = AppointmentRepository.get_appointments(db, business.id, start, end)
    return CalendarDataResponse(
        appointments=[appointment_to_response(a) for a in appointments],
        clients=[client_to_response(c).model_dump(mode="json") for c in ClientRepository.get_clients(db, business.id)],
        staff=[staff_to_response(m).model_dump(mode="json") for m in StaffRepository.get_all(db, business.id)],
        services=[service_to_response(s).model_dump(mode="json") for s in ServiceRepository.get_all(db, business.id)],
        business=business_to_response(business).model_dump(mode="json"),
    )


@payments_data_router.get("/data", response_model=PaymentsDataResponse)
async def get_payments_data(
    business: Business = Depends(get_current_business_with_access),
    db: Session = Depends(get_db),
):
    """Latest 100 appointments with their payment details"""
    appointments = AppointmentRepository.get_recent(db, business.id, limit=100)
    return PaymentsDataResponse(
        appointments=[appointment_to_response(a) for a in appointments],
        business=business_to_response(business).model_dump(mode="json"),
    )
