"""Appointment service - Booking, status changes, payments and client emails"""

import logging
from datetime import date, datetime, time
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...currency import format_price
from ...email_service import (
    EmailDeliveryError,
    build_payment_link,
    send_aftercare_email,
    send_payment_link_email,
)
from ...loyalty import award_loyalty_points
from ...models import Appointment, Business, Client, Service, Staff
from ...plan_limits import can_add
from ...shared.validators import WEEKDAYS, minutes_to_time, time_to_minutes
from ..aftercare.repository import AftercareTemplateRepository
from ..blocked_times.repository import BlockedTimeRepository
from ..blocked_times.service import blocks_slot
from ..businesses.repository import BusinessRepository
from ..catalog.repository import ServiceRepository
from ..clients.repository import ClientRepository
from ..staff.repository import StaffRepository
from .repository import AppointmentRepository
from .schemas import AftercareRequest, AppointmentCreate, AppointmentUpdate, PaymentRecord, PublicBookingCreate

logger = logging.getLogger(__name__)


def compute_end_time(start_time: str, duration: int) -> str:
    return minutes_to_time(time_to_minutes(start_time) + duration)


def compute_deposit(business: Business, service: Service, price: float) -> Optional[float]:
    """Deposit owed up front: the business's deposit percentage of the price when the service requires one"""
    if not service.deposit_required:
        return None
    percentage = float((business.settings or {}).get("depositPercentage") or 0)
    if percentage <= 0:
        return None
    return round(price * percentage / 100, 2)


def amount_due(appointment: Appointment) -> float:
    if appointment.remaining_balance is not None:
        return max(0.0, appointment.remaining_balance)
    return max(0.0, (appointment.price or 0) - (appointment.amount_paid or 0))


def derive_payment_status(appointment: Appointment) -> None:
    """Status, balance and deposit flag from what has been paid against the current price"""
    paid = appointment.amount_paid or 0
    remaining = max(0.0, round((appointment.price or 0) - paid, 2))
    appointment.remaining_balance = remaining
    if remaining <= 0:
        appointment.payment_status = "paid"
    elif paid > 0:
        appointment.payment_status = "partial"
    else:
        appointment.payment_status = "pending"
    if appointment.deposit_amount and paid >= appointment.deposit_amount:
        appointment.deposit_paid = True


def apply_payment(appointment: Appointment, amount: float) -> None:
    """Add a payment and derive status, balance and deposit flag"""
    appointment.amount_paid = round((appointment.amount_paid or 0) + amount, 2)
    derive_payment_status(appointment)


def fits_schedule(schedule: Optional[dict], day: date, start: int, end: int) -> bool:
    """True when [start, end) sits inside one of the weekday's slots. No schedule means no restriction."""
    if not schedule:
        return True
    for slot in schedule.get(WEEKDAYS[day.weekday()]) or []:
        if time_to_minutes(slot["start"]) <= start and end <= time_to_minutes(slot["end"]):
            return True
    return False


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()
        self.services = ServiceRepository()
        self.staff = StaffRepository()
        self.clients = ClientRepository()
        self.blocked = BlockedTimeRepository()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_appointments(
        self,
        business: Business,
        start: Optional[date] = None,
        end: Optional[date] = None,
        staff_id: Optional[int] = None,
    ) -> list[Appointment]:
        return self.repo.get_appointments(self.db, business.id, start, end, staff_id)

    def get_appointment(self, appointment_id: int, business: Business) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id, business.id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def _get_service(self, service_id: int, business_id: int) -> Service:
        service = self.services.get_by_id(self.db, service_id, business_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def _get_staff(self, staff_id: Optional[int], business_id: int) -> Optional[Staff]:
        if staff_id is None:
            return None
        member = self.staff.get_by_id(self.db, staff_id, business_id)
        if not member:
            raise HTTPException(status_code=404, detail="Staff member not found")
        return member

    def _check_limit(self, business: Business) -> None:
        allowed, error_message = can_add(self.db, business, "appointments")
        if not allowed:
            logger.warning(f"⚠️ Business {business.id} reached appointment limit: {error_message}")
            raise HTTPException(status_code=403, detail=error_message)

    def check_availability(
        self,
        business: Business,
        staff: Optional[Staff],
        appointment_date: date,
        start_time: str,
        duration: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        """
        Reject a slot that cannot be booked.

        Raises:
            HTTPException: 409 when the slot is blocked or clashes with another
                booking (including the business's booking buffer), 400 when it
                falls outside the staff member's schedule
        """
        start = time_to_minutes(start_time)
        end = start + duration
        staff_id = staff.id if staff else None

        for blocked in self.blocked.get_covering(self.db, business.id, appointment_date, staff_id):
            if blocks_slot(blocked, start, end):
                raise HTTPException(status_code=409, detail="This time is blocked in the calendar")

        if staff is None:
            return

        if not fits_schedule(staff.schedule, appointment_date, start, end):
            raise HTTPException(status_code=400, detail=f"{staff.name} is not working at this time")

        buffer = int((business.settings or {}).get("bookingBuffer") or 0)
        for other in self.repo.get_booked_for_staff(self.db, business.id, staff.id, appointment_date):
            if other.id == exclude_id:
                continue
            other_start = time_to_minutes(other.start_time)
            other_end = other_start + other.duration
            if start < other_end + buffer and end + buffer > other_start:
                logger.info(
                    f"⚠️ Slot {appointment_date} {start_time} for staff {staff.id} clashes with appointment {other.id}"
                )
                raise HTTPException(status_code=409, detail="This time slot is no longer available")

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    def _build(
        self,
        business: Business,
        service: Service,
        staff: Optional[Staff],
        client: Optional[Client],
        appointment_date: date,
        start_time: str,
        status: str,
        notes: Optional[str],
        client_name: Optional[str] = None,
        client_email: Optional[str] = None,
        client_phone: Optional[str] = None,
        duration: Optional[int] = None,
        price: Optional[float] = None,
    ) -> Appointment:
        duration = duration or service.duration
        price = service.price if price is None else price
        return self.repo.create(
            self.db,
            business.id,
            client_id=client.id if client else None,
            staff_id=staff.id if staff else None,
            service_id=service.id,
            client_name=client.name if client else client_name,
            client_email=(client.email if client else None) or client_email,
            client_phone=(client.phone if client else None) or client_phone,
            service_name=service.name,
            staff_name=staff.name if staff else None,
            date=appointment_date,
            start_time=start_time,
            end_time=compute_end_time(start_time, duration),
            duration=duration,
            price=price,
            status=status,
            notes=notes,
            payment_status="pending",
            amount_paid=0.0,
            remaining_balance=price,
            deposit_amount=compute_deposit(business, service, price),
        )

    def create_appointment(self, data: AppointmentCreate, business: Business) -> Appointment:
        self._check_limit(business)
        service = self._get_service(data.serviceId, business.id)
        staff = self._get_staff(data.staffId, business.id)

        client = None
        if data.clientId is not None:
            client = self.clients.get_client_by_id(self.db, data.clientId, business.id)
            if not client:
                raise HTTPException(status_code=404, detail="Client not found")
        elif not data.clientName:
            raise HTTPException(status_code=400, detail="Either clientId or clientName is required")

        self.check_availability(business, staff, data.date, data.startTime, data.duration or service.duration)

        appointment = self._build(
            business,
            service,
            staff,
            client,
            data.date,
            data.startTime,
            data.status,
            data.notes,
            client_name=data.clientName,
            client_email=data.clientEmail,
            client_phone=data.clientPhone,
            duration=data.duration,
            price=data.price,
        )
        logger.info(f"📅 Appointment {appointment.id} created for business {business.id} on {appointment.date}")
        return appointment

    def create_public_booking(self, business_id: int, data: PublicBookingCreate) -> Appointment:
        """Booking from the public page: client found or created by email, status pending"""
        business = BusinessRepository.get_by_id(self.db, business_id)
        if not business:
            raise HTTPException(status_code=404, detail="Business not found")

        service = self._get_service(data.serviceId, business.id)
        if not service.active:
            raise HTTPException(status_code=400, detail="This service is not currently available")

        staff = self._get_staff(data.staffId, business.id)
        if staff and staff.status != "active":
            raise HTTPException(status_code=400, detail="This staff member is not currently available")

        self._check_limit(business)
        self.check_availability(business, staff, data.date, data.startTime, service.duration)

        client, created = self.clients.find_or_create_by_email(
            self.db, business.id, data.clientName, data.clientEmail, data.clientPhone
        )
        if created:
            logger.info(f"👤 New client {client.id} created from public booking for business {business.id}")

        appointment = self._build(
            business, service, staff, client, data.date, data.startTime, "pending", data.notes
        )
        logger.info(f"🌐 Public booking {appointment.id} for business {business.id} on {appointment.date}")
        return appointment

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate, business: Business) -> Appointment:
        appointment = self.get_appointment(appointment_id, business)
        updates = {}

        staff = None
        if data.staffId is not None:
            staff = self._get_staff(data.staffId, business.id)
            updates["staff_id"] = staff.id
            updates["staff_name"] = staff.name
        if data.date is not None:
            updates["date"] = data.date
            updates["reminder_sent"] = False
        if data.notes is not None:
            updates["notes"] = data.notes

        start_time = data.startTime or appointment.start_time
        duration = data.duration or appointment.duration
        if data.startTime is not None or data.duration is not None:
            updates["start_time"] = start_time
            updates["duration"] = duration
            updates["end_time"] = compute_end_time(start_time, duration)

        moved = any(v is not None for v in (data.staffId, data.date, data.startTime, data.duration))
        if moved and appointment.status != "cancelled":
            if staff is None and appointment.staff_id:
                staff = self.staff.get_by_id(self.db, appointment.staff_id, business.id)
            self.check_availability(
                business, staff, data.date or appointment.date, start_time, duration, exclude_id=appointment.id
            )

        if data.price is not None:
            appointment.price = data.price
            if appointment.payment_status != "refunded":
                derive_payment_status(appointment)

        return self.repo.update(self.db, appointment, **updates)

    def delete_appointment(self, appointment_id: int, business: Business) -> dict:
        appointment = self.get_appointment(appointment_id, business)
        self.repo.delete(self.db, appointment)
        return {"message": "Appointment deleted"}

    # ------------------------------------------------------------------
    # Status and payments
    # ------------------------------------------------------------------

    def update_status(self, appointment_id: int, status: str, business: Business) -> Appointment:
        appointment = self.get_appointment(appointment_id, business)
        previous = appointment.status
        appointment.status = status
        self.db.commit()

        if status == "completed" and not appointment.completion_credited and appointment.client_id:
            self._complete_for_client(appointment, business)

        self.db.refresh(appointment)
        logger.info(f"🔄 Appointment {appointment.id} status {previous} -> {status}")
        return appointment

    def _complete_for_client(self, appointment: Appointment, business: Business) -> None:
        """Visit counters, plus spend and points unless an online payment already recorded them"""
        client = self.clients.get_client_by_id(self.db, appointment.client_id, business.id)
        if not client:
            return

        appointment.completion_credited = True
        client.total_visits = (client.total_visits or 0) + 1
        client.last_visit = datetime.combine(appointment.date, time.min)

        if not appointment.paid_via_link:
            amount = appointment.amount_paid or appointment.price or 0
            client.total_spent = round((client.total_spent or 0) + amount, 2)
            self.db.commit()
            award_loyalty_points(
                self.db, business, client, amount, "Appointment completed", str(appointment.id)
            )
        else:
            self.db.commit()

    def record_payment(self, appointment_id: int, data: PaymentRecord, business: Business) -> Appointment:
        """In-person payment taken at the desk"""
        appointment = self.get_appointment(appointment_id, business)
        if appointment.payment_status == "refunded":
            raise HTTPException(status_code=400, detail="Appointment payment was refunded")
        if appointment.payment_status == "paid":
            raise HTTPException(status_code=400, detail="Appointment is already paid")

        apply_payment(appointment, data.amount)
        appointment.payment_method = data.method
        if data.transactionId:
            appointment.transaction_id = data.transactionId
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(
            f"💷 Recorded {data.method} payment of {data.amount} on appointment {appointment.id} "
            f"({appointment.payment_status})"
        )
        return appointment

    def apply_stripe_payment(self, appointment: Appointment, amount: float, payment_intent_id: str) -> bool:
        """
        Record a succeeded PaymentIntent against an appointment.

        Returns:
            True when the amount was applied, False when it had been recorded already
        """
        processed = list(appointment.processed_payment_intents or [])
        if payment_intent_id in processed or appointment.stripe_payment_intent_id == payment_intent_id:
            logger.info(f"ℹ️ Payment intent {payment_intent_id} already processed, skipping")
            return False

        if appointment.paid_via_link and appointment.payment_status == "paid":
            appointment.stripe_payment_intent_id = payment_intent_id
            appointment.processed_payment_intents = processed + [payment_intent_id]
            self.db.commit()
            logger.info(f"ℹ️ Appointment {appointment.id} already paid via link, stored intent id only")
            return False

        apply_payment(appointment, amount)
        appointment.stripe_payment_intent_id = payment_intent_id
        appointment.processed_payment_intents = processed + [payment_intent_id]
        appointment.payment_method = "online"
        appointment.paid_via_link = True
        self.db.commit()

        if appointment.client_id:
            business = BusinessRepository.get_by_id(self.db, appointment.business_id)
            client = self.clients.get_client_by_id(self.db, appointment.client_id, appointment.business_id)
            if client:
                if client.email:
                    award_loyalty_points(
                        self.db, business, client, amount, "Online payment", str(appointment.id)
                    )
                client.total_spent = round((client.total_spent or 0) + amount, 2)
                self.db.commit()

        logger.info(
            f"✅ Appointment {appointment.id} paid {amount} via Stripe ({appointment.payment_status})"
        )
        return True

    # ------------------------------------------------------------------
    # Client emails
    # ------------------------------------------------------------------

    async def send_payment_link(self, appointment_id: int, business: Business) -> dict:
        appointment = self.get_appointment(appointment_id, business)
        if not appointment.client_email:
            raise HTTPException(status_code=400, detail="Client has no email address")

        outstanding = amount_due(appointment)
        if outstanding <= 0:
            raise HTTPException(status_code=400, detail="Nothing left to pay on this appointment")

        payment_link = build_payment_link(appointment.id)
        try:
            await send_payment_link_email(
                to=appointment.client_email,
                client_name=appointment.client_name or "there",
                business_name=business.business_name,
                service_name=appointment.service_name or "Appointment",
                amount=format_price(outstanding, business.currency),
                payment_link=payment_link,
            )
        except EmailDeliveryError as e:
            logger.error(f"❌ Payment link email failed for appointment {appointment.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to send email") from e

        return {"success": True, "paymentLink": payment_link, "amount": outstanding}

    async def send_aftercare(self, appointment_id: int, data: AftercareRequest, business: Business) -> dict:
        appointment = self.get_appointment(appointment_id, business)
        if not appointment.client_email:
            raise HTTPException(status_code=400, detail="Client has no email address")

        if data.templateId is not None:
            template = AftercareTemplateRepository.get_by_id(self.db, data.templateId, business.id)
            if not template:
                raise HTTPException(status_code=404, detail="Aftercare template not found")
            template_name, content = template.name, template.content
        elif data.templateName and data.content:
            template_name, content = data.templateName, data.content
        else:
            raise HTTPException(status_code=400, detail="templateId or templateName and content are required")

        try:
            await send_aftercare_email(
                to=appointment.client_email,
                client_name=appointment.client_name or "there",
                business_name=business.business_name,
                template_name=template_name,
                template_content=content,
            )
        except EmailDeliveryError as e:
            logger.error(f"❌ Aftercare email failed for appointment {appointment.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to send email") from e

        return {"success": True}
