"""
Scheduled jobs: appointment reminders and loyalty housekeeping

Each job walks every opted-in business, keeps going when a single email or
SMS fails, and returns a summary for the cron log.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from ..currency import format_price
from ..domain.appointments.repository import AppointmentRepository
from ..domain.businesses.repository import BusinessRepository
from ..domain.staff.repository import StaffRepository
from ..email_service import (
    EmailDeliveryError,
    send_birthday_bonus_email,
    send_client_reminder_email,
    send_daily_schedule_email,
)
from ..loyalty import apply_points, get_program, record_transaction
from ..models import Appointment, Business, Client
from . import twilio_service
from .twilio_service import SMSError

logger = logging.getLogger(__name__)

DEFAULT_SEND_TIME = "18:00"
DEFAULT_DAYS_BEFORE = 1


def _sms_enabled(business: Business) -> bool:
    notifications = (business.settings or {}).get("notifications") or {}
    return bool(notifications.get("sms"))


async def _send_reminder_sms(db: Session, business: Business, appointment: Appointment) -> None:
    message = twilio_service.client_reminder_message(
        business.business_name,
        appointment.service_name or "appointment",
        appointment.date.strftime("%a %d %b"),
        appointment.start_time,
    )
    try:
        await twilio_service.send_sms(
            db,
            to_phone=twilio_service.normalize_phone(appointment.client_phone),
            message_body=message,
            message_type="client_reminder",
            business_id=business.id,
            entity_type="Appointment",
            entity_id=appointment.id,
        )
    except SMSError as e:
        logger.error(f"❌ Reminder SMS failed for appointment {appointment.id}: {e}")


# ============================================================================
# APPOINTMENT REMINDERS
# ============================================================================


async def send_client_reminders(db: Session, today: Optional[date] = None) -> dict:
    """Remind clients about upcoming appointments, days_before days ahead"""
    today = today or date.today()
    businesses = BusinessRepository.get_with_client_reminders(db)
    results = []
    total_sent = 0

    for business in businesses:
        days_before = (business.client_reminders or {}).get("daysBefore")
        if days_before is None:
            days_before = DEFAULT_DAYS_BEFORE
        target = today + timedelta(days=days_before)

        appointments = [
            a
            for a in AppointmentRepository.get_on_date(db, business.id, target)
            if a.status not in ("cancelled", "completed") and not a.reminder_sent and a.client_email
        ]

        sent = 0
        for appointment in appointments:
            try:
                await send_client_reminder_email(appointment, business.business_name)
            except EmailDeliveryError as e:
                logger.error(f"❌ Reminder email failed for appointment {appointment.id}: {e}")
                continue

            if _sms_enabled(business) and appointment.client_phone:
                await _send_reminder_sms(db, business, appointment)

            appointment.reminder_sent = True
            appointment.reminder_sent_at = datetime.utcnow()
            db.commit()
            sent += 1

        total_sent += sent
        results.append({"businessId": business.id, "date": target.isoformat(), "remindersSent": sent})
        logger.info(f"🔔 Sent {sent} client reminders for business {business.id} ({target})")

    return {"totalBusinesses": len(businesses), "remindersSent": total_sent, "results": results}


def _daily_recipient(db: Session, business: Business, settings: dict) -> str:
    staff_id = settings.get("recipientStaffId")
    if staff_id:
        staff = StaffRepository.get_by_id(db, int(staff_id), business.id)
        if staff and staff.email:
            return staff.email
    return business.email


async def send_daily_reminders(db: Session, hour: Optional[int] = None, today: Optional[date] = None) -> dict:
    """
    Email each business tomorrow's schedule.

    Args:
        hour: only businesses whose send time falls in this hour; None sends to all
    """
    today = today or date.today()
    tomorrow = today + timedelta(days=1)
    results = []
    emails_sent = 0
    processed = 0

    for business in BusinessRepository.get_with_daily_reminders(db):
        settings = business.daily_reminders or {}
        send_time = settings.get("sendTime") or DEFAULT_SEND_TIME
        if hour is not None and int(send_time.split(":")[0]) != hour:
            continue
        processed += 1

        appointments = [
            a for a in AppointmentRepository.get_on_date(db, business.id, tomorrow) if a.status != "cancelled"
        ]
        if not appointments:
            results.append({"businessId": business.id, "sent": False, "reason": "No appointments"})
            continue

        currency = business.currency or "gbp"
        rows = [
            {
                "time": a.start_time,
                "client": a.client_name or "Walk-in",
                "service": a.service_name or "Appointment",
                "staff": a.staff_name or "-",
                "price": format_price(a.price, currency),
            }
            for a in appointments
        ]
        total_revenue = format_price(sum(a.price or 0 for a in appointments), currency)
        recipient = _daily_recipient(db, business, settings)

        try:
            await send_daily_schedule_email(
                recipient, business.business_name, tomorrow.strftime("%A, %d %B %Y"), rows, total_revenue
            )
        except EmailDeliveryError as e:
            logger.error(f"❌ Daily schedule email failed for business {business.id}: {e}")
            results.append({"businessId": business.id, "sent": False, "reason": str(e)})
            continue

        emails_sent += 1
        results.append({"businessId": business.id, "sent": True, "appointmentCount": len(appointments)})

    logger.info(f"📅 Daily reminders: {emails_sent} emails across {processed} businesses")
    return {"totalBusinesses": processed, "emailsSent": emails_sent, "results": results}


# ============================================================================
# LOYALTY HOUSEKEEPING
# ============================================================================


async def award_birthday_bonuses(db: Session, today: Optional[date] = None) -> dict:
    """Give the birthday bonus once per calendar year"""
    now = datetime.utcnow()
    today = today or now.date()
    total_awarded = 0
    total_processed = 0

    for business in BusinessRepository.get_with_active_loyalty(db):
        bonus = int(get_program(business)["settings"].get("birthdayBonus") or 0)
        if bonus <= 0:
            continue

        clients = db.query(Client).filter(Client.business_id == business.id, Client.birthday.isnot(None)).all()
        for client in clients:
            if (client.birthday.month, client.birthday.day) != (today.month, today.day):
                continue
            if client.last_birthday_award and client.last_birthday_award.year == today.year:
                continue

            apply_points(client, bonus)
            client.last_birthday_award = now
            record_transaction(db, client, "earned", bonus, "Birthday bonus")
            db.commit()
            total_awarded += 1
            logger.info(f"🎂 Birthday bonus of {bonus} for client {client.id} (business {business.id})")

            if client.email:
                try:
                    await send_birthday_bonus_email(
                        client.email, client.name, business.business_name, bonus, client.loyalty_points
                    )
                except EmailDeliveryError as e:
                    logger.error(f"❌ Birthday email failed for client {client.id}: {e}")

        total_processed += 1

    return {"totalAwarded": total_awarded, "totalProcessed": total_processed}


def expire_loyalty_points(db: Session, now: Optional[datetime] = None) -> dict:
    """Clear balances of clients who have not visited within the expiration window"""
    now = now or datetime.utcnow()
    total_expired = 0
    clients_affected = 0

    for business in BusinessRepository.get_with_active_loyalty(db):
        months = int(get_program(business)["settings"].get("expirationMonths") or 0)
        if months <= 0:
            continue
        cutoff = now - relativedelta(months=months)

        clients = (
            db.query(Client)
            .filter(
                Client.business_id == business.id,
                Client.loyalty_points > 0,
                Client.last_visit.isnot(None),
                Client.last_visit < cutoff,
            )
            .all()
        )
        for client in clients:
            points = client.loyalty_points
            apply_points(client, -points)
            client.points_expired = (client.points_expired or 0) + points
            client.last_expiration = now
            record_transaction(db, client, "expired", -points, f"Points expired after {months} months of inactivity")
            total_expired += points
            clients_affected += 1

        db.commit()

    logger.info(f"⌛ Expired {total_expired} points across {clients_affected} clients")
    return {"totalExpired": total_expired, "clientsAffected": clients_affected}
