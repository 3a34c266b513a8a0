"""
Twilio SMS Service
Sends SMS through the platform Twilio account and logs every attempt
"""

import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ..config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER
from ..models_twilio import SMSLog

logger = logging.getLogger(__name__)

TWILIO_API_URL = "https://api.twilio.com/2010-04-01"

# Twilio error codes surfaced to callers
INVALID_NUMBER_ERROR = 21211
NOT_MOBILE_ERROR = 21614


class SMSError(Exception):
    """Twilio rejected or could not deliver a message"""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


def is_configured() -> bool:
    return bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER)


def normalize_phone(phone: str) -> str:
    """E.164 needs a leading '+'; strip spaces people type in"""
    phone = phone.strip().replace(" ", "")
    return phone if phone.startswith("+") else f"+{phone}"


def _log(db: Session, **fields) -> None:
    db.add(SMSLog(**fields))
    db.commit()


async def send_sms(
    db: Session,
    to_phone: str,
    message_body: str,
    message_type: str,
    business_id: Optional[int] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> str:
    """
    Send SMS via Twilio

    Args:
        db: Database session
        to_phone: Recipient phone number in E.164 format
        message_body: SMS message content
        message_type: verification, client_reminder, ...
        business_id: Business the message is sent on behalf of
        entity_type: Optional entity type (Appointment, ...)
        entity_id: Optional entity ID

    Returns:
        Twilio message SID

    Raises:
        SMSError: on configuration problems or a Twilio error response
    """
    if not to_phone or not to_phone.startswith("+"):
        raise SMSError("Phone number must be in E.164 format (e.g., +447700900123)", INVALID_NUMBER_ERROR)

    if not is_configured():
        logger.error("❌ Twilio not configured - TWILIO_ACCOUNT_SID/AUTH_TOKEN/PHONE_NUMBER missing")
        raise SMSError("SMS service not configured")

    log_fields = {
        "business_id": business_id,
        "to_phone": to_phone,
        "message_body": message_body,
        "message_type": message_type,
        "entity_type": entity_type,
        "entity_id": entity_id,
    }

    logger.info(f"📱 Sending SMS: type={message_type}, to={to_phone}, business={business_id}")
    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{TWILIO_API_URL}/Accounts/{TWILIO_ACCOUNT_SID}/Messages.json",
                auth=(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN),
                data={"To": to_phone, "From": TWILIO_PHONE_NUMBER, "Body": message_body},
                timeout=10.0,
            )
    except httpx.HTTPError as e:
        logger.error(f"❌ Twilio request failed for {to_phone}: {e}")
        _log(db, status="failed", error_message=str(e), **log_fields)
        raise SMSError(f"Failed to reach Twilio: {e}") from e

    try:
        result = response.json() if response.content else {}
    except ValueError:
        # Proxies and gateways answer with HTML error pages
        logger.warning(f"⚠️ Non-JSON Twilio response (HTTP {response.status_code}) for {to_phone}")
        result = {}

    if response.status_code in (200, 201):
        message_sid = result.get("sid")
        _log(db, status="sent", twilio_message_sid=message_sid, **log_fields)
        logger.info(f"✅ SMS sent to {to_phone}: {message_sid}")
        return message_sid

    error_code = result.get("code")
    error_message = result.get("message", f"HTTP {response.status_code}")
    _log(db, status="failed", error_code=error_code, error_message=error_message, **log_fields)
    logger.error(f"❌ Twilio error {error_code} for {to_phone}: {error_message}")
    raise SMSError(error_message, error_code)


def verification_message(code: str) -> str:
    return f"Your Zentra verification code is: {code}. This code expires in 10 minutes."


def client_reminder_message(
    business_name: str, service_name: str, date_label: str, start_time: str
) -> str:
    return (
        f"Reminder from {business_name}: your {service_name} appointment is on "
        f"{date_label} at {start_time}. Reply to this message if you need to reschedule."
    )
