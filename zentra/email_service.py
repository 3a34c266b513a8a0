"""
Email Service using Resend
Every email is an MJML template compiled to responsive HTML
"""

import logging
import re
from html import escape
from io import StringIO
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY, SUPPORT_EMAIL, TRIAL_DAYS
from .currency import format_price
from .email_templates import (
    aftercare_template,
    birthday_bonus_template,
    client_reminder_template,
    daily_schedule_template,
    password_reset_template,
    payment_link_template,
    support_confirmation_template,
    support_ticket_template,
    voucher_purchaser_template,
    voucher_recipient_template,
    welcome_email_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the provider"""


def get_sender_email(business_name: Optional[str] = None) -> str:
    """Sender shown to clients: the business name in front of the platform address"""
    if not business_name:
        return EMAIL_FROM_ADDRESS
    address = EMAIL_FROM_ADDRESS
    if "<" in address:
        address = address.split("<", 1)[1].rstrip(">")
    return f"{business_name} <{address}>"


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(StringIO(mjml_content))
    if result.get("errors"):
        logger.warning(f"MJML compilation warnings: {result['errors']}")
    return result.get("html", "")


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    reply_to: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend.

    Raises:
        EmailDeliveryError: when Resend is not configured or rejects the message
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    recipients = [to] if isinstance(to, str) else to
    email_data = {
        "from": from_address or EMAIL_FROM_ADDRESS,
        "to": recipients,
        "subject": subject,
        "html": compile_mjml_to_html(mjml_content),
        "reply_to": reply_to or SUPPORT_EMAIL,
    }

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built emails for common events
# ============================================


async def send_welcome_email(to: str, owner_name: str, business_name: str) -> dict:
    return await send_email(
        to=to,
        subject=f"Welcome to Zentra, {owner_name}!",
        mjml_content=welcome_email_template(owner_name, business_name, TRIAL_DAYS),
    )


async def send_voucher_emails(voucher, business_name: str) -> dict:
    """
    Email the voucher to its recipient and a receipt to the purchaser.
    Failures are logged per message and reported in the result.
    """
    value = format_price(voucher.original_value, voucher.currency)
    results = {"recipient": False, "purchaser": False}

    try:
        await send_email(
            to=voucher.recipient_email,
            subject=f"You've received a gift voucher for {business_name}!",
            mjml_content=voucher_recipient_template(
                recipient_name=voucher.recipient_name,
                purchaser_name=voucher.purchaser_name or "Someone special",
                business_name=business_name,
                code=voucher.code,
                value=value,
                expiry=voucher.expiry_date.strftime("%d %B %Y"),
                message=voucher.message,
            ),
            from_address=get_sender_email(business_name),
        )
        results["recipient"] = True
    except EmailDeliveryError as e:
        logger.error(f"❌ Voucher email to recipient failed for {voucher.code}: {e}")

    if voucher.purchaser_email:
        try:
            await send_email(
                to=voucher.purchaser_email,
                subject=f"Your voucher purchase - {business_name}",
                mjml_content=voucher_purchaser_template(
                    purchaser_name=voucher.purchaser_name or "there",
                    recipient_name=voucher.recipient_name,
                    business_name=business_name,
                    code=voucher.code,
                    value=value,
                ),
                from_address=get_sender_email(business_name),
            )
            results["purchaser"] = True
        except EmailDeliveryError as e:
            logger.error(f"❌ Voucher confirmation to purchaser failed for {voucher.code}: {e}")

    return results


async def send_payment_link_email(
    to: str, client_name: str, business_name: str, service_name: str, amount: str, payment_link: str
) -> dict:
    return await send_email(
        to=to,
        subject=f"Payment Link - {service_name}",
        mjml_content=payment_link_template(client_name, business_name, service_name, amount, payment_link),
        from_address=get_sender_email(business_name),
    )


def format_aftercare_content(content: str) -> str:
    """Render the lightweight markdown used in aftercare templates to inline HTML"""
    lines = []
    for raw in escape(content).splitlines():
        line = raw.strip()
        if not line:
            lines.append("<br/>")
            continue
        line = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", line)
        line = re.sub(r"\*(.+?)\*", r"<em>\1</em>", line)
        heading = re.match(r"^(#{1,3}) (.*)$", line)
        if heading:
            size = {1: 22, 2: 19, 3: 17}[len(heading.group(1))]
            lines.append(f'<span style="font-size: {size}px; font-weight: 600;">{heading.group(2)}</span><br/>')
        elif line.startswith("- "):
            lines.append(f"&bull; {line[2:]}<br/>")
        else:
            lines.append(f"{line}<br/>")
    return "\n".join(lines)


async def send_aftercare_email(
    to: str, client_name: str, business_name: str, template_name: str, template_content: str
) -> dict:
    return await send_email(
        to=to,
        subject=f"Aftercare Instructions - {template_name}",
        mjml_content=aftercare_template(
            client_name, business_name, template_name, format_aftercare_content(template_content)
        ),
        from_address=get_sender_email(business_name),
    )


async def send_client_reminder_email(appointment, business_name: str) -> dict:
    return await send_email(
        to=appointment.client_email,
        subject=f"Reminder: your appointment at {business_name}",
        mjml_content=client_reminder_template(
            client_name=appointment.client_name or "there",
            business_name=business_name,
            service_name=appointment.service_name or "Appointment",
            date_label=appointment.date.strftime("%A, %d %B %Y"),
            start_time=appointment.start_time,
            staff_name=appointment.staff_name,
        ),
        from_address=get_sender_email(business_name),
    )


async def send_daily_schedule_email(
    to: str, business_name: str, date_label: str, rows: list[dict], total_revenue: str
) -> dict:
    return await send_email(
        to=to,
        subject=f"Tomorrow's Appointments - {business_name}",
        mjml_content=daily_schedule_template(business_name, date_label, rows, total_revenue),
    )


async def send_birthday_bonus_email(
    to: str, client_name: str, business_name: str, points: int, balance: int
) -> dict:
    return await send_email(
        to=to,
        subject=f"Happy birthday from {business_name}! 🎂",
        mjml_content=birthday_bonus_template(client_name, business_name, points, balance),
        from_address=get_sender_email(business_name),
    )


async def send_password_reset_email(to: str, reset_url: str) -> dict:
    return await send_email(
        to=to,
        subject="Reset Your Zentra Password",
        mjml_content=password_reset_template(reset_url),
    )


async def send_support_ticket_emails(ticket) -> None:
    """Notify the support inbox and confirm receipt to the requester"""
    try:
        await send_email(
            to=SUPPORT_EMAIL,
            subject=f"[Support #{ticket.id}] {ticket.subject}",
            mjml_content=support_ticket_template(
                ticket_id=ticket.id,
                name=ticket.name,
                email=ticket.email,
                subject=ticket.subject,
                message=ticket.message,
                business_name=ticket.business_name,
                business_id=ticket.business_id,
            ),
            reply_to=ticket.email,
        )
    except EmailDeliveryError as e:
        logger.error(f"❌ Support notification failed for ticket {ticket.id}: {e}")

    try:
        await send_email(
            to=ticket.email,
            subject=f"We received your message (#{ticket.id})",
            mjml_content=support_confirmation_template(ticket.id, ticket.name, ticket.subject),
        )
    except EmailDeliveryError as e:
        logger.error(f"❌ Support confirmation failed for ticket {ticket.id}: {e}")


def build_payment_link(appointment_id: int) -> str:
    return f"{FRONTEND_URL}/pay/{appointment_id}"
