"""
MJML Email Templates
Transactional emails for businesses and their clients
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

# Zentra brand colors - warm gold on neutral
THEME = {
    "primary": "#d4a574",
    "primary_dark": "#c8965f",
    "primary_light": "#f8efe5",
    "background": "#f9f7f4",
    "card_bg": "#ffffff",
    "text_primary": "#1f2937",
    "text_secondary": "#374151",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
    "success": "#22c55e",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    footer_note: Optional[str] = None,
) -> str:
    """Base MJML wrapper shared by every email"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="#ffffff" padding="0 40px 40px 40px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="0"
              inner-padding="16px 36px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if footer_note:
        footer_notice = f"""
        <mj-text align="center" font-size="12px" color="#9ca3af" padding="12px 0 0 0">
          {footer_note}
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['primary']}" padding="28px 20px" border-radius="10px 10px 0 0">
          <mj-column>
            <mj-text align="center" font-size="24px" font-weight="700" color="#ffffff" padding="0">
              {title}
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="36px 40px 24px 40px">
          <mj-column>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="28px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#9ca3af" padding="0">
              Sent with Zentra &middot; booking software for beauty and wellness
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def welcome_email_template(owner_name: str, business_name: str, trial_days: int) -> str:
    content = f"""
    <mj-text>Hi {escape(owner_name)},</mj-text>
    <mj-text>
      Welcome to Zentra! <strong>{escape(business_name)}</strong> is ready to take bookings.
      Your free trial runs for {trial_days} days with every starter feature included.
    </mj-text>
    <mj-text padding="0 0 0 20px">
      &bull; Add your services and staff<br/>
      &bull; Share your booking page with clients<br/>
      &bull; Connect Stripe or Square to take deposits
    </mj-text>
    """
    return get_base_template(
        title="Welcome to Zentra",
        preview_text=f"{business_name} is ready to take bookings",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard",
        cta_label="Go to Dashboard",
        footer_note="You're receiving this because you created a Zentra account.",
    )


def voucher_recipient_template(
    recipient_name: str,
    purchaser_name: str,
    business_name: str,
    code: str,
    value: str,
    expiry: str,
    message: Optional[str] = None,
) -> str:
    message_block = ""
    if message:
        message_block = f"""
        <mj-text font-style="italic" color="{THEME['text_muted']}" padding="0 0 16px 0">
          &ldquo;{escape(message)}&rdquo;
        </mj-text>
        """
    content = f"""
    <mj-text>Hi {escape(recipient_name)},</mj-text>
    <mj-text>{escape(purchaser_name)} has sent you a gift voucher for <strong>{escape(business_name)}</strong>.</mj-text>
    {message_block}
    <mj-text align="center" font-size="14px" color="{THEME['text_muted']}" text-transform="uppercase" letter-spacing="1px" padding="8px 0 4px 0">
      Voucher code
    </mj-text>
    <mj-text align="center" font-size="30px" font-weight="700" letter-spacing="4px" color="{THEME['text_primary']}" font-family="'Courier New', monospace" padding="0 0 8px 0">
      {code}
    </mj-text>
    <mj-text align="center" font-size="20px" font-weight="600" color="{THEME['primary_dark']}">{value}</mj-text>
    <mj-text align="center" font-size="14px" color="{THEME['text_muted']}">Valid until {expiry}</mj-text>
    """
    return get_base_template(
        title="You've received a gift voucher",
        preview_text=f"A {value} voucher for {business_name}",
        content_sections=content,
    )


def voucher_purchaser_template(
    purchaser_name: str, recipient_name: str, business_name: str, code: str, value: str
) -> str:
    content = f"""
    <mj-text>Hi {escape(purchaser_name)},</mj-text>
    <mj-text>
      Thank you for your purchase. Your {value} gift voucher for
      <strong>{escape(business_name)}</strong> has been sent to {escape(recipient_name)}.
    </mj-text>
    <mj-text>Voucher code: <strong>{code}</strong></mj-text>
    """
    return get_base_template(
        title="Voucher purchase confirmed",
        preview_text=f"Your voucher for {recipient_name} is on its way",
        content_sections=content,
    )


def payment_link_template(
    client_name: str, business_name: str, service_name: str, amount: str, payment_link: str
) -> str:
    content = f"""
    <mj-text>Hi {escape(client_name)},</mj-text>
    <mj-text>
      {escape(business_name)} has requested payment of <strong>{amount}</strong>
      for your <strong>{escape(service_name)}</strong> appointment.
    </mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      The link below takes you to a secure payment page.
    </mj-text>
    """
    return get_base_template(
        title="Payment request",
        preview_text=f"Payment of {amount} for {service_name}",
        content_sections=content,
        cta_url=payment_link,
        cta_label=f"Pay {amount}",
    )


def aftercare_template(
    client_name: str, business_name: str, template_name: str, content_html: str
) -> str:
    content = f"""
    <mj-text>Hi {escape(client_name)},</mj-text>
    <mj-text>Here are your aftercare instructions from {escape(business_name)}.</mj-text>
    <mj-text background-color="{THEME['primary_light']}" padding="16px 20px">
      {content_html}
    </mj-text>
    """
    return get_base_template(
        title=f"Aftercare: {escape(template_name)}",
        preview_text=f"Aftercare instructions from {business_name}",
        content_sections=content,
    )


def client_reminder_template(
    client_name: str,
    business_name: str,
    service_name: str,
    date_label: str,
    start_time: str,
    staff_name: Optional[str] = None,
) -> str:
    staff_line = f"<br/>With: <strong>{escape(staff_name)}</strong>" if staff_name else ""
    content = f"""
    <mj-text>Hi {escape(client_name)},</mj-text>
    <mj-text>This is a friendly reminder of your upcoming appointment at {escape(business_name)}.</mj-text>
    <mj-text background-color="{THEME['primary_light']}" padding="16px 20px">
      Service: <strong>{escape(service_name)}</strong><br/>
      Date: <strong>{date_label}</strong><br/>
      Time: <strong>{start_time}</strong>{staff_line}
    </mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      Need to reschedule? Please contact {escape(business_name)} as soon as possible.
    </mj-text>
    """
    return get_base_template(
        title="Appointment reminder",
        preview_text=f"{service_name} on {date_label} at {start_time}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/my-bookings",
        cta_label="View my bookings",
    )


def daily_schedule_template(
    business_name: str, date_label: str, rows: list[dict], total_revenue: str
) -> str:
    """
    Summary of tomorrow's appointments for the business.

    Each row: {"time", "client", "service", "staff", "price"} already formatted.
    """
    table_rows = "".join(
        f"""
        <tr style="border-bottom: 1px solid {THEME['border']};">
          <td style="padding: 10px 4px;">{row['time']}</td>
          <td style="padding: 10px 4px;">{escape(row['client'])}</td>
          <td style="padding: 10px 4px;">{escape(row['service'])}</td>
          <td style="padding: 10px 4px;">{escape(row['staff'])}</td>
          <td style="padding: 10px 4px; text-align: right;">{row['price']}</td>
        </tr>
        """
        for row in rows
    )
    content = f"""
    <mj-text>You have <strong>{len(rows)}</strong> appointment{'s' if len(rows) != 1 else ''} on {date_label}.</mj-text>
    <mj-table font-size="14px" color="{THEME['text_secondary']}" padding="8px 0">
      <tr style="border-bottom: 2px solid {THEME['primary']}; text-align: left;">
        <th style="padding: 8px 4px;">Time</th>
        <th style="padding: 8px 4px;">Client</th>
        <th style="padding: 8px 4px;">Service</th>
        <th style="padding: 8px 4px;">Staff</th>
        <th style="padding: 8px 4px; text-align: right;">Price</th>
      </tr>
      {table_rows}
    </mj-table>
    <mj-text align="right" font-size="18px" font-weight="600" color="{THEME['text_primary']}">
      Expected revenue: {total_revenue}
    </mj-text>
    """
    return get_base_template(
        title=f"Tomorrow at {escape(business_name)}",
        preview_text=f"{len(rows)} appointments on {date_label}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard/calendar",
        cta_label="Open calendar",
        footer_note="Daily reminders can be turned off in Settings.",
    )


def birthday_bonus_template(client_name: str, business_name: str, points: int, balance: int) -> str:
    content = f"""
    <mj-text>Happy birthday, {escape(client_name)}!</mj-text>
    <mj-text>
      To celebrate, {escape(business_name)} has added <strong>{points} loyalty points</strong>
      to your account. Your balance is now {balance} points.
    </mj-text>
    """
    return get_base_template(
        title="Happy birthday!",
        preview_text=f"{points} bonus points from {business_name}",
        content_sections=content,
    )


def password_reset_template(reset_url: str) -> str:
    content = """
    <mj-text>We received a request to reset the password for your Zentra account.</mj-text>
    <mj-text>This link expires in 1 hour. If you didn't ask for a reset, you can ignore this email.</mj-text>
    """
    return get_base_template(
        title="Reset your password",
        preview_text="Reset your Zentra password",
        content_sections=content,
        cta_url=reset_url,
        cta_label="Reset password",
    )


def support_ticket_template(
    ticket_id: int,
    name: str,
    email: str,
    subject: str,
    message: str,
    business_name: Optional[str] = None,
    business_id: Optional[int] = None,
) -> str:
    business_lines = ""
    if business_name:
        business_lines += f"<br/><strong>Business:</strong> {escape(business_name)}"
    if business_id:
        business_lines += f"<br/><strong>Business ID:</strong> {business_id}"
    content = f"""
    <mj-text font-size="20px" font-weight="600" color="{THEME['primary_dark']}">Ticket #{ticket_id}</mj-text>
    <mj-text>
      <strong>Name:</strong> {escape(name)}<br/>
      <strong>Email:</strong> <a href="mailto:{escape(email)}" style="color: {THEME['primary']};">{escape(email)}</a>
      {business_lines}
    </mj-text>
    <mj-text font-weight="600">{escape(subject)}</mj-text>
    <mj-text css-class="message" padding="0 25px 16px 25px">
      {escape(message).replace(chr(10), '<br/>')}
    </mj-text>
    """
    return get_base_template(
        title="New support ticket",
        preview_text=f"#{ticket_id}: {subject}",
        content_sections=content,
        footer_note=f"Reply directly to {escape(email)}.",
    )


def support_confirmation_template(ticket_id: int, name: str, subject: str) -> str:
    content = f"""
    <mj-text>Hi {escape(name)},</mj-text>
    <mj-text>
      We've received your message about <strong>{escape(subject)}</strong>
      (ticket #{ticket_id}). Our team usually replies within one business day.
    </mj-text>
    """
    return get_base_template(
        title="We got your message",
        preview_text=f"Support ticket #{ticket_id} received",
        content_sections=content,
    )
