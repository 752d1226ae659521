"""
Outbound email over SMTP

Sending is best-effort: failures are logged and reported as False, never
raised into the request that queued the message. With SMTP_HOST unset the
message is only logged.
"""

import html as html_lib
import smtplib
from datetime import date, time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import structlog

from snytra.core.config import get_settings

logger = structlog.get_logger(__name__)


def format_time_12h(value: time) -> str:
    hour12 = value.hour % 12 or 12
    suffix = "PM" if value.hour >= 12 else "AM"
    return f"{hour12}:{value.minute:02d} {suffix}"


def send_email(to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
    """Send a plain text (and optional HTML) message"""
    settings = get_settings()

    msg = MIMEMultipart("alternative")
    msg["From"] = settings.SMTP_FROM_EMAIL
    msg["To"] = to
    msg["Subject"] = subject
    msg.attach(MIMEText(text, "plain", "utf-8"))
    if html:
        msg.attach(MIMEText(html, "html", "utf-8"))

    if not settings.SMTP_HOST:
        logger.info("SMTP not configured, email not sent", to=to, subject=subject)
        return False

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as server:
            server.starttls()
            if settings.SMTP_USERNAME:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Email delivery failed", to=to, subject=subject, error=str(e))
        return False

    logger.info("Email sent", to=to, subject=subject)
    return True


def send_reservation_confirmation(
    reservation_id: int,
    customer_email: str,
    customer_name: str,
    reservation_date: date,
    reservation_time: time,
    party_size: int,
    table_number: Optional[str] = None,
    special_requests: Optional[str] = None,
    qr_code_url: Optional[str] = None,
) -> bool:
    restaurant = get_settings().RESTAURANT_NAME
    when = f"{reservation_date.strftime('%A, %B %d, %Y')} at {format_time_12h(reservation_time)}"

    lines = [
        f"Hello {customer_name},",
        "",
        "Your table reservation has been confirmed. We look forward to serving you!",
        "",
        f"Reservation ID: {reservation_id}",
        f"When: {when}",
        f"Party size: {party_size}",
    ]
    if table_number:
        lines.append(f"Table: {table_number}")
    if special_requests:
        lines.append(f"Special requests: {special_requests}")
    if qr_code_url:
        lines.append(f"Scan to view the menu and order: {qr_code_url}")
    lines += ["", restaurant]
    text = "\n".join(lines)

    html = "<br>".join(html_lib.escape(line) for line in lines)
    return send_email(
        customer_email,
        f"Reservation Confirmed - {restaurant}",
        text,
        html=f"<div style=\"font-family: Arial, sans-serif;\"><h2>Reservation Confirmed!</h2><p>{html}</p></div>",
    )


def send_table_ready(customer_email: str, customer_name: str, position: int) -> bool:
    restaurant = get_settings().RESTAURANT_NAME
    text = (
        f"Hello {customer_name},\n\n"
        f"Your table at {restaurant} is ready. You were number {position} on the waitlist.\n"
        "Please come to the host stand."
    )
    return send_email(customer_email, f"Your table is ready - {restaurant}", text)
