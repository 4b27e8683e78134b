"""
Email Service using Resend
Templates are written in MJML and compiled to HTML before sending
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import (
    booking_confirmation_template,
    booking_status_update_template,
    payment_confirmation_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfiguredError(Exception):
    """Raised when no email provider is configured"""

    pass


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        html = getattr(result, "html", None)
        if html is None and isinstance(result, dict):
            html = result.get("html", "")
        errors = getattr(result, "errors", None)
        if errors:
            logger.warning(f"MJML compilation warnings: {errors}")
        return html or ""
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        raise EmailNotConfiguredError("Email service not configured - RESEND_API_KEY missing")

    recipients = [to] if isinstance(to, str) else to
    html_content = compile_mjml_to_html(mjml_content)

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


def booking_url(booking_id: int) -> str:
    return f"{FRONTEND_URL}/customer/bookings/{booking_id}"


async def send_booking_confirmation_email(
    to: str, customer_name: str, booking_id: int, booking_ref: str, service_name: str, scheduled_at: str, amount: float
) -> dict:
    mjml_content = booking_confirmation_template(
        customer_name, booking_ref, service_name, scheduled_at, amount, booking_url(booking_id)
    )
    return await send_email(to=to, subject=f"Booking Confirmed - {service_name}", mjml_content=mjml_content)


async def send_booking_status_email(
    to: str, customer_name: str, booking_id: int, booking_ref: str, service_name: str, status: str
) -> dict:
    mjml_content = booking_status_update_template(
        customer_name, booking_ref, service_name, status, booking_url(booking_id)
    )
    return await send_email(to=to, subject=f"Booking Update - {service_name}", mjml_content=mjml_content)


async def send_payment_confirmation_email(
    to: str, customer_name: str, booking_ref: str, amount: float, transaction_id: str
) -> dict:
    mjml_content = payment_confirmation_template(customer_name, booking_ref, amount, transaction_id)
    return await send_email(to=to, subject="Payment Confirmed", mjml_content=mjml_content)
