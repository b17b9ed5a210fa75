"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    appointment_cancellation_template,
    appointment_confirmation_template,
    appointment_reminder_template,
    appointment_reschedule_template,
    waitlist_confirmation_template,
    waitlist_slot_available_template,
)
from .shared.errors import ExternalServiceError

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    # mjml_to_html returns a dict with 'html' and 'errors' keys
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        return result.get("html", "")
    return str(result)


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email via Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict

    Raises:
        ExternalServiceError: When email is not configured or Resend rejects the send
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise ExternalServiceError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

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
        raise ExternalServiceError(f"Failed to send email: {str(e)}") from e


# ============================================
# Appointment emails
# ============================================


async def send_appointment_confirmation(
    to: str,
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: str,
    end_time: str,
    amount: float,
    deposit_amount: Optional[float] = None,
) -> dict:
    mjml_content = appointment_confirmation_template(
        customer_name, provider_name, service_name, date, start_time, end_time, amount, deposit_amount
    )
    return await send_email(
        to=to,
        subject=f"Booking confirmed - {service_name} with {provider_name}",
        mjml_content=mjml_content,
    )


async def send_appointment_reschedule(
    to: str,
    customer_name: str,
    provider_name: str,
    service_name: str,
    old_date: str,
    old_start_time: str,
    new_date: str,
    new_start_time: str,
    new_end_time: str,
) -> dict:
    mjml_content = appointment_reschedule_template(
        customer_name,
        provider_name,
        service_name,
        old_date,
        old_start_time,
        new_date,
        new_start_time,
        new_end_time,
    )
    return await send_email(
        to=to,
        subject=f"Appointment rescheduled - {provider_name}",
        mjml_content=mjml_content,
    )


async def send_appointment_cancellation(
    to: str,
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: str,
    reason: Optional[str] = None,
    refund_amount: float = 0,
) -> dict:
    mjml_content = appointment_cancellation_template(
        customer_name, provider_name, service_name, date, start_time, reason, refund_amount
    )
    return await send_email(
        to=to,
        subject=f"Appointment cancelled - {provider_name}",
        mjml_content=mjml_content,
    )


async def send_appointment_reminder(
    to: str,
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: str,
    address: Optional[str] = None,
) -> dict:
    mjml_content = appointment_reminder_template(
        customer_name, provider_name, service_name, date, start_time, address
    )
    return await send_email(
        to=to,
        subject=f"Reminder: {service_name} on {date}",
        mjml_content=mjml_content,
    )


# ============================================
# Waitlist emails
# ============================================


async def send_waitlist_confirmation(
    to: str,
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: Optional[str] = None,
    flexible: bool = False,
) -> dict:
    mjml_content = waitlist_confirmation_template(
        customer_name, provider_name, service_name, date, start_time, flexible
    )
    return await send_email(
        to=to,
        subject=f"You're on the waitlist - {provider_name}",
        mjml_content=mjml_content,
    )


async def send_waitlist_slot_available(
    to: str,
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: str,
    booking_url: str,
) -> dict:
    mjml_content = waitlist_slot_available_template(
        customer_name, provider_name, service_name, date, start_time, booking_url
    )
    return await send_email(
        to=to,
        subject=f"A spot opened up at {provider_name}",
        mjml_content=mjml_content,
    )
