"""
Twilio SMS Service
Handles sending SMS notifications for appointment events
"""

import logging
from typing import Optional

import httpx

from ..config import FRONTEND_URL, TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER
from ..shared.validators import validate_phone

logger = logging.getLogger(__name__)


def is_configured() -> bool:
    """Twilio credentials look usable"""
    return bool(
        TWILIO_ACCOUNT_SID
        and TWILIO_ACCOUNT_SID.startswith("AC")
        and TWILIO_AUTH_TOKEN
        and len(TWILIO_AUTH_TOKEN) > 10
        and TWILIO_PHONE_NUMBER
    )


async def send_sms(to_phone: Optional[str], message_body: str, message_type: str) -> tuple[bool, Optional[str]]:
    """
    Send SMS via Twilio

    Args:
        to_phone: Recipient phone number, normalized to E.164 before sending
        message_body: SMS message content
        message_type: Type of message (confirmation, reminder, cancellation, ...)

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    if not to_phone:
        logger.debug(f"No phone number provided for {message_type} SMS")
        return False, "No phone number provided"

    if not is_configured():
        logger.warning(f"⚠️ Twilio not configured, skipping {message_type} SMS")
        return False, "Twilio not configured"

    try:
        to_phone = validate_phone(to_phone)
    except ValueError as e:
        logger.warning(f"Phone number rejected for {message_type} SMS: {to_phone}")
        return False, str(e)

    try:
        logger.info(f"📱 Sending {message_type} SMS to {to_phone}")
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"https://api.twilio.com/2010-04-01/Accounts/{TWILIO_ACCOUNT_SID}/Messages.json",
                auth=(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN),
                data={"To": to_phone, "From": TWILIO_PHONE_NUMBER, "Body": message_body},
                timeout=10.0,
            )

        if response.status_code in [200, 201]:
            logger.info(f"✅ SMS sent successfully to {to_phone}, SID: {response.json().get('sid')}")
            return True, None

        error_data = response.json() if response.content else {}
        error_message = error_data.get("message", f"HTTP {response.status_code}")
        logger.error(f"❌ Failed to send SMS to {to_phone}: {error_message}")
        return False, error_message

    except httpx.HTTPError as e:
        logger.error(f"❌ Error sending SMS to {to_phone}: {str(e)}")
        return False, str(e)


# ============================================================================
# MESSAGE BODIES
# ============================================================================


def confirmation_message(customer_name: str, provider_name: str, service_name: str,
                         date: str, start_time: str, end_time: str, amount: float, appointment_id: str) -> str:
    return (
        f"✨ BeautyBook booking confirmed\n\n"
        f"Hi {customer_name}! Your appointment is booked:\n"
        f"📍 {provider_name}\n"
        f"💇 {service_name}\n"
        f"📅 {date}\n"
        f"⏰ {start_time} - {end_time}\n"
        f"💰 ${amount:.2f}\n\n"
        f"We'll remind you 24 hours before.\n"
        f"Details: {FRONTEND_URL}/customer/appointments\n"
        f"Booking ID: {appointment_id}"
    )


def reschedule_message(customer_name: str, provider_name: str, service_name: str,
                       old_date: str, old_start_time: str, new_date: str, new_start_time: str,
                       new_end_time: str) -> str:
    return (
        f"🔄 BeautyBook booking rescheduled\n\n"
        f"Hi {customer_name}, your {service_name} with {provider_name} moved:\n"
        f"Was: {old_date} {old_start_time}\n"
        f"Now: {new_date} {new_start_time} - {new_end_time}\n\n"
        f"Details: {FRONTEND_URL}/customer/appointments"
    )


def cancellation_message(customer_name: str, provider_name: str, service_name: str,
                         date: str, start_time: str, refund_amount: float = 0) -> str:
    refund_info = ""
    if refund_amount:
        refund_info = f"\n💰 Refund: ${refund_amount:.2f}\nRefunds take 5-7 business days."
    return (
        f"❌ BeautyBook booking cancelled\n\n"
        f"Hi {customer_name}, your appointment was cancelled:\n"
        f"📍 {provider_name}\n"
        f"💇 {service_name}\n"
        f"📅 {date} {start_time}{refund_info}\n\n"
        f"Book again: {FRONTEND_URL}/providers"
    )


def reminder_message(customer_name: str, provider_name: str, service_name: str,
                     start_time: str, hours_before: int) -> str:
    when = "tomorrow" if hours_before >= 24 else f"in {hours_before} hours"
    return (
        f"⏰ BeautyBook reminder\n\n"
        f"Hi {customer_name}! Your {service_name} at {provider_name} is {when} at {start_time}.\n"
        f"Please arrive 5-10 minutes early.\n"
        f"Need to change it? {FRONTEND_URL}/customer/appointments"
    )


def waitlist_confirmation_message(customer_name: str, provider_name: str, service_name: str,
                                  date: str, start_time: Optional[str] = None) -> str:
    when = f"{date} around {start_time}" if start_time else f"{date} (any time)"
    return (
        f"📝 BeautyBook waitlist\n\n"
        f"Hi {customer_name}! You're on the waitlist for {service_name} at {provider_name} on {when}.\n"
        f"We'll text you if a spot opens up."
    )


def waitlist_slot_available_message(customer_name: str, provider_name: str, service_name: str,
                                    date: str, start_time: str, booking_url: str) -> str:
    return (
        f"🎉 BeautyBook spot available\n\n"
        f"Hi {customer_name}! {service_name} at {provider_name} is open on {date} at {start_time}.\n"
        f"Book now before it's gone: {booking_url}"
    )
