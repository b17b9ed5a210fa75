"""
Unified Notification Service
Handles email, SMS and calendar side effects for appointment and waitlist events.
Every step is best-effort: failures are logged and never reach the caller.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ..config import FRONTEND_URL
from ..database import SessionLocal
from ..domain.waitlist.repository import WaitlistRepository
from ..email_service import (
    send_appointment_cancellation,
    send_appointment_confirmation,
    send_appointment_reschedule,
    send_waitlist_confirmation,
    send_waitlist_slot_available,
)
from ..models import WAITLIST_NOTIFIED, Appointment, ProviderProfile, User, WaitlistEntry
from . import google_calendar_service
from .twilio_service import (
    cancellation_message,
    confirmation_message,
    reschedule_message,
    send_sms,
    waitlist_confirmation_message,
    waitlist_slot_available_message,
)

logger = logging.getLogger(__name__)


async def send_notification(
    client_email: Optional[str],
    client_phone: Optional[str],
    client_name: str,
    notification_type: str,
    email_func,
    email_kwargs: dict,
    sms_body: Optional[str],
) -> dict:
    """
    Unified notification sender that handles both email and SMS

    Args:
        client_email: Customer email address
        client_phone: Customer phone number
        client_name: Customer name for logging
        notification_type: Type of notification (for logging)
        email_func: Email function to call
        email_kwargs: Kwargs for email function
        sms_body: SMS text, or None to skip SMS

    Returns:
        Dict with email_sent and sms_sent status
    """
    result = {"email_sent": False, "sms_sent": False, "email_error": None, "sms_error": None}

    if client_email:
        try:
            await email_func(to=client_email, **email_kwargs)
            result["email_sent"] = True
            logger.info(f"✅ {notification_type} email sent successfully to {client_email}")
        except Exception as e:
            result["email_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} email to {client_email}: {e}")
    else:
        logger.debug(f"⚠️ No email address for {notification_type} notification to {client_name}")

    if client_phone and sms_body:
        success, error = await send_sms(client_phone, sms_body, notification_type)
        result["sms_sent"] = success
        result["sms_error"] = error
        if not success:
            logger.warning(f"⚠️ {notification_type} SMS not sent to {client_phone}: {error}")
    else:
        logger.debug(f"⚠️ No phone number for {notification_type} SMS to {client_name}")

    return result


def _load_appointment(db: Session, appointment_id: str) -> Optional[Appointment]:
    return (
        db.query(Appointment)
        .options(
            joinedload(Appointment.customer).joinedload(User.customer_profile),
            joinedload(Appointment.provider),
            joinedload(Appointment.service),
        )
        .filter(Appointment.id == appointment_id)
        .first()
    )


def _contact(record) -> tuple[str, Optional[str]]:
    """Email and SMS-eligible phone for an appointment or waitlist customer"""
    customer = record.customer
    profile = customer.customer_profile
    if profile and not profile.sms_enabled:
        return customer.email, None
    return customer.email, profile.phone if profile else None


# ============================================================================
# APPOINTMENT EVENTS (run as background tasks after the response is sent)
# ============================================================================


async def notify_appointment_booked(appointment_id: str) -> None:
    """Calendar event, confirmation email and SMS for a new booking"""
    db = SessionLocal()
    try:
        appointment = _load_appointment(db, appointment_id)
        if not appointment:
            logger.warning(f"⚠️ Appointment {appointment_id} vanished before notifications")
            return

        event_id = await google_calendar_service.create_calendar_event(appointment)
        if event_id:
            appointment.google_event_id = event_id
            db.commit()

        email, phone = _contact(appointment)
        customer_name = appointment.customer.display_name
        date = appointment.date.isoformat()
        await send_notification(
            client_email=email,
            client_phone=phone,
            client_name=customer_name,
            notification_type="confirmation",
            email_func=send_appointment_confirmation,
            email_kwargs={
                "customer_name": customer_name,
                "provider_name": appointment.provider.business_name,
                "service_name": appointment.service.name,
                "date": date,
                "start_time": appointment.start_time,
                "end_time": appointment.end_time,
                "amount": appointment.amount,
                "deposit_amount": appointment.deposit_amount,
            },
            sms_body=confirmation_message(
                customer_name,
                appointment.provider.business_name,
                appointment.service.name,
                date,
                appointment.start_time,
                appointment.end_time,
                appointment.amount,
                appointment.id,
            ),
        )
    except Exception:
        logger.exception(f"❌ Booking notifications failed for appointment {appointment_id}")
    finally:
        db.close()


async def notify_appointment_rescheduled(appointment_id: str, old_date: str, old_start_time: str) -> None:
    """Calendar update, reschedule email and SMS"""
    db = SessionLocal()
    try:
        appointment = _load_appointment(db, appointment_id)
        if not appointment:
            return

        await google_calendar_service.update_calendar_event(appointment)

        email, phone = _contact(appointment)
        customer_name = appointment.customer.display_name
        new_date = appointment.date.isoformat()
        await send_notification(
            client_email=email,
            client_phone=phone,
            client_name=customer_name,
            notification_type="reschedule",
            email_func=send_appointment_reschedule,
            email_kwargs={
                "customer_name": customer_name,
                "provider_name": appointment.provider.business_name,
                "service_name": appointment.service.name,
                "old_date": old_date,
                "old_start_time": old_start_time,
                "new_date": new_date,
                "new_start_time": appointment.start_time,
                "new_end_time": appointment.end_time,
            },
            sms_body=reschedule_message(
                customer_name,
                appointment.provider.business_name,
                appointment.service.name,
                old_date,
                old_start_time,
                new_date,
                appointment.start_time,
                appointment.end_time,
            ),
        )
    except Exception:
        logger.exception(f"❌ Reschedule notifications failed for appointment {appointment_id}")
    finally:
        db.close()


async def notify_appointment_cancelled(appointment_id: str, reason: Optional[str], refund_amount: float) -> None:
    """Calendar deletion, cancellation email and SMS"""
    db = SessionLocal()
    try:
        appointment = _load_appointment(db, appointment_id)
        if not appointment:
            return

        if await google_calendar_service.delete_calendar_event(appointment):
            appointment.google_event_id = None
            db.commit()

        email, phone = _contact(appointment)
        customer_name = appointment.customer.display_name
        date = appointment.date.isoformat()
        await send_notification(
            client_email=email,
            client_phone=phone,
            client_name=customer_name,
            notification_type="cancellation",
            email_func=send_appointment_cancellation,
            email_kwargs={
                "customer_name": customer_name,
                "provider_name": appointment.provider.business_name,
                "service_name": appointment.service.name,
                "date": date,
                "start_time": appointment.start_time,
                "reason": reason,
                "refund_amount": refund_amount,
            },
            sms_body=cancellation_message(
                customer_name,
                appointment.provider.business_name,
                appointment.service.name,
                date,
                appointment.start_time,
                refund_amount,
            ),
        )
    except Exception:
        logger.exception(f"❌ Cancellation notifications failed for appointment {appointment_id}")
    finally:
        db.close()


# ============================================================================
# WAITLIST EVENTS
# ============================================================================


def booking_url(provider: ProviderProfile) -> str:
    if provider.booking_slug and provider.public_booking_enabled:
        return f"{FRONTEND_URL}/book/{provider.booking_slug}"
    return f"{FRONTEND_URL}/providers/{provider.id}"


def waitlist_matches(entry: WaitlistEntry, start_time: str, end_time: str) -> bool:
    """A freed [start_time, end_time) suits flexible entries and preferred starts inside it"""
    if entry.flexible or not entry.start_time:
        return True
    return start_time <= entry.start_time < end_time


async def notify_waitlist_joined(entry_id: str) -> None:
    """Confirmation email and SMS for a new waitlist entry"""
    db = SessionLocal()
    try:
        entry = WaitlistRepository.get_by_id(db, entry_id)
        if not entry:
            return

        email, phone = _contact(entry)
        customer_name = entry.customer.display_name
        date = entry.date.isoformat()
        start_time = None if entry.flexible else entry.start_time
        await send_notification(
            client_email=email,
            client_phone=phone,
            client_name=customer_name,
            notification_type="waitlist",
            email_func=send_waitlist_confirmation,
            email_kwargs={
                "customer_name": customer_name,
                "provider_name": entry.provider.business_name,
                "service_name": entry.service.name,
                "date": date,
                "start_time": entry.start_time,
                "flexible": entry.flexible,
            },
            sms_body=waitlist_confirmation_message(
                customer_name, entry.provider.business_name, entry.service.name, date, start_time
            ),
        )
    except Exception:
        logger.exception(f"❌ Waitlist notifications failed for entry {entry_id}")
    finally:
        db.close()


async def notify_waitlist_slot_opened(appointment_id: str, now: Optional[datetime] = None) -> int:
    """
    Tell waitlisted customers that a cancelled appointment freed their slot.
    Matching entries move to NOTIFIED. Returns how many were notified.
    """
    now = now or datetime.now()
    db = SessionLocal()
    notified = 0
    try:
        appointment = _load_appointment(db, appointment_id)
        if not appointment or appointment.date < now.date():
            return 0

        provider = appointment.provider
        url = booking_url(provider)
        date = appointment.date.isoformat()
        for entry in WaitlistRepository.get_active_for_day(db, provider.id, appointment.date):
            if entry.customer_id == appointment.customer_id:
                continue
            if not waitlist_matches(entry, appointment.start_time, appointment.end_time):
                continue

            email, phone = _contact(entry)
            customer_name = entry.customer.display_name
            await send_notification(
                client_email=email,
                client_phone=phone,
                client_name=customer_name,
                notification_type="waitlist_slot",
                email_func=send_waitlist_slot_available,
                email_kwargs={
                    "customer_name": customer_name,
                    "provider_name": provider.business_name,
                    "service_name": entry.service.name,
                    "date": date,
                    "start_time": appointment.start_time,
                    "booking_url": url,
                },
                sms_body=waitlist_slot_available_message(
                    customer_name, provider.business_name, entry.service.name, date, appointment.start_time, url
                ),
            )
            entry.status = WAITLIST_NOTIFIED
            entry.notified_at = now
            notified += 1

        db.commit()
        if notified:
            logger.info(f"📣 Notified {notified} waitlisted customers about appointment {appointment_id}")
    except Exception:
        logger.exception(f"❌ Waitlist slot notifications failed for appointment {appointment_id}")
    finally:
        db.close()
    return notified
