"""
Reminder Scheduler
Stores upcoming appointment reminders and dispatches the ones that are due
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ..domain.scheduling.time_utils import combine
from ..email_service import send_appointment_reminder
from ..models import Appointment, Notification
from ..shared.errors import ExternalServiceError
from .twilio_service import reminder_message, send_sms

logger = logging.getLogger(__name__)

NOTIFICATION_REMINDER = "APPOINTMENT_REMINDER"
CHANNEL_EMAIL = "EMAIL"
CHANNEL_SMS = "SMS"
STATUS_PENDING = "PENDING"
STATUS_SENT = "SENT"
STATUS_FAILED = "FAILED"

DISPATCH_BATCH_SIZE = 100


def cancel_pending_reminders(db: Session, appointment_id: str) -> int:
    """Drop reminders that have not gone out yet. Caller commits."""
    removed = (
        db.query(Notification)
        .filter(
            Notification.appointment_id == appointment_id,
            Notification.status == STATUS_PENDING,
        )
        .delete(synchronize_session=False)
    )
    if removed:
        logger.info(f"🗑️ Removed {removed} pending reminders for appointment {appointment_id}")
    return removed


def _reminder(appointment: Appointment, channel: str, scheduled_for: datetime, hours_before: int) -> Notification:
    customer = appointment.customer
    provider_name = appointment.provider.business_name
    service_name = appointment.service.name
    subject = None
    if channel == CHANNEL_EMAIL:
        subject = f"Reminder: {service_name} on {appointment.date.isoformat()}"
        message = f"Your {service_name} with {provider_name} is at {appointment.start_time}."
    else:
        message = reminder_message(
            customer.display_name, provider_name, service_name, appointment.start_time, hours_before
        )
    return Notification(
        user_id=customer.id,
        appointment_id=appointment.id,
        type=NOTIFICATION_REMINDER,
        channel=channel,
        status=STATUS_PENDING,
        subject=subject,
        message=message,
        scheduled_for=scheduled_for,
    )


def schedule_appointment_reminders(db: Session, appointment: Appointment, now: Optional[datetime] = None) -> int:
    """
    Replace an appointment's pending reminders following the customer's preferences.

    24 hours before: email and SMS. 2 hours before: SMS only.
    SMS reminders need a phone number on the customer profile.
    Reminders whose send time has already passed are skipped.
    Returns the number of reminders created.
    """
    now = now or datetime.now()
    cancel_pending_reminders(db, appointment.id)

    profile = appointment.customer.customer_profile
    if not profile:
        db.commit()
        return 0

    starts_at = combine(appointment.date, appointment.start_time)
    wants_sms = bool(profile.sms_enabled and profile.phone)
    reminders = []

    if profile.reminder_before_24h:
        scheduled_for = starts_at - timedelta(hours=24)
        if scheduled_for > now:
            if profile.email_enabled:
                reminders.append(_reminder(appointment, CHANNEL_EMAIL, scheduled_for, 24))
            if wants_sms:
                reminders.append(_reminder(appointment, CHANNEL_SMS, scheduled_for, 24))

    if profile.reminder_before_2h and wants_sms:
        scheduled_for = starts_at - timedelta(hours=2)
        if scheduled_for > now:
            reminders.append(_reminder(appointment, CHANNEL_SMS, scheduled_for, 2))

    db.add_all(reminders)
    db.commit()
    logger.info(f"⏰ Scheduled {len(reminders)} reminders for appointment {appointment.id}")
    return len(reminders)


async def _deliver(notification: Notification) -> tuple[bool, Optional[str]]:
    user = notification.user
    if notification.channel == CHANNEL_EMAIL:
        appointment = notification.appointment
        try:
            await send_appointment_reminder(
                to=user.email,
                customer_name=user.display_name,
                provider_name=appointment.provider.business_name,
                service_name=appointment.service.name,
                date=appointment.date.isoformat(),
                start_time=appointment.start_time,
                address=appointment.provider.address,
            )
        except ExternalServiceError as e:
            return False, e.message
        return True, None

    phone = user.customer_profile.phone if user.customer_profile else None
    if not phone:
        return False, "User phone number not found"
    return await send_sms(phone, notification.message, "reminder")


async def send_pending_notifications(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Send up to one batch of due PENDING notifications.

    Each notification is delivered independently: success marks it SENT,
    failure marks it FAILED with the error. Returns counts.
    """
    now = now or datetime.now()
    pending = (
        db.query(Notification)
        .options(joinedload(Notification.user), joinedload(Notification.appointment))
        .filter(Notification.status == STATUS_PENDING, Notification.scheduled_for <= now)
        .order_by(Notification.scheduled_for)
        .limit(DISPATCH_BATCH_SIZE)
        .all()
    )
    logger.info(f"📬 Processing {len(pending)} pending notifications")

    sent = failed = 0
    for notification in pending:
        try:
            success, error = await _deliver(notification)
        except Exception as e:
            logger.exception(f"❌ Unexpected error delivering notification {notification.id}")
            success, error = False, str(e)

        if success:
            notification.status = STATUS_SENT
            notification.sent_at = now
            sent += 1
        else:
            notification.status = STATUS_FAILED
            notification.error = error
            failed += 1
            logger.warning(f"⚠️ Notification {notification.id} failed: {error}")
        db.commit()

    return {"processed": len(pending), "sent": sent, "failed": failed}
