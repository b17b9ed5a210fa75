"""
Unit tests for reminder scheduling, dispatch and message builders
"""

import asyncio
from datetime import datetime

import pytest

from beautybook.models import Notification
from beautybook.services import twilio_service
from beautybook.services.notification_scheduler import (
    cancel_pending_reminders,
    schedule_appointment_reminders,
    send_pending_notifications,
)

EARLY = datetime(2030, 1, 5, 9, 0)


def reminders_for(db_session, appointment):
    return (
        db_session.query(Notification)
        .filter(Notification.appointment_id == appointment.id)
        .order_by(Notification.scheduled_for, Notification.channel)
        .all()
    )


@pytest.mark.unit
class TestScheduleReminders:
    def test_all_channels_when_far_ahead(self, db_session, make_appointment):
        appointment = make_appointment("10:00", "11:00")

        created = schedule_appointment_reminders(db_session, appointment, now=EARLY)

        assert created == 3
        assert [(r.channel, r.scheduled_for.hour) for r in reminders_for(db_session, appointment)] == [
            ("EMAIL", 10),
            ("SMS", 10),
            ("SMS", 8),
        ]

    def test_preferences_respected(self, db_session, customer, make_appointment):
        profile = customer.customer_profile
        profile.sms_enabled = False
        db_session.commit()
        appointment = make_appointment("10:00", "11:00")

        assert schedule_appointment_reminders(db_session, appointment, now=EARLY) == 1
        assert reminders_for(db_session, appointment)[0].channel == "EMAIL"

    def test_no_sms_without_phone(self, db_session, other_customer, make_appointment):
        appointment = make_appointment("10:00", "11:00", customer_id=other_customer.id)

        assert schedule_appointment_reminders(db_session, appointment, now=EARLY) == 1
        assert reminders_for(db_session, appointment)[0].channel == "EMAIL"

    def test_rescheduling_replaces_pending(self, db_session, make_appointment):
        appointment = make_appointment("10:00", "11:00")
        schedule_appointment_reminders(db_session, appointment, now=EARLY)

        schedule_appointment_reminders(db_session, appointment, now=EARLY)

        assert len(reminders_for(db_session, appointment)) == 3

    def test_cancel_pending(self, db_session, make_appointment):
        appointment = make_appointment("10:00", "11:00")
        schedule_appointment_reminders(db_session, appointment, now=EARLY)

        assert cancel_pending_reminders(db_session, appointment.id) == 3
        db_session.commit()
        assert reminders_for(db_session, appointment) == []


@pytest.mark.unit
class TestDispatch:
    def test_due_reminders_fail_without_providers(self, db_session, make_appointment):
        appointment = make_appointment("10:00", "11:00")
        schedule_appointment_reminders(db_session, appointment, now=EARLY)

        summary = asyncio.run(send_pending_notifications(db_session, now=datetime(2030, 1, 6, 12, 0)))

        assert summary == {"processed": 2, "sent": 0, "failed": 2}
        statuses = {(r.channel, r.status) for r in reminders_for(db_session, appointment)}
        assert statuses == {("EMAIL", "FAILED"), ("SMS", "FAILED"), ("SMS", "PENDING")}

    def test_sent_reminders_marked(self, db_session, make_appointment, monkeypatch):
        appointment = make_appointment("10:00", "11:00")
        schedule_appointment_reminders(db_session, appointment, now=EARLY)

        async def fake_sms(to_phone, body, message_type):
            return True, None

        monkeypatch.setattr("beautybook.services.notification_scheduler.send_sms", fake_sms)
        now = datetime(2030, 1, 7, 9, 0)

        summary = asyncio.run(send_pending_notifications(db_session, now=now))

        assert summary["sent"] == 2
        sent = [r for r in reminders_for(db_session, appointment) if r.status == "SENT"]
        assert all(r.sent_at == now for r in sent)


@pytest.mark.unit
class TestMessages:
    def test_reminder_wording(self):
        assert "tomorrow at 10:00" in twilio_service.reminder_message("Jane", "Glow", "Facial", "10:00", 24)
        assert "in 2 hours at 10:00" in twilio_service.reminder_message("Jane", "Glow", "Facial", "10:00", 2)

    def test_sms_skipped_when_unconfigured(self):
        assert asyncio.run(twilio_service.send_sms("+15555550100", "hi", "test")) == (False, "Twilio not configured")
