"""
Integration tests for the booking lifecycle endpoints
"""

from datetime import datetime

import pytest

from beautybook.models import Appointment, Coupon, Notification, PointsTransaction, Service

from .conftest import MONDAY, auth_headers


def book(client, user, service, start_time="10:00", **extra):
    payload = {
        "providerId": service.provider_id,
        "serviceId": service.id,
        "date": MONDAY.isoformat(),
        "startTime": start_time,
        **extra,
    }
    return client.post("/api/appointments", json=payload, headers=auth_headers(user))


@pytest.mark.integration
class TestCreateAppointment:
    def test_book_computes_end_time_and_snapshots_policy(self, client, customer, facial):
        response = book(client, customer, facial)

        assert response.status_code == 201
        data = response.json()
        assert data["endTime"] == "11:00"
        assert data["status"] == "SCHEDULED"
        assert data["paymentStatus"] == "PENDING"
        assert data["cancellationPolicy"] == "STANDARD"
        assert data["depositRequired"] is False
        assert data["depositAmount"] is None
        assert data["serviceName"] == "Hydrating Facial"
        assert data["providerName"] == "Glow Studio"

    def test_deposit_for_expensive_service(self, client, customer, color):
        data = book(client, customer, color).json()

        assert data["depositRequired"] is True
        assert data["depositAmount"] == pytest.approx(30)
        assert data["endTime"] == "11:30"

    def test_reminders_skip_times_already_past(self, client, db_session, customer, facial):
        appointment_id = book(client, customer, facial).json()["id"]

        reminders = db_session.query(Notification).filter(Notification.appointment_id == appointment_id).all()

        # The 24 hour reminders fall before the Sunday noon clock
        assert [(r.channel, r.scheduled_for) for r in reminders] == [("SMS", datetime(2030, 1, 7, 8, 0))]

    def test_conflict_scenario(self, client, customer, facial, make_appointment):
        make_appointment("10:00", "11:00", status="CONFIRMED")

        conflict = book(client, customer, facial, start_time="10:30")
        assert conflict.status_code == 409
        assert conflict.json()["error"] == "This time slot is already booked. Please choose another time."

        assert book(client, customer, facial, start_time="09:00").status_code == 201
        assert book(client, customer, facial, start_time="11:00").status_code == 201

    def test_lead_time_enforced(self, client, clock, customer, facial):
        clock.now = datetime(2030, 1, 7, 8, 30)

        response = book(client, customer, facial, start_time="10:00")

        assert response.status_code == 400
        assert "at least 2 hours" in response.json()["error"]

    def test_past_date_rejected(self, client, clock, customer, facial):
        clock.now = datetime(2030, 1, 8, 9, 0)

        response = book(client, customer, facial)

        assert response.status_code == 400
        assert "past date" in response.json()["error"]

    def test_unknown_service(self, client, customer, provider):
        response = client.post(
            "/api/appointments",
            json={"providerId": provider.id, "serviceId": "missing", "date": MONDAY.isoformat(), "startTime": "10:00"},
            headers=auth_headers(customer),
        )
        assert response.status_code == 404

    def test_inactive_service(self, client, db_session, customer, facial):
        facial.active = False
        db_session.commit()

        assert book(client, customer, facial).status_code == 400

    def test_invalid_time_format(self, client, customer, facial):
        response = book(client, customer, facial, start_time="9am")
        assert response.status_code == 400
        assert "error" in response.json()

    def test_requires_authentication(self, client, facial):
        response = client.post(
            "/api/appointments",
            json={"providerId": facial.provider_id, "serviceId": facial.id, "date": MONDAY.isoformat(), "startTime": "10:00"},
        )
        assert response.status_code == 401

    def test_coupon_applied(self, client, db_session, customer, provider, facial):
        db_session.add(
            Coupon(
                provider_id=provider.id,
                code="GLOW10",
                name="Ten off",
                discount_type="PERCENTAGE",
                discount_value=10,
                start_date=MONDAY.replace(day=1),
            )
        )
        db_session.commit()

        data = book(client, customer, facial, couponCode="glow10").json()

        assert data["amount"] == pytest.approx(72)
        assert data["discountAmount"] == pytest.approx(8)
        assert data["couponCode"] == "GLOW10"
        db_session.expire_all()
        assert db_session.query(Coupon).one().used_count == 1

    def test_fully_discounted_booking_has_no_deposit(self, client, db_session, customer, provider):
        service = Service(provider_id=provider.id, name="Signature Cut", duration=60, price=100)
        db_session.add(service)
        db_session.add(
            Coupon(
                provider_id=provider.id,
                code="FREECUT",
                name="On the house",
                discount_type="FIXED",
                discount_value=100,
                start_date=MONDAY.replace(day=1),
            )
        )
        db_session.commit()

        data = book(client, customer, service, couponCode="FREECUT").json()

        assert data["amount"] == 0
        assert data["depositRequired"] is False
        assert data["depositAmount"] is None

    def test_book_until_midnight(self, client, customer, facial):
        response = book(client, customer, facial, start_time="23:00", endTime="24:00")

        assert response.status_code == 201
        assert response.json()["endTime"] == "24:00"

    def test_midnight_rejected_as_start_time(self, client, customer, facial):
        assert book(client, customer, facial, start_time="24:00").status_code == 400

    def test_list_own_appointments(self, client, customer, other_customer, facial, make_appointment):
        make_appointment("10:00", "11:00")
        make_appointment("12:00", "13:00", customer_id=other_customer.id)

        response = client.get("/api/appointments", headers=auth_headers(customer))

        assert response.status_code == 200
        assert len(response.json()) == 1


@pytest.mark.integration
class TestReschedule:
    def move(self, client, user, appointment, start="10:00", end="11:00", day=MONDAY):
        return client.post(
            f"/api/appointments/{appointment.id}/reschedule",
            json={"date": day.isoformat(), "startTime": start, "endTime": end},
            headers=auth_headers(user),
        )

    def test_two_hour_boundary(self, client, clock, customer, make_appointment):
        appointment = make_appointment("14:00", "15:00", status="SCHEDULED")

        clock.now = datetime(2030, 1, 7, 8, 1)
        rejected = self.move(client, customer, appointment)
        assert rejected.status_code == 400

        clock.now = datetime(2030, 1, 7, 7, 59)
        accepted = self.move(client, customer, appointment)
        assert accepted.status_code == 200
        assert accepted.json()["startTime"] == "10:00"

    def test_reschedule_to_last_hour_of_day(self, client, customer, make_appointment):
        appointment = make_appointment("14:00", "15:00", status="SCHEDULED")

        response = self.move(client, customer, appointment, "23:00", "24:00")

        assert response.status_code == 200
        assert response.json()["endTime"] == "24:00"

    def test_reschedule_resets_status(self, client, customer, make_appointment):
        appointment = make_appointment("14:00", "15:00", status="CONFIRMED")

        data = self.move(client, customer, appointment, "15:00", "16:00").json()

        assert data["status"] == "SCHEDULED"

    def test_overlap_with_itself_allowed(self, client, customer, make_appointment):
        appointment = make_appointment("10:00", "11:00", status="CONFIRMED")

        assert self.move(client, customer, appointment, "10:30", "11:30").status_code == 200

    def test_conflict_with_other_booking(self, client, customer, make_appointment):
        make_appointment("10:00", "11:00", status="CONFIRMED")
        appointment = make_appointment("14:00", "15:00", status="SCHEDULED")

        assert self.move(client, customer, appointment, "10:30", "11:30").status_code == 409

    def test_only_customer(self, client, other_customer, make_appointment):
        appointment = make_appointment("14:00", "15:00")

        assert self.move(client, other_customer, appointment).status_code == 403

    @pytest.mark.parametrize("status", ["CANCELLED", "COMPLETED"])
    def test_final_states_rejected(self, client, customer, make_appointment, status):
        appointment = make_appointment("14:00", "15:00", status=status)

        assert self.move(client, customer, appointment).status_code == 400


@pytest.mark.integration
class TestCancel:
    def cancel(self, client, user, appointment, reason=None):
        body = {"reason": reason} if reason else {}
        return client.post(f"/api/appointments/{appointment.id}/cancel", json=body, headers=auth_headers(user))

    def test_free_cancellation(self, client, db_session, customer, make_appointment):
        appointment = make_appointment("14:00", "15:00", status="SCHEDULED")

        response = self.cancel(client, customer, appointment, reason="Feeling unwell")

        assert response.status_code == 200
        data = response.json()
        assert data["appointment"]["status"] == "CANCELLED"
        assert data["refund"]["percentage"] == 100
        assert data["refund"]["reason"] == "Free cancellation"
        assert "[Cancellation reason] Feeling unwell" in data["appointment"]["notes"]
        pending = db_session.query(Notification).filter(
            Notification.appointment_id == appointment.id, Notification.status == "PENDING"
        )
        assert pending.count() == 0

    def test_late_cancellation_fee(self, client, clock, customer, make_appointment):
        appointment = make_appointment("14:00", "15:00", status="CONFIRMED", amount=80)
        clock.now = datetime(2030, 1, 7, 9, 0)

        refund = self.cancel(client, customer, appointment).json()["refund"]

        assert refund["percentage"] == 50
        assert refund["amount"] == pytest.approx(40)
        assert refund["feeAmount"] == pytest.approx(40)

    def test_paid_refund_requested(self, client, db_session, customer, make_appointment, monkeypatch):
        appointment = make_appointment("14:00", "15:00", payment_status="PAID", payment_id="pay_123")
        calls = []

        async def fake_refund(self, payment_id, amount, reason=None):
            calls.append((payment_id, amount))
            return "ref_1"

        monkeypatch.setattr(
            "beautybook.domain.payments.dodo_service.DodoPaymentsService.create_refund", fake_refund
        )

        data = self.cancel(client, customer, appointment).json()

        assert calls == [("pay_123", 80)]
        assert data["refund"]["refundId"] == "ref_1"
        assert data["appointment"]["paymentStatus"] == "REFUNDED"

    def test_provider_can_cancel(self, client, provider_user, make_appointment):
        appointment = make_appointment("14:00", "15:00")

        assert self.cancel(client, provider_user, appointment).status_code == 200

    def test_stranger_forbidden(self, client, other_customer, make_appointment):
        appointment = make_appointment("14:00", "15:00")

        assert self.cancel(client, other_customer, appointment).status_code == 403

    def test_already_cancelled(self, client, customer, make_appointment):
        appointment = make_appointment("14:00", "15:00", status="CANCELLED")

        response = self.cancel(client, customer, appointment)
        assert response.status_code == 400
        assert response.json()["error"] == "Appointment is already cancelled"

    def test_completed_cannot_cancel(self, client, customer, make_appointment):
        appointment = make_appointment("14:00", "15:00", status="COMPLETED")

        assert self.cancel(client, customer, appointment).status_code == 400


@pytest.mark.integration
class TestProviderManagement:
    def test_manage_filters(self, client, provider_user, stylist, make_appointment):
        make_appointment("10:00", "11:00", assigned_to_id=stylist.id)
        make_appointment("12:00", "13:00", status="CANCELLED")

        headers = auth_headers(provider_user)
        assert len(client.get("/api/appointments/manage", headers=headers).json()) == 2
        cancelled = client.get("/api/appointments/manage", params={"status": "CANCELLED"}, headers=headers).json()
        assert [a["startTime"] for a in cancelled] == ["12:00"]
        by_staff = client.get("/api/appointments/manage", params={"staffId": stylist.id}, headers=headers).json()
        assert by_staff[0]["assignedToName"] == "Sam Rivera"

    def test_customer_cannot_manage(self, client, customer):
        assert client.get("/api/appointments/manage", headers=auth_headers(customer)).status_code == 403

    def test_status_update_any_transition(self, client, provider_user, make_appointment):
        appointment = make_appointment("10:00", "11:00", status="COMPLETED")

        response = client.patch(
            f"/api/appointments/{appointment.id}/status",
            json={"status": "SCHEDULED"},
            headers=auth_headers(provider_user),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "SCHEDULED"

    def test_invalid_status(self, client, provider_user, make_appointment):
        appointment = make_appointment("10:00", "11:00")

        response = client.patch(
            f"/api/appointments/{appointment.id}/status",
            json={"status": "DONE"},
            headers=auth_headers(provider_user),
        )
        assert response.status_code == 400

    def test_completing_paid_appointment_awards_points(self, client, db_session, provider_user, customer, make_appointment):
        appointment = make_appointment("10:00", "11:00", payment_status="PAID", amount=80)
        headers = auth_headers(provider_user)

        for _ in range(2):
            client.patch(f"/api/appointments/{appointment.id}/status", json={"status": "COMPLETED"}, headers=headers)

        db_session.expire_all()
        earned = db_session.query(PointsTransaction).filter(PointsTransaction.type == "EARN").all()
        assert [t.amount for t in earned] == [80]
        assert customer.customer_profile.loyalty_points == 80

    def test_other_provider_gets_404(self, client, db_session, make_appointment):
        from beautybook.models import ProviderProfile, User

        other = User(auth_id="other-provider", email="other@example.com")
        db_session.add(other)
        db_session.flush()
        db_session.add(ProviderProfile(user_id=other.id, business_name="Other"))
        db_session.commit()
        appointment = make_appointment("10:00", "11:00")

        response = client.patch(
            f"/api/appointments/{appointment.id}/status", json={"status": "NO_SHOW"}, headers=auth_headers(other)
        )
        assert response.status_code == 404

    def test_assign_staff(self, client, provider_user, stylist, make_appointment):
        appointment = make_appointment("10:00", "11:00")

        response = client.patch(
            f"/api/appointments/{appointment.id}/assign",
            json={"staffId": stylist.id},
            headers=auth_headers(provider_user),
        )

        assert response.status_code == 200
        assert response.json()["assignedToId"] == stylist.id

    def test_assign_staff_conflict(self, client, provider_user, stylist, make_appointment):
        make_appointment("10:00", "11:00", assigned_to_id=stylist.id)
        appointment = make_appointment("10:30", "11:30")

        response = client.patch(
            f"/api/appointments/{appointment.id}/assign",
            json={"staffId": stylist.id},
            headers=auth_headers(provider_user),
        )
        assert response.status_code == 409

    def test_assign_inactive_staff(self, client, db_session, provider_user, stylist, make_appointment):
        stylist.active = False
        db_session.commit()
        appointment = make_appointment("10:00", "11:00")

        response = client.patch(
            f"/api/appointments/{appointment.id}/assign",
            json={"staffId": stylist.id},
            headers=auth_headers(provider_user),
        )
        assert response.status_code == 400


@pytest.mark.integration
class TestAvailabilityEndpoint:
    def test_slots_reflect_bookings(self, client, facial, make_appointment):
        make_appointment("10:00", "11:00")

        response = client.get(
            "/api/availability",
            params={"providerId": facial.provider_id, "date": MONDAY.isoformat(), "serviceId": facial.id},
        )

        assert response.status_code == 200
        slots = {s["time"]: s["available"] for s in response.json()["slots"]}
        assert slots["10:00"] is False
        assert slots["11:00"] is True

    def test_weekly_hours_replace(self, client, provider_user):
        headers = auth_headers(provider_user)
        body = {"days": [{"dayOfWeek": 2, "startTime": "10:00", "endTime": "18:00"}]}

        response = client.put("/api/availability/weekly", json=body, headers=headers)

        assert response.status_code == 200
        assert [d["dayOfWeek"] for d in client.get("/api/availability/weekly", headers=headers).json()] == [2]

    def test_weekly_hours_until_midnight(self, client, provider_user):
        headers = auth_headers(provider_user)
        body = {"days": [{"dayOfWeek": 5, "startTime": "18:00", "endTime": "24:00"}]}

        response = client.put("/api/availability/weekly", json=body, headers=headers)

        assert response.status_code == 200
        assert client.get("/api/availability/weekly", headers=headers).json()[0]["endTime"] == "24:00"
