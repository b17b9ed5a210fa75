"""
Tests for the customer waitlist and slot-opened notifications
"""

from datetime import date

import pytest

from beautybook.models import WaitlistEntry
from beautybook.services.notification_service import waitlist_matches

from .conftest import MONDAY, auth_headers


def join(client, user, service, **body):
    payload = {"providerId": service.provider_id, "serviceId": service.id, "date": MONDAY.isoformat(), **body}
    return client.post("/api/waitlist", json=payload, headers=auth_headers(user))


@pytest.mark.unit
class TestWaitlistMatching:
    @pytest.mark.parametrize(
        "flexible, start_time, expected",
        [
            (True, "15:00", True),
            (False, None, True),
            (False, "10:00", True),
            (False, "10:30", True),
            (False, "11:00", False),
            (False, "09:30", False),
        ],
    )
    def test_freed_interval(self, flexible, start_time, expected):
        entry = WaitlistEntry(flexible=flexible, start_time=start_time)

        assert waitlist_matches(entry, "10:00", "11:00") is expected


@pytest.mark.integration
class TestJoinWaitlist:
    def test_join(self, client, customer, facial):
        response = join(client, customer, facial, startTime="10:00", endTime="11:00", flexible=False)

        assert response.status_code == 201
        entry = response.json()["waitlistEntry"]
        assert entry["status"] == "ACTIVE"
        assert entry["providerName"] == "Glow Studio"
        assert entry["serviceName"] == "Hydrating Facial"
        assert entry["flexible"] is False

    def test_flexible_by_default(self, client, customer, facial):
        assert join(client, customer, facial).json()["waitlistEntry"]["flexible"] is True

    def test_required_fields(self, client, customer):
        response = client.post("/api/waitlist", json={"date": MONDAY.isoformat()}, headers=auth_headers(customer))

        assert response.status_code == 400
        assert response.json()["error"] == "Provider, service, and date are required"

    def test_past_date(self, client, customer, facial):
        response = join(client, customer, facial, date=date(2020, 1, 6).isoformat())

        assert response.status_code == 400
        assert response.json()["error"] == "Cannot join waitlist for past dates"

    def test_service_of_another_provider(self, client, customer, facial):
        response = join(client, customer, facial, providerId="another-provider")

        assert response.status_code == 400

    def test_unknown_service(self, client, customer, provider):
        response = client.post(
            "/api/waitlist",
            json={"providerId": provider.id, "serviceId": "missing", "date": MONDAY.isoformat()},
            headers=auth_headers(customer),
        )

        assert response.status_code == 404

    def test_already_waiting(self, client, customer, facial):
        join(client, customer, facial)

        response = join(client, customer, facial)

        assert response.status_code == 409
        assert response.json()["error"] == "You are already on the waitlist for this service on this date"

    def test_rejoin_after_leaving(self, client, customer, facial):
        entry_id = join(client, customer, facial).json()["waitlistEntry"]["id"]
        client.delete(f"/api/waitlist/{entry_id}", headers=auth_headers(customer))

        assert join(client, customer, facial).status_code == 201

    def test_overlaps_own_booking(self, client, customer, facial, make_appointment):
        make_appointment("10:00", "11:00")

        response = join(client, customer, facial, startTime="10:30", endTime="11:30", flexible=False)

        assert response.status_code == 409
        assert response.json()["error"] == "You already have an appointment booked for this time"

    def test_window_until_midnight(self, client, customer, facial):
        response = join(client, customer, facial, startTime="20:00", endTime="24:00", flexible=False)

        assert response.json()["waitlistEntry"]["endTime"] == "24:00"


@pytest.mark.integration
class TestManageWaitlist:
    def test_list_own_entries(self, client, customer, other_customer, facial, color):
        join(client, customer, facial)
        join(client, customer, color)
        join(client, other_customer, facial)

        entries = client.get("/api/waitlist", headers=auth_headers(customer)).json()["waitlistEntries"]

        assert {e["serviceName"] for e in entries} == {"Hydrating Facial", "Full Color"}
        assert all(e["customerId"] == customer.id for e in entries)

    def test_leave(self, client, customer, facial):
        entry_id = join(client, customer, facial).json()["waitlistEntry"]["id"]

        response = client.delete(f"/api/waitlist/{entry_id}", headers=auth_headers(customer))

        assert response.status_code == 200
        entries = client.get("/api/waitlist", headers=auth_headers(customer)).json()["waitlistEntries"]
        assert [e["status"] for e in entries] == ["CANCELLED"]

    def test_cannot_leave_for_someone_else(self, client, customer, other_customer, facial):
        entry_id = join(client, customer, facial).json()["waitlistEntry"]["id"]

        response = client.delete(f"/api/waitlist/{entry_id}", headers=auth_headers(other_customer))

        assert response.status_code == 403

    def test_unknown_entry(self, client, customer):
        assert client.delete("/api/waitlist/missing", headers=auth_headers(customer)).status_code == 404


@pytest.mark.integration
class TestSlotOpened:
    def statuses(self, db_session):
        db_session.expire_all()
        return {e.start_time: e.status for e in db_session.query(WaitlistEntry).all()}

    def test_cancellation_notifies_matching_entries(
        self, client, db_session, customer, other_customer, facial, color, make_appointment
    ):
        appointment = make_appointment("10:00", "11:00")
        join(client, other_customer, facial, startTime="10:00", endTime="11:00", flexible=False)
        join(client, other_customer, color, startTime="14:00", endTime="15:30", flexible=False)

        response = client.post(f"/api/appointments/{appointment.id}/cancel", json={}, headers=auth_headers(customer))

        assert response.status_code == 200
        assert self.statuses(db_session) == {"10:00": "NOTIFIED", "14:00": "ACTIVE"}
        notified = db_session.query(WaitlistEntry).filter(WaitlistEntry.status == "NOTIFIED").one()
        assert notified.notified_at is not None

    def test_provider_cancelling_notifies(self, client, db_session, provider_user, other_customer, facial, make_appointment):
        appointment = make_appointment("10:00", "11:00")
        join(client, other_customer, facial)

        client.patch(
            f"/api/appointments/{appointment.id}/status",
            json={"status": "CANCELLED"},
            headers=auth_headers(provider_user),
        )

        assert self.statuses(db_session) == {None: "NOTIFIED"}

    def test_cancelling_customer_not_notified(self, client, db_session, customer, facial, color, make_appointment):
        appointment = make_appointment("10:00", "11:00")
        join(client, customer, color)

        client.post(f"/api/appointments/{appointment.id}/cancel", json={}, headers=auth_headers(customer))

        assert self.statuses(db_session) == {None: "ACTIVE"}
