"""
Integration tests for provider registration, provider settings and user profiles
"""

import pytest

from beautybook.models import Notification, ProviderProfile, User

from .conftest import MONDAY, auth_headers, make_token

NEW_PROVIDER = {"Authorization": f"Bearer {make_token('new-provider-auth', 'luxe@example.com', given_name='Lena')}"}


def register(client, headers=NEW_PROVIDER, **body):
    payload = {"businessName": "Luxe Nails & Spa", "city": "Austin", **body}
    return client.post("/api/providers/register", json=payload, headers=headers)


@pytest.mark.integration
class TestProviderRegistration:
    def test_status_for_new_user(self, client):
        data = client.get("/api/providers/register", headers=NEW_PROVIDER).json()

        assert data == {"canRegister": True, "hasProviderProfile": False, "provider": None}

    def test_register_then_manage_catalog(self, client, db_session):
        response = register(client)

        assert response.status_code == 201
        provider = response.json()["provider"]
        assert provider["businessName"] == "Luxe Nails & Spa"
        assert provider["bookingSlug"] == "luxe-nails-spa"
        assert provider["cancellationPolicy"] == "STANDARD"

        created = client.post(
            "/api/services", json={"name": "Gel Manicure", "duration": 45, "price": 40}, headers=NEW_PROVIDER
        )
        assert created.status_code == 201
        assert created.json()["providerId"] == provider["id"]

        user = db_session.query(User).filter(User.email == "luxe@example.com").one()
        assert user.role == "PROVIDER"

    def test_default_weekly_hours(self, client):
        register(client)

        hours = client.get("/api/availability/weekly", headers=NEW_PROVIDER).json()

        assert [h["dayOfWeek"] for h in hours] == [1, 2, 3, 4, 5, 6]
        assert (hours[0]["startTime"], hours[0]["endTime"]) == ("09:00", "18:00")
        assert (hours[-1]["startTime"], hours[-1]["endTime"]) == ("10:00", "16:00")

    def test_second_registration_rejected(self, client):
        register(client)

        response = register(client)

        assert response.status_code == 400
        assert response.json()["error"] == "User already has a provider profile"
        status = client.get("/api/providers/register", headers=NEW_PROVIDER).json()
        assert status["canRegister"] is False
        assert status["provider"]["businessName"] == "Luxe Nails & Spa"

    def test_slug_made_unique(self, client, provider):
        response = register(client, businessName="Glow Studio")

        assert response.json()["provider"]["bookingSlug"] == "glow-studio-2"

    def test_business_name_required(self, client):
        assert register(client, businessName="   ").status_code == 400


@pytest.mark.integration
class TestProviderProfile:
    def test_customer_has_no_provider_profile(self, client, customer):
        response = client.get("/api/provider/profile", headers=auth_headers(customer))

        assert response.status_code == 404
        assert response.json()["error"] == "Provider profile not found. Please register as a provider first."

    def test_update_details(self, client, provider_user):
        headers = auth_headers(provider_user)

        response = client.put(
            "/api/provider/profile",
            json={"title": "Skin & Brow Studio", "bio": "Facials since 2012", "phone": "512-555-0142"},
            headers=headers,
        )

        assert response.status_code == 200
        provider = client.get("/api/provider/profile", headers=headers).json()["provider"]
        assert provider["title"] == "Skin & Brow Studio"
        assert provider["phone"] == "+15125550142"
        assert provider["businessName"] == "Glow Studio"

    def test_blank_business_name_rejected(self, client, provider_user):
        response = client.put("/api/provider/profile", json={"businessName": ""}, headers=auth_headers(provider_user))

        assert response.status_code == 400


@pytest.mark.integration
class TestBookingSettings:
    def patch(self, client, user, **body):
        return client.patch("/api/provider/booking-settings", json=body, headers=auth_headers(user))

    def test_slug_normalized(self, client, provider_user):
        response = self.patch(client, provider_user, bookingSlug="  Glow By Gina!! ")

        assert response.status_code == 200
        assert response.json()["provider"]["bookingSlug"] == "glow-by-gina"
        assert client.get("/api/providers/public/glow-by-gina").status_code == 200
        assert client.get("/api/providers/public/glow-studio").status_code == 404

    def test_slug_taken(self, client, db_session, provider_user):
        other = User(auth_id="other-provider", email="other@example.com")
        db_session.add(other)
        db_session.flush()
        db_session.add(ProviderProfile(user_id=other.id, business_name="Other", booking_slug="taken-slug"))
        db_session.commit()

        response = self.patch(client, provider_user, bookingSlug="Taken Slug")

        assert response.status_code == 400
        assert response.json()["error"] == "This booking slug is already taken. Please choose another."

    def test_keeping_own_slug_is_fine(self, client, provider_user):
        assert self.patch(client, provider_user, bookingSlug="glow-studio").status_code == 200

    def test_policy_change_shown_publicly(self, client, provider_user):
        self.patch(client, provider_user, cancellationPolicy="STRICT")

        provider = client.get("/api/providers/public/glow-studio").json()["provider"]

        assert provider["cancellationPolicy"] == "STRICT"
        assert len(provider["cancellationPolicyDetails"]) == 3

    def test_unknown_policy_rejected(self, client, provider_user):
        assert self.patch(client, provider_user, cancellationPolicy="LENIENT").status_code == 400

    def test_disable_public_booking(self, client, provider_user):
        data = self.patch(client, provider_user, publicBookingEnabled=False, qrCodeEnabled=False).json()

        assert data["provider"]["qrCodeEnabled"] is False
        assert client.get("/api/providers/public/glow-studio").status_code == 403

    def test_custom_cancellation_terms(self, client, provider_user):
        data = self.patch(client, provider_user, customCancellationHours=6, customCancellationFee=25).json()
        assert (data["provider"]["customCancellationHours"], data["provider"]["customCancellationFee"]) == (6, 25)

        cleared = self.patch(client, provider_user, customCancellationHours=None, customCancellationFee=None).json()
        assert cleared["provider"]["customCancellationHours"] is None

    def test_custom_fee_out_of_range(self, client, provider_user):
        assert self.patch(client, provider_user, customCancellationFee=150).status_code == 400

    def test_customers_cannot_change_settings(self, client, customer):
        assert self.patch(client, customer, publicBookingEnabled=False).status_code == 403


@pytest.mark.integration
class TestUserProfile:
    def book(self, client, user, service):
        return client.post(
            "/api/appointments",
            json={
                "providerId": service.provider_id,
                "serviceId": service.id,
                "date": MONDAY.isoformat(),
                "startTime": "10:00",
            },
            headers=auth_headers(user),
        )

    def sms_reminders(self, db_session, appointment_id):
        return (
            db_session.query(Notification)
            .filter(Notification.appointment_id == appointment_id, Notification.channel == "SMS")
            .all()
        )

    def test_get_profile(self, client, customer):
        user = client.get("/api/users/profile", headers=auth_headers(customer)).json()["user"]

        assert user["email"] == "jane@example.com"
        assert user["phone"] == "+15555550100"
        assert user["isProvider"] is False
        assert user["notificationPreferences"]["smsEnabled"] is True

    def test_provider_flagged(self, client, provider_user):
        user = client.get("/api/users/profile", headers=auth_headers(provider_user)).json()["user"]

        assert user["isProvider"] is True
        assert user["providerProfile"]["bookingSlug"] == "glow-studio"

    def test_update_names_and_preferences(self, client, customer):
        headers = auth_headers(customer)

        response = client.put(
            "/api/users/profile",
            json={"firstName": "Janet", "reminderBefore2h": False},
            headers=headers,
        )

        user = response.json()["user"]
        assert user["firstName"] == "Janet"
        assert user["lastName"] == "Doe"
        assert user["notificationPreferences"]["reminderBefore2h"] is False
        assert user["notificationPreferences"]["reminderBefore24h"] is True

    def test_invalid_phone_rejected(self, client, customer):
        response = client.put("/api/users/profile", json={"phone": "12345"}, headers=auth_headers(customer))

        assert response.status_code == 400

    def test_adding_phone_enables_sms_reminders(self, client, db_session, other_customer, facial):
        first = self.book(client, other_customer, facial).json()["id"]
        assert self.sms_reminders(db_session, first) == []

        updated = client.put(
            "/api/users/profile", json={"phone": "(555) 555-0199"}, headers=auth_headers(other_customer)
        )
        assert updated.json()["user"]["phone"] == "+15555550199"

        client.post(f"/api/appointments/{first}/cancel", json={}, headers=auth_headers(other_customer))
        second = self.book(client, other_customer, facial).json()["id"]
        assert len(self.sms_reminders(db_session, second)) == 1

    def test_sms_opt_out(self, client, db_session, customer, facial):
        client.put("/api/users/profile", json={"smsEnabled": False}, headers=auth_headers(customer))

        appointment_id = self.book(client, customer, facial).json()["id"]

        assert self.sms_reminders(db_session, appointment_id) == []

    def test_clearing_phone(self, client, customer):
        user = client.put("/api/users/profile", json={"phone": ""}, headers=auth_headers(customer)).json()["user"]

        assert user["phone"] is None
