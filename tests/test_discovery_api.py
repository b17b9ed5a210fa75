"""
Integration tests for provider discovery, favorites, the provider customer list and guest booking
"""

import pytest

from beautybook.models import Notification, ProviderProfile, Review, Service, User

from .conftest import MONDAY, auth_headers, make_token


@pytest.fixture
def rival(db_session):
    """Second provider: better rated, Austin, nail services"""
    user = User(auth_id="rival-auth", email="polish@example.com")
    db_session.add(user)
    db_session.flush()
    profile = ProviderProfile(
        user_id=user.id,
        business_name="Polish Bar",
        title="Nail salon",
        city="Austin",
        booking_slug="polish-bar",
        average_rating=4.9,
        review_count=12,
    )
    db_session.add(profile)
    db_session.flush()
    db_session.add(Service(provider_id=profile.id, name="Gel Manicure", duration=45, price=40, category="Nails"))
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.mark.integration
class TestDiscovery:
    def names(self, response):
        return [p["businessName"] for p in response.json()["providers"]]

    def test_best_rated_first(self, client, provider, facial, rival):
        response = client.get("/api/providers")

        assert response.status_code == 200
        assert self.names(response) == ["Polish Bar", "Glow Studio"]
        glow = response.json()["providers"][1]
        assert [s["name"] for s in glow["services"]] == ["Hydrating Facial"]

    @pytest.mark.parametrize(
        "params, expected",
        [
            ({"city": "austin"}, ["Polish Bar"]),
            ({"minRating": 4.5}, ["Polish Bar"]),
            ({"search": "nail"}, ["Polish Bar"]),
            ({"category": "skin"}, ["Glow Studio"]),
            ({"maxPrice": 50}, ["Polish Bar"]),
            ({"minPrice": 60}, ["Glow Studio"]),
        ],
    )
    def test_filters(self, client, provider, facial, rival, params, expected):
        assert self.names(client.get("/api/providers", params=params)) == expected

    def test_private_providers_hidden(self, client, db_session, provider, rival):
        rival.public_booking_enabled = False
        db_session.commit()

        assert self.names(client.get("/api/providers")) == ["Glow Studio"]

    def test_services_preview_limited(self, client, db_session, provider):
        for i in range(7):
            db_session.add(Service(provider_id=provider.id, name=f"Service {i}", duration=30, price=20))
        db_session.commit()

        glow = client.get("/api/providers").json()["providers"][0]

        assert len(glow["services"]) == 5

    def test_provider_detail(self, client, db_session, provider, facial, customer):
        db_session.add(Review(customer_id=customer.id, provider_id=provider.id, rating=5, comment="Lovely"))
        db_session.commit()

        response = client.get(f"/api/providers/{provider.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["provider"]["businessName"] == "Glow Studio"
        assert [s["id"] for s in data["services"]] == [facial.id]
        assert data["availability"] == [{"dayOfWeek": 1, "startTime": "09:00", "endTime": "17:00"}]
        assert data["reviews"][0]["comment"] == "Lovely"
        assert data["ratingDistribution"]["5"] == 1

    def test_unknown_provider(self, client):
        assert client.get("/api/providers/does-not-exist").status_code == 404


@pytest.mark.integration
class TestFavorites:
    def test_add_list_remove(self, client, customer, provider, rival):
        headers = auth_headers(customer)

        assert client.post("/api/favorites", json={"providerId": provider.id}, headers=headers).status_code == 201
        assert client.post("/api/favorites", json={"providerId": rival.id}, headers=headers).status_code == 201

        favorites = client.get("/api/favorites", headers=headers).json()["favorites"]
        assert {f["provider"]["businessName"] for f in favorites} == {"Glow Studio", "Polish Bar"}

        removed = client.delete("/api/favorites", params={"providerId": provider.id}, headers=headers)
        assert removed.status_code == 200
        favorites = client.get("/api/favorites", headers=headers).json()["favorites"]
        assert [f["providerId"] for f in favorites] == [rival.id]

    def test_duplicate_rejected(self, client, customer, provider):
        headers = auth_headers(customer)
        client.post("/api/favorites", json={"providerId": provider.id}, headers=headers)

        response = client.post("/api/favorites", json={"providerId": provider.id}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Provider is already in your favorites"

    def test_unknown_provider(self, client, customer):
        response = client.post("/api/favorites", json={"providerId": "missing"}, headers=auth_headers(customer))

        assert response.status_code == 404

    def test_remove_needs_provider_id(self, client, customer):
        assert client.delete("/api/favorites", headers=auth_headers(customer)).status_code == 400

    def test_favorites_are_private(self, client, customer, other_customer, provider):
        client.post("/api/favorites", json={"providerId": provider.id}, headers=auth_headers(customer))

        assert client.get("/api/favorites", headers=auth_headers(other_customer)).json()["favorites"] == []


@pytest.mark.integration
class TestProviderCustomers:
    def test_aggregates_per_customer(
        self, client, db_session, provider_user, provider, customer, other_customer, make_appointment
    ):
        make_appointment("09:00", "10:00", status="COMPLETED", amount=80)
        make_appointment("10:00", "11:00", status="CONFIRMED", amount=120, day=MONDAY.replace(day=14))
        make_appointment("12:00", "13:00", status="COMPLETED", amount=50, customer_id=other_customer.id)
        make_appointment("14:00", "15:00", status="CANCELLED", amount=500, customer_id=other_customer.id)
        db_session.add(Review(customer_id=customer.id, provider_id=provider.id, rating=4, comment="Good"))
        db_session.commit()

        data = client.get("/api/provider/customers", headers=auth_headers(provider_user)).json()

        jane, max_ = data["customers"]
        assert jane["name"] == "Jane Doe"
        assert jane["phone"] == "+15555550100"
        assert (jane["totalAppointments"], jane["totalSpent"]) == (2, 200)
        assert jane["lastVisit"] == "2030-01-14"
        assert jane["averageRating"] == 4
        assert (max_["totalAppointments"], max_["totalSpent"], max_["averageRating"]) == (1, 50, None)
        assert data["stats"] == {
            "totalCustomers": 2,
            "totalRevenue": 250,
            "averageCustomerValue": 125,
            "averageRating": 4,
        }

    def test_no_customers_yet(self, client, provider_user):
        data = client.get("/api/provider/customers", headers=auth_headers(provider_user)).json()

        assert data["customers"] == []
        assert data["stats"]["totalCustomers"] == 0

    def test_providers_only(self, client, customer):
        assert client.get("/api/provider/customers", headers=auth_headers(customer)).status_code == 403


@pytest.mark.integration
class TestGuestBooking:
    def book(self, client, service, slug="glow-studio", time="2:30 PM", **info):
        customer_info = {
            "firstName": "Riley",
            "lastName": "Guest",
            "email": "Riley@Example.com",
            "phone": "555-555-0123",
            **info,
        }
        return client.post(
            "/api/booking/guest",
            json={
                "providerSlug": slug,
                "serviceId": service.id,
                "date": MONDAY.isoformat(),
                "time": time,
                "customerInfo": customer_info,
            },
        )

    def test_books_with_twelve_hour_time(self, client, db_session, facial):
        response = self.book(client, facial)

        assert response.status_code == 201
        appointment = response.json()["appointment"]
        assert (appointment["startTime"], appointment["endTime"]) == ("14:30", "15:30")
        assert appointment["status"] == "SCHEDULED"

        guest = db_session.query(User).filter(User.email == "riley@example.com").one()
        assert guest.auth_id.startswith("guest_")
        assert guest.customer_profile.phone == "+15555550123"
        sms = db_session.query(Notification).filter(Notification.user_id == guest.id, Notification.channel == "SMS")
        assert sms.count() == 2

    def test_existing_account_reused(self, client, db_session, customer, facial):
        response = self.book(client, facial, email="jane@example.com")

        assert response.json()["appointment"]["customerId"] == customer.id
        assert db_session.query(User).filter(User.email == "jane@example.com").count() == 1

    def test_guest_claims_account_on_sign_in(self, client, db_session, facial):
        appointment_id = self.book(client, facial).json()["appointment"]["id"]
        headers = {"Authorization": f"Bearer {make_token('riley-auth', 'riley@example.com')}"}

        mine = client.get("/api/appointments", headers=headers).json()

        assert [a["id"] for a in mine] == [appointment_id]

    def test_slot_conflict(self, client, facial, make_appointment):
        make_appointment("14:00", "15:00")

        assert self.book(client, facial).status_code == 409

    def test_unknown_provider(self, client, facial):
        assert self.book(client, facial, slug="nobody").status_code == 404

    def test_public_booking_disabled(self, client, db_session, provider, facial):
        provider.public_booking_enabled = False
        db_session.commit()

        assert self.book(client, facial).status_code == 403

    def test_contact_details_required(self, client, facial):
        response = self.book(client, facial, phone="")

        assert response.status_code == 400
        assert "Customer information incomplete" in response.json()["error"]

    def test_missing_fields(self, client):
        response = client.post("/api/booking/guest", json={"providerSlug": "glow-studio"})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"
