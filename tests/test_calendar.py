"""
Tests for Google Calendar token storage, OAuth connection and event sync
"""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from beautybook.models import Appointment, ProviderProfile
from beautybook.services import google_calendar_service

from .conftest import MONDAY, auth_headers


class FakeGoogle:
    """Answers the Google OAuth and Calendar endpoints the app calls"""

    def __init__(self):
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url.startswith(google_calendar_service.GOOGLE_TOKEN_URL):
            if b"grant_type=authorization_code" in request.content:
                return httpx.Response(200, json={"access_token": "access-1", "refresh_token": "refresh-1"})
            return httpx.Response(200, json={"access_token": "access-2"})
        if url.startswith(google_calendar_service.GOOGLE_USERINFO_URL):
            return httpx.Response(200, json={"email": "gina.calendar@gmail.com"})
        if url.startswith(google_calendar_service.GOOGLE_REVOKE_URL):
            return httpx.Response(200)
        if "/events" in url and request.method == "POST":
            return httpx.Response(200, json={"id": "evt-123"})
        return httpx.Response(404, json={"error": "unexpected"})

    def paths(self):
        return [(r.method, r.url.path) for r in self.requests]


@pytest.fixture
def google(monkeypatch):
    fake = FakeGoogle()
    monkeypatch.setattr(google_calendar_service, "GOOGLE_CLIENT_ID", "client-id")
    monkeypatch.setattr(google_calendar_service, "GOOGLE_CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(
        google_calendar_service,
        "get_http_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(fake)),
    )
    return fake


def connect(client, provider_user, state=None):
    body = {"code": "auth-code"}
    if state:
        body["state"] = state
    return client.post("/api/calendar/callback", json=body, headers=auth_headers(provider_user))


@pytest.mark.unit
class TestTokenEncryption:
    def test_round_trip_with_plain_secret_key(self):
        encrypted = google_calendar_service.encrypt_token("refresh-token-value")

        assert encrypted != "refresh-token-value"
        assert google_calendar_service.decrypt_token(encrypted) == "refresh-token-value"

    def test_authorization_url_requests_offline_access(self, monkeypatch):
        monkeypatch.setattr(google_calendar_service, "GOOGLE_CLIENT_ID", "client-id")

        url = google_calendar_service.build_authorization_url(state="provider-1")

        query = parse_qs(urlparse(url).query)
        assert query["client_id"] == ["client-id"]
        assert query["access_type"] == ["offline"]
        assert query["state"] == ["provider-1"]


@pytest.mark.integration
class TestCalendarConnection:
    def test_status_before_connecting(self, client, provider_user):
        data = client.get("/api/calendar/status", headers=auth_headers(provider_user)).json()

        assert data["connected"] is False
        assert data["syncEnabled"] is False

    def test_connect_url_needs_configuration(self, client, provider_user):
        assert client.get("/api/calendar/connect", headers=auth_headers(provider_user)).status_code == 502

    def test_connect_url(self, client, provider_user, provider, google):
        response = client.get("/api/calendar/connect", headers=auth_headers(provider_user))

        assert response.status_code == 200
        assert f"state={provider.id}" in response.json()["authorizationUrl"]

    def test_callback_stores_encrypted_refresh_token(self, client, db_session, provider_user, provider, google):
        response = connect(client, provider_user, state=provider.id)

        assert response.status_code == 200
        assert response.json()["userEmail"] == "gina.calendar@gmail.com"
        db_session.expire_all()
        stored = db_session.get(ProviderProfile, provider.id)
        assert stored.google_refresh_token != "refresh-1"
        assert google_calendar_service.decrypt_token(stored.google_refresh_token) == "refresh-1"
        assert stored.calendar_sync_enabled is True

    def test_callback_rejects_foreign_state(self, client, provider_user, google):
        assert connect(client, provider_user, state="someone-else").status_code == 400

    def test_customers_cannot_connect(self, client, customer, google):
        assert connect(client, customer).status_code == 403

    def test_toggle_sync(self, client, provider_user, google):
        connect(client, provider_user)

        response = client.patch(
            "/api/calendar/settings", json={"syncEnabled": False}, headers=auth_headers(provider_user)
        )

        assert response.json()["connected"] is True
        assert response.json()["syncEnabled"] is False

    def test_disconnect(self, client, db_session, provider_user, provider, google):
        headers = auth_headers(provider_user)
        assert client.post("/api/calendar/disconnect", headers=headers).status_code == 404

        connect(client, provider_user)
        assert client.post("/api/calendar/disconnect", headers=headers).status_code == 200

        db_session.expire_all()
        stored = db_session.get(ProviderProfile, provider.id)
        assert stored.google_refresh_token is None
        assert stored.calendar_sync_enabled is False
        assert ("POST", "/revoke") in google.paths()


@pytest.mark.integration
class TestEventSync:
    def test_booking_creates_calendar_event(self, client, db_session, provider_user, customer, facial, google):
        connect(client, provider_user)

        response = client.post(
            "/api/appointments",
            json={
                "providerId": facial.provider_id,
                "serviceId": facial.id,
                "date": MONDAY.isoformat(),
                "startTime": "10:00",
            },
            headers=auth_headers(customer),
        )

        assert response.status_code == 201
        db_session.expire_all()
        assert db_session.get(Appointment, response.json()["id"]).google_event_id == "evt-123"
        assert ("POST", "/calendar/v3/calendars/primary/events") in google.paths()

    def test_no_event_when_not_connected(self, client, db_session, customer, facial, google):
        response = client.post(
            "/api/appointments",
            json={
                "providerId": facial.provider_id,
                "serviceId": facial.id,
                "date": MONDAY.isoformat(),
                "startTime": "10:00",
            },
            headers=auth_headers(customer),
        )

        db_session.expire_all()
        assert db_session.get(Appointment, response.json()["id"]).google_event_id is None
        assert google.requests == []
