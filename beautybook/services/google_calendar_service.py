"""
Google Calendar Service
Mirrors appointments onto a provider's Google Calendar
"""
import base64
import hashlib
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from cryptography.fernet import Fernet

from ..config import GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REDIRECT_URI, SECRET_KEY
from ..domain.scheduling.time_utils import combine
from ..models import Appointment, ProviderProfile
from ..shared.errors import ExternalServiceError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
GOOGLE_CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/userinfo.email",
]


def get_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=10.0)


def _cipher() -> Fernet:
    # Any SECRET_KEY works: Fernet needs 32 url-safe base64 bytes
    digest = hashlib.sha256(SECRET_KEY.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_token(token: str) -> str:
    return _cipher().encrypt(token.encode()).decode()


def decrypt_token(encrypted: str) -> str:
    return _cipher().decrypt(encrypted.encode()).decode()


def is_configured() -> bool:
    return bool(GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET)


def is_sync_enabled(provider: ProviderProfile) -> bool:
    return bool(provider.calendar_sync_enabled and provider.google_refresh_token and GOOGLE_CLIENT_ID)


# ============================================================================
# OAUTH CONNECTION
# ============================================================================


def build_authorization_url(state: str) -> str:
    """Consent screen URL; offline access so Google issues a refresh token"""
    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(GOOGLE_CALENDAR_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "state": state,
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def exchange_code(code: str) -> dict:
    """
    Trade an authorization code for tokens and the account email.
    Returns {"refresh_token", "access_token", "email"}.
    """
    try:
        async with get_http_client() as client:
            token_response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "redirect_uri": GOOGLE_REDIRECT_URI,
                    "grant_type": "authorization_code",
                },
            )
            if token_response.status_code != 200:
                logger.error(f"❌ Token exchange failed: {token_response.text}")
                raise ExternalServiceError("Failed to exchange authorization code")

            tokens = token_response.json()
            access_token = tokens.get("access_token")
            refresh_token = tokens.get("refresh_token")
            if not access_token or not refresh_token:
                raise ExternalServiceError("Invalid token response")

            user_info_response = await client.get(
                GOOGLE_USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
            )
            email = None
            if user_info_response.status_code == 200:
                email = user_info_response.json().get("email")
            else:
                logger.warning(f"⚠️ Failed to get Google user info: {user_info_response.text}")

    except httpx.HTTPError as e:
        logger.error(f"❌ Google OAuth request failed: {str(e)}")
        raise ExternalServiceError("Failed to reach Google") from e

    return {"refresh_token": refresh_token, "access_token": access_token, "email": email}


async def revoke_token(provider: ProviderProfile) -> None:
    """Best-effort revocation of the stored refresh token"""
    try:
        refresh_token = decrypt_token(provider.google_refresh_token)
        async with get_http_client() as client:
            await client.post(GOOGLE_REVOKE_URL, params={"token": refresh_token})
    except Exception as e:
        logger.warning(f"⚠️ Failed to revoke Google tokens: {str(e)}")


async def get_access_token(provider: ProviderProfile) -> Optional[str]:
    """
    Exchange the provider's stored refresh token for an access token
    Returns None if refresh fails
    """
    try:
        refresh_token = decrypt_token(provider.google_refresh_token)
        async with get_http_client() as client:
            response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
            )

        if response.status_code != 200:
            logger.error(f"❌ Token refresh failed: {response.text}")
            return None

        access_token = response.json().get("access_token")
        if not access_token:
            logger.error("❌ No access token in refresh response")
        return access_token

    except Exception as e:
        logger.error(f"❌ Error getting valid access token: {str(e)}")
        return None


# ============================================================================
# EVENTS
# ============================================================================


def build_event(appointment: Appointment) -> dict:
    """Calendar event body for an appointment"""
    customer = appointment.customer
    service = appointment.service
    description = (
        f"Customer: {customer.display_name}\n"
        f"Email: {customer.email}\n"
        f"Amount: ${appointment.amount:.2f}\n"
        f"Booking ID: {appointment.id}"
    )
    if appointment.notes:
        description += f"\n\nNotes: {appointment.notes}"

    event = {
        "summary": f"{service.name} - {customer.display_name}",
        "description": description,
        "start": {"dateTime": combine(appointment.date, appointment.start_time).isoformat()},
        "end": {"dateTime": combine(appointment.date, appointment.end_time).isoformat()},
        "attendees": [{"email": customer.email}],
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 24 * 60},
                {"method": "popup", "minutes": 60},
            ],
        },
    }
    if appointment.provider.address:
        event["location"] = appointment.provider.address
    return event


async def create_calendar_event(appointment: Appointment) -> Optional[str]:
    """
    Create a Google Calendar event for an appointment
    Returns the Google Calendar event ID if successful, None otherwise
    """
    provider = appointment.provider
    if not is_sync_enabled(provider):
        logger.info("ℹ️ Google Calendar not connected or sync disabled")
        return None

    access_token = await get_access_token(provider)
    if not access_token:
        return None

    try:
        calendar_id = provider.google_calendar_id or "primary"
        async with get_http_client() as client:
            response = await client.post(
                f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events",
                headers={"Authorization": f"Bearer {access_token}"},
                json=build_event(appointment),
            )

        if response.status_code not in [200, 201]:
            logger.error(f"❌ Failed to create calendar event: {response.text}")
            return None

        event_id = response.json().get("id")
        logger.info(f"📅 Google Calendar event created: {event_id}")
        return event_id

    except httpx.HTTPError as e:
        logger.error(f"❌ Error creating calendar event: {str(e)}")
        return None


async def update_calendar_event(appointment: Appointment) -> bool:
    """
    Update the Google Calendar event linked to an appointment
    Returns True if successful, False otherwise
    """
    provider = appointment.provider
    if not appointment.google_event_id or not is_sync_enabled(provider):
        return False

    access_token = await get_access_token(provider)
    if not access_token:
        return False

    try:
        calendar_id = provider.google_calendar_id or "primary"
        async with get_http_client() as client:
            response = await client.put(
                f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events/{appointment.google_event_id}",
                headers={"Authorization": f"Bearer {access_token}"},
                json=build_event(appointment),
            )

        if response.status_code != 200:
            logger.error(f"❌ Failed to update calendar event: {response.text}")
            return False

        logger.info(f"📅 Google Calendar event updated: {appointment.google_event_id}")
        return True

    except httpx.HTTPError as e:
        logger.error(f"❌ Error updating calendar event: {str(e)}")
        return False


async def delete_calendar_event(appointment: Appointment) -> bool:
    """
    Delete the Google Calendar event linked to an appointment
    Returns True if successful, False otherwise
    """
    provider = appointment.provider
    if not appointment.google_event_id or not is_sync_enabled(provider):
        return False

    access_token = await get_access_token(provider)
    if not access_token:
        return False

    try:
        calendar_id = provider.google_calendar_id or "primary"
        async with get_http_client() as client:
            response = await client.delete(
                f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events/{appointment.google_event_id}",
                headers={"Authorization": f"Bearer {access_token}"},
            )

        # Already gone counts as deleted
        if response.status_code not in [200, 204, 404, 410]:
            logger.error(f"❌ Failed to delete calendar event: {response.text}")
            return False

        logger.info(f"📅 Google Calendar event deleted: {appointment.google_event_id}")
        return True

    except httpx.HTTPError as e:
        logger.error(f"❌ Error deleting calendar event: {str(e)}")
        return False
