"""Calendar service - Connecting a provider's Google Calendar"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ProviderProfile
from ...services import google_calendar_service
from ...shared.errors import ExternalServiceError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class CalendarService:
    """Service layer for the Google Calendar OAuth connection"""

    def __init__(self, db: Session):
        self.db = db

    def status(self, provider: ProviderProfile) -> dict:
        return {
            "configured": google_calendar_service.is_configured(),
            "connected": bool(provider.google_refresh_token),
            "userEmail": provider.google_user_email,
            "calendarId": provider.google_calendar_id,
            "syncEnabled": provider.calendar_sync_enabled,
        }

    def authorization_url(self, provider: ProviderProfile) -> str:
        if not google_calendar_service.is_configured():
            raise ExternalServiceError("Google Calendar integration is not configured")
        # The provider id round-trips as OAuth state and is checked on callback
        return google_calendar_service.build_authorization_url(state=provider.id)

    async def connect(self, provider: ProviderProfile, code: str, state: Optional[str] = None) -> ProviderProfile:
        """Exchange the authorization code and store the encrypted refresh token"""
        if state and state != provider.id:
            raise ValidationError("OAuth state does not match this provider")
        if not google_calendar_service.is_configured():
            raise ExternalServiceError("Google Calendar integration is not configured")

        tokens = await google_calendar_service.exchange_code(code)

        provider.google_refresh_token = google_calendar_service.encrypt_token(tokens["refresh_token"])
        provider.google_user_email = tokens["email"]
        provider.google_calendar_id = provider.google_calendar_id or "primary"
        provider.calendar_sync_enabled = True
        self.db.commit()
        self.db.refresh(provider)
        logger.info(f"📅 Google Calendar connected for provider {provider.id} ({tokens['email']})")
        return provider

    def set_sync_enabled(self, provider: ProviderProfile, enabled: bool) -> ProviderProfile:
        if not provider.google_refresh_token:
            raise NotFoundError("Google Calendar not connected")
        provider.calendar_sync_enabled = enabled
        self.db.commit()
        self.db.refresh(provider)
        logger.info(f"📅 Calendar sync {'enabled' if enabled else 'disabled'} for provider {provider.id}")
        return provider

    async def disconnect(self, provider: ProviderProfile) -> None:
        if not provider.google_refresh_token:
            raise NotFoundError("Google Calendar not connected")

        await google_calendar_service.revoke_token(provider)

        provider.google_refresh_token = None
        provider.google_user_email = None
        provider.calendar_sync_enabled = False
        self.db.commit()
        logger.info(f"📅 Google Calendar disconnected for provider {provider.id}")
