"""Calendar router - Google Calendar connection endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import get_current_provider
from ...database import get_db
from ...models import ProviderProfile
from .service import CalendarService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calendar", tags=["Calendar"])


class OAuthCallbackRequest(BaseModel):
    code: str
    state: Optional[str] = None


class SyncSettingsUpdate(BaseModel):
    syncEnabled: bool


def get_calendar_service(db: Session = Depends(get_db)) -> CalendarService:
    """Dependency injection for CalendarService"""
    return CalendarService(db)


@router.get("/status")
async def get_calendar_status(
    provider: ProviderProfile = Depends(get_current_provider),
    service: CalendarService = Depends(get_calendar_service),
):
    return service.status(provider)


@router.get("/connect")
async def connect_calendar(
    provider: ProviderProfile = Depends(get_current_provider),
    service: CalendarService = Depends(get_calendar_service),
):
    """Google consent screen URL for the frontend to redirect to"""
    return {"authorizationUrl": service.authorization_url(provider)}


@router.post("/callback")
async def calendar_callback(
    data: OAuthCallbackRequest,
    provider: ProviderProfile = Depends(get_current_provider),
    service: CalendarService = Depends(get_calendar_service),
):
    """Finish the OAuth flow with the code Google redirected back with"""
    provider = await service.connect(provider, data.code, data.state)
    return {
        "success": True,
        "message": "Google Calendar connected successfully",
        "userEmail": provider.google_user_email,
    }


@router.patch("/settings")
async def update_calendar_settings(
    data: SyncSettingsUpdate,
    provider: ProviderProfile = Depends(get_current_provider),
    service: CalendarService = Depends(get_calendar_service),
):
    return service.status(service.set_sync_enabled(provider, data.syncEnabled))


@router.post("/disconnect")
async def disconnect_calendar(
    provider: ProviderProfile = Depends(get_current_provider),
    service: CalendarService = Depends(get_calendar_service),
):
    await service.disconnect(provider)
    return {"success": True, "message": "Google Calendar disconnected successfully"}
