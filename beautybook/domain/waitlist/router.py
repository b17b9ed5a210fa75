"""Waitlist router - Customer waitlist endpoints"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User, WaitlistEntry
from ...services.notification_service import notify_waitlist_joined
from .schemas import WaitlistCreate, WaitlistResponse
from .service import WaitlistService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/waitlist", tags=["Waitlist"])


def get_waitlist_service(db: Session = Depends(get_db)) -> WaitlistService:
    """Dependency injection for WaitlistService"""
    return WaitlistService(db)


def to_response(w: WaitlistEntry) -> WaitlistResponse:
    return WaitlistResponse(
        id=w.id,
        customerId=w.customer_id,
        providerId=w.provider_id,
        providerName=w.provider.business_name if w.provider else None,
        serviceId=w.service_id,
        serviceName=w.service.name if w.service else None,
        date=w.date,
        startTime=w.start_time,
        endTime=w.end_time,
        flexible=w.flexible,
        notes=w.notes,
        status=w.status,
        notifiedAt=w.notified_at,
        createdAt=w.created_at,
    )


@router.post("", status_code=201)
async def join_waitlist(
    data: WaitlistCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: WaitlistService = Depends(get_waitlist_service),
):
    """Join a provider's waitlist for a service on a date"""
    entry = service.join(current_user, data)
    background_tasks.add_task(notify_waitlist_joined, entry.id)
    return {
        "success": True,
        "waitlistEntry": to_response(entry),
        "message": "Added to waitlist successfully. We will notify you when a slot becomes available.",
    }


@router.get("")
async def get_my_waitlist(
    current_user: User = Depends(get_current_user),
    service: WaitlistService = Depends(get_waitlist_service),
):
    return {"waitlistEntries": [to_response(w) for w in service.list_entries(current_user)]}


@router.delete("/{entry_id}")
async def leave_waitlist(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    service: WaitlistService = Depends(get_waitlist_service),
):
    service.cancel(current_user, entry_id)
    return {"success": True, "message": "Removed from waitlist"}
