"""Payment router - Checkout and processor webhook endpoints"""

import json
import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...config import DODO_PAYMENTS_WEBHOOK_SECRET
from ...database import get_db
from ...models import User
from ...shared.errors import BookingError, ValidationError
from ...webhook_security import verify_payment_webhook
from .dodo_service import get_dodo_service
from .schemas import CheckoutRequest, CheckoutResponse, PaymentStatusResponse
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, get_dodo_service())


@router.post("/api/payments/checkout", response_model=CheckoutResponse)
async def create_checkout(
    data: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Create a hosted checkout session for an appointment (full price or deposit)"""
    return await service.create_checkout(current_user, data)


@router.get("/api/payments/checkout", response_model=PaymentStatusResponse)
async def get_payment_status(
    appointmentId: str = Query(...),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Get payment status for an appointment"""
    return service.get_status(current_user, appointmentId)


@router.post("/api/webhooks/payments")
async def payment_webhook(request: Request, service: PaymentService = Depends(get_payment_service)):
    """Payment processor callback (signature verified)"""
    if not DODO_PAYMENTS_WEBHOOK_SECRET:
        logger.error("❌ DODO_PAYMENTS_WEBHOOK_SECRET not configured")
        raise BookingError("Webhook secret not configured")

    raw_body = await verify_payment_webhook(request, DODO_PAYMENTS_WEBHOOK_SECRET)

    try:
        event = json.loads(raw_body.decode("utf-8"))
    except ValueError as e:
        logger.error(f"Failed to parse webhook JSON: {e}")
        raise ValidationError("Invalid JSON payload") from e

    appointment = service.handle_webhook_event(event)
    return {
        "status": "received",
        "event_type": event.get("type"),
        "appointmentId": appointment.id if appointment else None,
    }
