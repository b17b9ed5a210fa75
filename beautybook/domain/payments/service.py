"""Payment service - Checkout sessions and processor callbacks"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...models import (
    PAYMENT_FAILED,
    PAYMENT_PAID,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_SCHEDULED,
    Appointment,
    User,
)
from ...services.notification_scheduler import cancel_pending_reminders
from ...shared.errors import ForbiddenError, NotFoundError, ValidationError
from .dodo_service import DodoPaymentsService
from .schemas import CheckoutRequest

logger = logging.getLogger(__name__)

SUCCESS_EVENTS = ("payment.succeeded", "checkout.session.completed")
FAILURE_EVENTS = ("payment.failed", "payment.cancelled", "checkout.session.expired", "checkout.session.failed")


class PaymentService:
    """Service layer for appointment payments"""

    def __init__(self, db: Session, gateway: DodoPaymentsService):
        self.db = db
        self.gateway = gateway

    def _get_customer_appointment(self, user: User, appointment_id: str) -> Appointment:
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise NotFoundError("Appointment not found")
        if appointment.customer_id != user.id:
            raise ForbiddenError("You do not have access to this appointment")
        return appointment

    async def create_checkout(self, user: User, data: CheckoutRequest) -> dict:
        """Start a hosted checkout for the full price or the deposit"""
        appointment = self._get_customer_appointment(user, data.appointmentId)

        if appointment.status == STATUS_CANCELLED:
            raise ValidationError("Cannot pay for a cancelled appointment")

        if data.paymentType == "deposit":
            if not appointment.deposit_required or not appointment.deposit_amount:
                raise ValidationError("Deposit not required for this appointment")
            if appointment.deposit_paid:
                raise ValidationError("Deposit already paid")
            amount = appointment.deposit_amount
        else:
            if appointment.payment_status == PAYMENT_PAID:
                raise ValidationError("Appointment already paid")
            amount = appointment.amount

        if not self.gateway.is_available():
            logger.info(f"💳 Demo checkout for appointment {appointment.id}")
            return {
                "success": True,
                "source": "demo",
                "checkoutUrl": f"/checkout/demo?appointmentId={appointment.id}",
                "amount": amount,
                "message": "Payment processor not configured - using demo checkout",
            }

        logger.info(f"💳 Creating {data.paymentType} checkout for appointment {appointment.id}: ${amount:.2f}")
        session = await self.gateway.create_checkout_session(
            amount=amount,
            customer_email=user.email,
            customer_name=user.display_name,
            return_url=f"{FRONTEND_URL}/checkout/success?appointment_id={appointment.id}",
            metadata={
                "appointment_id": appointment.id,
                "customer_id": appointment.customer_id,
                "provider_id": appointment.provider_id,
                "service_id": appointment.service_id,
                "payment_type": data.paymentType,
            },
        )

        appointment.payment_id = session["session_id"]
        self.db.commit()
        return {
            "success": True,
            "source": "dodo",
            "checkoutUrl": session["checkout_url"],
            "sessionId": session["session_id"],
            "amount": amount,
        }

    def get_status(self, user: User, appointment_id: str) -> dict:
        appointment = self._get_customer_appointment(user, appointment_id)
        return {
            "appointmentId": appointment.id,
            "paymentStatus": appointment.payment_status,
            "status": appointment.status,
            "amount": appointment.amount,
            "depositRequired": appointment.deposit_required,
            "depositAmount": appointment.deposit_amount,
            "depositPaid": appointment.deposit_paid,
        }

    def handle_webhook_event(self, event: dict) -> Optional[Appointment]:
        """
        Apply a verified processor event to its appointment.

        Success marks the appointment PAID and CONFIRMED, or only records the
        deposit for deposit checkouts. Failure or expiry cancels an unpaid
        appointment and marks its payment FAILED. Replays are no-ops.
        """
        event_type = event.get("type")
        data = event.get("data") or {}
        meta = data.get("metadata") or {}
        appointment_id = meta.get("appointment_id")

        if event_type not in SUCCESS_EVENTS + FAILURE_EVENTS:
            logger.info(f"Event {event_type} received and ignored (no handler)")
            return None

        if not appointment_id:
            logger.warning(f"⚠️ No appointment_id in {event_type} metadata")
            return None

        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            logger.warning(f"⚠️ Webhook for unknown appointment {appointment_id}")
            return None

        payment_type = meta.get("payment_type", "full")

        if event_type in SUCCESS_EVENTS:
            if data.get("payment_id"):
                appointment.payment_id = data["payment_id"]
            if payment_type == "deposit":
                appointment.deposit_paid = True
                logger.info(f"✅ Deposit paid for appointment {appointment.id}")
            else:
                appointment.payment_status = PAYMENT_PAID
                logger.info(f"✅ Payment received for appointment {appointment.id}")
            if appointment.status == STATUS_SCHEDULED:
                appointment.status = STATUS_CONFIRMED
        else:
            if appointment.payment_status == PAYMENT_PAID or appointment.status == STATUS_COMPLETED:
                logger.info(f"Ignoring {event_type} for already settled appointment {appointment.id}")
                return appointment
            appointment.status = STATUS_CANCELLED
            appointment.payment_status = PAYMENT_FAILED
            cancel_pending_reminders(self.db, appointment.id)
            logger.warning(f"⚠️ Payment {event_type} - appointment {appointment.id} cancelled")

        self.db.commit()
        self.db.refresh(appointment)
        return appointment
