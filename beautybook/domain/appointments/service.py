"""Booking service - Business logic for the appointment lifecycle"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import (
    PAYMENT_PAID,
    PAYMENT_PENDING,
    PAYMENT_REFUNDED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_SCHEDULED,
    Appointment,
    ProviderProfile,
    User,
    GUEST_AUTH_PREFIX,
    generate_id,
)
from ...services.notification_scheduler import cancel_pending_reminders, schedule_appointment_reminders
from ...shared.errors import (
    ConflictError,
    ExternalServiceError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from ..loyalty.service import CouponService, LoyaltyService
from ..payments.dodo_service import DodoPaymentsService, get_dodo_service
from ..scheduling.conflicts import has_conflict, intervals_overlap
from ..scheduling.time_utils import add_minutes, combine
from .policy import calculate_cancellation_fee, calculate_deposit, check_booking_time
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentReschedule, GuestBookingCreate

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "This time slot is already booked. Please choose another time."


class BookingService:
    """Service layer for booking, rescheduling and cancelling appointments"""

    def __init__(self, db: Session, now: Optional[datetime] = None, gateway: Optional[DodoPaymentsService] = None):
        self.db = db
        self.repo = AppointmentRepository()
        self._now = now
        self._gateway = gateway

    def now(self) -> datetime:
        return self._now or datetime.now()

    @property
    def gateway(self) -> DodoPaymentsService:
        if self._gateway is None:
            self._gateway = get_dodo_service()
        return self._gateway

    def _get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def _schedule_reminders(self, appointment: Appointment) -> None:
        try:
            schedule_appointment_reminders(self.db, appointment, now=self.now())
        except Exception as e:
            self.db.rollback()
            logger.warning(f"⚠️ Failed to schedule reminders for appointment {appointment.id}: {e}")

    # ========================================================================
    # CREATE
    # ========================================================================

    def create_appointment(self, customer: User, data: AppointmentCreate) -> Appointment:
        """Book a service with a provider"""
        logger.info(f"📥 Booking request from user {customer.id} for provider {data.providerId}")

        service = self.repo.get_service(self.db, data.serviceId)
        if not service:
            raise NotFoundError("Service not found")
        if service.provider_id != data.providerId:
            raise ValidationError("Service does not belong to this provider")
        if not service.active:
            raise ValidationError("Service is not available")

        if data.endTime:
            end_time = data.endTime
        else:
            try:
                end_time = add_minutes(data.startTime, service.duration)
            except ValueError as e:
                raise ValidationError(str(e)) from e

        check_booking_time(combine(data.date, data.startTime), self.now())

        staff_id = None
        if data.staffId:
            staff = self.repo.get_staff(self.db, data.staffId)
            if not staff or staff.provider_id != data.providerId:
                raise NotFoundError("Staff member not found")
            if not staff.active:
                raise ValidationError("Cannot assign to inactive staff member")
            staff_id = staff.id

        provider = self.repo.lock_provider(self.db, data.providerId)
        if not provider:
            raise NotFoundError("Provider not found")

        if has_conflict(self.db, provider.id, data.date, data.startTime, end_time):
            self.db.rollback()
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        amount = service.price
        discount = 0.0
        coupon_code = None
        if data.couponCode:
            coupon, discount = CouponService(self.db).apply_coupon(
                data.couponCode, provider.id, service.price, today=self.now().date()
            )
            coupon_code = coupon.code
            amount = round(service.price - discount, 2)

        deposit_required, deposit_amount = calculate_deposit(service.price, amount)

        appointment = self.repo.create(
            self.db,
            customer_id=customer.id,
            provider_id=provider.id,
            service_id=service.id,
            assigned_to_id=staff_id,
            date=data.date,
            start_time=data.startTime,
            end_time=end_time,
            status=STATUS_SCHEDULED,
            payment_status=PAYMENT_PENDING,
            notes=data.notes,
            amount=amount,
            discount_amount=discount,
            coupon_code=coupon_code,
            deposit_required=deposit_required,
            deposit_amount=deposit_amount,
            cancellation_policy=provider.cancellation_policy,
        )
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(
            f"✅ Appointment {appointment.id} booked: {appointment.date} "
            f"{appointment.start_time}-{appointment.end_time} amount=${appointment.amount:.2f}"
        )

        self._schedule_reminders(appointment)
        return self._get_appointment(appointment.id)

    def create_guest_appointment(self, data: GuestBookingCreate) -> Appointment:
        """
        Book from a public booking page without signing in.

        The guest is matched to an existing account by email, or a local
        account is created that can be claimed by signing up later.
        """
        provider = self.repo.get_provider_by_slug(self.db, data.providerSlug)
        if not provider:
            raise NotFoundError("Provider not found")
        if not provider.public_booking_enabled:
            raise ForbiddenError("Public booking is not available for this provider")

        info = data.customerInfo
        customer = self.repo.get_user_by_email(self.db, info.email)
        if customer is None:
            customer = self.repo.create_guest_user(
                self.db, f"{GUEST_AUTH_PREFIX}{generate_id()}", info.email, info.firstName, info.lastName, info.phone
            )
            logger.info(f"🆕 Guest account {customer.id} created for {info.email}")
        elif customer.customer_profile and not customer.customer_profile.phone:
            customer.customer_profile.phone = info.phone
            self.db.commit()

        return self.create_appointment(
            customer,
            AppointmentCreate(
                providerId=provider.id,
                serviceId=data.serviceId,
                date=data.date,
                startTime=data.time,
                notes=info.notes,
            ),
        )

    # ========================================================================
    # RESCHEDULE
    # ========================================================================

    def reschedule_appointment(
        self, customer: User, appointment_id: str, data: AppointmentReschedule
    ) -> tuple[Appointment, str, str]:
        """
        Move an appointment to a new date and time.
        Returns (appointment, old_date, old_start_time) for notifications.
        """
        appointment = self._get_appointment(appointment_id)
        if appointment.customer_id != customer.id:
            raise ForbiddenError("Not authorized to reschedule this appointment")
        if appointment.status in (STATUS_CANCELLED, STATUS_COMPLETED):
            raise ValidationError(f"Cannot reschedule a {appointment.status.lower()} appointment")

        check_booking_time(combine(data.date, data.startTime), self.now(), action="reschedule")

        self.repo.lock_provider(self.db, appointment.provider_id)
        if has_conflict(
            self.db,
            appointment.provider_id,
            data.date,
            data.startTime,
            data.endTime,
            exclude_appointment_id=appointment.id,
        ):
            self.db.rollback()
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        old_date = appointment.date.isoformat()
        old_start_time = appointment.start_time

        appointment.date = data.date
        appointment.start_time = data.startTime
        appointment.end_time = data.endTime
        appointment.status = STATUS_SCHEDULED
        self.db.commit()
        logger.info(
            f"📅 Appointment {appointment.id} rescheduled from {old_date} {old_start_time} "
            f"to {data.date} {data.startTime}"
        )

        self._schedule_reminders(appointment)
        return self._get_appointment(appointment.id), old_date, old_start_time

    # ========================================================================
    # CANCEL
    # ========================================================================

    async def cancel_appointment(self, user: User, appointment_id: str, reason: Optional[str] = None) -> dict:
        """
        Cancel an appointment and refund what the cancellation policy allows.
        Returns {"appointment", "refund"}.
        """
        appointment = self._get_appointment(appointment_id)

        is_customer = appointment.customer_id == user.id
        is_provider = bool(user.provider_profile) and user.provider_profile.id == appointment.provider_id
        if not (is_customer or is_provider):
            raise ForbiddenError("Not authorized to cancel this appointment")
        if appointment.status == STATUS_CANCELLED:
            raise ValidationError("Appointment is already cancelled")
        if appointment.status == STATUS_COMPLETED:
            raise ValidationError("Cannot cancel a completed appointment")

        provider = appointment.provider
        fee = calculate_cancellation_fee(
            appointment.cancellation_policy or provider.cancellation_policy,
            combine(appointment.date, appointment.start_time),
            appointment.amount,
            self.now(),
            custom_hours=provider.custom_cancellation_hours,
            custom_fee_percentage=provider.custom_cancellation_fee,
        )
        refund_percentage = 100 - fee["feePercentage"]

        refund_id = None
        if appointment.payment_status == PAYMENT_PAID and fee["refundAmount"] > 0 and appointment.payment_id:
            try:
                refund_id = await self.gateway.create_refund(appointment.payment_id, fee["refundAmount"], reason)
                appointment.payment_status = PAYMENT_REFUNDED
            except ExternalServiceError as e:
                logger.error(f"❌ Refund failed for appointment {appointment.id}: {e.message}")

        appointment.status = STATUS_CANCELLED
        appointment.cancelled_at = self.now()
        if reason:
            note = f"[Cancellation reason] {reason}"
            appointment.notes = f"{appointment.notes}\n\n{note}" if appointment.notes else note
        cancel_pending_reminders(self.db, appointment.id)
        self.db.commit()
        logger.info(
            f"🚫 Appointment {appointment.id} cancelled by {'customer' if is_customer else 'provider'} "
            f"refund=${fee['refundAmount']:.2f} ({refund_percentage:g}%)"
        )

        return {
            "appointment": self._get_appointment(appointment.id),
            "refund": {
                "amount": fee["refundAmount"],
                "percentage": refund_percentage,
                "feeAmount": fee["feeAmount"],
                "reason": fee["reason"],
                "refundId": refund_id,
            },
        }

    # ========================================================================
    # PROVIDER MANAGEMENT
    # ========================================================================

    def _get_provider_appointment(self, provider: ProviderProfile, appointment_id: str) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment or appointment.provider_id != provider.id:
            raise NotFoundError("Appointment not found")
        return appointment

    def update_status(self, provider: ProviderProfile, appointment_id: str, status: str) -> Appointment:
        """Set any status; providers may correct earlier mistakes"""
        appointment = self._get_provider_appointment(provider, appointment_id)
        previous = appointment.status
        appointment.status = status
        if status == STATUS_CANCELLED and not appointment.cancelled_at:
            appointment.cancelled_at = self.now()
            cancel_pending_reminders(self.db, appointment.id)
        self.db.commit()
        logger.info(f"🔄 Appointment {appointment.id} status {previous} -> {status}")

        if status == STATUS_COMPLETED:
            try:
                LoyaltyService(self.db).award_points_for_appointment(appointment)
            except Exception as e:
                self.db.rollback()
                logger.warning(f"⚠️ Failed to award points for appointment {appointment.id}: {e}")

        return self._get_appointment(appointment.id)

    def assign_staff(self, provider: ProviderProfile, appointment_id: str, staff_id: Optional[str]) -> Appointment:
        """Assign a staff member, or unassign when staff_id is None"""
        appointment = self._get_provider_appointment(provider, appointment_id)

        if staff_id:
            staff = self.repo.get_staff(self.db, staff_id)
            if not staff or staff.provider_id != provider.id:
                raise NotFoundError("Staff member not found")
            if not staff.active:
                raise ValidationError("Cannot assign to inactive staff member")

            for other in self.repo.get_staff_appointments(self.db, staff_id, appointment.date, appointment.id):
                if intervals_overlap(appointment.start_time, appointment.end_time, other.start_time, other.end_time):
                    raise ConflictError("Staff member has a conflicting appointment at this time")

        appointment.assigned_to_id = staff_id
        self.db.commit()
        logger.info(f"👤 Appointment {appointment.id} assigned to {staff_id or 'nobody'}")
        return self._get_appointment(appointment.id)

    # ========================================================================
    # LISTS
    # ========================================================================

    def list_customer_appointments(self, customer: User, status: Optional[str] = None) -> list[Appointment]:
        return self.repo.list_for_customer(self.db, customer.id, status)

    def list_provider_appointments(
        self,
        provider: ProviderProfile,
        status: Optional[str] = None,
        staff_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Appointment]:
        return self.repo.list_for_provider(self.db, provider.id, status, staff_id, start_date, end_date)
