"""Appointment router - Booking lifecycle endpoints"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_provider, get_current_user
from ...database import get_db
from ...models import STATUS_CANCELLED, Appointment, ProviderProfile, User
from ...services.notification_service import (
    notify_appointment_booked,
    notify_appointment_cancelled,
    notify_appointment_rescheduled,
    notify_waitlist_slot_opened,
)
from ..payments.dodo_service import get_dodo_service
from .schemas import (
    AppointmentAssign,
    AppointmentCancel,
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
    CancelResponse,
    GuestBookingCreate,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])
guest_router = APIRouter(prefix="/api/booking", tags=["Appointments"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, gateway=get_dodo_service())


def to_response(a: Appointment) -> AppointmentResponse:
    """Serialize an appointment with its related names"""
    return AppointmentResponse(
        id=a.id,
        customerId=a.customer_id,
        customerName=a.customer.display_name if a.customer else None,
        customerEmail=a.customer.email if a.customer else None,
        providerId=a.provider_id,
        providerName=a.provider.business_name if a.provider else None,
        serviceId=a.service_id,
        serviceName=a.service.name if a.service else None,
        assignedToId=a.assigned_to_id,
        assignedToName=a.assigned_to.name if a.assigned_to else None,
        date=a.date,
        startTime=a.start_time,
        endTime=a.end_time,
        status=a.status,
        paymentStatus=a.payment_status,
        amount=a.amount,
        tipAmount=a.tip_amount or 0,
        discountAmount=a.discount_amount or 0,
        couponCode=a.coupon_code,
        depositRequired=a.deposit_required,
        depositAmount=a.deposit_amount,
        depositPaid=a.deposit_paid,
        cancellationPolicy=a.cancellation_policy,
        notes=a.notes,
        createdAt=a.created_at,
    )


# ============================================================================
# CUSTOMER ENDPOINTS
# ============================================================================


@router.get("", response_model=list[AppointmentResponse])
async def get_my_appointments(
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Get the current customer's appointments"""
    return [to_response(a) for a in service.list_customer_appointments(current_user, status)]


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Book an appointment"""
    appointment = service.create_appointment(current_user, data)
    background_tasks.add_task(notify_appointment_booked, appointment.id)
    return to_response(appointment)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: str,
    data: AppointmentReschedule,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Move an appointment to a new date and time"""
    appointment, old_date, old_start_time = service.reschedule_appointment(current_user, appointment_id, data)
    background_tasks.add_task(notify_appointment_rescheduled, appointment.id, old_date, old_start_time)
    return to_response(appointment)


@router.post("/{appointment_id}/cancel", response_model=CancelResponse)
async def cancel_appointment(
    appointment_id: str,
    background_tasks: BackgroundTasks,
    data: Optional[AppointmentCancel] = None,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel an appointment (customer or provider) and refund per policy"""
    reason = data.reason if data else None
    result = await service.cancel_appointment(current_user, appointment_id, reason)
    background_tasks.add_task(
        notify_appointment_cancelled, appointment_id, reason, result["refund"]["amount"]
    )
    background_tasks.add_task(notify_waitlist_slot_opened, appointment_id)
    return CancelResponse(appointment=to_response(result["appointment"]), refund=result["refund"])


# ============================================================================
# PROVIDER ENDPOINTS
# ============================================================================


@router.get("/manage", response_model=list[AppointmentResponse])
async def get_provider_appointments(
    status: Optional[str] = Query(None),
    staffId: Optional[str] = Query(None),
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    provider: ProviderProfile = Depends(get_current_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Get the current provider's appointments with optional filters"""
    appointments = service.list_provider_appointments(provider, status, staffId, startDate, endDate)
    return [to_response(a) for a in appointments]


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    background_tasks: BackgroundTasks,
    provider: ProviderProfile = Depends(get_current_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Set an appointment's status"""
    appointment = service.update_status(provider, appointment_id, data.status)
    if data.status == STATUS_CANCELLED:
        background_tasks.add_task(notify_waitlist_slot_opened, appointment.id)
    return to_response(appointment)


@router.patch("/{appointment_id}/assign", response_model=AppointmentResponse)
async def assign_appointment(
    appointment_id: str,
    data: AppointmentAssign,
    provider: ProviderProfile = Depends(get_current_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Assign a staff member to an appointment"""
    return to_response(service.assign_staff(provider, appointment_id, data.staffId))


# ============================================================================
# GUEST BOOKING
# ============================================================================


@guest_router.post("/guest", status_code=201)
async def create_guest_booking(
    data: GuestBookingCreate,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
):
    """Book from a public booking page without signing in"""
    appointment = service.create_guest_appointment(data)
    background_tasks.add_task(notify_appointment_booked, appointment.id)
    return {
        "success": True,
        "appointment": to_response(appointment),
        "message": "Booking request submitted successfully. You will receive a confirmation email shortly.",
    }
