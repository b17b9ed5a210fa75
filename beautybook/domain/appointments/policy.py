"""
Booking policy rules: lead time, deposits and cancellation fees.

All functions take the current time explicitly so callers control the clock.
"""

from datetime import datetime, timedelta
from typing import Optional

from ...config import DEPOSIT_RATE, DEPOSIT_THRESHOLD, MIN_LEAD_TIME_HOURS
from ...shared.errors import ValidationError

# Cancellation policy windows: (hours of notice for a free cancellation, late fee %)
CANCELLATION_RULES = {
    "FLEXIBLE": (0, 0),
    "MODERATE": (12, 50),
    "STANDARD": (24, 50),
    "STRICT": (48, None),  # Tiered, see calculate_cancellation_fee
}

POLICY_DESCRIPTIONS = {
    "FLEXIBLE": ["Cancel anytime with no fee"],
    "MODERATE": [
        "Free cancellation up to 12 hours before the appointment",
        "50% fee if cancelled within 12 hours",
    ],
    "STANDARD": [
        "Free cancellation up to 24 hours before the appointment",
        "50% fee if cancelled within 24 hours",
    ],
    "STRICT": [
        "Free cancellation up to 48 hours before the appointment",
        "50% fee if cancelled 24-48 hours before",
        "100% fee if cancelled within 24 hours",
    ],
}


def check_booking_time(starts_at: datetime, now: datetime, action: str = "book") -> None:
    """Reject start times in the past or inside the minimum lead time"""
    if starts_at < now:
        raise ValidationError(f"Cannot {action} to a past date")
    if starts_at - now < timedelta(hours=MIN_LEAD_TIME_HOURS):
        hours = f"{MIN_LEAD_TIME_HOURS:g}"
        raise ValidationError(f"Appointments must be scheduled at least {hours} hours in advance")


def calculate_deposit(price: float, amount_due: Optional[float] = None) -> tuple[bool, Optional[float]]:
    """
    (deposit_required, deposit_amount) for a service price.

    The threshold applies to the list price; the deposit never exceeds what
    the customer owes after discounts, and nothing is owed on a free booking.
    """
    if amount_due is None:
        amount_due = price
    if price < DEPOSIT_THRESHOLD or amount_due <= 0:
        return False, None
    return True, round(min(price * DEPOSIT_RATE, amount_due), 2)


def calculate_cancellation_fee(
    policy: Optional[str],
    appointment_at: datetime,
    amount: float,
    now: datetime,
    custom_hours: Optional[float] = None,
    custom_fee_percentage: Optional[float] = None,
) -> dict:
    """
    Fee owed for cancelling now.

    Custom hours and fee replace the named policy only when both are set;
    the fee then applies when notice is shorter than the custom hours.
    Unknown policies fall back to STANDARD.
    """
    hours_until = (appointment_at - now).total_seconds() / 3600

    if hours_until < 0:
        return {
            "canCancel": False,
            "feePercentage": 100,
            "feeAmount": amount,
            "refundAmount": 0,
            "reason": "Appointment has already passed",
        }

    if custom_hours is not None and custom_fee_percentage is not None:
        required_hours = custom_hours
        fee_percentage = custom_fee_percentage if hours_until < custom_hours else 0
    elif policy == "STRICT":
        required_hours = 48
        if hours_until >= 48:
            fee_percentage = 0
        elif hours_until >= 24:
            fee_percentage = 50
        else:
            fee_percentage = 100
    else:
        required_hours, late_fee = CANCELLATION_RULES.get(policy, CANCELLATION_RULES["STANDARD"])
        fee_percentage = late_fee if hours_until < required_hours else 0

    fee_amount = round(amount * fee_percentage / 100, 2)

    if fee_percentage == 0:
        reason = "Free cancellation"
    elif fee_percentage == 100:
        reason = f"Full charge - less than {required_hours:g} hours notice"
    else:
        reason = f"{fee_percentage:g}% charge - less than {required_hours:g} hours notice"

    return {
        "canCancel": True,
        "feePercentage": fee_percentage,
        "feeAmount": fee_amount,
        "refundAmount": round(amount - fee_amount, 2),
        "reason": reason,
    }
