"""
Provider analytics over a collection of appointment rows.

Every function here is pure: it takes rows already filtered to one provider
and date range and returns plain dicts and numbers. Rows only need the
Appointment attributes they touch, so tests can pass simple namespaces.
"""

from collections import Counter, defaultdict
from typing import Iterable, Optional

from ...models import PAYMENT_PAID, STATUS_CANCELLED, STATUS_COMPLETED, STATUS_CONFIRMED, STATUS_SCHEDULED

PEAK_HOUR_STATUSES = (STATUS_SCHEDULED, STATUS_CONFIRMED, STATUS_COMPLETED)
PEAK_HOURS_LIMIT = 5


def _paid(appointments: Iterable) -> list:
    return [a for a in appointments if a.payment_status == PAYMENT_PAID]


def _percentage(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 1)


def total_revenue(appointments: Iterable) -> float:
    return sum(a.amount or 0 for a in _paid(appointments))


def total_tips(appointments: Iterable) -> float:
    return sum(a.tip_amount or 0 for a in _paid(appointments))


def total_bookings(appointments: Iterable) -> int:
    return len(_paid(appointments))


def avg_booking_value(appointments: Iterable) -> float:
    paid = _paid(appointments)
    if not paid:
        return 0.0
    return sum(a.amount or 0 for a in paid) / len(paid)


def retention_rate(appointments: Iterable) -> float:
    """Share of paying customers who paid for more than one appointment"""
    per_customer = Counter(a.customer_id for a in _paid(appointments))
    repeat = sum(1 for count in per_customer.values() if count > 1)
    return _percentage(repeat, len(per_customer))


def cancellation_rate(appointments: Iterable) -> float:
    appointments = list(appointments)
    cancelled = sum(1 for a in appointments if a.status == STATUS_CANCELLED)
    return _percentage(cancelled, len(appointments))


def peak_hours(appointments: Iterable, limit: int = PEAK_HOURS_LIMIT) -> list[dict]:
    """Busiest start hours among live and completed appointments"""
    hours = Counter(a.start_time.split(":")[0] for a in appointments if a.status in PEAK_HOUR_STATUSES)
    # Ties keep the earlier hour first
    ranked = sorted(hours.items(), key=lambda item: (-item[1], item[0]))
    return [{"hour": f"{hour}:00", "bookings": count} for hour, count in ranked[:limit]]


def daily_revenue(appointments: Iterable) -> list[dict]:
    days = defaultdict(lambda: {"amount": 0.0, "bookings": 0})
    for a in _paid(appointments):
        days[a.date]["amount"] += a.amount or 0
        days[a.date]["bookings"] += 1
    return [{"date": day.isoformat(), **totals} for day, totals in sorted(days.items())]


def service_performance(appointments: Iterable, service_names: Optional[dict] = None) -> list[dict]:
    """Paid bookings and revenue per service, most booked first"""
    service_names = service_names or {}
    stats = defaultdict(lambda: {"bookings": 0, "revenue": 0.0})
    for a in _paid(appointments):
        stats[a.service_id]["bookings"] += 1
        stats[a.service_id]["revenue"] += a.amount or 0
    ranked = sorted(stats.items(), key=lambda item: -item[1]["bookings"])
    return [
        {"serviceId": sid, "serviceName": service_names.get(sid, "Unknown"), **totals}
        for sid, totals in ranked
    ]


def staff_performance(appointments: Iterable, staff_names: Optional[dict] = None) -> list[dict]:
    """Paid revenue and tips per assigned staff member, highest revenue first"""
    staff_names = staff_names or {}
    stats = defaultdict(lambda: {"bookings": 0, "revenue": 0.0, "tips": 0.0})
    for a in _paid(appointments):
        if not a.assigned_to_id:
            continue
        stats[a.assigned_to_id]["bookings"] += 1
        stats[a.assigned_to_id]["revenue"] += a.amount or 0
        stats[a.assigned_to_id]["tips"] += a.tip_amount or 0
    ranked = sorted(stats.items(), key=lambda item: -item[1]["revenue"])
    return [
        {
            "staffId": sid,
            "staffName": staff_names.get(sid, "Unknown"),
            **totals,
            "totalEarnings": totals["revenue"] + totals["tips"],
        }
        for sid, totals in ranked
    ]


def status_distribution(appointments: Iterable) -> list[dict]:
    counts = Counter(a.status for a in appointments)
    return [{"status": status, "count": count} for status, count in sorted(counts.items())]


def review_summary(reviews: Iterable) -> dict:
    ratings = [r.rating for r in reviews]
    return {
        "avgRating": round(sum(ratings) / len(ratings), 2) if ratings else 0,
        "totalReviews": len(ratings),
    }


def build_summary(appointments: Iterable, reviews: Iterable = ()) -> dict:
    appointments = list(appointments)
    return {
        "totalRevenue": total_revenue(appointments),
        "totalTips": total_tips(appointments),
        "totalBookings": total_bookings(appointments),
        "avgBookingValue": avg_booking_value(appointments),
        "retentionRate": retention_rate(appointments),
        "cancellationRate": cancellation_rate(appointments),
        **review_summary(reviews),
    }
