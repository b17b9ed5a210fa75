"""
Unit tests for analytics aggregation
"""

from datetime import date
from types import SimpleNamespace

import pytest

from beautybook.domain.analytics import aggregator


def appt(amount=100, status="COMPLETED", payment_status="PAID", customer_id="c1", start_time="10:00", **fields):
    defaults = dict(
        amount=amount,
        tip_amount=0,
        status=status,
        payment_status=payment_status,
        customer_id=customer_id,
        start_time=start_time,
        date=date(2030, 1, 7),
        service_id="s1",
        assigned_to_id=None,
    )
    defaults.update(fields)
    return SimpleNamespace(**defaults)


@pytest.mark.unit
class TestRevenue:
    def test_total_and_average(self):
        rows = [appt(100), appt(200), appt(300)]

        assert aggregator.total_revenue(rows) == 600
        assert aggregator.total_bookings(rows) == 3
        assert aggregator.avg_booking_value(rows) == 200

    def test_unpaid_rows_excluded(self):
        rows = [appt(100), appt(500, payment_status="PENDING"), appt(50, payment_status="REFUNDED")]

        assert aggregator.total_revenue(rows) == 100
        assert aggregator.total_bookings(rows) == 1

    def test_empty_collection(self):
        assert aggregator.total_revenue([]) == 0
        assert aggregator.avg_booking_value([]) == 0
        assert aggregator.retention_rate([]) == 0
        assert aggregator.cancellation_rate([]) == 0

    def test_tips(self):
        rows = [appt(100, tip_amount=15), appt(100, tip_amount=5), appt(100, tip_amount=50, payment_status="PENDING")]
        assert aggregator.total_tips(rows) == 20

    def test_daily_series_sorted(self):
        rows = [appt(50, date=date(2030, 1, 8)), appt(100), appt(25)]

        assert aggregator.daily_revenue(rows) == [
            {"date": "2030-01-07", "amount": 125, "bookings": 2},
            {"date": "2030-01-08", "amount": 50, "bookings": 1},
        ]


@pytest.mark.unit
class TestRates:
    def test_retention(self):
        rows = [appt(customer_id="a"), appt(customer_id="a"), appt(customer_id="b"), appt(customer_id="c")]
        assert aggregator.retention_rate(rows) == 33.3

    def test_cancellation_rate(self):
        rows = [appt(status="CANCELLED"), appt(), appt(), appt(status="CANCELLED", payment_status="PENDING")]
        assert aggregator.cancellation_rate(rows) == 50.0


@pytest.mark.unit
class TestPeakHours:
    def test_top_five_by_count(self):
        starts = ["09:00", "09:30", "10:00", "10:15", "10:45", "11:00", "12:00", "13:00", "14:00", "14:30"]
        rows = [appt(start_time=s) for s in starts]
        rows.append(appt(start_time="16:00", status="CANCELLED"))

        peak = aggregator.peak_hours(rows)

        assert peak[0] == {"hour": "10:00", "bookings": 3}
        assert peak[1] == {"hour": "09:00", "bookings": 2}
        assert len(peak) == 5
        assert all(p["hour"] != "16:00" for p in peak)


@pytest.mark.unit
class TestPerformance:
    def test_service_performance_most_booked_first(self):
        rows = [appt(80, service_id="facial"), appt(150, service_id="color"), appt(80, service_id="facial")]

        result = aggregator.service_performance(rows, {"facial": "Facial", "color": "Color"})

        assert result[0] == {"serviceId": "facial", "serviceName": "Facial", "bookings": 2, "revenue": 160}
        assert result[1]["serviceName"] == "Color"

    def test_staff_performance_includes_tips(self):
        rows = [
            appt(100, tip_amount=20, assigned_to_id="sam"),
            appt(200, tip_amount=0, assigned_to_id="ana"),
            appt(300),
        ]

        result = aggregator.staff_performance(rows, {"sam": "Sam"})

        assert [r["staffId"] for r in result] == ["ana", "sam"]
        assert result[0]["staffName"] == "Unknown"
        assert result[1]["totalEarnings"] == 120

    def test_status_distribution(self):
        rows = [appt(), appt(status="CANCELLED"), appt()]
        assert aggregator.status_distribution(rows) == [
            {"status": "CANCELLED", "count": 1},
            {"status": "COMPLETED", "count": 2},
        ]

    def test_summary_with_reviews(self):
        reviews = [SimpleNamespace(rating=5), SimpleNamespace(rating=4)]
        summary = aggregator.build_summary([appt(100), appt(200)], reviews)

        assert summary["totalRevenue"] == 300
        assert summary["avgRating"] == 4.5
        assert summary["totalReviews"] == 2
