"""Wall-clock helpers for zero-padded HH:MM strings"""

from datetime import date, datetime, time, timedelta


def time_to_minutes(value: str) -> int:
    """Convert HH:MM to minutes since midnight"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    """Convert minutes since midnight to zero-padded HH:MM"""
    return f"{total // 60:02d}:{total % 60:02d}"


def add_minutes(value: str, minutes: int) -> str:
    """Shift an HH:MM time forward, e.g. to compute a booking's end time"""
    total = time_to_minutes(value) + minutes
    if total > 24 * 60:
        raise ValueError("Appointment cannot run past midnight")
    if total == 24 * 60:
        # Closing exactly at midnight stays within the day
        return "24:00"
    return minutes_to_time(total)


def day_of_week(day: date) -> int:
    """Day index where 0 is Sunday and 6 is Saturday"""
    return (day.weekday() + 1) % 7


def combine(day: date, value: str) -> datetime:
    """Naive provider-local datetime for a date and HH:MM time"""
    hours, minutes = value.split(":")
    if int(hours) == 24:
        return datetime.combine(day + timedelta(days=1), time(0, int(minutes)))
    return datetime.combine(day, time(int(hours), int(minutes)))
