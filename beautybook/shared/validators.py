"""Shared validation utilities"""

import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
END_OF_DAY = "24:00"
CLOCK_12H_PATTERN = re.compile(r"^(1[0-2]|0?[1-9]):([0-5][0-9])\s*([AaPp][Mm])$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    Ten-digit numbers without a country code are treated as US numbers.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number in E.164 format (+XXXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    has_country_code = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)

    if not has_country_code:
        if digits.startswith("1") and len(digits) == 11:
            digits = digits[1:]
        if len(digits) != 10:
            raise ValueError("Phone number must be 10 digits or include a country code")
        return f"+1{digits}"

    if not 8 <= len(digits) <= 15:
        raise ValueError("Phone number must have between 8 and 15 digits")
    return f"+{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_time(value: str, allow_end_of_day: bool = False) -> str:
    """
    Validate a wall-clock time and return it zero-padded as HH:MM.

    With allow_end_of_day, "24:00" is accepted so a range can run to midnight.

    Zero padding matters: times are compared as strings throughout the
    booking code, which only orders correctly for fixed-width values.
    """
    if not value or not isinstance(value, str):
        raise ValueError("Time is required")

    if allow_end_of_day and value.strip() == END_OF_DAY:
        return END_OF_DAY

    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError("Time must be in HH:MM format (e.g., 09:30)")

    return f"{int(match.group(1)):02d}:{match.group(2)}"


def parse_clock_time(value: str) -> str:
    """Accept 24-hour HH:MM or 12-hour "h:MM AM/PM" and return zero-padded HH:MM"""
    if value and isinstance(value, str):
        match = CLOCK_12H_PATTERN.match(value.strip())
        if match:
            hours = int(match.group(1)) % 12
            if match.group(3).upper() == "PM":
                hours += 12
            return f"{hours:02d}:{match.group(2)}"
    return validate_time(value)


def validate_choice(value: Optional[str], allowed: tuple, field_name: str) -> Optional[str]:
    """Validate that an optional value is one of the allowed choices"""
    if value is None:
        return value
    if value not in allowed:
        raise ValueError(f"{field_name} must be one of: {', '.join(allowed)}")
    return value


def slugify(value: str, max_length: int = 100) -> str:
    """Lowercase URL slug: letters, digits and single hyphens"""
    slug = value.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")[:max_length]
