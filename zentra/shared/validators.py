"""Shared validation utilities"""

import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an international phone number to E.164 format.

    Accepts "+44 7700 900123", "0044 7700 900123" or bare digits with the
    country code ("447700900123").

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    stripped = phone.strip()
    digits = re.sub(r"\D", "", stripped)

    if stripped.startswith("00"):
        digits = digits[2:]

    # E.164 allows at most 15 digits; anything under 8 is not a real subscriber number
    if len(digits) < 8 or len(digits) > 15 or digits.startswith("0"):
        raise ValueError("Phone number must include the country code, e.g. +447700900123")

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


def validate_time(value: Optional[str]) -> Optional[str]:
    """Validate a 24h HH:MM time string"""
    if value is None:
        return value
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    total = total % (24 * 60)
    return f"{total // 60:02d}:{total % 60:02d}"


def validate_schedule(schedule: Optional[dict]) -> Optional[dict]:
    """
    Validate a weekly staff schedule.

    Keys must be weekday names; each value is a list of {"start", "end"}
    slots in HH:MM with start before end.
    """
    if schedule is None:
        return schedule

    normalized = {}
    for day, slots in schedule.items():
        key = day.lower()
        if key not in WEEKDAYS:
            raise ValueError(f"Unknown weekday: {day}")
        cleaned = []
        for slot in slots or []:
            start = validate_time(slot.get("start"))
            end = validate_time(slot.get("end"))
            if not start or not end:
                raise ValueError(f"Slot on {key} needs both start and end")
            if time_to_minutes(start) >= time_to_minutes(end):
                raise ValueError(f"Slot on {key} must start before it ends")
            cleaned.append({"start": start, "end": end})
        normalized[key] = cleaned
    return normalized
