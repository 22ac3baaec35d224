"""Shared validation utilities"""

import re
from typing import Optional

# "10:00", "9:30", "14:00", "2:00 PM", "09:00 am"
_TIME_SLOT_PATTERN = re.compile(r"^(\d{1,2}):([0-5]\d)(\s?([AaPp][Mm]))?$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_time_slot(slot: Optional[str]) -> Optional[str]:
    """
    Validate a slot label such as "10:00" or "2:00 PM".

    Returns:
        The slot as zero-padded 24-hour "HH:MM", so "9:00", "09:00" and
        "9:00 AM" all name the same slot

    Raises:
        ValueError: If the label is not a clock time
    """
    if slot is None:
        return slot

    slot = slot.strip()
    if not slot:
        return slot

    match = _TIME_SLOT_PATTERN.match(slot)
    if not match:
        raise ValueError("Time must look like HH:MM or H:MM AM/PM")

    hour = int(match.group(1))
    minute = match.group(2)
    meridiem = match.group(4)
    if meridiem:
        if not 1 <= hour <= 12:
            raise ValueError("Hour must be between 1 and 12 for AM/PM times")
        hour = hour % 12
        if meridiem.lower() == "pm":
            hour += 12
    elif hour > 23:
        raise ValueError("Hour must be between 0 and 23")

    return f"{hour:02d}:{minute}"
