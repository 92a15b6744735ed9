"""Column validators for CSV imports.

Each validator takes the trimmed, non-blank raw value and returns the
normalized value, or raises ValueError with the user-facing message.
They mirror the rules enforced by the dashboard's create/edit forms.
"""
import re
from datetime import datetime
from typing import Callable

Validator = Callable[[str], str]

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")
PHONE_SEPARATORS_RE = re.compile(r"[\s\-.()]")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")

MEETING_STATUSES = ("scheduled", "in-progress", "completed", "cancelled")
DEFAULT_MEETING_STATUS = "scheduled"

EMAIL_MAX_LENGTH = 50
PHONE_MIN_DIGITS = 10


def passthrough(value: str) -> str:
    return value


def email(value: str) -> str:
    if len(value) > EMAIL_MAX_LENGTH or not EMAIL_RE.match(value):
        raise ValueError("Invalid email format")
    return value


def phone(value: str) -> str:
    compact = PHONE_SEPARATORS_RE.sub("", value)
    if not PHONE_RE.match(compact):
        raise ValueError("Invalid phone number format")
    if len(compact.lstrip("+")) < PHONE_MIN_DIGITS:
        raise ValueError(f"Phone number must be at least {PHONE_MIN_DIGITS} digits")
    return compact


def iso_date(value: str) -> str:
    if not DATE_RE.match(value):
        raise ValueError("Invalid date format (YYYY-MM-DD)")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValueError("Invalid date format (YYYY-MM-DD)")
    return value


def clock_time(value: str) -> str:
    match = TIME_RE.match(value)
    if not match:
        raise ValueError("Invalid time format (HH:MM)")
    hours, minutes = match.groups()
    return f"{int(hours):02d}:{minutes}"


def meeting_status(value: str) -> str:
    normalized = value.lower()
    if normalized not in MEETING_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(MEETING_STATUSES)}")
    return normalized


def length(label: str, min_len: int = 0, max_len: int | None = None) -> Validator:
    """Build a validator enforcing the form's min/max character limits."""

    def check(value: str) -> str:
        if len(value) < min_len:
            raise ValueError(f"{label} must be at least {min_len} characters long")
        if max_len is not None and len(value) > max_len:
            raise ValueError(f"{label} must be less than {max_len} characters")
        return value

    return check
