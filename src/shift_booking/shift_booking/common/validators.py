from __future__ import annotations

from datetime import date, time
from typing import Any, Optional

from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date, parse_time_of_day


def require_non_empty(value: Optional[str], field_name: str) -> str:
    text = optional_text(value, field_name)
    if text is None:
        raise ValidationError(f"{field_name} is required")
    return text


def optional_text(value: Any, field_name: str) -> Optional[str]:
    """Stripped text, or None when missing or blank."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    return value.strip() or None


def require_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def require_weekday(value: Any, field_name: str = "Day of week") -> int:
    day = require_int(value, field_name)
    if day < 0 or day > 6:
        raise ValidationError(f"{field_name} must be between 0 (Sunday) and 6 (Saturday)")
    return day


def require_positive_int(value: Any, field_name: str) -> int:
    number = require_int(value, field_name)
    if number <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return number


def require_date(value: Any, field_name: str = "Date") -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value or ""))
    except ValueError:
        raise ValidationError(f"{field_name} must use the YYYY-MM-DD format")


def require_time(value: Any, field_name: str) -> time:
    if isinstance(value, time):
        return value
    try:
        return parse_time_of_day(str(value or ""))
    except ValueError:
        raise ValidationError(f"{field_name} must use the HH:MM format")


def require_time_range(start: time, end: time) -> None:
    if start >= end:
        raise ValidationError("Start time must be before end time")
