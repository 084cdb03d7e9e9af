from __future__ import annotations

from datetime import date, datetime, time

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMATS = ("%H:%M:%S", "%H:%M")


def parse_iso_date(value: str) -> date:
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def parse_time_of_day(value: str) -> time:
    """Accepts HH:MM and HH:MM:SS."""
    text = (value or "").strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}")


def now_local() -> datetime:
    # Services take an explicit ``now``; this is only the default.
    return datetime.now()
