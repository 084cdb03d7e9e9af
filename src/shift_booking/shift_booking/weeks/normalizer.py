"""Week normalization.

Maps a reference date and a configurable first day of week onto a concrete
7-date window, and converts between calendar weekdays and display columns.
Everything here is pure and works on calendar dates only.
"""

from __future__ import annotations

from datetime import date, timedelta

from ..core.constants import DAYS_PER_WEEK
from ..core.exceptions import ValidationError
from .model import DisplayIndex, WeekWindow, Weekday


def _as_weekday(value: int) -> Weekday:
    try:
        return Weekday(int(value))
    except ValueError:
        raise ValidationError("Day of week must be between 0 (Sunday) and 6 (Saturday)")


def _as_display_index(value: int) -> DisplayIndex:
    index = int(value)
    if index < 0 or index >= DAYS_PER_WEEK:
        raise ValidationError("Day index must be between 0 and 6")
    return DisplayIndex(index)


def weekday_of(value: date) -> Weekday:
    # date.weekday() is Monday=0; storage uses Sunday=0.
    return Weekday((value.weekday() + 1) % DAYS_PER_WEEK)


def day_index_for_weekday(weekday: int, first_day_of_week: int) -> DisplayIndex:
    day = _as_weekday(weekday)
    first = _as_weekday(first_day_of_week)
    return DisplayIndex((day - first + DAYS_PER_WEEK) % DAYS_PER_WEEK)


def weekday_for_day_index(index: int, first_day_of_week: int) -> Weekday:
    position = _as_display_index(index)
    first = _as_weekday(first_day_of_week)
    return Weekday((first + position) % DAYS_PER_WEEK)


def compute_week_window(reference_date: date, first_day_of_week: int) -> WeekWindow:
    """Return the week containing ``reference_date``.

    The first date is the most recent ``first_day_of_week`` on or before the
    reference date.
    """
    first = _as_weekday(first_day_of_week)
    days_to_subtract = (weekday_of(reference_date) - first + DAYS_PER_WEEK) % DAYS_PER_WEEK
    start = reference_date - timedelta(days=days_to_subtract)
    return WeekWindow(
        first_day_of_week=first,
        dates=tuple(start + timedelta(days=i) for i in range(DAYS_PER_WEEK)),
    )


def week_start_for(value: date, first_day_of_week: int) -> date:
    return compute_week_window(value, first_day_of_week).start
