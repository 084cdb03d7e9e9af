from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.shift_booking.shift_booking.core.exceptions import ValidationError
from src.shift_booking.shift_booking.weeks.model import Weekday
from src.shift_booking.shift_booking.weeks.normalizer import (
    compute_week_window,
    day_index_for_weekday,
    week_start_for,
    weekday_for_day_index,
    weekday_of,
)

THURSDAY = date(2026, 3, 5)


def test_weekday_of_uses_sunday_zero():
    assert weekday_of(date(2026, 3, 1)) == Weekday.SUNDAY
    assert weekday_of(date(2026, 3, 2)) == Weekday.MONDAY
    assert weekday_of(THURSDAY) == Weekday.THURSDAY
    assert weekday_of(date(2026, 3, 7)) == Weekday.SATURDAY


def test_monday_first_week_of_a_thursday_starts_on_preceding_monday():
    window = compute_week_window(THURSDAY, 1)

    assert window.start == date(2026, 3, 2)
    assert window.end == date(2026, 3, 8)
    assert window.first_day_of_week == Weekday.MONDAY
    assert window.index_of(THURSDAY) == 3


@pytest.mark.parametrize("first_day", range(7))
def test_window_is_seven_consecutive_days_starting_on_first_day(first_day):
    for offset in range(14):
        reference = date(2026, 3, 1) + timedelta(days=offset)
        window = compute_week_window(reference, first_day)

        assert len(window) == 7
        assert weekday_of(window.start) == first_day
        assert all(b - a == timedelta(days=1) for a, b in zip(window, list(window)[1:]))
        assert window.contains(reference)


def test_window_is_idempotent_for_any_date_inside_it():
    window = compute_week_window(THURSDAY, 6)
    for day in window:
        assert compute_week_window(day, 6) == window


def test_reference_on_first_day_starts_the_window():
    assert compute_week_window(date(2026, 3, 1), 0).start == date(2026, 3, 1)
    assert week_start_for(date(2026, 3, 2), 1) == date(2026, 3, 2)


def test_day_index_and_weekday_conversions_are_inverse():
    for first_day in range(7):
        for weekday in range(7):
            index = day_index_for_weekday(weekday, first_day)
            assert 0 <= index < 7
            assert weekday_for_day_index(index, first_day) == weekday


def test_day_index_matches_window_position():
    window = compute_week_window(THURSDAY, 3)
    for index, day in enumerate(window):
        assert day_index_for_weekday(weekday_of(day), 3) == index


def test_out_of_range_values_raise_validation_error():
    with pytest.raises(ValidationError):
        compute_week_window(THURSDAY, 7)
    with pytest.raises(ValidationError):
        day_index_for_weekday(-1, 0)
    with pytest.raises(ValidationError):
        weekday_for_day_index(7, 0)


def test_index_of_outside_window_is_none():
    window = compute_week_window(THURSDAY, 1)
    assert window.index_of(date(2026, 3, 1)) is None
    assert window.index_of(date(2026, 3, 9)) is None
