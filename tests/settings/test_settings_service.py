from __future__ import annotations

from datetime import date

import pytest

from src.shift_booking.shift_booking.core.exceptions import ValidationError
from src.shift_booking.shift_booking.settings.memory_settings_repository import InMemorySettingsRepository
from src.shift_booking.shift_booking.settings.service import SettingsService


def test_default_first_day_is_sunday():
    service = SettingsService(InMemorySettingsRepository())

    assert service.first_day_of_week() == 0
    assert service.week_for(date(2026, 3, 5)).start == date(2026, 3, 1)


def test_update_changes_week_window():
    service = SettingsService(InMemorySettingsRepository())

    saved = service.update_first_day_of_week(first_day_of_week=1, updated_by=7)

    assert saved.first_day_of_week == 1
    assert saved.updated_by == 7
    assert service.week_for(date(2026, 3, 5)).start == date(2026, 3, 2)


@pytest.mark.parametrize("value", [-1, 7, "x", None, True])
def test_update_rejects_invalid_day(value):
    service = SettingsService(InMemorySettingsRepository())

    with pytest.raises(ValidationError):
        service.update_first_day_of_week(first_day_of_week=value)

    assert service.first_day_of_week() == 0
