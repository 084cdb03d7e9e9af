from __future__ import annotations

from datetime import date
from typing import Optional

import structlog

from ..common.validators import require_weekday
from ..weeks.model import WeekWindow
from ..weeks.normalizer import compute_week_window
from .model import SystemSettings
from .repository import SettingsRepository

logger = structlog.get_logger("shift_booking.settings")


class SettingsService:
    def __init__(self, settings: SettingsRepository):
        self._settings = settings

    def get_settings(self) -> SystemSettings:
        # Never saved -> default (week starts on Sunday).
        return self._settings.get() or SystemSettings()

    def first_day_of_week(self) -> int:
        return self.get_settings().first_day_of_week

    def update_first_day_of_week(self, *, first_day_of_week, updated_by: Optional[int] = None) -> SystemSettings:
        day = require_weekday(first_day_of_week, "First day of week")
        saved = self._settings.save(first_day_of_week=day, updated_by=updated_by)
        logger.info("settings_updated", first_day_of_week=day, updated_by=updated_by)
        return saved

    def week_for(self, reference_date: date) -> WeekWindow:
        return compute_week_window(reference_date, self.first_day_of_week())
