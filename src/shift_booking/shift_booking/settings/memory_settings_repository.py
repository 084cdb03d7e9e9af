from __future__ import annotations

import threading
from typing import Optional

from ..common.datetime_utils import now_local
from .model import SystemSettings
from .repository import SettingsRepository


class InMemorySettingsRepository(SettingsRepository):
    def __init__(self, initial: Optional[SystemSettings] = None):
        self._lock = threading.Lock()
        self._settings = initial

    def get(self) -> Optional[SystemSettings]:
        with self._lock:
            return self._settings

    def save(self, *, first_day_of_week: int, updated_by: Optional[int] = None) -> SystemSettings:
        with self._lock:
            self._settings = SystemSettings(
                first_day_of_week=int(first_day_of_week),
                updated_by=updated_by,
                updated_at=now_local(),
            )
            return self._settings
