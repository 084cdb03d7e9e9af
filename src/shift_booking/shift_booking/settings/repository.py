from __future__ import annotations

from typing import Optional, Protocol

from .model import SystemSettings


class SettingsRepository(Protocol):
    def get(self) -> Optional[SystemSettings]:
        """Return the stored settings row, or None when never saved."""

        raise NotImplementedError

    def save(self, *, first_day_of_week: int, updated_by: Optional[int] = None) -> SystemSettings:
        raise NotImplementedError
