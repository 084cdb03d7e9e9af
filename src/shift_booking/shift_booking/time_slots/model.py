from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..weeks.model import Weekday


@dataclass(frozen=True)
class TimeSlot:
    """Recurring time window for one calendar weekday."""

    time_slot_id: int
    day_of_week: Weekday
    start_time: time
    end_time: time
    name: Optional[str] = None
    description: Optional[str] = None

    @property
    def label(self) -> str:
        hours = f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"
        return f"{self.name} ({hours})" if self.name else hours

    def overlaps(self, start: time, end: time) -> bool:
        # Slots that only touch at an endpoint do not overlap.
        return start < self.end_time and end > self.start_time


@dataclass(frozen=True)
class TimeSlotLimit:
    time_slot_id: int
    max_employees: int
