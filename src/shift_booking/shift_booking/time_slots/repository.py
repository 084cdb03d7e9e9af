from __future__ import annotations

from datetime import time
from typing import Dict, Iterable, Optional, Protocol, Sequence

from .model import TimeSlot, TimeSlotLimit


class TimeSlotRepository(Protocol):
    def list_all(self, *, day_of_week: Optional[int] = None) -> Sequence[TimeSlot]:
        raise NotImplementedError

    def get_by_id(self, time_slot_id: int) -> Optional[TimeSlot]:
        raise NotImplementedError

    def create(
        self,
        *,
        day_of_week: int,
        start_time: time,
        end_time: time,
        name: Optional[str] = None,
        description: Optional[str] = None,
        max_employees: Optional[int] = None,
    ) -> int:
        """Insert a slot, and its limit when ``max_employees`` is given, as one write. Returns the id."""

        raise NotImplementedError

    def update(
        self,
        *,
        time_slot_id: int,
        day_of_week: int,
        start_time: time,
        end_time: time,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def delete(self, *, time_slot_id: int) -> bool:
        """Delete a slot (and its limit). False when missing or still referenced."""

        raise NotImplementedError

    # Limits
    def get_limit(self, time_slot_id: int) -> Optional[TimeSlotLimit]:
        raise NotImplementedError

    def get_limits(self, time_slot_ids: Iterable[int]) -> Dict[int, int]:
        """Map slot id -> max_employees for slots that have a limit."""

        raise NotImplementedError

    def upsert_limit(self, *, time_slot_id: int, max_employees: int) -> TimeSlotLimit:
        raise NotImplementedError

    def delete_limit(self, *, time_slot_id: int) -> bool:
        raise NotImplementedError
