from __future__ import annotations

import threading
from dataclasses import replace
from datetime import time
from typing import Callable, Dict, Iterable, Optional, Sequence

from ..weeks.model import Weekday
from .model import TimeSlot, TimeSlotLimit
from .repository import TimeSlotRepository


class InMemoryTimeSlotRepository(TimeSlotRepository):
    """Process-local slot store used by the memory backend and tests."""

    def __init__(self, *, lock: Optional[threading.RLock] = None):
        self._lock = lock if lock is not None else threading.RLock()
        self._next_id = 1
        self._slots: Dict[int, TimeSlot] = {}
        self._limits: Dict[int, int] = {}
        self._is_referenced: Callable[[int], bool] = lambda _slot_id: False

    def bind_reference_check(self, is_referenced: Callable[[int], bool]) -> None:
        """Mirror the database foreign key: refuse deleting slots that bookings use."""
        self._is_referenced = is_referenced

    def list_all(self, *, day_of_week: Optional[int] = None) -> Sequence[TimeSlot]:
        with self._lock:
            slots = [s for s in self._slots.values() if day_of_week is None or s.day_of_week == int(day_of_week)]
        return sorted(slots, key=lambda s: (s.day_of_week, s.start_time, s.time_slot_id))

    def get_by_id(self, time_slot_id: int) -> Optional[TimeSlot]:
        with self._lock:
            return self._slots.get(int(time_slot_id))

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
        with self._lock:
            slot_id = self._next_id
            self._next_id += 1
            self._slots[slot_id] = TimeSlot(
                time_slot_id=slot_id,
                day_of_week=Weekday(int(day_of_week)),
                start_time=start_time,
                end_time=end_time,
                name=name,
                description=description,
            )
            if max_employees is not None:
                self._limits[slot_id] = int(max_employees)
            return slot_id

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
        with self._lock:
            current = self._slots.get(int(time_slot_id))
            if not current:
                return False
            self._slots[current.time_slot_id] = replace(
                current,
                day_of_week=Weekday(int(day_of_week)),
                start_time=start_time,
                end_time=end_time,
                name=name,
                description=description,
            )
            return True

    def delete(self, *, time_slot_id: int) -> bool:
        slot_id = int(time_slot_id)
        with self._lock:
            if slot_id not in self._slots or self._is_referenced(slot_id):
                return False
            del self._slots[slot_id]
            self._limits.pop(slot_id, None)
            return True

    def get_limit(self, time_slot_id: int) -> Optional[TimeSlotLimit]:
        with self._lock:
            value = self._limits.get(int(time_slot_id))
        return TimeSlotLimit(time_slot_id=int(time_slot_id), max_employees=value) if value is not None else None

    def get_limits(self, time_slot_ids: Iterable[int]) -> Dict[int, int]:
        with self._lock:
            return {int(i): self._limits[int(i)] for i in time_slot_ids if int(i) in self._limits}

    def max_employees_for(self, time_slot_id: int) -> Optional[int]:
        with self._lock:
            return self._limits.get(int(time_slot_id))

    def upsert_limit(self, *, time_slot_id: int, max_employees: int) -> TimeSlotLimit:
        with self._lock:
            self._limits[int(time_slot_id)] = int(max_employees)
        return TimeSlotLimit(time_slot_id=int(time_slot_id), max_employees=int(max_employees))

    def delete_limit(self, *, time_slot_id: int) -> bool:
        with self._lock:
            return self._limits.pop(int(time_slot_id), None) is not None
