from __future__ import annotations

from datetime import time
from typing import Any, Optional, Sequence

import structlog

from ..common.validators import optional_text, require_positive_int, require_time, require_time_range, require_weekday
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import TimeSlot, TimeSlotLimit
from .repository import TimeSlotRepository

logger = structlog.get_logger("shift_booking.time_slots")

_KEEP: Any = object()


class TimeSlotService:
    def __init__(self, slots: TimeSlotRepository, bookings):
        self._slots = slots
        # Only exists_for_slot() is used.
        self._bookings = bookings

    def list_slots(self, *, day_of_week: Optional[int] = None) -> Sequence[TimeSlot]:
        if day_of_week is not None:
            day_of_week = require_weekday(day_of_week)
        return self._slots.list_all(day_of_week=day_of_week)

    def slots_for_weekday(self, weekday: int) -> Sequence[TimeSlot]:
        return self._slots.list_all(day_of_week=require_weekday(weekday))

    def get_slot(self, time_slot_id: int) -> TimeSlot:
        slot = self._slots.get_by_id(int(time_slot_id))
        if not slot:
            raise NotFoundError("Time slot not found")
        return slot

    def _ensure_no_overlap(self, *, day_of_week: int, start: time, end: time, exclude_id: Optional[int] = None) -> None:
        for other in self._slots.list_all(day_of_week=day_of_week):
            if other.time_slot_id != exclude_id and other.overlaps(start, end):
                raise ValidationError(f"Time slot overlaps with {other.label} on the same day")

    def create_slot(
        self,
        *,
        day_of_week,
        start_time,
        end_time,
        name: Optional[str] = None,
        description: Optional[str] = None,
        max_employees=None,
    ) -> TimeSlot:
        """Create a slot, optionally with its capacity limit; nothing is stored unless every field is valid."""

        day = require_weekday(day_of_week)
        start = require_time(start_time, "Start time")
        end = require_time(end_time, "End time")
        require_time_range(start, end)
        limit = require_positive_int(max_employees, "Maximum employees") if max_employees is not None else None
        self._ensure_no_overlap(day_of_week=day, start=start, end=end)

        slot_id = self._slots.create(
            day_of_week=day,
            start_time=start,
            end_time=end,
            name=optional_text(name, "Name"),
            description=optional_text(description, "Description"),
            max_employees=limit,
        )
        logger.info("time_slot_created", time_slot_id=slot_id, day_of_week=day, max_employees=limit)
        return self.get_slot(slot_id)

    def update_slot(
        self,
        *,
        time_slot_id: int,
        day_of_week=None,
        start_time=None,
        end_time=None,
        name=_KEEP,
        description=_KEEP,
    ) -> TimeSlot:
        current = self.get_slot(time_slot_id)

        day = require_weekday(day_of_week) if day_of_week is not None else int(current.day_of_week)
        start = require_time(start_time, "Start time") if start_time is not None else current.start_time
        end = require_time(end_time, "End time") if end_time is not None else current.end_time
        require_time_range(start, end)

        if (day, start, end) != (int(current.day_of_week), current.start_time, current.end_time):
            self._ensure_no_overlap(day_of_week=day, start=start, end=end, exclude_id=current.time_slot_id)

        ok = self._slots.update(
            time_slot_id=current.time_slot_id,
            day_of_week=day,
            start_time=start,
            end_time=end,
            name=current.name if name is _KEEP else optional_text(name, "Name"),
            description=current.description if description is _KEEP else optional_text(description, "Description"),
        )
        if not ok:
            raise NotFoundError("Time slot not found")
        return self.get_slot(current.time_slot_id)

    def delete_slot(self, *, time_slot_id: int) -> None:
        slot = self.get_slot(time_slot_id)
        if self._bookings.exists_for_slot(slot.time_slot_id):
            raise ValidationError("Cannot delete time slot that is being used by bookings")
        if not self._slots.delete(time_slot_id=slot.time_slot_id):
            raise ConflictError("Time slot changed while deleting, please retry")
        logger.info("time_slot_deleted", time_slot_id=slot.time_slot_id)

    def limit_for(self, time_slot_id: int) -> Optional[int]:
        """Max approved employees for the slot; None means unlimited."""
        slot = self.get_slot(time_slot_id)
        limit = self._slots.get_limit(slot.time_slot_id)
        return limit.max_employees if limit else None

    def set_limit(self, *, time_slot_id: int, max_employees) -> Optional[TimeSlotLimit]:
        """Create or update the slot limit. ``None`` removes it (unlimited)."""
        if max_employees is None:
            self.clear_limit(time_slot_id=time_slot_id)
            return None

        slot = self.get_slot(time_slot_id)
        value = require_positive_int(max_employees, "Maximum employees")
        limit = self._slots.upsert_limit(time_slot_id=slot.time_slot_id, max_employees=value)
        logger.info("time_slot_limit_set", time_slot_id=slot.time_slot_id, max_employees=value)
        return limit

    def clear_limit(self, *, time_slot_id: int) -> None:
        slot = self.get_slot(time_slot_id)
        self._slots.delete_limit(time_slot_id=slot.time_slot_id)
        logger.info("time_slot_limit_cleared", time_slot_id=slot.time_slot_id)
