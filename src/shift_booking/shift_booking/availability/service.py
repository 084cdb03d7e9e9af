from __future__ import annotations

from datetime import date
from typing import Dict, Iterable

from ..common.validators import require_date, require_int
from ..core.exceptions import NotFoundError
from ..bookings.repository import BookingRepository
from ..time_slots.repository import TimeSlotRepository
from .model import SlotAvailability


class AvailabilityService:
    """Read-only occupancy view for rendering; approval re-checks capacity itself."""

    def __init__(self, bookings: BookingRepository, slots: TimeSlotRepository):
        self._bookings = bookings
        self._slots = slots

    def batch_availability(self, work_date, time_slot_ids: Iterable) -> Dict[int, SlotAvailability]:
        """Availability for many slots on one date using one count and one limit lookup."""

        work_date = require_date(work_date, "Date")
        ids = list(dict.fromkeys(require_int(i, "Time slot id") for i in time_slot_ids))
        if not ids:
            return {}

        counts = self._bookings.count_approved(work_date=work_date, time_slot_ids=ids)
        limits = self._slots.get_limits(ids)
        return {
            slot_id: SlotAvailability(
                time_slot_id=slot_id,
                count=counts.get(slot_id, 0),
                max_employees=limits.get(slot_id),
            )
            for slot_id in ids
        }

    def availability_for(self, time_slot_id, work_date: date) -> SlotAvailability:
        slot_id = require_int(time_slot_id, "Time slot id")
        if not self._slots.get_by_id(slot_id):
            raise NotFoundError("Time slot not found")
        return self.batch_availability(work_date, [slot_id])[slot_id]
