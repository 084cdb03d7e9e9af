from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import BookingStatus


@dataclass(frozen=True)
class Booking:
    """One employee's claim on a slot for a concrete calendar date.

    ``start_time``/``end_time`` are copied from the slot at creation so later
    slot edits do not rewrite history.
    """

    booking_id: int
    employee_id: int
    work_date: date
    time_slot_id: int
    start_time: time
    end_time: time
    status: BookingStatus
    requested_by: int
    week_start_date: date
    notes: Optional[str] = None
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    version: int = 1

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.work_date, self.start_time)

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.REJECTED

    def overlaps(self, start: time, end: time) -> bool:
        return start < self.end_time and end > self.start_time


@dataclass(frozen=True)
class CancellationEvent:
    """Emitted after an approved booking was cancelled, so others can be offered the shift."""

    booking_id: int
    employee_id: int
    work_date: date
    time_slot_id: int
    start_time: time
    end_time: time
    cancelled_by: int
    cancelled_at: datetime
