from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

from ..bookings.model import Booking
from ..core.enums import BookingStatus
from ..weeks.model import DisplayIndex


@dataclass(frozen=True)
class CreateInstruction:
    employee_id: int
    day_index: DisplayIndex
    work_date: date
    time_slot_id: int


@dataclass(frozen=True)
class CancelInstruction:
    booking_id: int
    employee_id: int
    day_index: DisplayIndex
    work_date: date
    time_slot_id: int
    status: BookingStatus


@dataclass(frozen=True)
class BulkPlan:
    to_create: Tuple[CreateInstruction, ...] = ()
    to_cancel: Tuple[CancelInstruction, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.to_create and not self.to_cancel


@dataclass(frozen=True)
class BulkItemError:
    action: str  # "create" | "cancel"
    employee_id: int
    work_date: date
    time_slot_id: int
    code: str
    message: str
    booking_id: Optional[int] = None


@dataclass
class BulkResult:
    created: List[Booking] = field(default_factory=list)
    cancelled: List[int] = field(default_factory=list)
    errors: List[BulkItemError] = field(default_factory=list)
