from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, Iterable, Optional, Protocol, Sequence, Tuple

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import BookingStatus, WriteOutcome
from .model import Booking


class BookingRepository(Protocol):
    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        raise NotImplementedError

    def list_bookings(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        employee_ids: Optional[Iterable[int]] = None,
        status: Optional[BookingStatus] = None,
        exclude_rejected: bool = False,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[Booking]:
        """Bookings ordered by date, start time and id."""

        raise NotImplementedError

    def list_pending(self, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[Booking]:
        """Pending bookings, oldest request first."""

        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        work_date: date,
        time_slot_id: int,
        start_time: time,
        end_time: time,
        week_start_date: date,
        requested_by: int,
        notes: Optional[str] = None,
        approved_by: Optional[int] = None,
        approval_date: Optional[datetime] = None,
    ) -> Tuple[WriteOutcome, Optional[int]]:
        """Insert a booking.

        Pending unless ``approved_by`` is given; an approved insert is checked
        against the slot limit atomically. Returns (OK, id), (DUPLICATE, None)
        when a non-rejected booking exists for the same employee/date/slot,
        or (FULL, None).
        """

        raise NotImplementedError

    def approve(
        self,
        *,
        booking_id: int,
        expected_version: int,
        approved_by: int,
        approval_date: datetime,
    ) -> WriteOutcome:
        """Atomically re-count approved bookings for the slot/date and approve.

        OK, FULL when the limit is reached, STALE when the booking is no longer
        pending at ``expected_version``.
        """

        raise NotImplementedError

    def reject(
        self,
        *,
        booking_id: int,
        expected_version: int,
        approved_by: int,
        rejection_reason: str,
        decided_at: datetime,
    ) -> WriteOutcome:
        raise NotImplementedError

    def update_pending(
        self,
        *,
        booking_id: int,
        expected_version: int,
        work_date: date,
        time_slot_id: int,
        start_time: time,
        end_time: time,
        week_start_date: date,
        notes: Optional[str] = None,
    ) -> WriteOutcome:
        """Move a pending booking to another date/slot or change its notes.

        OK, DUPLICATE when the employee already holds the target date/slot,
        STALE when the booking is no longer pending at ``expected_version``.
        """

        raise NotImplementedError

    def delete(self, *, booking_id: int, expected_version: int) -> WriteOutcome:
        raise NotImplementedError

    def count_approved(self, *, work_date: date, time_slot_ids: Iterable[int]) -> Dict[int, int]:
        """Approved booking counts per slot for one date, in a single query."""

        raise NotImplementedError

    def exists_for_slot(self, time_slot_id: int) -> bool:
        raise NotImplementedError
