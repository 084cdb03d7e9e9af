from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, time
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import BookingStatus, WriteOutcome
from .model import Booking
from .repository import BookingRepository


class InMemoryBookingRepository(BookingRepository):
    """Single-writer booking store.

    One lock guards every read-count-write sequence, which gives the same
    per slot/date serialization the MySQL repository gets from locking the
    limit row. When wired to a slot store, both share ``lock`` so slot
    deletion and booking writes cannot interleave.
    """

    def __init__(
        self,
        limit_for: Callable[[int], Optional[int]] = lambda _slot_id: None,
        *,
        slot_exists: Callable[[int], bool] = lambda _slot_id: True,
        lock: Optional[threading.RLock] = None,
    ):
        self._lock = lock if lock is not None else threading.RLock()
        self._next_id = 1
        self._rows: Dict[int, Booking] = {}
        self._limit_for = limit_for
        self._slot_exists = slot_exists

    def _approved_count(self, time_slot_id: int, work_date: date) -> int:
        return sum(
            1
            for b in self._rows.values()
            if b.time_slot_id == time_slot_id and b.work_date == work_date and b.status == BookingStatus.APPROVED
        )

    def _holds(self, key: Tuple[int, date, int], *, exclude_id: Optional[int] = None) -> bool:
        return any(
            b.is_active and b.booking_id != exclude_id and (b.employee_id, b.work_date, b.time_slot_id) == key
            for b in self._rows.values()
        )

    def _is_full(self, time_slot_id: int, work_date: date) -> bool:
        max_employees = self._limit_for(time_slot_id)
        return max_employees is not None and self._approved_count(time_slot_id, work_date) >= max_employees

    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        with self._lock:
            return self._rows.get(int(booking_id))

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
        wanted = {int(i) for i in employee_ids} if employee_ids is not None else None
        with self._lock:
            rows = [
                b
                for b in self._rows.values()
                if (start_date is None or b.work_date >= start_date)
                and (end_date is None or b.work_date <= end_date)
                and (wanted is None or b.employee_id in wanted)
                and (status is None or b.status == status)
                and (not exclude_rejected or b.status != BookingStatus.REJECTED)
            ]
        rows.sort(key=lambda b: (b.work_date, b.start_time, b.booking_id))
        return rows[: int(limit)]

    def list_pending(self, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[Booking]:
        with self._lock:
            rows = [b for b in self._rows.values() if b.status == BookingStatus.PENDING]
        rows.sort(key=lambda b: (b.created_at or datetime.min, b.booking_id))
        return rows[: int(limit)]

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
        key = (int(employee_id), work_date, int(time_slot_id))
        with self._lock:
            if not self._slot_exists(int(time_slot_id)):
                return WriteOutcome.STALE, None
            if self._holds(key):
                return WriteOutcome.DUPLICATE, None
            if approved_by is not None and self._is_full(int(time_slot_id), work_date):
                return WriteOutcome.FULL, None

            booking_id = self._next_id
            self._next_id += 1
            self._rows[booking_id] = Booking(
                booking_id=booking_id,
                employee_id=int(employee_id),
                work_date=work_date,
                time_slot_id=int(time_slot_id),
                start_time=start_time,
                end_time=end_time,
                status=BookingStatus.APPROVED if approved_by is not None else BookingStatus.PENDING,
                requested_by=int(requested_by),
                week_start_date=week_start_date,
                notes=notes,
                approved_by=approved_by,
                approval_date=approval_date,
                created_at=now_local(),
            )
            return WriteOutcome.OK, booking_id

    def approve(
        self,
        *,
        booking_id: int,
        expected_version: int,
        approved_by: int,
        approval_date: datetime,
    ) -> WriteOutcome:
        with self._lock:
            current = self._rows.get(int(booking_id))
            if not current or current.status != BookingStatus.PENDING or current.version != int(expected_version):
                return WriteOutcome.STALE
            if self._is_full(current.time_slot_id, current.work_date):
                return WriteOutcome.FULL

            self._rows[current.booking_id] = replace(
                current,
                status=BookingStatus.APPROVED,
                approved_by=int(approved_by),
                approval_date=approval_date,
                version=current.version + 1,
            )
            return WriteOutcome.OK

    def reject(
        self,
        *,
        booking_id: int,
        expected_version: int,
        approved_by: int,
        rejection_reason: str,
        decided_at: datetime,
    ) -> WriteOutcome:
        with self._lock:
            current = self._rows.get(int(booking_id))
            if not current or current.status != BookingStatus.PENDING or current.version != int(expected_version):
                return WriteOutcome.STALE

            self._rows[current.booking_id] = replace(
                current,
                status=BookingStatus.REJECTED,
                approved_by=int(approved_by),
                approval_date=decided_at,
                rejection_reason=rejection_reason,
                version=current.version + 1,
            )
            return WriteOutcome.OK

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
        with self._lock:
            current = self._rows.get(int(booking_id))
            if not current or current.status != BookingStatus.PENDING or current.version != int(expected_version):
                return WriteOutcome.STALE
            if not self._slot_exists(int(time_slot_id)):
                return WriteOutcome.STALE
            if self._holds((current.employee_id, work_date, int(time_slot_id)), exclude_id=current.booking_id):
                return WriteOutcome.DUPLICATE

            self._rows[current.booking_id] = replace(
                current,
                work_date=work_date,
                time_slot_id=int(time_slot_id),
                start_time=start_time,
                end_time=end_time,
                week_start_date=week_start_date,
                notes=notes,
                version=current.version + 1,
            )
            return WriteOutcome.OK

    def delete(self, *, booking_id: int, expected_version: int) -> WriteOutcome:
        with self._lock:
            current = self._rows.get(int(booking_id))
            if not current or current.version != int(expected_version):
                return WriteOutcome.STALE
            del self._rows[current.booking_id]
            return WriteOutcome.OK

    def count_approved(self, *, work_date: date, time_slot_ids: Iterable[int]) -> Dict[int, int]:
        wanted = {int(i) for i in time_slot_ids}
        counts: Dict[int, int] = {}
        with self._lock:
            for b in self._rows.values():
                if b.work_date == work_date and b.status == BookingStatus.APPROVED and b.time_slot_id in wanted:
                    counts[b.time_slot_id] = counts.get(b.time_slot_id, 0) + 1
        return counts

    def exists_for_slot(self, time_slot_id: int) -> bool:
        with self._lock:
            return any(b.time_slot_id == int(time_slot_id) for b in self._rows.values())
