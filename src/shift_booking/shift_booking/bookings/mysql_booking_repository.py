from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, Iterable, Optional, Sequence, Tuple

from mysql.connector.errors import DatabaseError, IntegrityError

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import BookingStatus, WriteOutcome
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    db_transaction,
    fetchall,
    fetchone,
    is_duplicate_key,
    is_lock_conflict,
    is_missing_reference,
    normalize_mysql_time,
    placeholders,
)
from .model import Booking
from .repository import BookingRepository

_BOOKING_COLUMNS = """
    booking_id, employee_id, work_date, time_slot_id, start_time, end_time,
    status, requested_by, approved_by, approval_date, rejection_reason,
    week_start_date, notes, created_at, version
"""


def _to_booking(r: dict) -> Booking:
    return Booking(
        booking_id=int(r["booking_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        time_slot_id=int(r["time_slot_id"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        status=BookingStatus(r["status"]),
        requested_by=int(r["requested_by"]),
        week_start_date=r["week_start_date"],
        notes=r.get("notes"),
        approved_by=r.get("approved_by"),
        approval_date=r.get("approval_date"),
        rejection_reason=r.get("rejection_reason"),
        created_at=r.get("created_at"),
        version=int(r["version"]),
    )


def _lock_limit(cur, time_slot_id: int) -> Optional[int]:
    """Lock the slot's limit row; it serializes capacity checks for that slot.

    Returns max_employees, or None when the slot is unlimited.
    """

    cur.execute(
        "SELECT max_employees FROM time_slot_limits WHERE time_slot_id=%s FOR UPDATE",
        (int(time_slot_id),),
    )
    r = fetchone(cur)
    return int(r["max_employees"]) if r else None


def _approved_count(cur, time_slot_id: int, work_date: date) -> int:
    cur.execute(
        """
        SELECT COUNT(*) AS total
        FROM bookings
        WHERE time_slot_id=%s AND work_date=%s AND status=%s
        """,
        (int(time_slot_id), work_date, BookingStatus.APPROVED.value),
    )
    r = fetchone(cur)
    return int(r["total"]) if r else 0


class MySQLBookingRepository(BookingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_BOOKING_COLUMNS} FROM bookings WHERE booking_id=%s", (int(booking_id),))
            r = fetchone(cur)
            return _to_booking(r) if r else None

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
        clauses = ["1=1"]
        params: list[object] = []

        if start_date is not None:
            clauses.append("work_date>=%s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date<=%s")
            params.append(end_date)
        if employee_ids is not None:
            ids = sorted({int(i) for i in employee_ids})
            if not ids:
                return []
            clauses.append(f"employee_id IN ({placeholders(len(ids))})")
            params.extend(ids)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if exclude_rejected:
            clauses.append("status<>%s")
            params.append(BookingStatus.REJECTED.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_BOOKING_COLUMNS}
                FROM bookings
                WHERE {where}
                ORDER BY work_date ASC, start_time ASC, booking_id ASC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_booking(r) for r in fetchall(cur)]

    def list_pending(self, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[Booking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_BOOKING_COLUMNS}
                FROM bookings
                WHERE status=%s
                ORDER BY created_at ASC, booking_id ASC
                LIMIT %s
                """,
                (BookingStatus.PENDING.value, int(limit)),
            )
            return [_to_booking(r) for r in fetchall(cur)]

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
        status = BookingStatus.APPROVED if approved_by is not None else BookingStatus.PENDING

        try:
            with db_transaction(self._conn_factory) as (_, cur):
                if status == BookingStatus.APPROVED:
                    max_employees = _lock_limit(cur, time_slot_id)
                    if max_employees is not None and _approved_count(cur, time_slot_id, work_date) >= max_employees:
                        return WriteOutcome.FULL, None

                cur.execute(
                    """
                    INSERT INTO bookings(
                        employee_id, work_date, time_slot_id, start_time, end_time, status,
                        requested_by, approved_by, approval_date, week_start_date, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(employee_id),
                        work_date,
                        int(time_slot_id),
                        start_time,
                        end_time,
                        status.value,
                        int(requested_by),
                        approved_by,
                        approval_date,
                        week_start_date,
                        notes,
                    ),
                )
                return WriteOutcome.OK, int(cur.lastrowid)
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                return WriteOutcome.DUPLICATE, None
            if is_missing_reference(exc):
                # fk_booking_slot: the slot was deleted after it was read.
                return WriteOutcome.STALE, None
            raise
        except DatabaseError as exc:
            if is_lock_conflict(exc):
                return WriteOutcome.STALE, None
            raise

    def approve(
        self,
        *,
        booking_id: int,
        expected_version: int,
        approved_by: int,
        approval_date: datetime,
    ) -> WriteOutcome:
        try:
            with db_transaction(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    SELECT time_slot_id, work_date, status, version
                    FROM bookings
                    WHERE booking_id=%s
                    FOR UPDATE
                    """,
                    (int(booking_id),),
                )
                r = fetchone(cur)
                if (
                    not r
                    or r["status"] != BookingStatus.PENDING.value
                    or int(r["version"]) != int(expected_version)
                ):
                    return WriteOutcome.STALE

                max_employees = _lock_limit(cur, r["time_slot_id"])
                if max_employees is not None and _approved_count(cur, r["time_slot_id"], r["work_date"]) >= max_employees:
                    return WriteOutcome.FULL

                cur.execute(
                    """
                    UPDATE bookings
                    SET status=%s, approved_by=%s, approval_date=%s, version=version+1
                    WHERE booking_id=%s AND version=%s
                    """,
                    (
                        BookingStatus.APPROVED.value,
                        int(approved_by),
                        approval_date,
                        int(booking_id),
                        int(expected_version),
                    ),
                )
                return WriteOutcome.OK if cur.rowcount > 0 else WriteOutcome.STALE
        except DatabaseError as exc:
            if is_lock_conflict(exc):
                return WriteOutcome.STALE
            raise

    def reject(
        self,
        *,
        booking_id: int,
        expected_version: int,
        approved_by: int,
        rejection_reason: str,
        decided_at: datetime,
    ) -> WriteOutcome:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE bookings
                SET status=%s, approved_by=%s, approval_date=%s, rejection_reason=%s, version=version+1
                WHERE booking_id=%s AND status=%s AND version=%s
                """,
                (
                    BookingStatus.REJECTED.value,
                    int(approved_by),
                    decided_at,
                    rejection_reason,
                    int(booking_id),
                    BookingStatus.PENDING.value,
                    int(expected_version),
                ),
            )
            return WriteOutcome.OK if cur.rowcount > 0 else WriteOutcome.STALE

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE bookings
                    SET work_date=%s, time_slot_id=%s, start_time=%s, end_time=%s,
                        week_start_date=%s, notes=%s, version=version+1
                    WHERE booking_id=%s AND status=%s AND version=%s
                    """,
                    (
                        work_date,
                        int(time_slot_id),
                        start_time,
                        end_time,
                        week_start_date,
                        notes,
                        int(booking_id),
                        BookingStatus.PENDING.value,
                        int(expected_version),
                    ),
                )
                return WriteOutcome.OK if cur.rowcount > 0 else WriteOutcome.STALE
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                return WriteOutcome.DUPLICATE
            if is_missing_reference(exc):
                return WriteOutcome.STALE
            raise
        except DatabaseError as exc:
            if is_lock_conflict(exc):
                return WriteOutcome.STALE
            raise

    def delete(self, *, booking_id: int, expected_version: int) -> WriteOutcome:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM bookings WHERE booking_id=%s AND version=%s",
                (int(booking_id), int(expected_version)),
            )
            return WriteOutcome.OK if cur.rowcount > 0 else WriteOutcome.STALE

    def count_approved(self, *, work_date: date, time_slot_ids: Iterable[int]) -> Dict[int, int]:
        ids = sorted({int(i) for i in time_slot_ids})
        if not ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT time_slot_id, COUNT(*) AS total
                FROM bookings
                WHERE work_date=%s AND status=%s AND time_slot_id IN ({placeholders(len(ids))})
                GROUP BY time_slot_id
                """,
                tuple([work_date, BookingStatus.APPROVED.value] + ids),
            )
            return {int(r["time_slot_id"]): int(r["total"]) for r in fetchall(cur)}

    def exists_for_slot(self, time_slot_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM bookings WHERE time_slot_id=%s LIMIT 1", (int(time_slot_id),))
            return fetchone(cur) is not None
