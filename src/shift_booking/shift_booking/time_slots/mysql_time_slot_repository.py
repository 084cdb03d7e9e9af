from __future__ import annotations

from datetime import time
from typing import Dict, Iterable, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, db_transaction, fetchall, fetchone, normalize_mysql_time, placeholders
from ..weeks.model import Weekday
from .model import TimeSlot, TimeSlotLimit
from .repository import TimeSlotRepository

_SLOT_COLUMNS = "time_slot_id, day_of_week, start_time, end_time, name, description"


def _to_slot(r: dict) -> TimeSlot:
    return TimeSlot(
        time_slot_id=int(r["time_slot_id"]),
        day_of_week=Weekday(int(r["day_of_week"])),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        name=r.get("name"),
        description=r.get("description"),
    )


class MySQLTimeSlotRepository(TimeSlotRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self, *, day_of_week: Optional[int] = None) -> Sequence[TimeSlot]:
        clauses = ["1=1"]
        params: list[object] = []
        if day_of_week is not None:
            clauses.append("day_of_week=%s")
            params.append(int(day_of_week))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SLOT_COLUMNS}
                FROM time_slots
                WHERE {where}
                ORDER BY day_of_week, start_time, time_slot_id
                """,
                tuple(params),
            )
            return [_to_slot(r) for r in fetchall(cur)]

    def get_by_id(self, time_slot_id: int) -> Optional[TimeSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SLOT_COLUMNS} FROM time_slots WHERE time_slot_id=%s",
                (int(time_slot_id),),
            )
            r = fetchone(cur)
            return _to_slot(r) if r else None

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
        with db_transaction(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_slots(day_of_week, start_time, end_time, name, description)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(day_of_week), start_time, end_time, name, description),
            )
            slot_id = int(cur.lastrowid)
            if max_employees is not None:
                cur.execute(
                    "INSERT INTO time_slot_limits(time_slot_id, max_employees) VALUES(%s,%s)",
                    (slot_id, int(max_employees)),
                )
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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_slots
                SET day_of_week=%s, start_time=%s, end_time=%s, name=%s, description=%s
                WHERE time_slot_id=%s
                """,
                (int(day_of_week), start_time, end_time, name, description, int(time_slot_id)),
            )
            # rowcount is 0 when nothing changed; treat an existing row as success.
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM time_slots WHERE time_slot_id=%s", (int(time_slot_id),))
            return fetchone(cur) is not None

    def delete(self, *, time_slot_id: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM time_slots WHERE time_slot_id=%s", (int(time_slot_id),))
                return cur.rowcount > 0
        except IntegrityError:
            # fk_booking_slot (ON DELETE RESTRICT): bookings still reference the slot.
            return False

    def get_limit(self, time_slot_id: int) -> Optional[TimeSlotLimit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT time_slot_id, max_employees FROM time_slot_limits WHERE time_slot_id=%s",
                (int(time_slot_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return TimeSlotLimit(time_slot_id=int(r["time_slot_id"]), max_employees=int(r["max_employees"]))

    def get_limits(self, time_slot_ids: Iterable[int]) -> Dict[int, int]:
        ids = sorted({int(i) for i in time_slot_ids})
        if not ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT time_slot_id, max_employees
                FROM time_slot_limits
                WHERE time_slot_id IN ({placeholders(len(ids))})
                """,
                tuple(ids),
            )
            return {int(r["time_slot_id"]): int(r["max_employees"]) for r in fetchall(cur)}

    def upsert_limit(self, *, time_slot_id: int, max_employees: int) -> TimeSlotLimit:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_slot_limits(time_slot_id, max_employees)
                VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE max_employees=VALUES(max_employees)
                """,
                (int(time_slot_id), int(max_employees)),
            )
        return TimeSlotLimit(time_slot_id=int(time_slot_id), max_employees=int(max_employees))

    def delete_limit(self, *, time_slot_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM time_slot_limits WHERE time_slot_id=%s", (int(time_slot_id),))
            return cur.rowcount > 0
