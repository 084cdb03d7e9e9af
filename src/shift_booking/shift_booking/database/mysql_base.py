from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional

from mysql.connector import errorcode
from mysql.connector.errors import DatabaseError, IntegrityError

from ..common.datetime_utils import parse_time_of_day
from .connection import DatabaseConnection

SECONDS_PER_DAY = 24 * 60 * 60


@contextmanager
def _session(conn_factory: DatabaseConnection, *, dictionary: bool, isolation_level: Optional[str]):
    conn = conn_factory.connect()
    cur = None
    try:
        if isolation_level:
            conn.start_transaction(isolation_level=isolation_level)
        cur = conn.cursor(dictionary=dictionary)
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if cur is not None:
            cur.close()
        conn.close()


def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Cursor whose work is committed when the block exits cleanly and rolled back otherwise."""
    return _session(conn_factory, dictionary=dictionary, isolation_level=None)


def db_transaction(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Explicit READ COMMITTED transaction for lock-then-write sequences (SELECT ... FOR UPDATE)."""
    return _session(conn_factory, dictionary=dictionary, isolation_level="READ COMMITTED")


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def is_duplicate_key(exc: IntegrityError) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def is_missing_reference(exc: IntegrityError) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_NO_REFERENCED_ROW_2


def is_lock_conflict(exc: DatabaseError) -> bool:
    """Deadlock victim (1213) or lock wait timeout (1205)."""
    return getattr(exc, "errno", None) in (errorcode.ER_LOCK_DEADLOCK, errorcode.ER_LOCK_WAIT_TIMEOUT)


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns come back as time, timedelta or text depending on the connector build."""

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % SECONDS_PER_DAY
        return (datetime.min + timedelta(seconds=seconds)).time()
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("ascii")
    if isinstance(value, str):
        return parse_time_of_day(value)
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")


def placeholders(count: int) -> str:
    return ",".join(["%s"] * count)
