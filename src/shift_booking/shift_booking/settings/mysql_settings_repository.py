from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import SystemSettings
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> Optional[SystemSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT first_day_of_week, updated_by, updated_at
                FROM system_settings
                WHERE settings_id=1
                """
            )
            r = fetchone(cur)
            if not r:
                return None
            return SystemSettings(
                first_day_of_week=int(r["first_day_of_week"]),
                updated_by=r.get("updated_by"),
                updated_at=r.get("updated_at"),
            )

    def save(self, *, first_day_of_week: int, updated_by: Optional[int] = None) -> SystemSettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO system_settings(settings_id, first_day_of_week, updated_by)
                VALUES(1,%s,%s)
                ON DUPLICATE KEY UPDATE first_day_of_week=VALUES(first_day_of_week), updated_by=VALUES(updated_by)
                """,
                (int(first_day_of_week), updated_by),
            )
        saved = self.get()
        return saved if saved else SystemSettings(first_day_of_week=int(first_day_of_week), updated_by=updated_by)
