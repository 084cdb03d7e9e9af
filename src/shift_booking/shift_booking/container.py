from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from .availability.service import AvailabilityService
from .bookings.memory_booking_repository import InMemoryBookingRepository
from .bookings.mysql_booking_repository import MySQLBookingRepository
from .bookings.repository import BookingRepository
from .bookings.service import BookingService
from .bulk.service import BulkScheduleService
from .database.connection import DBConfig, DatabaseConnection
from .settings.memory_settings_repository import InMemorySettingsRepository
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService
from .time_slots.memory_time_slot_repository import InMemoryTimeSlotRepository
from .time_slots.mysql_time_slot_repository import MySQLTimeSlotRepository
from .time_slots.repository import TimeSlotRepository
from .time_slots.service import TimeSlotService

BACKENDS = ("mysql", "memory")


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    settings_repo: SettingsRepository
    time_slots_repo: TimeSlotRepository
    bookings_repo: BookingRepository

    settings_service: SettingsService
    time_slot_service: TimeSlotService
    availability_service: AvailabilityService
    booking_service: BookingService
    bulk_service: BulkScheduleService


def build_container(*, db_config: Optional[dict] = None, backend: str = "mysql") -> Container:
    backend = (backend or "mysql").lower()
    if backend not in BACKENDS:
        raise ValueError(f"Unknown storage backend: {backend!r}")

    conn: Optional[DatabaseConnection] = None
    if backend == "mysql":
        conn = DatabaseConnection(DBConfig.from_dict(db_config or {}))
        settings_repo: SettingsRepository = MySQLSettingsRepository(conn)
        time_slots_repo: TimeSlotRepository = MySQLTimeSlotRepository(conn)
        bookings_repo: BookingRepository = MySQLBookingRepository(conn)
    else:
        # One lock for both stores, like the foreign key between their tables.
        lock = threading.RLock()
        memory_slots = InMemoryTimeSlotRepository(lock=lock)
        memory_bookings = InMemoryBookingRepository(
            limit_for=memory_slots.max_employees_for,
            slot_exists=lambda slot_id: memory_slots.get_by_id(slot_id) is not None,
            lock=lock,
        )
        memory_slots.bind_reference_check(memory_bookings.exists_for_slot)
        settings_repo = InMemorySettingsRepository()
        time_slots_repo = memory_slots
        bookings_repo = memory_bookings

    settings_service = SettingsService(settings_repo)
    time_slot_service = TimeSlotService(time_slots_repo, bookings_repo)
    availability_service = AvailabilityService(bookings_repo, time_slots_repo)
    booking_service = BookingService(bookings_repo, time_slots_repo, settings_service)
    bulk_service = BulkScheduleService(booking_service, bookings_repo, settings_service)

    return Container(
        conn=conn,
        settings_repo=settings_repo,
        time_slots_repo=time_slots_repo,
        bookings_repo=bookings_repo,
        settings_service=settings_service,
        time_slot_service=time_slot_service,
        availability_service=availability_service,
        booking_service=booking_service,
        bulk_service=bulk_service,
    )
