from __future__ import annotations

from datetime import date, time

import pytest

from src.shift_booking.shift_booking.core.exceptions import NotFoundError, ValidationError


def test_create_and_list_slots_sorted_by_start(container):
    service = container.time_slot_service
    late = service.create_slot(day_of_week=1, start_time="13:00", end_time="17:00", name="Afternoon")
    early = service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00", name="Morning")
    service.create_slot(day_of_week=2, start_time="08:00", end_time="12:00")

    monday = service.list_slots(day_of_week=1)

    assert [s.time_slot_id for s in monday] == [early.time_slot_id, late.time_slot_id]
    assert early.start_time == time(8, 0)
    assert len(service.list_slots()) == 3
    assert [s.day_of_week for s in service.slots_for_weekday(2)] == [2]


def test_create_rejects_bad_range_and_overlap(container):
    service = container.time_slot_service
    service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00")

    with pytest.raises(ValidationError):
        service.create_slot(day_of_week=1, start_time="12:00", end_time="11:00")
    with pytest.raises(ValidationError):
        service.create_slot(day_of_week=1, start_time="11:00", end_time="13:00")
    with pytest.raises(ValidationError):
        service.create_slot(day_of_week=7, start_time="08:00", end_time="09:00")

    touching = service.create_slot(day_of_week=1, start_time="12:00", end_time="16:00")
    assert touching.start_time == time(12, 0)


def test_update_keeps_unspecified_fields(container):
    service = container.time_slot_service
    slot = service.create_slot(day_of_week=3, start_time="08:00", end_time="12:00", name="Morning", description="Front desk")

    updated = service.update_slot(time_slot_id=slot.time_slot_id, end_time="11:30")

    assert updated.end_time == time(11, 30)
    assert updated.name == "Morning"
    assert updated.description == "Front desk"

    cleared = service.update_slot(time_slot_id=slot.time_slot_id, description="")
    assert cleared.description is None


def test_update_overlap_ignores_the_slot_itself(container):
    service = container.time_slot_service
    slot = service.create_slot(day_of_week=3, start_time="08:00", end_time="12:00")
    service.create_slot(day_of_week=3, start_time="13:00", end_time="17:00")

    service.update_slot(time_slot_id=slot.time_slot_id, start_time="09:00")
    with pytest.raises(ValidationError):
        service.update_slot(time_slot_id=slot.time_slot_id, end_time="14:00")


def test_limit_set_and_clear(container):
    service = container.time_slot_service
    slot = service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00")

    assert service.limit_for(slot.time_slot_id) is None
    service.set_limit(time_slot_id=slot.time_slot_id, max_employees=2)
    assert service.limit_for(slot.time_slot_id) == 2
    service.set_limit(time_slot_id=slot.time_slot_id, max_employees=None)
    assert service.limit_for(slot.time_slot_id) is None

    for bad in (0, -3, "two"):
        with pytest.raises(ValidationError):
            service.set_limit(time_slot_id=slot.time_slot_id, max_employees=bad)


def test_delete_refuses_slot_with_bookings(container, fixed_now):
    service = container.time_slot_service
    used = service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00")
    unused = service.create_slot(day_of_week=2, start_time="08:00", end_time="12:00")
    container.booking_service.submit(
        employee_id=5, work_date=date(2026, 3, 2), time_slot_id=used.time_slot_id, now=fixed_now
    )

    with pytest.raises(ValidationError):
        service.delete_slot(time_slot_id=used.time_slot_id)

    service.delete_slot(time_slot_id=unused.time_slot_id)
    with pytest.raises(NotFoundError):
        service.get_slot(unused.time_slot_id)


def test_create_with_limit_stores_both_or_nothing(container):
    service = container.time_slot_service

    for bad in (0, -1, "x"):
        with pytest.raises(ValidationError):
            service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00", max_employees=bad)
    assert service.list_slots() == []

    slot = service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00", max_employees=3)
    assert service.limit_for(slot.time_slot_id) == 3


def test_text_fields_must_be_strings(container):
    service = container.time_slot_service

    with pytest.raises(ValidationError):
        service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00", name=42)
    assert service.list_slots() == []

    slot = service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00", name="  Morning ")
    assert slot.name == "Morning"
    with pytest.raises(ValidationError):
        service.update_slot(time_slot_id=slot.time_slot_id, description=["front", "desk"])


def test_memory_store_refuses_deleting_referenced_slot(container, fixed_now):
    slot = container.time_slot_service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00")
    container.booking_service.submit(
        employee_id=5, work_date=date(2026, 3, 2), time_slot_id=slot.time_slot_id, now=fixed_now
    )

    assert container.time_slots_repo.delete(time_slot_id=slot.time_slot_id) is False
    assert container.time_slots_repo.get_by_id(slot.time_slot_id) is not None
