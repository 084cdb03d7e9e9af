from __future__ import annotations

from datetime import date

import pytest

from src.shift_booking.shift_booking.core.constants import BULK_REMOVAL_REASON
from src.shift_booking.shift_booking.core.enums import BookingStatus
from src.shift_booking.shift_booking.core.exceptions import NotFoundError

THURSDAY = date(2026, 3, 5)
ADMIN_ID = 1


@pytest.fixture
def slots(container):
    # Monday-first week: day index 0 = 2026-03-02 ... 6 = 2026-03-08
    container.settings_service.update_first_day_of_week(first_day_of_week=1)
    service = container.time_slot_service
    return {
        "mon_am": service.create_slot(day_of_week=1, start_time="08:00", end_time="12:00"),
        "tue_am": service.create_slot(day_of_week=2, start_time="08:00", end_time="12:00"),
        "wed_am": service.create_slot(day_of_week=3, start_time="08:00", end_time="12:00"),
    }


def test_apply_creates_approved_bookings(container, slots, fixed_now):
    result = container.bulk_service.apply(
        actor_id=ADMIN_ID,
        reference_date=THURSDAY,
        selections={5: {0: [slots["mon_am"].time_slot_id], 1: [slots["tue_am"].time_slot_id]}},
        now=fixed_now,
    )

    assert [(b.work_date, b.status) for b in result.created] == [
        (date(2026, 3, 2), BookingStatus.APPROVED),
        (date(2026, 3, 3), BookingStatus.APPROVED),
    ]
    assert result.cancelled == []
    assert result.errors == []


def test_apply_cancels_removed_and_rejects_removed_pending(container, slots, fixed_now):
    ledger = container.booking_service
    approved = ledger.submit(
        employee_id=5, work_date=date(2026, 3, 2), time_slot_id=slots["mon_am"].time_slot_id,
        auto_approve_by=ADMIN_ID, now=fixed_now,
    )
    pending = ledger.submit(
        employee_id=5, work_date=date(2026, 3, 3), time_slot_id=slots["tue_am"].time_slot_id, now=fixed_now
    )

    result = container.bulk_service.apply(
        actor_id=ADMIN_ID,
        reference_date=THURSDAY,
        selections={5: {2: [slots["wed_am"].time_slot_id]}},
        now=fixed_now,
    )

    assert sorted(result.cancelled) == sorted([approved.booking_id, pending.booking_id])
    assert [b.work_date for b in result.created] == [date(2026, 3, 4)]
    with pytest.raises(NotFoundError):
        ledger.get(approved.booking_id)
    removed = ledger.get(pending.booking_id)
    assert removed.status == BookingStatus.REJECTED
    assert removed.rejection_reason == BULK_REMOVAL_REASON


def test_employee_ids_clear_employees_without_selections(container, slots, fixed_now):
    booking = container.booking_service.submit(
        employee_id=6, work_date=date(2026, 3, 2), time_slot_id=slots["mon_am"].time_slot_id,
        auto_approve_by=ADMIN_ID, now=fixed_now,
    )

    _, plan = container.bulk_service.plan(reference_date=THURSDAY, selections={}, employee_ids=[6])

    assert [c.booking_id for c in plan.to_cancel] == [booking.booking_id]


def test_item_failures_are_collected(container, slots, fixed_now):
    container.time_slot_service.set_limit(time_slot_id=slots["mon_am"].time_slot_id, max_employees=1)

    result = container.bulk_service.apply(
        actor_id=ADMIN_ID,
        reference_date=THURSDAY,
        selections={
            5: {0: [slots["mon_am"].time_slot_id]},
            6: {0: [slots["mon_am"].time_slot_id], 1: [slots["tue_am"].time_slot_id]},
            7: {0: [slots["tue_am"].time_slot_id]},
        },
        now=fixed_now,
    )

    assert len(result.created) == 2
    codes = sorted(e.code for e in result.errors)
    assert codes == ["capacity_exceeded", "validation_error"]


def test_apply_twice_is_idempotent(container, slots, fixed_now):
    selections = {5: {0: [slots["mon_am"].time_slot_id]}}
    container.bulk_service.apply(actor_id=ADMIN_ID, reference_date=THURSDAY, selections=selections, now=fixed_now)

    _, plan = container.bulk_service.plan(reference_date=THURSDAY, selections=selections)
    window, current = container.bulk_service.current_selections(reference_date=THURSDAY, employee_ids=[5])

    assert plan.is_empty
    assert window.start == date(2026, 3, 2)
    assert current == {5: {0: {slots["mon_am"].time_slot_id}}}


def test_request_week_only_creates(container, slots, fixed_now):
    ledger = container.booking_service
    existing = ledger.submit(
        employee_id=5, work_date=date(2026, 3, 2), time_slot_id=slots["mon_am"].time_slot_id, now=fixed_now
    )

    result = container.bulk_service.request_week(
        employee_id=5,
        reference_date=THURSDAY,
        assignments={1: [slots["tue_am"].time_slot_id]},
        requested_by=5,
        now=fixed_now,
    )

    assert [b.status for b in result.created] == [BookingStatus.PENDING]
    assert result.cancelled == []
    assert ledger.get(existing.booking_id).status == BookingStatus.PENDING
