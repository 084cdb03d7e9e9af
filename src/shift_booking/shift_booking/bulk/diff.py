"""Bulk diff: turn a desired week selection into minimal create/cancel instructions.

Pure functions only; nothing here reads storage or mutates its inputs.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Set, Tuple

from ..bookings.model import Booking
from ..common.validators import require_int
from ..core.constants import DAYS_PER_WEEK
from ..core.exceptions import ValidationError
from ..weeks.model import DisplayIndex, WeekWindow
from .model import BulkPlan, CancelInstruction, CreateInstruction

# employee_id -> day index -> slot ids
Selections = Mapping[int, Mapping[int, Iterable[int]]]
Triple = Tuple[int, DisplayIndex, int]

_SLOT_ID_COLLECTIONS = (list, tuple, set, frozenset)


def selection_triples(selections: Selections) -> Set[Triple]:
    triples: Set[Triple] = set()
    for employee_id, days in selections.items():
        emp = require_int(employee_id, "Employee id")
        if not isinstance(days, Mapping):
            raise ValidationError("Selections must map each employee to {dayIndex: [timeSlotId]}")
        for day_index, slot_ids in days.items():
            idx = require_int(day_index, "Day index")
            if idx < 0 or idx >= DAYS_PER_WEEK:
                raise ValidationError("Day index must be between 0 and 6")
            if not isinstance(slot_ids, _SLOT_ID_COLLECTIONS):
                raise ValidationError("Time slot ids for a day must be a list")
            for slot_id in slot_ids:
                triples.add((emp, DisplayIndex(idx), require_int(slot_id, "Time slot id")))
    return triples


def existing_triples(window: WeekWindow, existing_bookings: Iterable[Booking]) -> Dict[Triple, List[Booking]]:
    """Group live in-window bookings by (employee, day index, slot).

    Rejected bookings and bookings outside the window are left out, so they
    are never cancelled by a plan.
    """

    grouped: Dict[Triple, List[Booking]] = {}
    for booking in existing_bookings:
        if not booking.is_active:
            continue
        day_index = window.index_of(booking.work_date)
        if day_index is None:
            continue
        grouped.setdefault((booking.employee_id, day_index, booking.time_slot_id), []).append(booking)
    return grouped


def reconcile(window: WeekWindow, existing_bookings: Iterable[Booking], desired: Selections) -> BulkPlan:
    wanted = selection_triples(desired)
    current = existing_triples(window, existing_bookings)

    to_create = tuple(
        CreateInstruction(
            employee_id=employee_id,
            day_index=day_index,
            work_date=window.date_for(day_index),
            time_slot_id=slot_id,
        )
        for employee_id, day_index, slot_id in sorted(wanted - current.keys())
    )
    to_cancel = tuple(
        CancelInstruction(
            booking_id=booking.booking_id,
            employee_id=booking.employee_id,
            day_index=triple[1],
            work_date=booking.work_date,
            time_slot_id=booking.time_slot_id,
            status=booking.status,
        )
        for triple in sorted(current.keys() - wanted)
        for booking in sorted(current[triple], key=lambda b: b.booking_id)
    )
    return BulkPlan(to_create=to_create, to_cancel=to_cancel)


def selections_from_bookings(window: WeekWindow, bookings: Iterable[Booking]) -> Dict[int, Dict[int, Set[int]]]:
    """Inverse view: the selection matrix that the given bookings represent."""

    selections: Dict[int, Dict[int, Set[int]]] = {}
    for employee_id, day_index, slot_id in existing_triples(window, bookings):
        selections.setdefault(employee_id, {}).setdefault(int(day_index), set()).add(slot_id)
    return selections
