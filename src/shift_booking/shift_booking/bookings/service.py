from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, List, Optional, Sequence

import structlog

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_date, require_int, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import BookingStatus, WriteOutcome
from ..core.exceptions import (
    CapacityExceededError,
    ConflictError,
    DuplicateBookingError,
    NotFoundError,
    ValidationError,
)
from ..settings.service import SettingsService
from ..time_slots.model import TimeSlot
from ..time_slots.repository import TimeSlotRepository
from ..weeks.normalizer import week_start_for, weekday_of
from .model import Booking, CancellationEvent
from .repository import BookingRepository

logger = structlog.get_logger("shift_booking.bookings")

CancellationHook = Callable[[CancellationEvent], None]

_KEEP: Any = object()


class BookingService:
    """Booking ledger: the only component that mutates bookings.

    pending --approve--> approved --cancel--> (removed)
    pending --reject--> rejected
    """

    def __init__(self, bookings: BookingRepository, slots: TimeSlotRepository, settings: SettingsService):
        self._bookings = bookings
        self._slots = slots
        self._settings = settings
        self._cancellation_hooks: List[CancellationHook] = []

    def add_cancellation_hook(self, hook: CancellationHook) -> None:
        """Register a callback invoked after an approved booking is cancelled."""
        self._cancellation_hooks.append(hook)

    def get(self, booking_id: int) -> Booking:
        booking = self._bookings.get_by_id(require_int(booking_id, "Booking id"))
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def list_bookings(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        employee_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[Booking]:
        if start_date and end_date and end_date < start_date:
            raise ValidationError("End date must be on or after start date")
        try:
            status_value = BookingStatus(status) if status else None
        except ValueError:
            raise ValidationError("Status must be one of pending, approved, rejected")

        return self._bookings.list_bookings(
            start_date=start_date,
            end_date=end_date,
            employee_ids=[int(employee_id)] if employee_id is not None else None,
            status=status_value,
            limit=limit,
        )

    def list_pending(self, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[Booking]:
        return self._bookings.list_pending(limit=limit)

    def _ensure_no_overlap(
        self,
        *,
        employee_id: int,
        work_date: date,
        slot: TimeSlot,
        exclude_id: Optional[int] = None,
    ) -> None:
        # Compares stored booking times, which may predate a slot edit.
        # Same-slot clashes are left to the duplicate check.
        for other in self._bookings.list_bookings(
            start_date=work_date,
            end_date=work_date,
            employee_ids=[employee_id],
            exclude_rejected=True,
        ):
            if other.booking_id == exclude_id or other.time_slot_id == slot.time_slot_id:
                continue
            if other.overlaps(slot.start_time, slot.end_time):
                raise ValidationError(
                    f"Booking overlaps with an existing {other.status.value} booking "
                    f"from {other.start_time:%H:%M} to {other.end_time:%H:%M} on {work_date}"
                )

    def submit(
        self,
        *,
        employee_id,
        work_date,
        time_slot_id,
        requested_by: Optional[int] = None,
        notes: Optional[str] = None,
        auto_approve_by: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """Create a booking request.

        Capacity is not checked for pending requests; it is enforced when the
        booking is approved. With ``auto_approve_by`` the booking is stored as
        approved in the same capacity-checked write.
        """

        now = now or now_local()
        employee_id = require_int(employee_id, "Employee id")
        work_date = require_date(work_date, "Date")
        slot_id = require_int(time_slot_id, "Time slot id")
        notes = optional_text(notes, "Notes")

        slot = self._slots.get_by_id(slot_id)
        if not slot:
            raise NotFoundError("Time slot not found")
        if weekday_of(work_date) != slot.day_of_week:
            raise ValidationError(f"Time slot {slot.label} is not offered on {work_date.strftime('%A')}")
        self._ensure_no_overlap(employee_id=employee_id, work_date=work_date, slot=slot)

        outcome, booking_id = self._bookings.create(
            employee_id=employee_id,
            work_date=work_date,
            time_slot_id=slot.time_slot_id,
            start_time=slot.start_time,
            end_time=slot.end_time,
            week_start_date=week_start_for(work_date, self._settings.first_day_of_week()),
            requested_by=int(requested_by) if requested_by is not None else employee_id,
            notes=notes,
            approved_by=int(auto_approve_by) if auto_approve_by is not None else None,
            approval_date=now if auto_approve_by is not None else None,
        )

        if outcome == WriteOutcome.DUPLICATE:
            raise DuplicateBookingError("Employee already has a booking for this time slot on this date")
        if outcome == WriteOutcome.FULL:
            logger.info("booking_capacity_exceeded", time_slot_id=slot.time_slot_id, work_date=str(work_date))
            raise CapacityExceededError(f"Time slot {slot.label} is already at maximum capacity on {work_date}")
        if outcome != WriteOutcome.OK:
            raise ConflictError("Booking could not be saved because of a concurrent change, please retry")

        booking = self.get(booking_id)
        logger.info(
            "booking_submitted",
            booking_id=booking.booking_id,
            employee_id=employee_id,
            work_date=str(work_date),
            time_slot_id=slot.time_slot_id,
            status=booking.status.value,
        )
        return booking

    def approve(self, *, booking_id: int, approver_id: int, now: Optional[datetime] = None) -> Booking:
        now = now or now_local()
        booking = self.get(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise ValidationError(f"Cannot approve a booking that is already {booking.status.value}")

        outcome = self._bookings.approve(
            booking_id=booking.booking_id,
            expected_version=booking.version,
            approved_by=int(approver_id),
            approval_date=now,
        )
        if outcome == WriteOutcome.FULL:
            logger.info(
                "booking_capacity_exceeded",
                booking_id=booking.booking_id,
                time_slot_id=booking.time_slot_id,
                work_date=str(booking.work_date),
            )
            raise CapacityExceededError(f"Time slot is already at maximum capacity on {booking.work_date}")
        if outcome != WriteOutcome.OK:
            raise ConflictError("Booking was changed by another request, please reload and retry")

        logger.info("booking_approved", booking_id=booking.booking_id, approved_by=int(approver_id))
        return self.get(booking.booking_id)

    def reject(self, *, booking_id: int, approver_id: int, reason: Optional[str], now: Optional[datetime] = None) -> Booking:
        reason = require_non_empty(reason, "Rejection reason")
        now = now or now_local()
        booking = self.get(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise ValidationError(f"Cannot reject a booking that is already {booking.status.value}")

        outcome = self._bookings.reject(
            booking_id=booking.booking_id,
            expected_version=booking.version,
            approved_by=int(approver_id),
            rejection_reason=reason,
            decided_at=now,
        )
        if outcome != WriteOutcome.OK:
            raise ConflictError("Booking was changed by another request, please reload and retry")

        logger.info("booking_rejected", booking_id=booking.booking_id, approved_by=int(approver_id))
        return self.get(booking.booking_id)

    def update_pending(self, *, booking_id: int, work_date=None, time_slot_id=None, notes=_KEEP) -> Booking:
        """Move a pending request to another date or slot, or edit its notes.

        Decided bookings cannot be edited; an approved shift is cancelled and
        requested again. A move re-runs the submit checks and takes the
        target slot's current times.
        """

        booking = self.get(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise ValidationError(f"Only pending bookings can be changed (status: {booking.status.value})")

        new_date = require_date(work_date, "Date") if work_date is not None else booking.work_date
        slot_id = require_int(time_slot_id, "Time slot id") if time_slot_id is not None else booking.time_slot_id
        new_notes = booking.notes if notes is _KEEP else optional_text(notes, "Notes")

        start, end, week_start = booking.start_time, booking.end_time, booking.week_start_date
        if (new_date, slot_id) != (booking.work_date, booking.time_slot_id):
            slot = self._slots.get_by_id(slot_id)
            if not slot:
                raise NotFoundError("Time slot not found")
            if weekday_of(new_date) != slot.day_of_week:
                raise ValidationError(f"Time slot {slot.label} is not offered on {new_date.strftime('%A')}")
            self._ensure_no_overlap(
                employee_id=booking.employee_id, work_date=new_date, slot=slot, exclude_id=booking.booking_id
            )
            start, end = slot.start_time, slot.end_time
            week_start = week_start_for(new_date, self._settings.first_day_of_week())

        outcome = self._bookings.update_pending(
            booking_id=booking.booking_id,
            expected_version=booking.version,
            work_date=new_date,
            time_slot_id=slot_id,
            start_time=start,
            end_time=end,
            week_start_date=week_start,
            notes=new_notes,
        )
        if outcome == WriteOutcome.DUPLICATE:
            raise DuplicateBookingError("Employee already has a booking for this time slot on this date")
        if outcome != WriteOutcome.OK:
            raise ConflictError("Booking was changed by another request, please reload and retry")

        logger.info(
            "booking_updated",
            booking_id=booking.booking_id,
            work_date=str(new_date),
            time_slot_id=slot_id,
        )
        return self.get(booking.booking_id)

    def cancel(self, *, booking_id: int, actor_id: int, now: Optional[datetime] = None) -> CancellationEvent:
        """Withdraw an approved booking that has not started yet and notify hooks."""

        now = now or now_local()
        booking = self.get(booking_id)
        if booking.status != BookingStatus.APPROVED:
            raise ValidationError(f"Only approved bookings can be cancelled (status: {booking.status.value})")
        if booking.starts_at <= now:
            raise ValidationError("Cannot cancel a shift that has already started or passed")

        if self._bookings.delete(booking_id=booking.booking_id, expected_version=booking.version) != WriteOutcome.OK:
            raise ConflictError("Booking was changed by another request, please reload and retry")

        event = CancellationEvent(
            booking_id=booking.booking_id,
            employee_id=booking.employee_id,
            work_date=booking.work_date,
            time_slot_id=booking.time_slot_id,
            start_time=booking.start_time,
            end_time=booking.end_time,
            cancelled_by=int(actor_id),
            cancelled_at=now,
        )
        logger.info("booking_cancelled", booking_id=booking.booking_id, cancelled_by=int(actor_id))
        self._notify_cancelled(event)
        return event

    def _notify_cancelled(self, event: CancellationEvent) -> None:
        # Already committed; hook failures are only logged.
        for hook in self._cancellation_hooks:
            try:
                hook(event)
            except Exception:
                logger.exception("cancellation_hook_failed", booking_id=event.booking_id)
