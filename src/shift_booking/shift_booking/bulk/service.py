from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping, Optional, Tuple

import structlog

from ..bookings.repository import BookingRepository
from ..bookings.service import BookingService
from ..common.datetime_utils import now_local
from ..common.validators import require_date, require_int
from ..core.constants import BULK_REMOVAL_REASON, WEEK_SCAN_LIMIT
from ..core.enums import BookingStatus
from ..core.exceptions import DomainError
from ..settings.service import SettingsService
from ..weeks.model import WeekWindow
from .diff import Selections, reconcile, selections_from_bookings
from .model import BulkItemError, BulkPlan, BulkResult, CancelInstruction, CreateInstruction

logger = structlog.get_logger("shift_booking.bulk")


class BulkScheduleService:
    def __init__(self, ledger: BookingService, bookings: BookingRepository, settings: SettingsService):
        self._ledger = ledger
        self._bookings = bookings
        self._settings = settings

    def plan(
        self,
        *,
        reference_date,
        selections: Selections,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> Tuple[WeekWindow, BulkPlan]:
        """Diff ``selections`` against stored bookings for the week containing ``reference_date``.

        ``employee_ids`` adds employees whose bookings should be cleared even
        though they have no entry in ``selections``.
        """

        window = self._settings.week_for(require_date(reference_date, "Date"))
        employees = {require_int(e, "Employee id") for e in selections.keys()}
        employees.update(require_int(e, "Employee id") for e in (employee_ids or []))
        if not employees:
            return window, BulkPlan()

        existing = self._bookings.list_bookings(
            start_date=window.start,
            end_date=window.end,
            employee_ids=employees,
            exclude_rejected=True,
            limit=WEEK_SCAN_LIMIT,
        )
        return window, reconcile(window, existing, selections)

    def current_selections(self, *, reference_date, employee_ids: Iterable[int]) -> Tuple[WeekWindow, dict]:
        """Selection matrix of the live bookings in the week, ready to edit and send back."""

        window = self._settings.week_for(require_date(reference_date, "Date"))
        employees = {require_int(e, "Employee id") for e in employee_ids}
        if not employees:
            return window, {}
        existing = self._bookings.list_bookings(
            start_date=window.start,
            end_date=window.end,
            employee_ids=employees,
            exclude_rejected=True,
            limit=WEEK_SCAN_LIMIT,
        )
        return window, selections_from_bookings(window, existing)

    def apply(
        self,
        *,
        actor_id: int,
        reference_date,
        selections: Selections,
        employee_ids: Optional[Iterable[int]] = None,
        auto_approve: bool = True,
        now: Optional[datetime] = None,
    ) -> BulkResult:
        """Apply a bulk edit: cancellations first, then creations.

        Each item is its own operation; failures are collected in the result
        instead of aborting the remaining items.
        """

        now = now or now_local()
        _, plan = self.plan(reference_date=reference_date, selections=selections, employee_ids=employee_ids)
        result = BulkResult()

        for item in plan.to_cancel:
            self._apply_cancel(item, actor_id=int(actor_id), now=now, result=result)
        for item in plan.to_create:
            self._apply_create(
                item,
                requested_by=int(actor_id),
                auto_approve_by=int(actor_id) if auto_approve else None,
                now=now,
                result=result,
            )

        logger.info(
            "bulk_plan_applied",
            actor_id=int(actor_id),
            created=len(result.created),
            cancelled=len(result.cancelled),
            errors=len(result.errors),
        )
        return result

    def request_week(
        self,
        *,
        employee_id,
        reference_date,
        assignments: Mapping[int, Iterable[int]],
        requested_by: int,
        auto_approve_by: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> BulkResult:
        """Weekly request for one employee: only missing bookings are created."""

        now = now or now_local()
        employee_id = require_int(employee_id, "Employee id")
        _, plan = self.plan(reference_date=reference_date, selections={employee_id: assignments})
        result = BulkResult()
        for item in plan.to_create:
            self._apply_create(item, requested_by=int(requested_by), auto_approve_by=auto_approve_by, now=now, result=result)
        return result

    def _apply_cancel(self, item: CancelInstruction, *, actor_id: int, now: datetime, result: BulkResult) -> None:
        try:
            if item.status == BookingStatus.PENDING:
                self._ledger.reject(booking_id=item.booking_id, approver_id=actor_id, reason=BULK_REMOVAL_REASON, now=now)
            else:
                self._ledger.cancel(booking_id=item.booking_id, actor_id=actor_id, now=now)
            result.cancelled.append(item.booking_id)
        except DomainError as exc:
            logger.info("bulk_cancel_failed", booking_id=item.booking_id, error=exc.code)
            result.errors.append(
                BulkItemError(
                    action="cancel",
                    employee_id=item.employee_id,
                    work_date=item.work_date,
                    time_slot_id=item.time_slot_id,
                    booking_id=item.booking_id,
                    code=exc.code,
                    message=str(exc),
                )
            )

    def _apply_create(
        self,
        item: CreateInstruction,
        *,
        requested_by: int,
        auto_approve_by: Optional[int],
        now: datetime,
        result: BulkResult,
    ) -> None:
        try:
            booking = self._ledger.submit(
                employee_id=item.employee_id,
                work_date=item.work_date,
                time_slot_id=item.time_slot_id,
                requested_by=requested_by,
                auto_approve_by=auto_approve_by,
                now=now,
            )
            result.created.append(booking)
        except DomainError as exc:
            logger.info(
                "bulk_create_failed",
                employee_id=item.employee_id,
                work_date=str(item.work_date),
                time_slot_id=item.time_slot_id,
                error=exc.code,
            )
            result.errors.append(
                BulkItemError(
                    action="create",
                    employee_id=item.employee_id,
                    work_date=item.work_date,
                    time_slot_id=item.time_slot_id,
                    code=exc.code,
                    message=str(exc),
                )
            )
