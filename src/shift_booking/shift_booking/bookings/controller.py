from __future__ import annotations

from typing import Sequence

from flask import Flask, current_app, request

from ..common.http import admin_required, current_actor, json_body, ok, to_json_value
from ..common.validators import require_date, require_int, require_positive_int
from ..container import Container
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.exceptions import AuthorizationError, ValidationError
from .model import Booking


def booking_to_json(booking: Booking) -> dict:
    return {
        "id": booking.booking_id,
        "employeeId": booking.employee_id,
        "date": to_json_value(booking.work_date),
        "timeSlotId": booking.time_slot_id,
        "startTime": to_json_value(booking.start_time),
        "endTime": to_json_value(booking.end_time),
        "status": booking.status.value,
        "requestedBy": booking.requested_by,
        "approvedBy": booking.approved_by,
        "approvalDate": to_json_value(booking.approval_date),
        "rejectionReason": booking.rejection_reason,
        "weekStartDate": to_json_value(booking.week_start_date),
        "notes": booking.notes,
        "createdAt": to_json_value(booking.created_at),
    }


def _page_limit(raw) -> int:
    if raw in (None, ""):
        return DEFAULT_LIST_LIMIT
    limit = require_positive_int(raw, "Limit")
    if limit > DEFAULT_LIST_LIMIT:
        raise ValidationError(f"Limit must be at most {DEFAULT_LIST_LIMIT}")
    return limit


def _page(bookings: Sequence[Booking], limit: int):
    """Callers fetch one row past ``limit``; its presence marks a truncated list."""
    return ok(
        [booking_to_json(b) for b in bookings[:limit]],
        meta={"limit": limit, "truncated": len(bookings) > limit},
    )


def register(app: Flask, container: Container) -> None:
    ledger = container.booking_service

    def _auto_approver(actor) -> int | None:
        if actor.is_admin and current_app.config.get("AUTO_APPROVE_ADMIN_BOOKINGS"):
            return actor.user_id
        return None

    @app.route("/api/bookings", methods=["POST"], endpoint="submit_booking")
    def submit_booking():
        actor = current_actor()
        payload = json_body()
        if payload.get("employeeId") is None or not payload.get("date") or payload.get("timeSlotId") is None:
            raise ValidationError("Please provide employee ID, date and time slot ID")

        employee_id = require_int(payload.get("employeeId"), "Employee id")
        if not actor.is_admin and employee_id != actor.user_id:
            raise AuthorizationError("You can only create bookings for yourself")

        booking = ledger.submit(
            employee_id=employee_id,
            work_date=payload.get("date"),
            time_slot_id=payload.get("timeSlotId"),
            requested_by=actor.user_id,
            notes=payload.get("notes"),
            auto_approve_by=_auto_approver(actor),
        )
        return ok(booking_to_json(booking), status=201, message="Booking request submitted successfully")

    @app.route("/api/bookings", methods=["GET"], endpoint="list_bookings")
    def list_bookings():
        actor = current_actor()
        args = request.args
        employee_id = require_int(args.get("employeeId"), "Employee id") if args.get("employeeId") else None
        if not actor.is_admin:
            if employee_id is not None and employee_id != actor.user_id:
                raise AuthorizationError("You can only view your own bookings")
            employee_id = actor.user_id

        limit = _page_limit(args.get("limit"))
        bookings = ledger.list_bookings(
            start_date=require_date(args.get("startDate"), "Start date") if args.get("startDate") else None,
            end_date=require_date(args.get("endDate"), "End date") if args.get("endDate") else None,
            employee_id=employee_id,
            status=args.get("status") or None,
            limit=limit + 1,
        )
        return _page(bookings, limit)

    @app.route("/api/bookings/pending", methods=["GET"], endpoint="pending_bookings")
    @admin_required
    def pending_bookings():
        limit = _page_limit(request.args.get("limit"))
        return _page(ledger.list_pending(limit=limit + 1), limit)

    @app.route("/api/bookings/<int:booking_id>", methods=["GET"], endpoint="get_booking")
    def get_booking(booking_id: int):
        actor = current_actor()
        booking = ledger.get(booking_id)
        if not actor.is_admin and booking.employee_id != actor.user_id:
            raise AuthorizationError("You can only view your own bookings")
        return ok(booking_to_json(booking))

    @app.route("/api/bookings/<int:booking_id>", methods=["PUT"], endpoint="update_booking")
    def update_booking(booking_id: int):
        actor = current_actor()
        booking = ledger.get(booking_id)
        if not actor.is_admin and booking.employee_id != actor.user_id:
            raise AuthorizationError("You can only update your own bookings")

        payload = json_body()
        changes = {"notes": payload.get("notes")} if "notes" in payload else {}
        updated = ledger.update_pending(
            booking_id=booking_id,
            work_date=payload.get("date"),
            time_slot_id=payload.get("timeSlotId"),
            **changes,
        )
        return ok(booking_to_json(updated), message="Booking updated successfully")

    @app.route("/api/bookings/<int:booking_id>/approve", methods=["PATCH"], endpoint="approve_booking")
    @admin_required
    def approve_booking(booking_id: int):
        booking = ledger.approve(booking_id=booking_id, approver_id=current_actor().user_id)
        return ok(booking_to_json(booking), message="Booking approved successfully")

    @app.route("/api/bookings/<int:booking_id>/reject", methods=["PATCH"], endpoint="reject_booking")
    @admin_required
    def reject_booking(booking_id: int):
        payload = json_body()
        booking = ledger.reject(
            booking_id=booking_id,
            approver_id=current_actor().user_id,
            reason=payload.get("reason"),
        )
        return ok(booking_to_json(booking), message="Booking rejected successfully")

    @app.route("/api/bookings/<int:booking_id>", methods=["DELETE"], endpoint="cancel_booking")
    def cancel_booking(booking_id: int):
        actor = current_actor()
        booking = ledger.get(booking_id)
        if not actor.is_admin and booking.employee_id != actor.user_id:
            raise AuthorizationError("You can only cancel your own bookings")
        ledger.cancel(booking_id=booking_id, actor_id=actor.user_id)
        return "", 204
