from __future__ import annotations

from flask import Flask, current_app, request

from ..bookings.controller import booking_to_json
from ..common.http import admin_required, current_actor, json_body, ok, to_json_value
from ..common.validators import require_int
from ..container import Container
from ..core.exceptions import AuthorizationError, ValidationError
from .model import BulkPlan, BulkResult


def plan_to_json(plan: BulkPlan) -> dict:
    return {
        "toCreate": [
            {
                "employeeId": item.employee_id,
                "dayIndex": int(item.day_index),
                "date": to_json_value(item.work_date),
                "timeSlotId": item.time_slot_id,
            }
            for item in plan.to_create
        ],
        "toCancel": [
            {
                "bookingId": item.booking_id,
                "employeeId": item.employee_id,
                "dayIndex": int(item.day_index),
                "date": to_json_value(item.work_date),
                "timeSlotId": item.time_slot_id,
                "status": item.status.value,
            }
            for item in plan.to_cancel
        ],
    }


def result_to_json(result: BulkResult) -> dict:
    return {
        "created": [booking_to_json(b) for b in result.created],
        "cancelled": list(result.cancelled),
        "errors": [
            {
                "action": e.action,
                "employeeId": e.employee_id,
                "date": to_json_value(e.work_date),
                "timeSlotId": e.time_slot_id,
                "bookingId": e.booking_id,
                "error": e.code,
                "message": e.message,
            }
            for e in result.errors
        ]
        or None,
    }


def _selections(payload: dict) -> dict:
    selections = payload.get("selections")
    if not isinstance(selections, dict) or not all(isinstance(days, dict) for days in selections.values()):
        raise ValidationError("selections must map employee IDs to {dayIndex: [timeSlotId]} objects")
    return selections


def register(app: Flask, container: Container) -> None:
    bulk = container.bulk_service

    @app.route("/api/bookings/bulk/selections", methods=["GET"], endpoint="current_bulk_selections")
    @admin_required
    def current_bulk_selections():
        raw_ids = [part for part in (request.args.get("employeeIds") or "").split(",") if part.strip()]
        window, selections = bulk.current_selections(reference_date=request.args.get("date"), employee_ids=raw_ids)
        return ok(
            {
                "weekDates": [to_json_value(d) for d in window],
                "selections": {
                    str(employee_id): {str(day): sorted(slot_ids) for day, slot_ids in sorted(days.items())}
                    for employee_id, days in sorted(selections.items())
                },
            }
        )

    @app.route("/api/bookings/bulk/preview", methods=["POST"], endpoint="preview_bulk_bookings")
    @admin_required
    def preview_bulk_bookings():
        payload = json_body()
        window, plan = bulk.plan(
            reference_date=payload.get("date"),
            selections=_selections(payload),
            employee_ids=payload.get("employeeIds") or None,
        )
        data = plan_to_json(plan)
        data["weekDates"] = [to_json_value(d) for d in window]
        return ok(data)

    @app.route("/api/bookings/bulk", methods=["POST"], endpoint="apply_bulk_bookings")
    @admin_required
    def apply_bulk_bookings():
        payload = json_body()
        result = bulk.apply(
            actor_id=current_actor().user_id,
            reference_date=payload.get("date"),
            selections=_selections(payload),
            employee_ids=payload.get("employeeIds") or None,
            auto_approve=bool(current_app.config.get("AUTO_APPROVE_ADMIN_BOOKINGS", True)),
        )
        return ok(
            result_to_json(result),
            message=(
                f"Bulk operation completed: {len(result.created)} bookings created, "
                f"{len(result.cancelled)} bookings canceled"
            ),
        )

    @app.route("/api/bookings/weekly", methods=["POST"], endpoint="request_weekly_bookings")
    def request_weekly_bookings():
        actor = current_actor()
        payload = json_body()
        assignments = payload.get("assignments")
        if payload.get("employeeId") is None or not payload.get("date") or not isinstance(assignments, dict):
            raise ValidationError("Please provide employee ID, date, and time slot assignments")

        employee_id = require_int(payload.get("employeeId"), "Employee id")
        if not actor.is_admin and employee_id != actor.user_id:
            raise AuthorizationError("You can only create bookings for yourself")

        auto = actor.is_admin and current_app.config.get("AUTO_APPROVE_ADMIN_BOOKINGS")
        result = bulk.request_week(
            employee_id=employee_id,
            reference_date=payload.get("date"),
            assignments=assignments,
            requested_by=actor.user_id,
            auto_approve_by=actor.user_id if auto else None,
        )
        message = (
            f"Successfully created {len(result.created)} booking entries"
            if result.created
            else "No bookings were created"
        )
        return ok(result_to_json(result), status=201, message=message)
