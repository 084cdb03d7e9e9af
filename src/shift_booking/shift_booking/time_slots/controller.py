from __future__ import annotations

from flask import Flask, request

from ..availability.model import SlotAvailability
from ..common.http import admin_required, json_body, ok, to_json_value
from ..common.validators import require_date
from ..container import Container
from ..core.exceptions import ValidationError
from .model import TimeSlot


def slot_to_json(slot: TimeSlot) -> dict:
    return {
        "id": slot.time_slot_id,
        "dayOfWeek": int(slot.day_of_week),
        "startTime": to_json_value(slot.start_time),
        "endTime": to_json_value(slot.end_time),
        "name": slot.name,
        "description": slot.description,
    }


def availability_to_json(item: SlotAvailability) -> dict:
    return {"count": item.count, "maxEmployees": item.max_employees, "available": item.available}


def register(app: Flask, container: Container) -> None:
    service = container.time_slot_service

    @app.route("/api/time-slots", methods=["GET"], endpoint="list_time_slots")
    def list_time_slots():
        day = request.args.get("dayOfWeek")
        slots = service.list_slots(day_of_week=day if day not in (None, "") else None)
        return ok([slot_to_json(s) for s in slots])

    @app.route("/api/time-slots/<int:time_slot_id>", methods=["GET"], endpoint="get_time_slot")
    def get_time_slot(time_slot_id: int):
        slot = service.get_slot(time_slot_id)
        data = slot_to_json(slot)
        data["maxEmployees"] = service.limit_for(time_slot_id)
        return ok(data)

    @app.route("/api/time-slots", methods=["POST"], endpoint="create_time_slot")
    @admin_required
    def create_time_slot():
        payload = json_body()
        if payload.get("dayOfWeek") is None or not payload.get("startTime") or not payload.get("endTime"):
            raise ValidationError("Please provide day of week, start time, and end time")
        slot = service.create_slot(
            day_of_week=payload.get("dayOfWeek"),
            start_time=payload.get("startTime"),
            end_time=payload.get("endTime"),
            name=payload.get("name"),
            description=payload.get("description"),
            max_employees=payload.get("maxEmployees"),
        )
        return ok(slot_to_json(slot), status=201, message="Time slot created successfully")

    @app.route("/api/time-slots/<int:time_slot_id>", methods=["PUT"], endpoint="update_time_slot")
    @admin_required
    def update_time_slot(time_slot_id: int):
        payload = json_body()
        changes = {}
        if "name" in payload:
            changes["name"] = payload.get("name")
        if "description" in payload:
            changes["description"] = payload.get("description")
        slot = service.update_slot(
            time_slot_id=time_slot_id,
            day_of_week=payload.get("dayOfWeek"),
            start_time=payload.get("startTime"),
            end_time=payload.get("endTime"),
            **changes,
        )
        return ok(slot_to_json(slot), message="Time slot updated successfully")

    @app.route("/api/time-slots/<int:time_slot_id>", methods=["DELETE"], endpoint="delete_time_slot")
    @admin_required
    def delete_time_slot(time_slot_id: int):
        service.delete_slot(time_slot_id=time_slot_id)
        return ok(None, message="Time slot deleted successfully")

    @app.route("/api/time-slots/<int:time_slot_id>/limit", methods=["GET"], endpoint="get_time_slot_limit")
    def get_time_slot_limit(time_slot_id: int):
        return ok({"maxEmployees": service.limit_for(time_slot_id)})

    @app.route("/api/time-slots/<int:time_slot_id>/limit", methods=["POST"], endpoint="set_time_slot_limit")
    @admin_required
    def set_time_slot_limit(time_slot_id: int):
        payload = json_body()
        if "maxEmployees" not in payload:
            raise ValidationError("Please provide a valid maximum number of employees")
        limit = service.set_limit(time_slot_id=time_slot_id, max_employees=payload.get("maxEmployees"))
        return ok(
            {"maxEmployees": limit.max_employees if limit else None},
            message="Time slot limit set successfully",
        )

    @app.route("/api/time-slots/<int:time_slot_id>/availability", methods=["GET"], endpoint="time_slot_availability")
    def time_slot_availability(time_slot_id: int):
        work_date = require_date(request.args.get("date"))
        item = container.availability_service.availability_for(time_slot_id, work_date)
        return ok(availability_to_json(item))

    @app.route("/api/time-slots/batch-availability", methods=["POST"], endpoint="batch_availability")
    def batch_availability():
        payload = json_body()
        slot_ids = payload.get("timeSlotIds")
        if not payload.get("date") or not isinstance(slot_ids, list):
            raise ValidationError("Please provide a valid date and an array of time slot IDs")
        result = container.availability_service.batch_availability(payload.get("date"), slot_ids)
        return ok({str(slot_id): availability_to_json(item) for slot_id, item in result.items()})
