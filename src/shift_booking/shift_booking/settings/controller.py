from __future__ import annotations

from datetime import date

from flask import Flask, request

from ..common.http import admin_required, current_actor, json_body, ok, to_json_value
from ..common.validators import require_date
from ..container import Container
from ..weeks.normalizer import weekday_of


def register(app: Flask, container: Container) -> None:
    @app.route("/api/settings", methods=["GET"], endpoint="get_settings")
    def get_settings():
        settings = container.settings_service.get_settings()
        return ok({"firstDayOfWeek": settings.first_day_of_week})

    @app.route("/api/settings", methods=["PUT"], endpoint="update_settings")
    @admin_required
    def update_settings():
        payload = json_body()
        settings = container.settings_service.update_first_day_of_week(
            first_day_of_week=payload.get("firstDayOfWeek"),
            updated_by=current_actor().user_id,
        )
        return ok({"firstDayOfWeek": settings.first_day_of_week}, message="Settings saved successfully")

    @app.route("/api/settings/week", methods=["GET"], endpoint="current_week")
    def current_week():
        reference = require_date(request.args.get("date")) if request.args.get("date") else date.today()
        window = container.settings_service.week_for(reference)
        return ok(
            {
                "firstDayOfWeek": int(window.first_day_of_week),
                "startDate": to_json_value(window.start),
                "endDate": to_json_value(window.end),
                "days": [
                    {"dayIndex": index, "dayOfWeek": int(weekday_of(day)), "date": to_json_value(day)}
                    for index, day in enumerate(window)
                ],
            }
        )
