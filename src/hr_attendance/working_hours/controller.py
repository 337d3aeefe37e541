from __future__ import annotations

from flask import Flask, request

from ..common.validators import parse_bool
from ..common.web import admin_required, current_actor, fail, login_required, ok, page_json, payload
from ..container import Container
from .model import WorkingHour


def working_hour_json(wh: WorkingHour) -> dict:
    return {
        "id": wh.working_hour_id,
        "user_id": wh.user_id,
        "user_name": wh.user_name,
        "day_of_week": wh.day_of_week,
        "start_time": wh.start_time,
        "end_time": wh.end_time,
        "duration_minutes": wh.duration_minutes,
    }


def register(app: Flask, container: Container) -> None:
    service = container.working_hour_service

    @app.route("/api/working-hours", methods=["GET"], endpoint="working_hours_index")
    @admin_required
    def working_hours_index():
        page = service.list(request.args)
        return ok("Working hours retrieved successfully", page_json(page, working_hour_json))

    @app.route("/api/working-hours", methods=["POST"], endpoint="working_hours_store")
    @admin_required
    def working_hours_store():
        data = payload()
        result = service.assign(
            user_ids=data.get("users") or [],
            schedules=data.get("schedules") or [],
            check_holidays=parse_bool(data.get("check_holidays", True), "check_holidays"),
        )
        return ok(
            "Working hours created successfully",
            {
                "working_hours": [working_hour_json(wh) for wh in result.working_hours],
                "holiday_conflicts": list(result.holiday_conflicts),
            },
            201,
        )

    @app.route("/api/working-hours/user/<int:user_id>", methods=["PUT"], endpoint="working_hours_update_for_user")
    @admin_required
    def working_hours_update_for_user(user_id: int):
        data = payload()
        saved = service.update_for_user(
            user_id,
            schedules=data.get("schedules") or [],
            replace_all=parse_bool(data.get("replace_all", False), "replace_all"),
        )
        return ok("Working hours updated successfully", [working_hour_json(wh) for wh in saved])

    @app.route("/api/working-hours/<int:working_hour_id>", methods=["DELETE"], endpoint="working_hours_destroy")
    @admin_required
    def working_hours_destroy(working_hour_id: int):
        service.delete(working_hour_id)
        return ok("Working hour deleted successfully")

    @app.route("/api/working-hours/user/<int:user_id>", methods=["GET"], endpoint="working_hours_for_user")
    @login_required
    def working_hours_for_user(user_id: int):
        if not current_actor().can_act_for(user_id):
            return fail("You do not have permission to perform this action", 403)
        weekly = service.get_for_user(user_id)
        schedule = {
            day.value: (
                {
                    "id": wh.working_hour_id,
                    "start_time": wh.start_time,
                    "end_time": wh.end_time,
                    "duration_minutes": wh.duration_minutes,
                }
                if wh
                else None
            )
            for day, wh in weekly.days.items()
        }
        return ok(
            "Working hours retrieved successfully",
            {"user": {"id": weekly.user.user_id, "name": weekly.user.name}, "schedule": schedule},
        )
