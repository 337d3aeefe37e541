from __future__ import annotations

from flask import Flask, request

from ..common.web import admin_required, login_required, ok, page_json, payload
from ..container import Container
from .model import AffectedWorkingHours, Holiday, HolidayDetail


def holiday_json(h: Holiday) -> dict:
    return {
        "id": h.holiday_id,
        "name": h.name,
        "date": h.date,
        "description": h.description,
        "is_recurring": h.is_recurring,
    }


def affected_json(a: AffectedWorkingHours | None):
    if a is None:
        return None
    return {
        "date": a.date,
        "day_of_week": a.day_of_week,
        "user_count": a.user_count,
        "users": list(a.users),
    }


def detail_json(d: HolidayDetail) -> dict:
    return {"holiday": holiday_json(d.holiday), "affected_working_hours": affected_json(d.affected_working_hours)}


def register(app: Flask, container: Container) -> None:
    service = container.holiday_service

    @app.route("/api/holidays", methods=["GET"], endpoint="holidays_index")
    @login_required
    def holidays_index():
        page = service.list(request.args)
        return ok("Holidays retrieved successfully", page_json(page, holiday_json))

    @app.route("/api/holidays", methods=["POST"], endpoint="holidays_store")
    @admin_required
    def holidays_store():
        data = payload()
        detail = service.create(
            name=data.get("name"),
            holiday_date=data.get("date"),
            description=data.get("description"),
            is_recurring=data.get("is_recurring", False),
        )
        return ok("Holiday created successfully", detail_json(detail), 201)

    @app.route("/api/holidays/<int:holiday_id>", methods=["GET"], endpoint="holidays_show")
    @login_required
    def holidays_show(holiday_id: int):
        return ok("Holiday retrieved successfully", detail_json(service.show(holiday_id)))

    @app.route("/api/holidays/<int:holiday_id>", methods=["PUT", "PATCH"], endpoint="holidays_update")
    @admin_required
    def holidays_update(holiday_id: int):
        detail = service.update(holiday_id, payload())
        return ok("Holiday updated successfully", detail_json(detail))

    @app.route("/api/holidays/<int:holiday_id>", methods=["DELETE"], endpoint="holidays_destroy")
    @admin_required
    def holidays_destroy(holiday_id: int):
        service.delete(holiday_id)
        return ok("Holiday deleted successfully")

    @app.route("/api/holidays/process-conflicts", methods=["POST"], endpoint="holidays_process_conflicts")
    @admin_required
    def holidays_process_conflicts():
        data = payload()
        result = service.process_conflicts(data.get("holiday_id"), data.get("action"))
        if result.action == "delete" and result.affected_count > 0:
            message = f"{result.affected_count} working hour records deleted successfully"
        else:
            message = "No changes made to working hours"
        return ok(
            message,
            {"holiday": holiday_json(result.holiday), "affected_count": result.affected_count, "action": result.action},
        )
