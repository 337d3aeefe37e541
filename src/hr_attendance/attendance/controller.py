from __future__ import annotations

from flask import Flask, request

from ..common.web import current_actor, login_required, ok, page_json, payload, to_upload
from ..container import Container
from .model import AttendanceRecord, TaskLog


def record_json(r: AttendanceRecord) -> dict:
    return {
        "id": r.attendance_id,
        "user_id": r.user_id,
        "clock_type": r.clock_type,
        "location": r.location,
        "method": r.method,
        "created_at": r.created_at,
    }


def register(app: Flask, container: Container) -> None:
    task_logs = container.task_log_service

    def task_log_json(log: TaskLog) -> dict:
        return {
            "id": log.task_log_id,
            "attendance_id": log.attendance_id,
            "description": log.description,
            "photo_url": task_logs.photo_url(log),
            "created_at": log.created_at,
            "updated_at": log.updated_at,
        }

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_index")
    @login_required
    def attendance_index():
        page = container.attendance_service.list(current_actor().user_id, request.args)
        return ok("Attendance records retrieved successfully", page_json(page, record_json))

    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_store")
    @login_required
    def attendance_store():
        data = payload()
        record = container.attendance_service.record_clock(
            current_actor().user_id,
            clock_type=data.get("clock_type"),
            method=data.get("method"),
            location=data.get("location"),
        )
        return ok("Attendance recorded successfully", record_json(record), 201)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def attendance_today():
        today = container.attendance_service.get_today(current_actor().user_id)
        return ok(
            "Today's attendance records retrieved successfully",
            {
                "attendances": [record_json(r) for r in today.records],
                "clock_in": record_json(today.clock_in) if today.clock_in else None,
                "clock_out": record_json(today.clock_out) if today.clock_out else None,
                "work_duration": today.work_duration,
                "task_logs": [task_log_json(t) for t in today.task_logs],
            },
        )

    @app.route("/api/attendance/latest", methods=["GET"], endpoint="attendance_latest")
    @login_required
    def attendance_latest():
        record = container.attendance_service.latest(current_actor().user_id)
        return ok("Latest attendance record retrieved successfully", record_json(record))

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_show")
    @login_required
    def attendance_show(attendance_id: int):
        detail = container.attendance_service.show(current_actor().user_id, attendance_id)
        body = record_json(detail.record)
        body["task_logs"] = [task_log_json(t) for t in detail.task_logs]
        return ok("Attendance record retrieved successfully", body)

    @app.route("/api/attendance/<int:attendance_id>/task-logs", methods=["POST"], endpoint="task_log_store")
    @login_required
    def task_log_store(attendance_id: int):
        log = task_logs.add(
            current_actor(),
            attendance_id=attendance_id,
            description=payload().get("description"),
            photo=to_upload(request.files.get("photo")),
        )
        return ok("Task log added successfully", task_log_json(log), 201)

    @app.route("/api/task-logs/<int:task_log_id>", methods=["POST", "PUT"], endpoint="task_log_update")
    @login_required
    def task_log_update(task_log_id: int):
        log = task_logs.update(
            current_actor(),
            task_log_id,
            description=payload().get("description"),
            photo=to_upload(request.files.get("photo")),
        )
        return ok("Task log updated successfully", task_log_json(log))

    @app.route("/api/task-logs/<int:task_log_id>", methods=["DELETE"], endpoint="task_log_destroy")
    @login_required
    def task_log_destroy(task_log_id: int):
        task_logs.delete(current_actor(), task_log_id)
        return ok("Task log deleted successfully")
