from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import format_minutes
from ..common.web import current_actor, login_required, ok
from ..container import Container
from .model import AttendanceReport, DailyRecord


def register(app: Flask, container: Container) -> None:
    photo_url = container.task_log_service.photo_url

    def daily_json(d: DailyRecord) -> dict:
        return {
            "date": d.date,
            "day_of_week": d.day_of_week,
            "is_weekend": d.is_weekend,
            "status": d.status,
            "holiday": d.holiday,
            "leave_type": d.leave_type,
            "is_work_day": d.is_work_day,
            "scheduled_minutes": d.scheduled_minutes,
            "clock_in": d.clock_in,
            "clock_out": d.clock_out,
            "actual_minutes": d.actual_minutes,
            "hours_formatted": format_minutes(d.actual_minutes),
            "task_logs": [
                {"id": t.task_log_id, "description": t.description, "photo_url": photo_url(t), "created_at": t.created_at}
                for t in d.task_logs
            ],
        }

    def report_json(report: AttendanceReport) -> dict:
        s = report.summary
        return {
            "user_id": report.user_id,
            "daily_records": [daily_json(d) for d in report.daily_records],
            "summary": {
                "date_range": {
                    "start_date": s.start_date,
                    "end_date": s.end_date,
                    "total_days": s.total_days,
                    "weekdays": s.weekdays,
                    "weekends": s.weekends,
                    "holidays": s.holidays,
                    "work_days": s.work_days,
                },
                "attendance": {
                    "present_days": s.present_days,
                    "absent_days": s.absent_days,
                    "leave_days": s.leave_days,
                    "leave_days_by_type": s.leave_days_by_type,
                    "attendance_rate": s.attendance_rate,
                },
                "work_hours": {
                    "scheduled_minutes": s.scheduled_minutes,
                    "actual_minutes": s.actual_minutes,
                    "difference_minutes": s.difference_minutes,
                    "difference_formatted": format_minutes(s.difference_minutes),
                    "difference_kind": s.difference_kind,
                    "average_minutes_per_present_day": s.average_minutes_per_present_day,
                },
                "leave_quota": {
                    "year": s.quota.year,
                    "total": s.quota.total_quota,
                    "used": s.quota.used_quota,
                    "remaining": s.quota.remaining_quota,
                    "percentage_used": s.quota.percentage_used,
                },
            },
        }

    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    @login_required
    def attendance_report():
        args = request.args
        report = container.report_service.generate(
            current_actor(),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            user_id=args.get("user_id"),
            filters=args,
        )
        return ok("Attendance report generated successfully", report_json(report))
