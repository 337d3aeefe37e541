from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from ..attendance.model import AttendanceRecord, TaskLog
from ..attendance.repository import AttendanceRepository, TaskLogRepository
from ..common.datetime_utils import iter_days, minutes_between, parse_iso_date
from ..common.validators import optional_choice, parse_bool, require_int, require_int_range
from ..core.constants import MAX_QUOTA_YEAR, MIN_QUOTA_YEAR
from ..core.enums import ClockMethod, ClockType, DayOfWeek, LeaveType
from ..core.exceptions import NotFoundError, ValidationError
from ..holidays.calendar import HolidayCalendar
from ..holidays.repository import HolidayRepository
from ..leave.ledger import LeaveQuotaLedger
from ..leave.model import LeaveRequest
from ..leave.repository import LeaveRequestRepository
from ..users.model import Actor
from ..users.repository import UserRepository
from ..working_hours.repository import WorkingHourRepository
from .model import AttendanceReport, DailyRecord, ReportSummary


def _required_date(value, field_name: str) -> date:
    if isinstance(value, date):
        return value
    if value in (None, ""):
        raise ValidationError(f"The {field_name.replace('_', ' ')} field is required", field=field_name)
    try:
        return parse_iso_date(str(value).strip())
    except ValueError:
        raise ValidationError(f"The {field_name.replace('_', ' ')} is not a valid date", field=field_name)


class AttendanceReportService:
    """Read-only reconciliation of attendance against schedules, holidays and leave.

    Every source is loaded once for the whole range and indexed by ISO date,
    so each day is resolved with dictionary lookups only.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        task_logs: TaskLogRepository,
        leave_requests: LeaveRequestRepository,
        holidays: HolidayRepository,
        working_hours: WorkingHourRepository,
        ledger: LeaveQuotaLedger,
        users: UserRepository,
    ):
        self._attendance = attendance
        self._task_logs = task_logs
        self._leave_requests = leave_requests
        self._holidays = holidays
        self._working_hours = working_hours
        self._ledger = ledger
        self._users = users

    def generate(
        self,
        actor: Actor,
        *,
        start_date,
        end_date,
        user_id=None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> AttendanceReport:
        filters = filters or {}
        start = _required_date(start_date, "start_date")
        end = _required_date(end_date, "end_date")
        if end < start:
            raise ValidationError("The end date must be a date after or equal to start date", field="end_date")

        target_id = actor.user_id
        if actor.is_admin and user_id not in (None, ""):
            target_id = require_int(user_id, "user_id")
            if self._users.get_by_id(target_id) is None:
                raise NotFoundError("User not found")

        include_task_logs = True
        if filters.get("include_task_logs") not in (None, ""):
            include_task_logs = parse_bool(filters["include_task_logs"], "include_task_logs")
        year = start.year
        if filters.get("year") not in (None, ""):
            year = require_int_range(filters["year"], "year", minimum=MIN_QUOTA_YEAR, maximum=MAX_QUOTA_YEAR)

        records = self._attendance.list_between(
            target_id,
            start,
            end,
            clock_type=optional_choice(filters.get("clock_type"), ClockType),
            method=optional_choice(filters.get("method"), ClockMethod),
            location=filters.get("location") or None,
        )
        attendance_by_day: Dict[str, List[AttendanceRecord]] = defaultdict(list)
        for record in records:
            attendance_by_day[record.day.isoformat()].append(record)

        logs_by_day: Dict[str, List[TaskLog]] = defaultdict(list)
        if include_task_logs and records:
            day_of_record = {r.attendance_id: r.day.isoformat() for r in records}
            for log in self._task_logs.list_for_attendances(day_of_record):
                logs_by_day[day_of_record[log.attendance_id]].append(log)

        holiday_by_day = {
            d.isoformat(): h
            for d, h in HolidayCalendar(self._holidays.list_relevant(start, end)).index(start, end).items()
        }
        leave_by_day = self._index_leaves(
            self._leave_requests.list_approved_between(target_id, start, end), start, end
        )
        schedule = {wh.day_of_week: wh for wh in self._working_hours.list_for_user(target_id)}

        daily: List[DailyRecord] = []
        weekdays = weekends = work_days = present = absent = 0
        scheduled_total = actual_total = 0
        leave_by_type = {t.value: 0 for t in LeaveType}

        for day in iter_days(start, end):
            key = day.isoformat()
            day_of_week = DayOfWeek.of(day)
            is_weekend = day.weekday() >= 5
            if is_weekend:
                weekends += 1
            else:
                weekdays += 1

            holiday = holiday_by_day.get(key)
            leave = leave_by_day.get(key)
            slot = schedule.get(day_of_week)
            is_work_day = slot is not None and holiday is None
            day_records = attendance_by_day.get(key, [])

            scheduled_minutes = 0
            if is_work_day:
                work_days += 1
                if leave is None:
                    scheduled_minutes = slot.duration_minutes
                    scheduled_total += scheduled_minutes

            clock_in = next((r for r in day_records if r.clock_type == ClockType.IN), None)
            clock_out = next((r for r in reversed(day_records) if r.clock_type == ClockType.OUT), None)
            actual_minutes = 0
            if clock_in and clock_out:
                actual_minutes = minutes_between(clock_in.created_at, clock_out.created_at)
                actual_total += actual_minutes

            if holiday is not None:
                status = "holiday"
            elif not is_work_day:
                status = "off"
            elif leave is not None:
                status = "leave"
                leave_by_type[leave.leave_type.value] += 1
            elif clock_in and clock_out:
                status = "present"
                present += 1
            elif not day_records:
                status = "absent"
                absent += 1
            else:
                status = "incomplete"

            daily.append(
                DailyRecord(
                    date=day,
                    day_of_week=day_of_week,
                    is_weekend=is_weekend,
                    status=status,
                    holiday=holiday.name if holiday else None,
                    leave_type=leave.leave_type if leave else None,
                    is_work_day=is_work_day,
                    scheduled_minutes=scheduled_minutes,
                    clock_in=clock_in.created_at if clock_in else None,
                    clock_out=clock_out.created_at if clock_out else None,
                    actual_minutes=actual_minutes,
                    task_logs=logs_by_day.get(key, []),
                )
            )

        summary = ReportSummary(
            start_date=start,
            end_date=end,
            total_days=(end - start).days + 1,
            weekdays=weekdays,
            weekends=weekends,
            holidays=len(holiday_by_day),
            work_days=work_days,
            present_days=present,
            absent_days=absent,
            leave_days=sum(leave_by_type.values()),
            leave_days_by_type=leave_by_type,
            attendance_rate=round(present / work_days * 100, 2) if work_days else 0,
            scheduled_minutes=scheduled_total,
            actual_minutes=actual_total,
            difference_minutes=actual_total - scheduled_total,
            average_minutes_per_present_day=round(actual_total / present, 2) if present else 0,
            quota=self._ledger.snapshot(target_id, year),
        )
        return AttendanceReport(user_id=target_id, daily_records=daily, summary=summary)

    @staticmethod
    def _index_leaves(requests: List[LeaveRequest], start: date, end: date) -> Dict[str, LeaveRequest]:
        index: Dict[str, LeaveRequest] = {}
        for request in requests:
            for day in iter_days(max(start, request.start_date), min(end, request.end_date)):
                index.setdefault(day.isoformat(), request)
        return index
