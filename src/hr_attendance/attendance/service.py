from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.pagination import Page
from ..common.validators import require_choice, require_max_length
from ..core.constants import DEFAULT_LOCATION, MAX_NAME_LENGTH
from ..core.enums import ClockMethod, ClockType
from ..core.exceptions import (
    DuplicateClockIn,
    DuplicateClockOut,
    MissingClockIn,
    NotFoundError,
)
from ..core.unit_of_work import UnitOfWork
from ..users.repository import UserRepository
from .filters import AttendanceQuery
from .model import AttendanceDetail, AttendanceRecord, TodayAttendance, WorkDuration
from .repository import AttendanceRepository, TaskLogRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Clock engine: at most one `in` and one `out` per user and calendar day."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        task_logs: TaskLogRepository,
        users: UserRepository,
        uow: UnitOfWork,
    ):
        self._attendance = attendance
        self._task_logs = task_logs
        self._users = users
        self._uow = uow

    def record_clock(
        self,
        user_id: int,
        *,
        clock_type,
        method,
        location: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        clock_type = require_choice(clock_type, ClockType, "clock type")
        method = require_choice(method, ClockMethod, "method")
        location = (location or "").strip() or DEFAULT_LOCATION
        require_max_length(location, "location", MAX_NAME_LENGTH)

        now = now or now_local()
        today = now.date()

        with self._uow.transaction():
            # Serialises concurrent clock calls of the same user.
            if not self._users.lock(user_id):
                raise NotFoundError("User not found")

            has_in = self._attendance.exists_for_day(user_id, ClockType.IN, today)
            if clock_type == ClockType.IN and has_in:
                raise DuplicateClockIn()
            if clock_type == ClockType.OUT:
                if not has_in:
                    raise MissingClockIn()
                if self._attendance.exists_for_day(user_id, ClockType.OUT, today):
                    raise DuplicateClockOut()

            record = self._attendance.create(
                user_id=user_id,
                clock_type=clock_type,
                location=location,
                method=method,
                created_at=now,
            )

        logger.info(
            "User %s clocked %s via %s at %s", user_id, clock_type.value, method.value, location
        )
        return record

    def get_today(self, user_id: int, *, now: datetime | None = None) -> TodayAttendance:
        today = (now or now_local()).date()
        records = list(self._attendance.list_for_day(user_id, today))

        clock_in = next((r for r in records if r.clock_type == ClockType.IN), None)
        clock_out = next((r for r in records if r.clock_type == ClockType.OUT), None)
        duration = None
        if clock_in and clock_out:
            duration = WorkDuration.between(clock_in.created_at, clock_out.created_at)

        return TodayAttendance(
            day=today,
            records=records,
            clock_in=clock_in,
            clock_out=clock_out,
            work_duration=duration,
            task_logs=list(self._task_logs.list_for_attendances(r.attendance_id for r in records)),
        )

    def list(
        self, user_id: int, params: Mapping[str, Any], *, now: datetime | None = None
    ) -> Page[AttendanceRecord]:
        query = AttendanceQuery.from_params(params, today=(now or now_local()).date())
        return self._attendance.search(user_id, query)

    def latest(self, user_id: int) -> AttendanceRecord:
        record = self._attendance.latest_for_user(user_id)
        if not record:
            raise NotFoundError("No attendance records found")
        return record

    def show(self, user_id: int, attendance_id: int) -> AttendanceDetail:
        record = self._attendance.get_by_id(attendance_id)
        if not record or record.user_id != int(user_id):
            raise NotFoundError("Attendance record not found")
        return AttendanceDetail(
            record=record,
            task_logs=list(self._task_logs.list_for_attendances([record.attendance_id])),
        )
