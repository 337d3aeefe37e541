from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import minutes_between
from ..core.enums import ClockMethod, ClockType


@dataclass(frozen=True)
class AttendanceRecord:
    """One clock event. Rows are immutable once written."""

    attendance_id: int
    user_id: int
    clock_type: ClockType
    location: str
    method: ClockMethod
    created_at: datetime

    @property
    def day(self) -> date:
        return self.created_at.date()


@dataclass(frozen=True)
class TaskLog:
    task_log_id: int
    user_id: int
    attendance_id: int
    description: str
    photo_path: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class WorkDuration:
    hours: int
    minutes: int
    total_minutes: int

    @classmethod
    def between(cls, clock_in: datetime, clock_out: datetime) -> "WorkDuration":
        total = minutes_between(clock_in, clock_out)
        return cls(hours=total // 60, minutes=total % 60, total_minutes=total)


@dataclass(frozen=True)
class TodayAttendance:
    day: date
    records: Sequence[AttendanceRecord]
    clock_in: Optional[AttendanceRecord]
    clock_out: Optional[AttendanceRecord]
    work_duration: Optional[WorkDuration]
    task_logs: Sequence[TaskLog] = field(default_factory=tuple)


@dataclass(frozen=True)
class AttendanceDetail:
    record: AttendanceRecord
    task_logs: Sequence[TaskLog] = field(default_factory=tuple)
