from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Sequence

from ..attendance.model import TaskLog
from ..core.enums import DayOfWeek, LeaveType
from ..leave.model import QuotaSnapshot


@dataclass(frozen=True)
class DailyRecord:
    date: date
    day_of_week: DayOfWeek
    is_weekend: bool
    status: str
    holiday: Optional[str] = None
    leave_type: Optional[LeaveType] = None
    is_work_day: bool = False
    scheduled_minutes: int = 0
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    actual_minutes: int = 0
    task_logs: Sequence[TaskLog] = field(default_factory=tuple)


@dataclass(frozen=True)
class ReportSummary:
    start_date: date
    end_date: date
    total_days: int
    weekdays: int
    weekends: int
    holidays: int
    work_days: int
    present_days: int
    absent_days: int
    leave_days: int
    leave_days_by_type: Dict[str, int]
    attendance_rate: float
    scheduled_minutes: int
    actual_minutes: int
    difference_minutes: int
    average_minutes_per_present_day: float
    quota: QuotaSnapshot

    @property
    def difference_kind(self) -> str:
        if self.difference_minutes > 0:
            return "overtime"
        if self.difference_minutes < 0:
            return "undertime"
        return "exact"


@dataclass(frozen=True)
class AttendanceReport:
    user_id: int
    daily_records: Sequence[DailyRecord]
    summary: ReportSummary
