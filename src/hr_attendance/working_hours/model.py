from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import Dict, Optional, Sequence

from ..common.datetime_utils import span_minutes
from ..core.enums import DayOfWeek
from ..users.model import User


@dataclass(frozen=True)
class ScheduleEntry:
    """A validated weekday slot, before it is bound to a user."""

    day_of_week: DayOfWeek
    start_time: time
    end_time: time


@dataclass(frozen=True)
class WorkingHour:
    working_hour_id: int
    user_id: int
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    user_name: Optional[str] = None

    @property
    def duration_minutes(self) -> int:
        """Scheduled length; an end before the start runs into the next day."""
        return span_minutes(self.start_time, self.end_time)


@dataclass(frozen=True)
class AssignmentResult:
    working_hours: Sequence[WorkingHour]
    holiday_conflicts: Sequence[str] = field(default_factory=tuple)


@dataclass(frozen=True)
class WeeklySchedule:
    user: User
    days: Dict[DayOfWeek, Optional[WorkingHour]]
