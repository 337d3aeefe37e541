from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ..core.enums import DayOfWeek


@dataclass(frozen=True)
class Holiday:
    holiday_id: int
    name: str
    date: date
    description: Optional[str] = None
    is_recurring: bool = False

    def matches(self, day: date) -> bool:
        """Exact date, or same month/day for a recurring holiday."""
        if self.is_recurring:
            return (self.date.month, self.date.day) == (day.month, day.day)
        return self.date == day

    @property
    def day_of_week(self) -> DayOfWeek:
        return DayOfWeek.of(self.date)


@dataclass(frozen=True)
class AffectedSchedule:
    user_id: int
    name: Optional[str]
    working_hour_id: int
    start_time: str
    end_time: str


@dataclass(frozen=True)
class AffectedWorkingHours:
    """Schedules that fall on a holiday's weekday."""

    date: date
    day_of_week: DayOfWeek
    users: Sequence[AffectedSchedule] = field(default_factory=tuple)

    @property
    def user_count(self) -> int:
        return len(self.users)


@dataclass(frozen=True)
class HolidayDetail:
    holiday: Holiday
    affected_working_hours: Optional[AffectedWorkingHours]


@dataclass(frozen=True)
class ConflictResolution:
    holiday: Holiday
    action: str
    affected_count: int
