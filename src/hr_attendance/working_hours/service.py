from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, parse_hhmm
from ..common.pagination import Page, clamp_page, clamp_per_page
from ..common.validators import optional_choice, require_choice, require_int
from ..core.enums import DayOfWeek
from ..core.exceptions import NotFoundError, ValidationError
from ..core.unit_of_work import UnitOfWork
from ..holidays.calendar import HolidayCalendar
from ..holidays.repository import HolidayRepository
from ..users.repository import UserRepository
from .model import AssignmentResult, ScheduleEntry, WeeklySchedule, WorkingHour
from .repository import WorkingHourRepository

logger = logging.getLogger(__name__)


def _parse_time(value, field_name: str):
    try:
        return parse_hhmm(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"The {field_name} does not match the format H:i", field=field_name)


def parse_schedules(schedules: Optional[Sequence[Mapping[str, Any]]]) -> List[ScheduleEntry]:
    """Validate raw schedule items (day_of_week, start_time, end_time as HH:MM)."""
    if not schedules:
        raise ValidationError("The schedules field is required", field="schedules")

    entries: List[ScheduleEntry] = []
    for i, raw in enumerate(schedules):
        day = require_choice(raw.get("day_of_week"), DayOfWeek, f"schedules.{i}.day_of_week")
        start = _parse_time(raw.get("start_time"), f"schedules.{i}.start_time")
        end = _parse_time(raw.get("end_time"), f"schedules.{i}.end_time")
        if start == end:
            raise ValidationError(
                f"The schedules.{i}.end_time must differ from the start time", field=f"schedules.{i}.end_time"
            )
        entries.append(ScheduleEntry(day_of_week=day, start_time=start, end_time=end))
    return entries


class WorkingHourService:
    """Per-user weekly schedule registry."""

    def __init__(
        self,
        working_hours: WorkingHourRepository,
        users: UserRepository,
        holidays: HolidayRepository,
        uow: UnitOfWork,
    ):
        self._working_hours = working_hours
        self._users = users
        self._holidays = holidays
        self._uow = uow

    def list(self, params: Mapping[str, Any]) -> Page[WorkingHour]:
        user_id = params.get("user_id")
        min_start = params.get("min_start_time")
        max_start = params.get("max_start_time")
        return self._working_hours.search(
            user_id=require_int(user_id, "user_id") if user_id not in (None, "") else None,
            day_of_week=optional_choice(params.get("day_of_week"), DayOfWeek),
            min_start_time=_parse_time(min_start, "min_start_time") if min_start else None,
            max_start_time=_parse_time(max_start, "max_start_time") if max_start else None,
            page=clamp_page(params.get("page")),
            per_page=clamp_per_page(params.get("per_page", 15)),
        )

    def assign(
        self,
        *,
        user_ids: Iterable[Any],
        schedules: Sequence[Mapping[str, Any]],
        check_holidays: bool = True,
        now: datetime | None = None,
    ) -> AssignmentResult:
        ids = [require_int(u, f"users.{i}") for i, u in enumerate(user_ids or [])]
        if not ids:
            raise ValidationError("The users field is required", field="users")
        entries = parse_schedules(schedules)
        for i, user_id in enumerate(ids):
            if self._users.get_by_id(user_id) is None:
                raise ValidationError(f"The selected users.{i} is invalid", field=f"users.{i}")

        conflicts: List[str] = []
        if check_holidays:
            year = (now or now_local()).year
            conflicts = self.holiday_conflicts({e.day_of_week for e in entries}, year=year)

        saved: List[WorkingHour] = []
        with self._uow.transaction():
            for user_id in ids:
                for entry in entries:
                    saved.append(self._save(user_id, entry))

        logger.info("Assigned %s schedule slots to %s users", len(entries), len(ids))
        return AssignmentResult(working_hours=saved, holiday_conflicts=conflicts)

    def update_for_user(
        self,
        user_id: int,
        *,
        schedules: Sequence[Mapping[str, Any]],
        replace_all: bool = False,
    ) -> List[WorkingHour]:
        if self._users.get_by_id(user_id) is None:
            raise NotFoundError("User not found")
        entries = parse_schedules(schedules)

        with self._uow.transaction():
            if replace_all:
                self._working_hours.delete_for_user(user_id)
            saved = [self._save(user_id, entry) for entry in entries]

        logger.info("Updated %s schedule slots for user %s (replace_all=%s)", len(saved), user_id, replace_all)
        return saved

    def delete(self, working_hour_id: int) -> None:
        if not self._working_hours.delete(working_hour_id):
            raise NotFoundError("Working hour not found")

    def get_for_user(self, user_id: int) -> WeeklySchedule:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        by_day = self.schedule_for(user_id)
        return WeeklySchedule(user=user, days={day: by_day.get(day) for day in DayOfWeek})

    def schedule_for(self, user_id: int) -> Dict[DayOfWeek, WorkingHour]:
        return {wh.day_of_week: wh for wh in self._working_hours.list_for_user(user_id)}

    def holiday_conflicts(self, days: Iterable[DayOfWeek], *, year: int) -> List[str]:
        """ISO dates in `year` that fall on one of `days` and are holidays."""
        start, end = date(year, 1, 1), date(year, 12, 31)
        wanted = set(days)
        calendar = HolidayCalendar(self._holidays.list_relevant(start, end))
        return [d.isoformat() for d in calendar.index(start, end) if DayOfWeek.of(d) in wanted]

    def _save(self, user_id: int, entry: ScheduleEntry) -> WorkingHour:
        return self._working_hours.upsert(
            user_id=user_id,
            day_of_week=entry.day_of_week,
            start_time=entry.start_time,
            end_time=entry.end_time,
        )
