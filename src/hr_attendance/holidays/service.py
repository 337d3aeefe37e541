from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.pagination import Page, clamp_page, clamp_per_page
from ..common.validators import parse_bool, require_int, require_max_length, require_non_empty
from ..core.constants import MAX_NAME_LENGTH
from ..core.exceptions import NotFoundError, ValidationError
from ..core.unit_of_work import UnitOfWork
from ..working_hours.repository import WorkingHourRepository
from .calendar import HolidayCalendar
from .model import AffectedSchedule, AffectedWorkingHours, ConflictResolution, Holiday, HolidayDetail
from .repository import HolidayRepository

logger = logging.getLogger(__name__)

CONFLICT_ACTIONS = ("skip", "delete")


def _date_value(value, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"The {field_name} is not a valid date", field=field_name)


class HolidayService:
    def __init__(self, holidays: HolidayRepository, working_hours: WorkingHourRepository, uow: UnitOfWork):
        self._holidays = holidays
        self._working_hours = working_hours
        self._uow = uow

    def calendar(self, start: date, end: date) -> HolidayCalendar:
        return HolidayCalendar(self._holidays.list_relevant(start, end))

    def is_holiday(self, day: date):
        return self.calendar(day, day).is_holiday(day)

    def list(self, params: Mapping[str, Any], *, now: datetime | None = None) -> Page[Holiday]:
        start = end = None
        year: Optional[int] = None
        if params.get("start_date") and params.get("end_date"):
            start = _date_value(params["start_date"], "start_date")
            end = _date_value(params["end_date"], "end_date")
        elif params.get("year"):
            try:
                year = int(params["year"])
            except (TypeError, ValueError):
                raise ValidationError("The year must be an integer", field="year")
        else:
            year = (now or now_local()).year

        is_recurring = None
        if params.get("is_recurring") not in (None, ""):
            is_recurring = parse_bool(params["is_recurring"], "is_recurring")

        return self._holidays.search(
            start_date=start,
            end_date=end,
            year=year,
            is_recurring=is_recurring,
            page=clamp_page(params.get("page")),
            per_page=clamp_per_page(params.get("per_page", 15)),
        )

    def create(
        self,
        *,
        name: Optional[str],
        holiday_date,
        description: Optional[str] = None,
        is_recurring=False,
    ) -> HolidayDetail:
        name = require_non_empty(name, "name")
        require_max_length(name, "name", MAX_NAME_LENGTH)
        day = _date_value(holiday_date, "date")
        recurring = parse_bool(is_recurring, "is_recurring") if is_recurring is not None else False

        with self._uow.transaction():
            holiday = self._holidays.create(
                name=name, holiday_date=day, description=description, is_recurring=recurring
            )
        logger.info("Holiday %s created for %s (recurring=%s)", holiday.holiday_id, day, recurring)
        return HolidayDetail(holiday=holiday, affected_working_hours=self.affected_working_hours(holiday))

    def get(self, holiday_id: int) -> Holiday:
        holiday = self._holidays.get_by_id(holiday_id)
        if not holiday:
            raise NotFoundError("Holiday not found")
        return holiday

    def show(self, holiday_id: int) -> HolidayDetail:
        holiday = self.get(holiday_id)
        return HolidayDetail(holiday=holiday, affected_working_hours=self.affected_working_hours(holiday))

    def update(self, holiday_id: int, changes: Mapping[str, Any]) -> HolidayDetail:
        """Partial update; affected schedules are reported only when date or recurrence changed."""
        holiday = self.get(holiday_id)
        updated = holiday
        if "name" in changes:
            name = require_non_empty(changes["name"], "name")
            require_max_length(name, "name", MAX_NAME_LENGTH)
            updated = replace(updated, name=name)
        if "date" in changes:
            updated = replace(updated, date=_date_value(changes["date"], "date"))
        if "description" in changes:
            updated = replace(updated, description=changes["description"])
        if changes.get("is_recurring") is not None:
            updated = replace(updated, is_recurring=parse_bool(changes["is_recurring"], "is_recurring"))

        with self._uow.transaction():
            self._holidays.update(updated)

        affected = None
        if updated.date != holiday.date or changes.get("is_recurring") is not None:
            affected = self.affected_working_hours(updated)
        return HolidayDetail(holiday=updated, affected_working_hours=affected)

    def delete(self, holiday_id: int) -> None:
        if not self._holidays.delete(holiday_id):
            raise NotFoundError("Holiday not found")
        logger.info("Holiday %s deleted", holiday_id)

    def affected_working_hours(self, holiday: Holiday) -> AffectedWorkingHours:
        """Schedules on the holiday's weekday (the weekday of its stored date)."""
        day_of_week = holiday.day_of_week
        users = [
            AffectedSchedule(
                user_id=wh.user_id,
                name=wh.user_name,
                working_hour_id=wh.working_hour_id,
                start_time=wh.start_time.strftime("%H:%M"),
                end_time=wh.end_time.strftime("%H:%M"),
            )
            for wh in self._working_hours.list_for_day(day_of_week)
        ]
        return AffectedWorkingHours(date=holiday.date, day_of_week=day_of_week, users=users)

    def process_conflicts(self, holiday_id, action: Optional[str]) -> ConflictResolution:
        if holiday_id in (None, ""):
            raise ValidationError("The holiday id field is required", field="holiday_id")
        if action not in CONFLICT_ACTIONS:
            raise ValidationError("The selected action is invalid", field="action")
        holiday = self.get(require_int(holiday_id, "holiday_id"))

        if action == "delete":
            with self._uow.transaction():
                removed = self._working_hours.delete_for_day(holiday.day_of_week)
            logger.info(
                "Deleted %s %s working hours for holiday %s", removed, holiday.day_of_week.value, holiday.holiday_id
            )
            return ConflictResolution(holiday=holiday, action=action, affected_count=removed)

        affected = len(self._working_hours.list_for_day(holiday.day_of_week))
        return ConflictResolution(holiday=holiday, action=action, affected_count=affected)
