from __future__ import annotations

from datetime import date

import pytest

from fakes import ALICE, BOB, NOW
from hr_attendance.core.enums import DayOfWeek
from hr_attendance.core.exceptions import NotFoundError, ValidationError


def test_create_reports_schedules_on_the_same_weekday(world):
    world.working_hours.add(ALICE.user_id, DayOfWeek.WEDNESDAY)
    world.working_hours.add(BOB.user_id, DayOfWeek.THURSDAY)

    detail = world.holiday_service.create(name="New Year", holiday_date="2025-01-01", is_recurring="1")

    assert detail.holiday.is_recurring
    assert detail.affected_working_hours.day_of_week == DayOfWeek.WEDNESDAY
    assert [u.user_id for u in detail.affected_working_hours.users] == [ALICE.user_id]
    assert detail.affected_working_hours.users[0].name == "Alice"
    assert detail.affected_working_hours.user_count == 1


def test_create_requires_a_name(world):
    with pytest.raises(ValidationError):
        world.holiday_service.create(name=" ", holiday_date="2025-01-01")


def test_create_rejects_bad_dates(world):
    with pytest.raises(ValidationError):
        world.holiday_service.create(name="x", holiday_date="01/01/2025")


def test_is_holiday_sees_recurring_rows(world):
    world.holiday_service.create(name="New Year", holiday_date="2020-01-01", is_recurring=True)
    ok, holiday = world.holiday_service.is_holiday(date(2025, 1, 1))
    assert ok and holiday.name == "New Year"


def test_update_only_reports_conflicts_when_date_changes(world):
    holiday = world.holiday_service.create(name="Founders", holiday_date="2025-05-05").holiday

    renamed = world.holiday_service.update(holiday.holiday_id, {"name": "Founders Day"})
    moved = world.holiday_service.update(holiday.holiday_id, {"date": "2025-05-06"})

    assert renamed.affected_working_hours is None
    assert moved.holiday.name == "Founders Day"
    assert moved.affected_working_hours.day_of_week == DayOfWeek.TUESDAY


def test_delete_unknown_holiday(world):
    with pytest.raises(NotFoundError):
        world.holiday_service.delete(42)


def test_list_defaults_to_current_year(world):
    world.holiday_service.create(name="Old", holiday_date="2024-12-25")
    world.holiday_service.create(name="New", holiday_date="2025-12-25")

    page = world.holiday_service.list({}, now=NOW)

    assert [h.name for h in page.items] == ["New"]


def test_process_conflicts_delete_removes_weekday_schedules(world):
    world.working_hours.add(ALICE.user_id, DayOfWeek.WEDNESDAY)
    world.working_hours.add(BOB.user_id, DayOfWeek.WEDNESDAY)
    world.working_hours.add(BOB.user_id, DayOfWeek.FRIDAY)
    holiday = world.holiday_service.create(name="New Year", holiday_date="2025-01-01").holiday

    result = world.holiday_service.process_conflicts(holiday.holiday_id, "delete")

    assert result.affected_count == 2
    assert [wh.day_of_week for wh in world.working_hours.rows.values()] == [DayOfWeek.FRIDAY]


def test_process_conflicts_skip_changes_nothing(world):
    world.working_hours.add(ALICE.user_id, DayOfWeek.WEDNESDAY)
    holiday = world.holiday_service.create(name="New Year", holiday_date="2025-01-01").holiday

    result = world.holiday_service.process_conflicts(holiday.holiday_id, "skip")

    assert result.affected_count == 1
    assert len(world.working_hours.rows) == 1


def test_process_conflicts_rejects_unknown_action(world):
    with pytest.raises(ValidationError):
        world.holiday_service.process_conflicts(1, "postpone")
