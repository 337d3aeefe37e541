from __future__ import annotations

from datetime import date

from hr_attendance.holidays.calendar import HolidayCalendar
from hr_attendance.holidays.model import Holiday

NEW_YEAR = Holiday(holiday_id=1, name="New Year", date=date(2020, 1, 1), is_recurring=True)
NEW_YEAR_2025 = Holiday(holiday_id=2, name="New Year (company)", date=date(2025, 1, 1))
ELECTION = Holiday(holiday_id=3, name="Election Day", date=date(2025, 2, 14))
LEAP = Holiday(holiday_id=4, name="Leap Day", date=date(2024, 2, 29), is_recurring=True)


def test_recurring_holiday_matches_any_year():
    ok, holiday = HolidayCalendar([NEW_YEAR]).is_holiday(date(2031, 1, 1))
    assert ok and holiday is NEW_YEAR


def test_dated_holiday_matches_only_its_date():
    calendar = HolidayCalendar([ELECTION])
    assert calendar.is_holiday(date(2025, 2, 14)) == (True, ELECTION)
    assert calendar.is_holiday(date(2026, 2, 14)) == (False, None)


def test_index_counts_each_date_once_and_keeps_first_row():
    index = HolidayCalendar([NEW_YEAR, NEW_YEAR_2025, ELECTION]).index(date(2025, 1, 1), date(2025, 3, 1))

    assert list(index) == [date(2025, 1, 1), date(2025, 2, 14)]
    assert index[date(2025, 1, 1)] is NEW_YEAR


def test_index_spans_multiple_years():
    index = HolidayCalendar([NEW_YEAR]).index(date(2024, 12, 1), date(2026, 1, 31))
    assert list(index) == [date(2025, 1, 1), date(2026, 1, 1)]


def test_feb_29_is_skipped_outside_leap_years():
    index = HolidayCalendar([LEAP]).index(date(2025, 1, 1), date(2028, 12, 31))
    assert list(index) == [date(2028, 2, 29)]
