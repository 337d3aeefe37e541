from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .model import Holiday


def _occurrences(holiday: Holiday, start: date, end: date) -> Iterator[date]:
    if not holiday.is_recurring:
        if start <= holiday.date <= end:
            yield holiday.date
        return
    for year in range(start.year, end.year + 1):
        try:
            day = holiday.date.replace(year=year)
        except ValueError:
            # Feb 29 outside a leap year
            continue
        if start <= day <= end:
            yield day


class HolidayCalendar:
    """Date lookups over a fixed set of holiday rows.

    Several rows may match one date (e.g. a dated and a recurring entry); the
    first match in row order wins and counting is always per distinct date.
    """

    def __init__(self, holidays: Iterable[Holiday]):
        self._holidays = list(holidays)

    def __len__(self) -> int:
        return len(self._holidays)

    def is_holiday(self, day: date) -> Tuple[bool, Optional[Holiday]]:
        for holiday in self._holidays:
            if holiday.matches(day):
                return True, holiday
        return False, None

    def index(self, start: date, end: date) -> Dict[date, Holiday]:
        """Map every holiday date in [start, end] to its first matching row."""
        result: Dict[date, Holiday] = {}
        for holiday in self._holidays:
            for day in _occurrences(holiday, start, end):
                result.setdefault(day, holiday)
        return dict(sorted(result.items()))
