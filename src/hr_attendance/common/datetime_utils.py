from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM string into time."""
    return datetime.strptime(value, "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day in [start, end]."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, clamped at zero."""
    return max(int((end - start).total_seconds() // 60), 0)


def span_minutes(start: time, end: time) -> int:
    """Minutes covered by a time-of-day span; end < start wraps past midnight."""
    start_m = start.hour * 60 + start.minute
    end_m = end.hour * 60 + end.minute
    if end_m < start_m:
        end_m += 24 * 60
    return end_m - start_m


def format_minutes(total_minutes: int) -> str:
    """Render minutes as H:MM (sign kept for negative differences)."""
    sign = "-" if total_minutes < 0 else ""
    total_minutes = abs(int(total_minutes))
    return f"{sign}{total_minutes // 60}:{total_minutes % 60:02d}"
