from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page
from .model import Holiday


class HolidayRepository(Protocol):
    def create(self, *, name: str, holiday_date: date, description: Optional[str], is_recurring: bool) -> Holiday:
        raise NotImplementedError

    def get_by_id(self, holiday_id: int) -> Optional[Holiday]:
        raise NotImplementedError

    def update(self, holiday: Holiday) -> bool:
        raise NotImplementedError

    def delete(self, holiday_id: int) -> bool:
        raise NotImplementedError

    def list_relevant(self, start_date: date, end_date: date) -> Sequence[Holiday]:
        """Dated holidays inside the range plus every recurring holiday, by date then id."""

        raise NotImplementedError

    def search(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        year: Optional[int] = None,
        is_recurring: Optional[bool] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Page[Holiday]:
        raise NotImplementedError
