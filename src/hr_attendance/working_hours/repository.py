from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page
from ..core.enums import DayOfWeek
from .model import WorkingHour


class WorkingHourRepository(Protocol):
    def upsert(self, *, user_id: int, day_of_week: DayOfWeek, start_time: time, end_time: time) -> WorkingHour:
        """Insert or overwrite the (user, weekday) slot."""

        raise NotImplementedError

    def get_by_id(self, working_hour_id: int) -> Optional[WorkingHour]:
        raise NotImplementedError

    def delete(self, working_hour_id: int) -> bool:
        raise NotImplementedError

    def delete_for_user(self, user_id: int) -> int:
        raise NotImplementedError

    def delete_for_day(self, day_of_week: DayOfWeek) -> int:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[WorkingHour]:
        raise NotImplementedError

    def list_for_day(self, day_of_week: DayOfWeek) -> Sequence[WorkingHour]:
        """Every slot on a weekday, with the user's name filled in."""

        raise NotImplementedError

    def search(
        self,
        *,
        user_id: Optional[int] = None,
        day_of_week: Optional[DayOfWeek] = None,
        min_start_time: Optional[time] = None,
        max_start_time: Optional[time] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Page[WorkingHour]:
        raise NotImplementedError
