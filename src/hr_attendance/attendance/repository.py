from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..common.pagination import Page
from ..core.enums import ClockMethod, ClockType
from .filters import AttendanceQuery
from .model import AttendanceRecord, TaskLog


class AttendanceRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        clock_type: ClockType,
        location: str,
        method: ClockMethod,
        created_at: datetime,
    ) -> AttendanceRecord:
        """Insert one clock event.

        Raises DuplicateClockIn/DuplicateClockOut when the per-day unique key
        rejects the row.
        """

        raise NotImplementedError

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def exists_for_day(self, user_id: int, clock_type: ClockType, day: date) -> bool:
        raise NotImplementedError

    def list_for_day(self, user_id: int, day: date) -> Sequence[AttendanceRecord]:
        """Records of one calendar day, oldest first."""

        raise NotImplementedError

    def list_between(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        *,
        clock_type: Optional[ClockType] = None,
        method: Optional[ClockMethod] = None,
        location: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def latest_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def search(self, user_id: int, query: AttendanceQuery) -> Page[AttendanceRecord]:
        raise NotImplementedError


class TaskLogRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        attendance_id: int,
        description: str,
        photo_path: Optional[str],
        created_at: datetime,
    ) -> TaskLog:
        raise NotImplementedError

    def get_by_id(self, task_log_id: int) -> Optional[TaskLog]:
        raise NotImplementedError

    def update(
        self,
        task_log_id: int,
        *,
        description: str,
        photo_path: Optional[str],
        updated_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def delete(self, task_log_id: int) -> bool:
        raise NotImplementedError

    def list_for_attendances(self, attendance_ids: Iterable[int]) -> Sequence[TaskLog]:
        raise NotImplementedError
