from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..common.pagination import Page
from ..core.enums import LeaveStatus, LeaveType
from .filters import LeaveRequestQuery
from .model import LeaveQuota, LeaveRequest, LeaveRequestProof


class LeaveRequestRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        reason: Optional[str],
        start_date: date,
        end_date: date,
        status: LeaveStatus,
        created_at: datetime,
    ) -> LeaveRequest:
        raise NotImplementedError

    def get_by_id(self, request_id: int, *, for_update: bool = False) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def find_overlapping(self, user_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        """Non-rejected requests of the user intersecting [start_date, end_date]."""

        raise NotImplementedError

    def update_status(self, request_id: int, status: LeaveStatus) -> bool:
        raise NotImplementedError

    def delete(self, request_id: int) -> bool:
        raise NotImplementedError

    def search(self, query: LeaveRequestQuery) -> Page[LeaveRequest]:
        raise NotImplementedError

    def list_for_year(self, user_id: int, year: int) -> Sequence[LeaveRequest]:
        """Requests starting or ending in `year`."""

        raise NotImplementedError

    def list_upcoming_approved(self, user_id: int, from_date: date, limit: int) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_approved_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        raise NotImplementedError


class LeaveProofRepository(Protocol):
    def create(
        self,
        *,
        leave_request_id: int,
        filename: str,
        path: str,
        disk: str,
        mime_type: str,
        size: int,
        description: Optional[str],
        created_at: datetime,
    ) -> LeaveRequestProof:
        raise NotImplementedError

    def get_by_id(self, proof_id: int) -> Optional[LeaveRequestProof]:
        raise NotImplementedError

    def list_for_requests(self, request_ids: Iterable[int]) -> Sequence[LeaveRequestProof]:
        raise NotImplementedError

    def count_for_request(self, request_id: int) -> int:
        raise NotImplementedError

    def delete(self, proof_id: int) -> bool:
        raise NotImplementedError

    def delete_for_request(self, request_id: int) -> int:
        raise NotImplementedError

    def mark_verified(self, proof_id: int, *, verified_by: int, verified_at: datetime) -> bool:
        raise NotImplementedError


class LeaveQuotaRepository(Protocol):
    def get(self, user_id: int, year: int) -> Optional[LeaveQuota]:
        raise NotImplementedError

    def get_by_id(self, quota_id: int, *, for_update: bool = False) -> Optional[LeaveQuota]:
        raise NotImplementedError

    def lock(self, user_id: int, year: int) -> Optional[LeaveQuota]:
        """Row-lock and return the (user, year) quota for the current transaction."""

        raise NotImplementedError

    def create_if_missing(self, *, user_id: int, year: int, total_quota: int) -> bool:
        """Insert a fresh quota unless one exists; True when a row was created."""

        raise NotImplementedError

    def save(self, quota: LeaveQuota) -> bool:
        raise NotImplementedError

    def list(self, *, year: int, user_id: Optional[int] = None) -> Sequence[LeaveQuota]:
        raise NotImplementedError
