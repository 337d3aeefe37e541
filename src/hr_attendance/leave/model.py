from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Sequence, Tuple

from ..core.enums import LeaveStatus, LeaveType
from ..storage.base import UploadedFile
from ..users.model import User


def percentage(used: int, total: int) -> float:
    return round(used / total * 100, 2) if total > 0 else 0


@dataclass(frozen=True)
class LeaveRequestProof:
    proof_id: int
    leave_request_id: int
    filename: str
    path: str
    disk: str
    mime_type: str
    size: int
    description: Optional[str] = None
    is_verified: bool = False
    verified_at: Optional[datetime] = None
    verified_by: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def human_readable_size(self) -> str:
        value = float(self.size)
        units = ["B", "KB", "MB", "GB", "TB"]
        i = 0
        while value > 1024 and i < len(units) - 1:
            value /= 1024
            i += 1
        return f"{value:.2f}".rstrip("0").rstrip(".") + f" {units[i]}"

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf"


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    status: LeaveStatus
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    proofs: Tuple[LeaveRequestProof, ...] = ()

    @property
    def duration(self) -> int:
        """Inclusive calendar days."""
        return (self.end_date - self.start_date).days + 1

    @property
    def quota_year(self) -> int:
        return self.start_date.year

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start


@dataclass(frozen=True)
class LeaveQuota:
    quota_id: int
    user_id: int
    year: int
    total_quota: int
    used_quota: int
    remaining_quota: int

    @property
    def percentage_used(self) -> float:
        return percentage(self.used_quota, self.total_quota)

    def with_used(self, used: int) -> "LeaveQuota":
        used = max(int(used), 0)
        return LeaveQuota(
            quota_id=self.quota_id,
            user_id=self.user_id,
            year=self.year,
            total_quota=self.total_quota,
            used_quota=used,
            remaining_quota=self.total_quota - used,
        )

    def with_total(self, total: int) -> "LeaveQuota":
        return LeaveQuota(
            quota_id=self.quota_id,
            user_id=self.user_id,
            year=self.year,
            total_quota=int(total),
            used_quota=self.used_quota,
            remaining_quota=int(total) - self.used_quota,
        )


@dataclass(frozen=True)
class QuotaSnapshot:
    """Read-only quota figures; `persisted` is False when no row exists yet."""

    user_id: int
    year: int
    total_quota: int
    used_quota: int
    remaining_quota: int
    persisted: bool = True

    @property
    def percentage_used(self) -> float:
        return percentage(self.used_quota, self.total_quota)


@dataclass(frozen=True)
class ProofUpload:
    file: UploadedFile
    description: Optional[str] = None


@dataclass(frozen=True)
class ProofUrl:
    url: str
    expires_in_minutes: int
    expires_at: datetime


@dataclass(frozen=True)
class StatusChange:
    request: LeaveRequest
    changed: bool


@dataclass(frozen=True)
class QuotaGeneration:
    year: int
    default_quota: int
    created: int
    skipped: int


@dataclass(frozen=True)
class QuotaSummary:
    user: User
    year: int
    quota: LeaveQuota
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    leave_days: Dict[str, int]
    upcoming_leaves: Sequence[LeaveRequest] = field(default_factory=tuple)
