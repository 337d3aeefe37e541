from __future__ import annotations

from typing import Optional

from ..core.constants import QUOTA_BEARING_TYPES
from ..core.enums import LeaveStatus, LeaveType, Role


def initial_status(leave_type: LeaveType, actor_role: Role, requested_status: Optional[LeaveStatus] = None) -> LeaveStatus:
    """Status a new request starts in.

    Precedence: an explicit status from an admin, then auto-approval of sick
    leave, then pending.
    """

    if actor_role == Role.ADMIN and requested_status is not None:
        return requested_status
    if leave_type == LeaveType.SAKIT:
        return LeaveStatus.APPROVED
    return LeaveStatus.PENDING


def is_quota_bearing(leave_type: LeaveType) -> bool:
    return leave_type in QUOTA_BEARING_TYPES
