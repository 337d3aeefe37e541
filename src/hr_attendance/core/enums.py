from __future__ import annotations

from datetime import date
from enum import Enum


class Role(str, Enum):
    """Roles supplied by the identity layer."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class ClockType(str, Enum):
    IN = "in"
    OUT = "out"


class ClockMethod(str, Enum):
    MANUAL = "manual"
    QR_CODE = "qr_code"


class LeaveType(str, Enum):
    """Leave types. `izin` was dropped from the schema and is not accepted."""

    SAKIT = "sakit"
    CUTI = "cuti"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, day: date) -> "DayOfWeek":
        return list(cls)[day.weekday()]
