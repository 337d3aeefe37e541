from __future__ import annotations

from types import SimpleNamespace

import pytest

from fakes import (
    FakeUnitOfWork,
    InMemoryAttendance,
    InMemoryHolidays,
    InMemoryLeaveProofs,
    InMemoryLeaveQuotas,
    InMemoryLeaveRequests,
    InMemoryObjectStorage,
    InMemoryQrTokens,
    InMemoryTaskLogs,
    InMemoryUsers,
    InMemoryWorkingHours,
)
from hr_attendance.attendance.service import AttendanceService
from hr_attendance.attendance.task_log_service import TaskLogService
from hr_attendance.holidays.service import HolidayService
from hr_attendance.leave.ledger import LeaveQuotaLedger
from hr_attendance.leave.service import LeaveRequestService
from hr_attendance.qr.service import QrTokenService
from hr_attendance.reports.service import AttendanceReportService
from hr_attendance.working_hours.service import WorkingHourService


def build_world(*, storage: InMemoryObjectStorage | None = None, default_annual_quota: int = 12) -> SimpleNamespace:
    users = InMemoryUsers.default()
    attendance = InMemoryAttendance()
    task_logs = InMemoryTaskLogs()
    holidays = InMemoryHolidays()
    working_hours = InMemoryWorkingHours(users)
    leave_requests = InMemoryLeaveRequests()
    leave_proofs = InMemoryLeaveProofs()
    leave_quotas = InMemoryLeaveQuotas()
    qr_tokens = InMemoryQrTokens()
    storage = storage or InMemoryObjectStorage()
    uow = FakeUnitOfWork(
        users, attendance, task_logs, holidays, working_hours, leave_requests, leave_proofs, leave_quotas, qr_tokens
    )

    attendance_service = AttendanceService(attendance, task_logs, users, uow)
    ledger = LeaveQuotaLedger(leave_quotas, users, uow, default_annual_quota=default_annual_quota)
    return SimpleNamespace(
        users=users,
        attendance=attendance,
        task_logs=task_logs,
        holidays=holidays,
        working_hours=working_hours,
        leave_requests=leave_requests,
        leave_proofs=leave_proofs,
        leave_quotas=leave_quotas,
        qr_tokens=qr_tokens,
        storage=storage,
        uow=uow,
        attendance_service=attendance_service,
        task_log_service=TaskLogService(task_logs, attendance, storage, uow),
        holiday_service=HolidayService(holidays, working_hours, uow),
        working_hour_service=WorkingHourService(working_hours, users, holidays, uow),
        leave_quota_ledger=ledger,
        leave_request_service=LeaveRequestService(leave_requests, leave_proofs, ledger, users, storage, uow),
        report_service=AttendanceReportService(
            attendance, task_logs, leave_requests, holidays, working_hours, ledger, users
        ),
        qr_service=QrTokenService(qr_tokens, attendance_service, uow, frontend_url="https://hr.example.com/"),
    )


@pytest.fixture
def world() -> SimpleNamespace:
    return build_world()


@pytest.fixture
def make_world():
    return build_world
