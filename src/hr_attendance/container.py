from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.mysql_task_log_repository import MySQLTaskLogRepository
from .attendance.service import AttendanceService
from .attendance.task_log_service import TaskLogService
from .core.constants import DEFAULT_ANNUAL_QUOTA, DEFAULT_QR_EXPIRY_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .database.unit_of_work import MySQLUnitOfWork
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.service import HolidayService
from .leave.ledger import LeaveQuotaLedger
from .leave.mysql_leave_proof_repository import MySQLLeaveProofRepository
from .leave.mysql_leave_quota_repository import MySQLLeaveQuotaRepository
from .leave.mysql_leave_request_repository import MySQLLeaveRequestRepository
from .leave.service import LeaveRequestService
from .qr.mysql_qr_token_repository import MySQLQrTokenRepository
from .qr.service import QrTokenService
from .reports.service import AttendanceReportService
from .storage.base import ObjectStorage
from .storage.local_storage import LocalObjectStorage
from .users.mysql_user_repository import MySQLUserRepository
from .working_hours.mysql_working_hour_repository import MySQLWorkingHourRepository
from .working_hours.service import WorkingHourService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    uow: MySQLUnitOfWork
    storage: ObjectStorage

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    task_logs_repo: MySQLTaskLogRepository
    working_hours_repo: MySQLWorkingHourRepository
    holidays_repo: MySQLHolidayRepository
    leave_requests_repo: MySQLLeaveRequestRepository
    leave_proofs_repo: MySQLLeaveProofRepository
    leave_quotas_repo: MySQLLeaveQuotaRepository
    qr_tokens_repo: MySQLQrTokenRepository

    attendance_service: AttendanceService
    task_log_service: TaskLogService
    working_hour_service: WorkingHourService
    holiday_service: HolidayService
    leave_quota_ledger: LeaveQuotaLedger
    leave_request_service: LeaveRequestService
    report_service: AttendanceReportService
    qr_service: QrTokenService


def build_container(
    *,
    db_config: dict,
    secret_key: str,
    storage_root: str,
    storage_url_base: str,
    frontend_url: str,
    default_annual_quota: int = DEFAULT_ANNUAL_QUOTA,
    qr_default_expiry_minutes: int = DEFAULT_QR_EXPIRY_MINUTES,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    uow = MySQLUnitOfWork(conn)
    storage = LocalObjectStorage(storage_root, base_url=storage_url_base, secret_key=secret_key)

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    task_logs_repo = MySQLTaskLogRepository(conn)
    working_hours_repo = MySQLWorkingHourRepository(conn)
    holidays_repo = MySQLHolidayRepository(conn)
    leave_requests_repo = MySQLLeaveRequestRepository(conn)
    leave_proofs_repo = MySQLLeaveProofRepository(conn)
    leave_quotas_repo = MySQLLeaveQuotaRepository(conn)
    qr_tokens_repo = MySQLQrTokenRepository(conn)

    attendance_service = AttendanceService(attendance_repo, task_logs_repo, users_repo, uow)
    task_log_service = TaskLogService(task_logs_repo, attendance_repo, storage, uow)
    working_hour_service = WorkingHourService(working_hours_repo, users_repo, holidays_repo, uow)
    holiday_service = HolidayService(holidays_repo, working_hours_repo, uow)
    leave_quota_ledger = LeaveQuotaLedger(
        leave_quotas_repo, users_repo, uow, default_annual_quota=default_annual_quota
    )
    leave_request_service = LeaveRequestService(
        leave_requests_repo, leave_proofs_repo, leave_quota_ledger, users_repo, storage, uow
    )
    report_service = AttendanceReportService(
        attendance_repo,
        task_logs_repo,
        leave_requests_repo,
        holidays_repo,
        working_hours_repo,
        leave_quota_ledger,
        users_repo,
    )
    qr_service = QrTokenService(
        qr_tokens_repo,
        attendance_service,
        uow,
        frontend_url=frontend_url,
        default_expiry_minutes=qr_default_expiry_minutes,
    )

    return Container(
        conn=conn,
        uow=uow,
        storage=storage,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        task_logs_repo=task_logs_repo,
        working_hours_repo=working_hours_repo,
        holidays_repo=holidays_repo,
        leave_requests_repo=leave_requests_repo,
        leave_proofs_repo=leave_proofs_repo,
        leave_quotas_repo=leave_quotas_repo,
        qr_tokens_repo=qr_tokens_repo,
        attendance_service=attendance_service,
        task_log_service=task_log_service,
        working_hour_service=working_hour_service,
        holiday_service=holiday_service,
        leave_quota_ledger=leave_quota_ledger,
        leave_request_service=leave_request_service,
        report_service=report_service,
        qr_service=qr_service,
    )
