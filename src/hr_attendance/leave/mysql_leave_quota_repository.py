from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveQuota
from .repository import LeaveQuotaRepository

_COLUMNS = "id, user_id, year, total_quota, used_quota, remaining_quota"


def _to_quota(r: Dict[str, Any]) -> LeaveQuota:
    return LeaveQuota(
        quota_id=int(r["id"]),
        user_id=int(r["user_id"]),
        year=int(r["year"]),
        total_quota=int(r["total_quota"]),
        used_quota=int(r["used_quota"]),
        remaining_quota=int(r["remaining_quota"]),
    )


class MySQLLeaveQuotaRepository(LeaveQuotaRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, user_id: int, year: int) -> Optional[LeaveQuota]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_quotas WHERE user_id=%s AND year=%s",
                (int(user_id), int(year)),
            )
            r = fetchone(cur)
            return _to_quota(r) if r else None

    def get_by_id(self, quota_id: int, *, for_update: bool = False) -> Optional[LeaveQuota]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_quotas WHERE id=%s{lock}", (int(quota_id),))
            r = fetchone(cur)
            return _to_quota(r) if r else None

    def lock(self, user_id: int, year: int) -> Optional[LeaveQuota]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_quotas WHERE user_id=%s AND year=%s FOR UPDATE",
                (int(user_id), int(year)),
            )
            r = fetchone(cur)
            return _to_quota(r) if r else None

    def create_if_missing(self, *, user_id: int, year: int, total_quota: int) -> bool:
        # INSERT IGNORE leans on uq_leave_quotas_user_year, so concurrent lazy creation is safe.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO leave_quotas(user_id, year, total_quota, used_quota, remaining_quota)
                VALUES(%s,%s,%s,0,%s)
                """,
                (int(user_id), int(year), int(total_quota), int(total_quota)),
            )
            return cur.rowcount > 0

    def save(self, quota: LeaveQuota) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_quotas
                SET total_quota=%s, used_quota=%s, remaining_quota=%s
                WHERE id=%s
                """,
                (quota.total_quota, quota.used_quota, quota.remaining_quota, quota.quota_id),
            )
            return cur.rowcount > 0

    def list(self, *, year: int, user_id: Optional[int] = None) -> Sequence[LeaveQuota]:
        clauses = ["year=%s"]
        params: List[object] = [int(year)]
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_quotas WHERE {' AND '.join(clauses)} ORDER BY user_id",
                tuple(params),
            )
            return [_to_quota(r) for r in fetchall(cur)]
