from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from ..common.pagination import Page
from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, order_clause
from .filters import LeaveRequestQuery
from .model import LeaveRequest
from .repository import LeaveRequestRepository

_COLUMNS = "id, user_id, type, reason, start_date, end_date, status, created_at"

_SORT_COLUMNS = {
    "created_at": "created_at",
    "start_date": "start_date",
    "end_date": "end_date",
    "status": "status",
    "type": "type",
}

# Intersects [%s, %s]; takes the range twice.
_OVERLAPS = "(start_date <= %s AND end_date >= %s)"


def _to_request(r: Dict[str, Any]) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["id"]),
        user_id=int(r["user_id"]),
        leave_type=LeaveType(r["type"]),
        reason=r.get("reason"),
        start_date=r["start_date"],
        end_date=r["end_date"],
        status=LeaveStatus(r["status"]),
        created_at=r.get("created_at"),
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(user_id, type, reason, start_date, end_date, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), leave_type.value, reason, start_date, end_date, status.value, created_at),
            )
            return LeaveRequest(
                request_id=int(cur.lastrowid),
                user_id=int(user_id),
                leave_type=leave_type,
                reason=reason,
                start_date=start_date,
                end_date=end_date,
                status=status,
                created_at=created_at,
            )

    def get_by_id(self, request_id: int, *, for_update: bool = False) -> Optional[LeaveRequest]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE id=%s{lock}", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def find_overlapping(self, user_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE user_id=%s AND status <> %s AND {_OVERLAPS}
                ORDER BY start_date ASC
                """,
                (int(user_id), LeaveStatus.REJECTED.value, end_date, start_date),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def update_status(self, request_id: int, status: LeaveStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leave_requests SET status=%s WHERE id=%s",
                (status.value, int(request_id)),
            )
            return cur.rowcount > 0

    def delete(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_requests WHERE id=%s", (int(request_id),))
            return cur.rowcount > 0

    def search(self, query: LeaveRequestQuery) -> Page[LeaveRequest]:
        clauses: List[str] = []
        params: List[object] = []
        if query.user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(query.user_id))
        if query.status is not None:
            clauses.append("status=%s")
            params.append(query.status.value)
        if query.leave_type is not None:
            clauses.append("type=%s")
            params.append(query.leave_type.value)
        if query.start_date is not None and query.end_date is not None:
            clauses.append(_OVERLAPS)
            params.extend([query.end_date, query.start_date])
        elif query.year is not None:
            clauses.append("(YEAR(start_date)=%s OR YEAR(end_date)=%s)")
            params.extend([int(query.year), int(query.year)])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        order = order_clause(query.sort_by, query.sort_direction, columns=_SORT_COLUMNS)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM leave_requests {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total", 0))
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                {where}
                ORDER BY {order}, id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (query.per_page, (query.page - 1) * query.per_page),
            )
            items = [_to_request(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=query.page, per_page=query.per_page)

    def list_for_year(self, user_id: int, year: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE user_id=%s AND (YEAR(start_date)=%s OR YEAR(end_date)=%s)
                ORDER BY start_date ASC
                """,
                (int(user_id), int(year), int(year)),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_upcoming_approved(self, user_id: int, from_date: date, limit: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE user_id=%s AND status=%s AND start_date >= %s
                ORDER BY start_date ASC
                LIMIT %s
                """,
                (int(user_id), LeaveStatus.APPROVED.value, from_date, int(limit)),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_approved_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE user_id=%s AND status=%s AND {_OVERLAPS}
                ORDER BY start_date ASC
                """,
                (int(user_id), LeaveStatus.APPROVED.value, end_date, start_date),
            )
            return [_to_request(r) for r in fetchall(cur)]
