from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..common.pagination import Page
from ..core.enums import ClockMethod, ClockType
from ..core.exceptions import DuplicateClockIn, DuplicateClockOut
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, order_clause
from .filters import AttendanceQuery
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "id, user_id, clock_type, location, method, created_at"

_SORT_COLUMNS = {
    "created_at": "created_at",
    "clock_type": "clock_type",
    "method": "method",
    "location": "location",
}


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["id"]),
        user_id=int(r["user_id"]),
        clock_type=ClockType(r["clock_type"]),
        location=r["location"],
        method=ClockMethod(r["method"]),
        created_at=r["created_at"],
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        clock_type: ClockType,
        location: str,
        method: ClockMethod,
        created_at: datetime,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendances(user_id, clock_type, location, method, created_at, updated_at)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (int(user_id), clock_type.value, location, method.value, created_at, created_at),
                )
            except IntegrityError as exc:
                # uq_attendance_user_type_day
                if exc.errno == errorcode.ER_DUP_ENTRY:
                    raise (DuplicateClockIn() if clock_type == ClockType.IN else DuplicateClockOut()) from exc
                raise
            return AttendanceRecord(
                attendance_id=int(cur.lastrowid),
                user_id=int(user_id),
                clock_type=clock_type,
                location=location,
                method=method,
                created_at=created_at,
            )

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendances WHERE id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def exists_for_day(self, user_id: int, clock_type: ClockType, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM attendances
                WHERE user_id=%s AND clock_type=%s AND clock_date=%s
                LIMIT 1
                """,
                (int(user_id), clock_type.value, day),
            )
            return fetchone(cur) is not None

    def list_for_day(self, user_id: int, day: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendances
                WHERE user_id=%s AND clock_date=%s
                ORDER BY created_at ASC, id ASC
                """,
                (int(user_id), day),
            )
            return [_to_record(r) for r in fetchall(cur)]

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
        clauses = ["user_id=%s", "clock_date BETWEEN %s AND %s"]
        params: List[object] = [int(user_id), start_date, end_date]
        self._append_filters(clauses, params, clock_type=clock_type, method=method, location=location)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendances
                WHERE {" AND ".join(clauses)}
                ORDER BY created_at ASC, id ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def latest_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendances
                WHERE user_id=%s
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def search(self, user_id: int, query: AttendanceQuery) -> Page[AttendanceRecord]:
        clauses = ["user_id=%s", "clock_date >= %s"]
        params: List[object] = [int(user_id), query.start_date]
        if query.end_date is not None:
            clauses.append("clock_date <= %s")
            params.append(query.end_date)
        self._append_filters(
            clauses, params, clock_type=query.clock_type, method=query.method, location=query.location
        )
        where = " AND ".join(clauses)
        order = order_clause(query.sort_by, query.sort_direction, columns=_SORT_COLUMNS)
        offset = (query.page - 1) * query.per_page

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendances WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total", 0))
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendances
                WHERE {where}
                ORDER BY {order}, id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (query.per_page, offset),
            )
            items = [_to_record(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=query.page, per_page=query.per_page)

    @staticmethod
    def _append_filters(clauses, params, *, clock_type, method, location) -> None:
        if clock_type is not None:
            clauses.append("clock_type=%s")
            params.append(clock_type.value)
        if method is not None:
            clauses.append("method=%s")
            params.append(method.value)
        if location:
            clauses.append("location LIKE %s")
            params.append(f"%{location}%")
