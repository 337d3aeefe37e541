from __future__ import annotations

from datetime import time
from typing import Any, Dict, List, Optional, Sequence

from ..common.pagination import Page
from ..core.enums import DayOfWeek
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import WorkingHour
from .repository import WorkingHourRepository

_SELECT = """
    SELECT wh.id, wh.user_id, wh.day_of_week, wh.start_time, wh.end_time, u.name AS user_name
    FROM working_hours wh
    LEFT JOIN users u ON u.id = wh.user_id
"""

_DAY_ORDER = "FIELD(wh.day_of_week,'monday','tuesday','wednesday','thursday','friday','saturday','sunday')"


def _to_working_hour(r: Dict[str, Any]) -> WorkingHour:
    return WorkingHour(
        working_hour_id=int(r["id"]),
        user_id=int(r["user_id"]),
        day_of_week=DayOfWeek(r["day_of_week"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        user_name=r.get("user_name"),
    )


class MySQLWorkingHourRepository(WorkingHourRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(self, *, user_id: int, day_of_week: DayOfWeek, start_time: time, end_time: time) -> WorkingHour:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO working_hours(user_id, day_of_week, start_time, end_time)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE start_time=VALUES(start_time), end_time=VALUES(end_time)
                """,
                (int(user_id), day_of_week.value, start_time, end_time),
            )
            cur.execute(
                f"{_SELECT} WHERE wh.user_id=%s AND wh.day_of_week=%s",
                (int(user_id), day_of_week.value),
            )
            return _to_working_hour(fetchone(cur))

    def get_by_id(self, working_hour_id: int) -> Optional[WorkingHour]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE wh.id=%s", (int(working_hour_id),))
            r = fetchone(cur)
            return _to_working_hour(r) if r else None

    def delete(self, working_hour_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM working_hours WHERE id=%s", (int(working_hour_id),))
            return cur.rowcount > 0

    def delete_for_user(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM working_hours WHERE user_id=%s", (int(user_id),))
            return int(cur.rowcount)

    def delete_for_day(self, day_of_week: DayOfWeek) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM working_hours WHERE day_of_week=%s", (day_of_week.value,))
            return int(cur.rowcount)

    def list_for_user(self, user_id: int) -> Sequence[WorkingHour]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE wh.user_id=%s ORDER BY {_DAY_ORDER}", (int(user_id),))
            return [_to_working_hour(r) for r in fetchall(cur)]

    def list_for_day(self, day_of_week: DayOfWeek) -> Sequence[WorkingHour]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE wh.day_of_week=%s ORDER BY wh.user_id", (day_of_week.value,))
            return [_to_working_hour(r) for r in fetchall(cur)]

    def search(
        self,
        *,
        user_id: Optional[int] = None,
        day_of_week: Optional[DayOfWeek] = None,
        min_start_time: Optional[time] = None,
        max_start_time: Optional[time] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Page[WorkingHour]:
        clauses: List[str] = []
        params: List[object] = []
        if user_id is not None:
            clauses.append("wh.user_id=%s")
            params.append(int(user_id))
        if day_of_week is not None:
            clauses.append("wh.day_of_week=%s")
            params.append(day_of_week.value)
        if min_start_time is not None:
            clauses.append("wh.start_time >= %s")
            params.append(min_start_time)
        if max_start_time is not None:
            clauses.append("wh.start_time <= %s")
            params.append(max_start_time)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM working_hours wh {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total", 0))
            cur.execute(
                f"{_SELECT} {where} ORDER BY wh.user_id, {_DAY_ORDER} LIMIT %s OFFSET %s",
                tuple(params) + (int(per_page), (int(page) - 1) * int(per_page)),
            )
            items = [_to_working_hour(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=page, per_page=per_page)
