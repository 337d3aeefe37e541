from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from ..common.pagination import Page
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Holiday
from .repository import HolidayRepository

_COLUMNS = "id, name, date, description, is_recurring"


def _to_holiday(r: Dict[str, Any]) -> Holiday:
    return Holiday(
        holiday_id=int(r["id"]),
        name=r["name"],
        date=r["date"],
        description=r.get("description"),
        is_recurring=bool(r.get("is_recurring")),
    )


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, name: str, holiday_date: date, description: Optional[str], is_recurring: bool) -> Holiday:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO holidays(name, date, description, is_recurring)
                VALUES(%s,%s,%s,%s)
                """,
                (name, holiday_date, description, 1 if is_recurring else 0),
            )
            return Holiday(
                holiday_id=int(cur.lastrowid),
                name=name,
                date=holiday_date,
                description=description,
                is_recurring=is_recurring,
            )

    def get_by_id(self, holiday_id: int) -> Optional[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM holidays WHERE id=%s", (int(holiday_id),))
            r = fetchone(cur)
            return _to_holiday(r) if r else None

    def update(self, holiday: Holiday) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE holidays
                SET name=%s, date=%s, description=%s, is_recurring=%s
                WHERE id=%s
                """,
                (
                    holiday.name,
                    holiday.date,
                    holiday.description,
                    1 if holiday.is_recurring else 0,
                    holiday.holiday_id,
                ),
            )
            return cur.rowcount > 0

    def delete(self, holiday_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM holidays WHERE id=%s", (int(holiday_id),))
            return cur.rowcount > 0

    def list_relevant(self, start_date: date, end_date: date) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM holidays
                WHERE date BETWEEN %s AND %s OR is_recurring = 1
                ORDER BY date ASC, id ASC
                """,
                (start_date, end_date),
            )
            return [_to_holiday(r) for r in fetchall(cur)]

    def search(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        year: Optional[int] = None,
        is_recurring: Optional[bool] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Page[Holiday]:
        clauses: List[str] = []
        params: List[object] = []
        if start_date is not None and end_date is not None:
            clauses.append("date BETWEEN %s AND %s")
            params.extend([start_date, end_date])
        elif year is not None:
            clauses.append("(YEAR(date)=%s OR is_recurring = 1)")
            params.append(int(year))
        if is_recurring is not None:
            clauses.append("is_recurring=%s")
            params.append(1 if is_recurring else 0)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM holidays {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total", 0))
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM holidays
                {where}
                ORDER BY date ASC, id ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(per_page), (int(page) - 1) * int(per_page)),
            )
            items = [_to_holiday(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=page, per_page=per_page)
