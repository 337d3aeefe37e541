from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import TaskLog
from .repository import TaskLogRepository

_COLUMNS = "id, user_id, attendance_id, description, photo_path, created_at, updated_at"


def _to_task_log(r: Dict[str, Any]) -> TaskLog:
    return TaskLog(
        task_log_id=int(r["id"]),
        user_id=int(r["user_id"]),
        attendance_id=int(r["attendance_id"]),
        description=r["description"],
        photo_path=r.get("photo_path"),
        created_at=r["created_at"],
        updated_at=r.get("updated_at"),
    )


class MySQLTaskLogRepository(TaskLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        attendance_id: int,
        description: str,
        photo_path: Optional[str],
        created_at: datetime,
    ) -> TaskLog:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO task_logs(user_id, attendance_id, description, photo_path, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), int(attendance_id), description, photo_path, created_at, created_at),
            )
            return TaskLog(
                task_log_id=int(cur.lastrowid),
                user_id=int(user_id),
                attendance_id=int(attendance_id),
                description=description,
                photo_path=photo_path,
                created_at=created_at,
                updated_at=created_at,
            )

    def get_by_id(self, task_log_id: int) -> Optional[TaskLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM task_logs WHERE id=%s", (int(task_log_id),))
            r = fetchone(cur)
            return _to_task_log(r) if r else None

    def update(
        self,
        task_log_id: int,
        *,
        description: str,
        photo_path: Optional[str],
        updated_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE task_logs
                SET description=%s, photo_path=%s, updated_at=%s
                WHERE id=%s
                """,
                (description, photo_path, updated_at, int(task_log_id)),
            )
            return cur.rowcount > 0

    def delete(self, task_log_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM task_logs WHERE id=%s", (int(task_log_id),))
            return cur.rowcount > 0

    def list_for_attendances(self, attendance_ids: Iterable[int]) -> Sequence[TaskLog]:
        ids = [int(i) for i in attendance_ids]
        if not ids:
            return []
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM task_logs
                WHERE attendance_id IN ({placeholders})
                ORDER BY created_at ASC, id ASC
                """,
                tuple(ids),
            )
            return [_to_task_log(r) for r in fetchall(cur)]
