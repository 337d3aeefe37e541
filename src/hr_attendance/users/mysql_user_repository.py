from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, email, role, department_id, position
                FROM users
                WHERE id=%s
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return User(
                user_id=int(r["id"]),
                name=r["name"],
                email=r["email"],
                role=Role(r["role"]),
                department_id=int(r["department_id"]) if r.get("department_id") is not None else None,
                position=r.get("position"),
            )

    def list_non_admin_ids(self) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM users WHERE role <> %s ORDER BY id", (Role.ADMIN.value,))
            return [int(r["id"]) for r in fetchall(cur)]

    def lock(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM users WHERE id=%s FOR UPDATE", (int(user_id),))
            return fetchone(cur) is not None
