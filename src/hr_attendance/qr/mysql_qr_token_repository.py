from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import ClockType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import QrToken
from .repository import QrTokenRepository


class MySQLQrTokenRepository(QrTokenRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        token: str,
        clock_type: ClockType,
        location: str,
        expires_at: datetime,
        created_by: int,
        created_at: datetime,
    ) -> QrToken:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO qr_tokens(token, clock_type, location, is_used, expires_at, created_by, created_at, updated_at)
                VALUES(%s,%s,%s,0,%s,%s,%s,%s)
                """,
                (token, clock_type.value, location, expires_at, int(created_by), created_at, created_at),
            )
            return QrToken(
                token_id=int(cur.lastrowid),
                token=token,
                clock_type=clock_type,
                location=location,
                is_used=False,
                expires_at=expires_at,
                created_by=int(created_by),
                created_at=created_at,
            )

    def lock(self, token: str) -> Optional[QrToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, token, clock_type, location, is_used, expires_at, created_by, created_at
                FROM qr_tokens
                WHERE token=%s
                FOR UPDATE
                """,
                (token,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return QrToken(
                token_id=int(r["id"]),
                token=r["token"],
                clock_type=ClockType(r["clock_type"]),
                location=r["location"],
                is_used=bool(r["is_used"]),
                expires_at=r["expires_at"],
                created_by=int(r["created_by"]),
                created_at=r.get("created_at"),
            )

    def mark_used(self, token_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE qr_tokens SET is_used=1 WHERE id=%s AND is_used=0", (int(token_id),))
            return cur.rowcount > 0
