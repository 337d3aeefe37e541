from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequestProof
from .repository import LeaveProofRepository

_COLUMNS = (
    "id, leave_request_id, filename, path, disk, mime_type, size, description, "
    "is_verified, verified_at, verified_by, created_at"
)


def _to_proof(r: Dict[str, Any]) -> LeaveRequestProof:
    return LeaveRequestProof(
        proof_id=int(r["id"]),
        leave_request_id=int(r["leave_request_id"]),
        filename=r["filename"],
        path=r["path"],
        disk=r["disk"],
        mime_type=r["mime_type"],
        size=int(r["size"]),
        description=r.get("description"),
        is_verified=bool(r.get("is_verified")),
        verified_at=r.get("verified_at"),
        verified_by=int(r["verified_by"]) if r.get("verified_by") is not None else None,
        created_at=r.get("created_at"),
    )


class MySQLLeaveProofRepository(LeaveProofRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        leave_request_id: int,
        filename: str,
        path: str,
        disk: str,
        mime_type: str,
        size: int,
        description: Optional[str],
        created_at: datetime,
    ) -> LeaveRequestProof:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_request_proofs(
                    leave_request_id, filename, path, disk, mime_type, size, description,
                    is_verified, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,0,%s,%s)
                """,
                (int(leave_request_id), filename, path, disk, mime_type, int(size), description, created_at, created_at),
            )
            return LeaveRequestProof(
                proof_id=int(cur.lastrowid),
                leave_request_id=int(leave_request_id),
                filename=filename,
                path=path,
                disk=disk,
                mime_type=mime_type,
                size=int(size),
                description=description,
                created_at=created_at,
            )

    def get_by_id(self, proof_id: int) -> Optional[LeaveRequestProof]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_request_proofs WHERE id=%s", (int(proof_id),))
            r = fetchone(cur)
            return _to_proof(r) if r else None

    def list_for_requests(self, request_ids: Iterable[int]) -> Sequence[LeaveRequestProof]:
        ids = [int(i) for i in request_ids]
        if not ids:
            return []
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_request_proofs
                WHERE leave_request_id IN ({placeholders})
                ORDER BY id ASC
                """,
                tuple(ids),
            )
            return [_to_proof(r) for r in fetchall(cur)]

    def count_for_request(self, request_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM leave_request_proofs WHERE leave_request_id=%s",
                (int(request_id),),
            )
            return int((fetchone(cur) or {}).get("total", 0))

    def delete(self, proof_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_request_proofs WHERE id=%s", (int(proof_id),))
            return cur.rowcount > 0

    def delete_for_request(self, request_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_request_proofs WHERE leave_request_id=%s", (int(request_id),))
            return int(cur.rowcount)

    def mark_verified(self, proof_id: int, *, verified_by: int, verified_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_request_proofs
                SET is_verified=1, verified_at=%s, verified_by=%s, updated_at=%s
                WHERE id=%s AND is_verified=0
                """,
                (verified_at, int(verified_by), verified_at, int(proof_id)),
            )
            return cur.rowcount > 0
