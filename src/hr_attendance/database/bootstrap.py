from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a schema/seed file on ';' outside quotes; `--` comment lines are dropped."""
    sql = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    buf: list[str] = []
    quote = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif ch in ("'", '"'):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
        elif ch == ";" and quote is None:
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_file(target: DBConfig, path: Path) -> int:
    sql = _strip_create_db_and_use(path.read_text(encoding="utf-8"))
    conn = _connect(target)
    executed = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            executed += 1
        conn.commit()
    finally:
        conn.close()
    return executed


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_mapping(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _exec_file(DBConfig.from_mapping(db_config), Path(schema_path))
    logger.info("Applied %s schema statements from %s", count, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _exec_file(DBConfig.from_mapping(db_config), Path(seed_path))
    logger.info("Applied %s seed statements from %s", count, seed_path)


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_mapping(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
