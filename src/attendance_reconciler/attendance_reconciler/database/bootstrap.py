from __future__ import annotations

import logging
import re
from pathlib import Path

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

REQUIRED_TABLES = (
    "facilities",
    "shifts",
    "shift_breaks",
    "employees",
    "attendance_days",
    "attendance_punches",
    "sync_failures",
    "approved_leaves",
)

_DB_SELECTION = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")
_LINE_COMMENT = re.compile(r"(?m)^\s*--.*$")


def schema_statements(sql: str) -> list[str]:
    """DDL statements of schema.sql, without the database selection lines.

    The target database comes from DB_CONFIG, so the file's own
    CREATE DATABASE / USE lines are dropped. schema.sql holds no string
    literals containing ';'.
    """
    sql = _LINE_COMMENT.sub("", _DB_SELECTION.sub("", sql))
    return [stmt.strip() for stmt in sql.split(";") if stmt.strip()]


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        connection_timeout=target.connect_timeout,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    target = DBConfig.from_dict(db_config)

    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        cur.execute(f"USE `{target.database}`")
        for stmt in schema_statements(Path(schema_path).read_text(encoding="utf-8")):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied to %s@%s/%s", target.user, target.host, target.database)


def list_tables(db_config: dict) -> list[str]:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [str(row[0]) for row in cur.fetchall()]
    finally:
        conn.close()


def missing_tables(db_config: dict) -> list[str]:
    present = {t.lower() for t in list_tables(db_config)}
    return [t for t in REQUIRED_TABLES if t not in present]
