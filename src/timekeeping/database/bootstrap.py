from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterator, Mapping

import structlog

from .connection import DatabaseConnection, DBConfig

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

logger = structlog.get_logger(__name__)

_DATABASE_DIRECTIVES = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE|USE)\b.*?;\s*$")
# quoted strings are matched whole so that a ';' inside them never ends a statement
_SQL_TOKEN = re.compile(r"'(?:\\.|''|[^'\\])*'|\"(?:\\.|[^\"\\])*\"|;|[^;'\"]+|['\"]", re.S)


def _strip_create_db_and_use(sql: str) -> str:
    """Drop CREATE DATABASE / USE lines; the target database comes from DB_CONFIG."""
    return _DATABASE_DIRECTIVES.sub("", sql)


def iter_sql_statements(sql: str) -> Iterator[str]:
    body = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    current: list[str] = []
    for token in _SQL_TOKEN.findall(body):
        if token != ";":
            current.append(token)
            continue
        statement = "".join(current).strip()
        current = []
        if statement:
            yield statement
    tail = "".join(current).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: Mapping[str, Any]) -> None:
    target = DBConfig.from_dict(db_config)
    conn = DatabaseConnection(target).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Mapping[str, Any], *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(db_config)
    target = DBConfig.from_dict(db_config)
    schema_path = Path(schema_path)
    statements = list(iter_sql_statements(_strip_create_db_and_use(schema_path.read_text(encoding="utf-8"))))

    conn = DatabaseConnection(target).connect()
    try:
        cur = conn.cursor()
        for statement in statements:
            cur.execute(statement)
        conn.commit()
    finally:
        conn.close()
    logger.info("schema_applied", database=target.describe(), statements=len(statements), schema=str(schema_path))


def list_tables(db_config: Mapping[str, Any]) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(row[0] for row in cur.fetchall())
    finally:
        conn.close()
