"""Applies database/schema.sql and database/seed.sql to the configured MySQL server."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, List, Union

import structlog

from .connection import DBConfig, DatabaseConnection

logger = structlog.get_logger("shift_booking.database")

PathLike = Union[str, Path]

# Quoted literals and comments are matched whole so a ';' inside them never ends a statement.
_SQL_TOKEN = re.compile(
    r"""
      '(?:[^'\\]|\\.)*'
    | "(?:[^"\\]|\\.)*"
    | `[^`]*`
    | --[^\n]*
    | /\*.*?\*/
    | ;
    | [^'"`;\-/]+
    | [\-/]
    """,
    re.VERBOSE | re.DOTALL,
)
_DATABASE_SWITCH = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)


def split_sql(script: str) -> Iterator[str]:
    """Yield the statements of ``script`` without comments.

    ``CREATE DATABASE`` and ``USE`` statements are dropped; the target
    database always comes from ``DB_CONFIG``.
    """

    parts: List[str] = []
    for token in _SQL_TOKEN.findall(script):
        if token.startswith("--") or token.startswith("/*"):
            continue
        if token != ";":
            parts.append(token)
            continue
        statement = "".join(parts).strip()
        parts = []
        if statement and not _DATABASE_SWITCH.match(statement):
            yield statement

    statement = "".join(parts).strip()
    if statement and not _DATABASE_SWITCH.match(statement):
        yield statement


def ensure_database_exists(db_config: dict) -> None:
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


def run_sql_file(db_config: dict, path: PathLike) -> int:
    """Execute every statement of ``path`` in order and return how many ran."""

    statements = list(split_sql(Path(path).read_text(encoding="utf-8")))
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        for statement in statements:
            cur.execute(statement)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return len(statements)


def apply_schema(db_config: dict, *, schema_path: PathLike) -> None:
    ensure_database_exists(db_config)
    count = run_sql_file(db_config, schema_path)
    logger.info("schema_applied", path=str(schema_path), statements=count)


def apply_seed_sql(db_config: dict, *, seed_path: PathLike) -> None:
    count = run_sql_file(db_config, seed_path)
    logger.info("seed_applied", path=str(seed_path), statements=count)


def list_tables(db_config: dict) -> List[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(str(row[0]) for row in cur.fetchall())
    finally:
        conn.close()
