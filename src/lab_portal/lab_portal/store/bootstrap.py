"""Create the MySQL database and the ``documents`` table from database/schema.sql."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Iterator

import mysql.connector

from .connection import ConnectionFactory, MySQLConfig
from .mysql_base import translate_error

_logger = logging.getLogger(__name__)

# CREATE DATABASE / USE lines are dropped so the configured database name wins.
_DATABASE_LINES = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b.*?;\s*$")


def schema_statements(sql: str) -> Iterator[str]:
    sql = _DATABASE_LINES.sub("", sql)
    lines = [line for line in sql.splitlines() if not line.lstrip().startswith("--")]
    for stmt in "\n".join(lines).split(";"):
        if stmt.strip():
            yield stmt.strip()


def _server_connection(config: MySQLConfig):
    # mysql-connector needs an existing database name, so connect to the server-level schema
    return ConnectionFactory(replace(config, database="information_schema")).connect()


def ensure_database_exists(db_config: dict) -> None:
    config = MySQLConfig.from_settings(db_config)
    try:
        conn = _server_connection(config)
        try:
            conn.cursor().execute(
                f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            )
            conn.commit()
        finally:
            conn.close()
    except mysql.connector.Error as e:
        raise translate_error(e) from e


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    statements = list(schema_statements(Path(schema_path).read_text(encoding="utf-8")))
    try:
        conn = ConnectionFactory(MySQLConfig.from_settings(db_config)).connect()
        try:
            cur = conn.cursor()
            for stmt in statements:
                cur.execute(stmt)
            conn.commit()
        finally:
            conn.close()
    except mysql.connector.Error as e:
        raise translate_error(e) from e
    _logger.info("Applied %d schema statement(s) from %s", len(statements), schema_path)


def list_tables(db_config: dict) -> list[str]:
    conn = ConnectionFactory(MySQLConfig.from_settings(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
