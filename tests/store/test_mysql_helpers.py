from __future__ import annotations

from datetime import datetime
from pathlib import Path

from src.lab_portal.lab_portal.store.bootstrap import schema_statements
from src.lab_portal.lab_portal.store.connection import MySQLConfig
from src.lab_portal.lab_portal.store.mysql_base import decode_document, encode_document

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_schema_statements_skip_database_lines_and_comments():
    statements = list(schema_statements(SCHEMA.read_text(encoding="utf-8")))

    assert len(statements) == 1
    assert statements[0].startswith("CREATE TABLE IF NOT EXISTS documents")


def test_timestamps_survive_the_json_column():
    data = {"checkInTime": datetime(2025, 8, 1, 9, 30), "checkOutTime": None, "date": "2025-08-01"}

    assert decode_document(encode_document(data)) == data
    assert decode_document(b"") == {}


def test_config_from_settings_defaults():
    config = MySQLConfig.from_settings({"host": "db", "user": "lab", "database": "lab_portal"})

    assert config.port == 3306
    assert config.password == ""
