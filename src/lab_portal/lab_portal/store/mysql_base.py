from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StoreError, StorePermissionError, StoreUnavailableError
from .connection import ConnectionFactory

# Errors that mean "run the transaction again".
RETRYABLE_ERRNOS = {errorcode.ER_LOCK_DEADLOCK, errorcode.ER_LOCK_WAIT_TIMEOUT}
_PERMISSION_ERRNOS = {
    errorcode.ER_ACCESS_DENIED_ERROR,
    errorcode.ER_DBACCESS_DENIED_ERROR,
    errorcode.ER_TABLEACCESS_DENIED_ERROR,
}


def translate_error(exc: mysql.connector.Error) -> StoreError:
    """Map a connector error onto the store error taxonomy."""

    if getattr(exc, "errno", None) in _PERMISSION_ERRNOS:
        return StorePermissionError(str(exc))
    if isinstance(exc, (mysql.connector.InterfaceError, mysql.connector.OperationalError)):
        return StoreUnavailableError(str(exc))
    return StoreError(str(exc))


@contextmanager
def db_cursor(conn_factory: ConnectionFactory, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise translate_error(e) from e
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def _encode_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return {"$datetime": value.isoformat()}
    if isinstance(value, date):
        return {"$date": value.isoformat()}
    raise TypeError(f"Unsupported document value type: {type(value)!r}")


def _decode_hook(obj: Dict[str, Any]) -> Any:
    if len(obj) == 1:
        if "$datetime" in obj:
            return datetime.fromisoformat(obj["$datetime"])
        if "$date" in obj:
            return date.fromisoformat(obj["$date"])
    return obj


def encode_document(data: Dict[str, Any]) -> str:
    """Serialize a document for the JSON column (timestamps survive the round trip)."""
    return json.dumps(data, default=_encode_default, sort_keys=True)


def decode_document(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    return json.loads(raw, object_hook=_decode_hook) if raw else {}
