from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple, TypeVar

import mysql.connector

from ..core.constants import DEFAULT_TRANSACTION_ATTEMPTS
from ..core.exceptions import DocumentNotFoundError, TransactionAbortedError
from .base import Document, DocumentStore, ListenerRegistry, Listener, OrderBy, Subscription, Unsubscribe, Where
from .connection import ConnectionFactory
from .fields import apply_set, apply_update, select
from .mysql_base import RETRYABLE_ERRNOS, db_cursor, decode_document, encode_document, fetchall, fetchone, translate_error

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_Write = Tuple[str, str, str, Any]


def _select_one(cur, collection: str, key: str, *, for_update: bool) -> Optional[Dict[str, Any]]:
    cur.execute(
        "SELECT data FROM documents WHERE collection=%s AND doc_key=%s" + (" FOR UPDATE" if for_update else ""),
        (collection, key),
    )
    row = fetchone(cur)
    return decode_document(row["data"]) if row else None


def _apply_writes(cur, writes: Sequence[_Write]) -> Set[str]:
    staged: Dict[Tuple[str, str], Optional[Dict[str, Any]]] = {}
    for op, collection, key, payload in writes:
        ref = (collection, key)
        current = staged[ref] if ref in staged else _select_one(cur, collection, key, for_update=True)
        if op == "set":
            staged[ref] = apply_set(None, payload, merge=False)
        elif op == "set_merge":
            staged[ref] = apply_set(current, payload, merge=True)
        elif op == "update":
            if current is None:
                raise DocumentNotFoundError(f"No document to update: {collection}/{key}")
            staged[ref] = apply_update(current, payload)
        else:
            staged[ref] = None

    for (collection, key), data in staged.items():
        if data is None:
            cur.execute("DELETE FROM documents WHERE collection=%s AND doc_key=%s", (collection, key))
        else:
            cur.execute(
                """
                INSERT INTO documents (collection, doc_key, data, version)
                VALUES (%s, %s, %s, 1)
                ON DUPLICATE KEY UPDATE data=VALUES(data), version=version+1
                """,
                (collection, key, encode_document(data)),
            )
    return {collection for collection, _ in staged}


class MySQLTransaction:
    """Pessimistic transaction: every read locks the row (``SELECT ... FOR UPDATE``)."""

    def __init__(self, cur):
        self._cur = cur
        self.writes: List[_Write] = []

    def get(self, collection: str, key: str) -> Optional[Document]:
        if self.writes:
            raise ValueError("Transactions require all reads to be executed before all writes")
        data = _select_one(self._cur, collection, key, for_update=True)
        return Document(key, data) if data is not None else None

    def set(self, collection: str, key: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        self.writes.append(("set_merge" if merge else "set", collection, key, data))

    def update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        self.writes.append(("update", collection, key, fields))

    def delete(self, collection: str, key: str) -> None:
        self.writes.append(("delete", collection, key, None))


class MySQLDocumentStore(DocumentStore):
    """Documents kept as JSON rows in a single ``documents`` table.

    Queries are filtered in Python after loading the collection, which is fine
    for the size of a club roster. Live subscriptions only see writes made
    through this process.
    """

    def __init__(self, conn_factory: ConnectionFactory, *, max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS):
        self._conn_factory = conn_factory
        self._listeners = ListenerRegistry()
        self._max_attempts = int(max_attempts)

    def _load(self, collection: str) -> List[Document]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("SELECT doc_key, data FROM documents WHERE collection=%s", (collection,))
                return [Document(str(r["doc_key"]), decode_document(r["data"])) for r in fetchall(cur)]
        except mysql.connector.Error as e:
            raise translate_error(e) from e

    def _deliver(self, sub: Subscription) -> None:
        sub.on_change(select(self._load(sub.collection), key=sub.key, predicates=sub.predicates, order_by=sub.order_by))

    def _notify(self, collections: Set[str]) -> None:
        for sub in self._listeners.for_collections(collections):
            self._deliver(sub)

    def _write(self, writes: Sequence[_Write]) -> None:
        self.run_transaction(lambda tx: tx.writes.extend(writes))

    def new_key(self, collection: str) -> str:
        return uuid.uuid4().hex[:20]

    def get(self, collection: str, key: str) -> Optional[Document]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                data = _select_one(cur, collection, key, for_update=False)
        except mysql.connector.Error as e:
            raise translate_error(e) from e
        return Document(key, data) if data is not None else None

    def set(self, collection: str, key: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        self._write([("set_merge" if merge else "set", collection, key, data)])

    def update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        self._write([("update", collection, key, fields)])

    def delete(self, collection: str, key: str) -> None:
        self._write([("delete", collection, key, None)])

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        key = self.new_key(collection)
        self.set(collection, key, data)
        return key

    def query(
        self,
        collection: str,
        predicates: Sequence[Where] = (),
        *,
        order_by: Sequence[OrderBy] = (),
        limit: Optional[int] = None,
    ) -> List[Document]:
        return select(self._load(collection), predicates=predicates, order_by=order_by, limit=limit)

    def subscribe(
        self,
        collection: str,
        on_change: Listener,
        *,
        key: Optional[str] = None,
        predicates: Sequence[Where] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> Unsubscribe:
        sub = Subscription(collection=collection, on_change=on_change, key=key, predicates=predicates, order_by=order_by)
        unsubscribe = self._listeners.add(sub)
        self._deliver(sub)
        return unsubscribe

    def run_transaction(self, fn: Callable[[MySQLTransaction], T]) -> T:
        for attempt in range(1, self._max_attempts + 1):
            try:
                with db_cursor(self._conn_factory) as (_, cur):
                    tx = MySQLTransaction(cur)
                    result = fn(tx)
                    touched = _apply_writes(cur, tx.writes)
            except mysql.connector.Error as e:
                if getattr(e, "errno", None) in RETRYABLE_ERRNOS:
                    _logger.info("Transaction conflict (attempt %d/%d): %s", attempt, self._max_attempts, e)
                    continue
                raise translate_error(e) from e
            self._notify(touched)
            return result
        raise TransactionAbortedError(f"Transaction failed to commit after {self._max_attempts} attempts")
