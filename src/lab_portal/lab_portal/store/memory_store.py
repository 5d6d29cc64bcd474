from __future__ import annotations

import copy
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple, TypeVar

from ..core.constants import DEFAULT_TRANSACTION_ATTEMPTS
from ..core.exceptions import DocumentNotFoundError, TransactionAbortedError
from .base import Document, DocumentStore, ListenerRegistry, Listener, OrderBy, Subscription, Unsubscribe, Where
from .fields import apply_set, apply_update, select

T = TypeVar("T")

_Write = Tuple[str, str, str, Any]


class _Conflict(Exception):
    pass


class MemoryTransaction:
    """Optimistic transaction: remembers the version of everything it read."""

    def __init__(self, store: "InMemoryDocumentStore"):
        self._store = store
        self.reads: Dict[Tuple[str, str], int] = {}
        self.writes: List[_Write] = []

    def get(self, collection: str, key: str) -> Optional[Document]:
        if self.writes:
            raise ValueError("Transactions require all reads to be executed before all writes")
        version, data = self._store._read(collection, key)
        self.reads[(collection, key)] = version
        return Document(key, data) if data is not None else None

    def set(self, collection: str, key: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        self.writes.append(("set_merge" if merge else "set", collection, key, copy.deepcopy(data)))

    def update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        self.writes.append(("update", collection, key, copy.deepcopy(fields)))

    def delete(self, collection: str, key: str) -> None:
        self.writes.append(("delete", collection, key, None))


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe in-process document store.

    Used for local development (``STORE_BACKEND=memory``) and by the test
    suite. Transactions are optimistic: a commit fails and the function is
    re-run when any document it read was written in the meantime.
    """

    def __init__(self, *, max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS):
        self._lock = threading.RLock()
        self._docs: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._versions: Dict[Tuple[str, str], int] = {}
        self._clock = 0
        self._listeners = ListenerRegistry()
        self._max_attempts = int(max_attempts)

    # -- internals ---------------------------------------------------------

    def _read(self, collection: str, key: str) -> Tuple[int, Optional[Dict[str, Any]]]:
        with self._lock:
            data = self._docs.get(collection, {}).get(key)
            return self._versions.get((collection, key), 0), copy.deepcopy(data)

    def _commit(self, writes: Sequence[_Write], reads: Optional[Dict[Tuple[str, str], int]] = None) -> None:
        touched: Set[str] = set()
        with self._lock:
            for (collection, key), version in (reads or {}).items():
                if self._versions.get((collection, key), 0) != version:
                    raise _Conflict()

            staged: Dict[Tuple[str, str], Optional[Dict[str, Any]]] = {}
            for op, collection, key, payload in writes:
                ref = (collection, key)
                current = staged[ref] if ref in staged else self._docs.get(collection, {}).get(key)
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
                self._clock += 1
                self._versions[(collection, key)] = self._clock
                bucket = self._docs.setdefault(collection, {})
                if data is None:
                    bucket.pop(key, None)
                else:
                    bucket[key] = data
                touched.add(collection)

        self._notify(touched)

    def _snapshot(self, collection: str) -> List[Document]:
        with self._lock:
            return [Document(k, copy.deepcopy(v)) for k, v in self._docs.get(collection, {}).items()]

    def _deliver(self, sub: Subscription) -> None:
        docs = select(self._snapshot(sub.collection), key=sub.key, predicates=sub.predicates, order_by=sub.order_by)
        sub.on_change(docs)

    def _notify(self, collections: Set[str]) -> None:
        for sub in self._listeners.for_collections(collections):
            self._deliver(sub)

    # -- DocumentStore -----------------------------------------------------

    def new_key(self, collection: str) -> str:
        return uuid.uuid4().hex[:20]

    def get(self, collection: str, key: str) -> Optional[Document]:
        _, data = self._read(collection, key)
        return Document(key, data) if data is not None else None

    def set(self, collection: str, key: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        self._commit([("set_merge" if merge else "set", collection, key, copy.deepcopy(data))])

    def update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        self._commit([("update", collection, key, copy.deepcopy(fields))])

    def delete(self, collection: str, key: str) -> None:
        self._commit([("delete", collection, key, None)])

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
        return select(self._snapshot(collection), predicates=predicates, order_by=order_by, limit=limit)

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

    def run_transaction(self, fn: Callable[[MemoryTransaction], T]) -> T:
        for _ in range(self._max_attempts):
            tx = MemoryTransaction(self)
            result = fn(tx)
            try:
                self._commit(tx.writes, tx.reads)
            except _Conflict:
                continue
            return result
        raise TransactionAbortedError(f"Transaction failed to commit after {self._max_attempts} attempts")
