from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore import FieldFilter

from ..core.constants import DEFAULT_TRANSACTION_ATTEMPTS
from ..core.exceptions import (
    DocumentNotFoundError,
    StoreError,
    StorePermissionError,
    StoreUnavailableError,
    TransactionAbortedError,
)
from .base import DELETE_FIELD, ArrayRemove, ArrayUnion, Document, DocumentStore, Increment, Listener, OrderBy, Unsubscribe, Where

T = TypeVar("T")


def init_firestore(credentials_source: Optional[str] = None):
    """Initialize the default Firebase app once and return a Firestore client.

    ``credentials_source`` is either a path to a service-account file or the
    JSON content itself; without it Application Default Credentials are used.
    """

    if not firebase_admin._apps:
        if credentials_source:
            source = credentials_source.strip()
            cred = credentials.Certificate(json.loads(source) if source.startswith("{") else source)
            firebase_admin.initialize_app(cred)
        else:
            firebase_admin.initialize_app()
    return firestore.client()


def _to_native(value: Any) -> Any:
    if value is DELETE_FIELD:
        return firestore.DELETE_FIELD
    if isinstance(value, ArrayUnion):
        return firestore.ArrayUnion(list(value.values))
    if isinstance(value, ArrayRemove):
        return firestore.ArrayRemove(list(value.values))
    if isinstance(value, Increment):
        return firestore.Increment(value.amount)
    if isinstance(value, dict):
        return {k: _to_native(v) for k, v in value.items()}
    return value


def _translate(exc: Exception) -> Exception:
    if isinstance(exc, google_exceptions.PermissionDenied):
        return StorePermissionError(str(exc))
    if isinstance(exc, google_exceptions.NotFound):
        return DocumentNotFoundError(str(exc))
    if isinstance(exc, (google_exceptions.ServiceUnavailable, google_exceptions.DeadlineExceeded)):
        return StoreUnavailableError(str(exc))
    return StoreError(str(exc))


def _transaction_failure(exc: Exception) -> Optional[Exception]:
    """Map an error escaping a Firestore transaction; ``None`` means re-raise it."""

    if isinstance(exc, google_exceptions.Aborted):
        return TransactionAbortedError(str(exc))
    if isinstance(exc, google_exceptions.GoogleAPICallError):
        return _translate(exc)
    # Raised by the client library once max_attempts is exhausted.
    if isinstance(exc, ValueError) and "attempts" in str(exc):
        return TransactionAbortedError(str(exc))
    return None


def _snapshot_to_document(snap) -> Optional[Document]:
    if not snap.exists:
        return None
    return Document(snap.id, snap.to_dict() or {})


class FirestoreTransaction:
    def __init__(self, client, transaction):
        self._client = client
        self._transaction = transaction

    def _ref(self, collection: str, key: str):
        return self._client.collection(collection).document(key)

    def get(self, collection: str, key: str) -> Optional[Document]:
        return _snapshot_to_document(self._ref(collection, key).get(transaction=self._transaction))

    def set(self, collection: str, key: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        self._transaction.set(self._ref(collection, key), _to_native(data), merge=merge)

    def update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        self._transaction.update(self._ref(collection, key), _to_native(fields))

    def delete(self, collection: str, key: str) -> None:
        self._transaction.delete(self._ref(collection, key))


class FirestoreDocumentStore(DocumentStore):
    """Cloud Firestore backend (``firebase_admin``)."""

    def __init__(self, client, *, max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS):
        self._client = client
        self._max_attempts = int(max_attempts)

    def _query(self, collection: str, predicates: Sequence[Where], order_by: Sequence[OrderBy], limit: Optional[int] = None):
        q = self._client.collection(collection)
        for p in predicates:
            q = q.where(filter=FieldFilter(p.field, p.op, p.value))
        for o in order_by:
            q = q.order_by(o.field, direction=firestore.Query.DESCENDING if o.descending else firestore.Query.ASCENDING)
        if limit is not None:
            q = q.limit(int(limit))
        return q

    def new_key(self, collection: str) -> str:
        return self._client.collection(collection).document().id

    def get(self, collection: str, key: str) -> Optional[Document]:
        try:
            return _snapshot_to_document(self._client.collection(collection).document(key).get())
        except google_exceptions.GoogleAPICallError as e:
            raise _translate(e) from e

    def set(self, collection: str, key: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        try:
            self._client.collection(collection).document(key).set(_to_native(data), merge=merge)
        except google_exceptions.GoogleAPICallError as e:
            raise _translate(e) from e

    def update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        try:
            self._client.collection(collection).document(key).update(_to_native(fields))
        except google_exceptions.GoogleAPICallError as e:
            raise _translate(e) from e

    def delete(self, collection: str, key: str) -> None:
        try:
            self._client.collection(collection).document(key).delete()
        except google_exceptions.GoogleAPICallError as e:
            raise _translate(e) from e

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
        try:
            return [Document(s.id, s.to_dict() or {}) for s in self._query(collection, predicates, order_by, limit).stream()]
        except google_exceptions.GoogleAPICallError as e:
            raise _translate(e) from e

    def subscribe(
        self,
        collection: str,
        on_change: Listener,
        *,
        key: Optional[str] = None,
        predicates: Sequence[Where] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> Unsubscribe:
        if key is not None:
            target = self._client.collection(collection).document(key)

            def on_doc(snapshots, changes, read_time):
                on_change([d for d in (_snapshot_to_document(s) for s in snapshots) if d is not None])

            watch = target.on_snapshot(on_doc)
        else:

            def on_query(snapshots, changes, read_time):
                on_change([Document(s.id, s.to_dict() or {}) for s in snapshots])

            watch = self._query(collection, predicates, order_by).on_snapshot(on_query)
        return watch.unsubscribe

    def run_transaction(self, fn: Callable[[FirestoreTransaction], T]) -> T:
        client = self._client

        @firestore.transactional
        def _run(transaction):
            return fn(FirestoreTransaction(client, transaction))

        try:
            return _run(client.transaction(max_attempts=self._max_attempts))
        except (google_exceptions.GoogleAPICallError, ValueError) as e:
            mapped = _transaction_failure(e)
            if mapped is None:
                raise
            raise mapped from e
