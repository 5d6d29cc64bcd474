from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Document:
    """A stored document: its key inside the collection plus a copy of its fields."""

    key: str
    data: Dict[str, Any]

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)


@dataclass(frozen=True)
class Where:
    """Query predicate: ``field <op> value``.

    Supported ops: ``==``, ``!=``, ``<``, ``<=``, ``>``, ``>=``, ``in``,
    ``array-contains``. ``Where("checkOutTime", "==", None)`` matches documents
    whose field is null.
    """

    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


# Field transforms, applied by the backend at write time.


class ArrayUnion:
    """Append the values not already present (by equality)."""

    def __init__(self, values):
        self.values: Tuple[Any, ...] = tuple(values)


class ArrayRemove:
    """Remove every element equal to one of the values."""

    def __init__(self, values):
        self.values: Tuple[Any, ...] = tuple(values)


@dataclass(frozen=True)
class Increment:
    amount: int = 1


class _DeleteField:
    _instance: Optional["_DeleteField"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


Listener = Callable[[List[Document]], None]
Unsubscribe = Callable[[], None]


class Transaction(Protocol):
    """Handle passed to a transaction function.

    All reads must happen before the first write, as with Firestore.
    """

    def get(self, collection: str, key: str) -> Optional[Document]:
        raise NotImplementedError

    def set(self, collection: str, key: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        raise NotImplementedError

    def update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, collection: str, key: str) -> None:
        raise NotImplementedError


class DocumentStore(Protocol):
    """Interface of the document database the portal runs on.

    Note (DIP): services depend on this interface, never on a concrete backend.
    """

    def new_key(self, collection: str) -> str:
        raise NotImplementedError

    def get(self, collection: str, key: str) -> Optional[Document]:
        raise NotImplementedError

    def set(self, collection: str, key: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        raise NotImplementedError

    def update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, collection: str, key: str) -> None:
        raise NotImplementedError

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def query(
        self,
        collection: str,
        predicates: Sequence[Where] = (),
        *,
        order_by: Sequence[OrderBy] = (),
        limit: Optional[int] = None,
    ) -> List[Document]:
        raise NotImplementedError

    def subscribe(
        self,
        collection: str,
        on_change: Listener,
        *,
        key: Optional[str] = None,
        predicates: Sequence[Where] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> Unsubscribe:
        """Call ``on_change`` with the current matching documents now and after every change."""

        raise NotImplementedError

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        """Run ``fn`` atomically, retrying it on write conflicts.

        Raises ``TransactionAbortedError`` once the retry budget is exhausted.
        """

        raise NotImplementedError


@dataclass(eq=False)
class Subscription:
    collection: str
    on_change: Listener
    key: Optional[str] = None
    predicates: Sequence[Where] = ()
    order_by: Sequence[OrderBy] = ()
    active: bool = True


@dataclass
class ListenerRegistry:
    """In-process fan-out of change notifications, shared by local backends."""

    _subs: List[Subscription] = field(default_factory=list)

    def add(self, sub: Subscription) -> Unsubscribe:
        self._subs.append(sub)

        def unsubscribe() -> None:
            sub.active = False
            if sub in self._subs:
                self._subs.remove(sub)

        return unsubscribe

    def for_collections(self, collections) -> List[Subscription]:
        wanted = set(collections)
        return [s for s in list(self._subs) if s.active and s.collection in wanted]
