from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from ..core.constants import USERS
from ..core.enums import AccountStatus
from ..store.base import DocumentStore, OrderBy, Where
from .model import Member
from .repository import MemberRepository


class DocumentMemberRepository(MemberRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, uid: str) -> Optional[Member]:
        doc = self._store.get(USERS, uid)
        return Member.from_document(doc.key, doc.data) if doc else None

    def create(self, member: Member) -> None:
        self._store.set(USERS, member.uid, member.to_document())

    def update_fields(self, uid: str, fields: Dict[str, Any]) -> None:
        self._store.update(USERS, uid, fields)

    def delete_by_id(self, uid: str) -> None:
        self._store.delete(USERS, uid)

    def list_by_status(self, status: AccountStatus) -> Sequence[Member]:
        docs = self._store.query(USERS, [Where("accountStatus", "==", status.value)], order_by=[OrderBy("name")])
        return [Member.from_document(d.key, d.data) for d in docs]

    def list_all(self) -> Sequence[Member]:
        return [Member.from_document(d.key, d.data) for d in self._store.query(USERS, order_by=[OrderBy("name")])]

    def subscribe_by_status(self, status: AccountStatus, callback: Callable[[List[Member]], None]) -> Callable[[], None]:
        return self._store.subscribe(
            USERS,
            lambda docs: callback([Member.from_document(d.key, d.data) for d in docs]),
            predicates=[Where("accountStatus", "==", status.value)],
        )
