from __future__ import annotations

import logging
from dataclasses import dataclass

from .approvals.service import ApprovalService
from .attendance.document_attendance_repository import DocumentAttendanceRepository
from .attendance.service import AttendanceRegister
from .auth.flask_session import FlaskSessionProvider
from .core.constants import DEFAULT_CLUB_NAME, DEFAULT_ID_PREFIX, DEFAULT_TRANSACTION_ATTEMPTS
from .members.document_member_repository import DocumentMemberRepository
from .members.guard import SessionGuard
from .members.service import MemberService
from .store.base import DocumentStore
from .store.memory_store import InMemoryDocumentStore

_logger = logging.getLogger(__name__)

STORE_BACKENDS = ("memory", "mysql", "firestore")


@dataclass(frozen=True)
class Container:
    store: DocumentStore

    members_repo: DocumentMemberRepository
    attendance_repo: DocumentAttendanceRepository

    auth: FlaskSessionProvider
    session_guard: SessionGuard
    member_service: MemberService
    attendance_register: AttendanceRegister
    approval_service: ApprovalService


def build_store(
    backend: str,
    *,
    db_config: dict | None = None,
    firebase_credentials: str | None = None,
    max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
) -> DocumentStore:
    backend = (backend or "memory").strip().lower()
    if backend == "memory":
        return InMemoryDocumentStore(max_attempts=max_attempts)
    if backend == "mysql":
        from .store.connection import ConnectionFactory, MySQLConfig
        from .store.mysql_store import MySQLDocumentStore

        if not db_config:
            raise ValueError("STORE_BACKEND=mysql requires DB_CONFIG")
        return MySQLDocumentStore(ConnectionFactory(MySQLConfig.from_settings(db_config)), max_attempts=max_attempts)
    if backend == "firestore":
        from .store.firestore_store import FirestoreDocumentStore, init_firestore

        return FirestoreDocumentStore(init_firestore(firebase_credentials), max_attempts=max_attempts)
    raise ValueError(f"Unknown STORE_BACKEND {backend!r}; expected one of {', '.join(STORE_BACKENDS)}")


def build_container(
    *,
    store: DocumentStore,
    id_prefix: str = DEFAULT_ID_PREFIX,
    club_name: str = DEFAULT_CLUB_NAME,
) -> Container:
    members_repo = DocumentMemberRepository(store)
    attendance_repo = DocumentAttendanceRepository(store)

    auth = FlaskSessionProvider(store)
    session_guard = SessionGuard(auth, members_repo)
    attendance_register = AttendanceRegister(store, attendance_repo, members_repo)
    member_service = MemberService(
        members_repo,
        auth,
        club_name=club_name,
        on_rename=attendance_register.refresh_display_name,
    )
    approval_service = ApprovalService(store, members_repo, id_prefix=id_prefix)

    _logger.debug("Container ready (store=%s, prefix=%s)", type(store).__name__, id_prefix)
    return Container(
        store=store,
        members_repo=members_repo,
        attendance_repo=attendance_repo,
        auth=auth,
        session_guard=session_guard,
        member_service=member_service,
        attendance_register=attendance_register,
        approval_service=approval_service,
    )
