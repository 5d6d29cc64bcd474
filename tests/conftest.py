from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

import pytest

from src.lab_portal.lab_portal.approvals.service import ApprovalService
from src.lab_portal.lab_portal.attendance.document_attendance_repository import DocumentAttendanceRepository
from src.lab_portal.lab_portal.attendance.service import AttendanceRegister
from src.lab_portal.lab_portal.core.enums import AccountStatus, PermissionRole, UserType
from src.lab_portal.lab_portal.core.exceptions import AuthenticationError, ValidationError
from src.lab_portal.lab_portal.members.document_member_repository import DocumentMemberRepository
from src.lab_portal.lab_portal.members.model import Member
from src.lab_portal.lab_portal.members.service import MemberService
from src.lab_portal.lab_portal.store.memory_store import InMemoryDocumentStore


class FakeAuth:
    """Session provider without Flask: accounts in a dict, one global session."""

    def __init__(self):
        self.accounts: dict[str, tuple[str, str]] = {}
        self.uid: Optional[str] = None
        self._next = 1

    def create_account(self, email: str, password: str) -> str:
        email = email.strip().lower()
        if email in self.accounts:
            raise ValidationError("This email address is already registered.")
        uid = f"uid-{self._next}"
        self._next += 1
        self.accounts[email] = (uid, password)
        return uid

    def sign_in(self, email: str, password: str) -> str:
        entry = self.accounts.get(email.strip().lower())
        if not entry or entry[1] != password:
            raise AuthenticationError("Invalid email or password.")
        self.uid = entry[0]
        return self.uid

    def sign_out(self) -> None:
        self.uid = None

    def current_uid(self) -> Optional[str]:
        return self.uid

    def on_session_change(self, callback: Callable[[Optional[str]], None]) -> Callable[[], None]:
        return lambda: None


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 8, 1, 9, 30, 0)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(max_attempts=5)


@pytest.fixture
def members(store) -> DocumentMemberRepository:
    return DocumentMemberRepository(store)


@pytest.fixture
def attendance(store) -> DocumentAttendanceRepository:
    return DocumentAttendanceRepository(store)


@pytest.fixture
def auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture
def register(store, attendance, members) -> AttendanceRegister:
    return AttendanceRegister(store, attendance, members)


@pytest.fixture
def approvals(store, members) -> ApprovalService:
    return ApprovalService(store, members, id_prefix="SAE")


@pytest.fixture
def member_service(members, auth, register) -> MemberService:
    return MemberService(members, auth, club_name="SAE CUSAT", on_rename=register.refresh_display_name)


@pytest.fixture
def make_member(members):
    """Store a member document and return the entity."""

    def _make(
        uid: str,
        name: str,
        *,
        role: PermissionRole = PermissionRole.MEMBER,
        status: AccountStatus = AccountStatus.APPROVED,
        user_type: UserType = UserType.STUDENT,
        branch: str = "CS",
        join_year: Optional[str] = "25",
        sae_id: Optional[str] = None,
    ) -> Member:
        member = Member(
            uid=uid,
            name=name,
            email=f"{uid}@example.com",
            user_type=user_type,
            permission_role=role,
            account_status=status,
            sae_id=sae_id,
            branch=branch,
            join_year=join_year,
        )
        members.create(member)
        return member

    return _make
