from __future__ import annotations

import threading

import pytest

from src.lab_portal.lab_portal.approvals.category import IdCategory
from src.lab_portal.lab_portal.approvals.service import ApprovalService
from src.lab_portal.lab_portal.core.enums import AccountStatus, PermissionRole, UserType
from src.lab_portal.lab_portal.core.exceptions import (
    AuthorizationError,
    MemberNotFoundError,
    NotPendingError,
    StoreUnavailableError,
    UnknownCategoryError,
)
from src.lab_portal.lab_portal.members.document_member_repository import DocumentMemberRepository
from src.lab_portal.lab_portal.store.memory_store import InMemoryDocumentStore


@pytest.fixture
def admin(make_member):
    return make_member("admin", "Admin", role=PermissionRole.ADMIN, user_type=UserType.FACULTY)


def test_first_approval_in_category_gets_serial_one(store, approvals, make_member, admin, members):
    make_member("m", "Meera", status=AccountStatus.PENDING, branch="CS", join_year="25")

    sae_id = approvals.approve(actor=admin, uid="m")

    assert sae_id == "SAECS25001"
    assert store.get("counters", "CS25").data == {"count": 1}
    approved = members.get_by_id("m")
    assert approved.account_status == AccountStatus.APPROVED
    assert approved.sae_id == "SAECS25001"


def test_categories_have_independent_counters(approvals, make_member, admin):
    make_member("a", "A", status=AccountStatus.PENDING, branch="CS", join_year="25")
    make_member("b", "B", status=AccountStatus.PENDING, branch="CS", join_year="25")
    make_member("c", "C", status=AccountStatus.PENDING, branch="ME", join_year="24")

    assert approvals.approve(actor=admin, uid="a") == "SAECS25001"
    assert approvals.approve(actor=admin, uid="c") == "SAEME24001"
    assert approvals.approve(actor=admin, uid="b") == "SAECS25002"


def test_faculty_are_numbered_per_department(approvals, make_member, admin):
    make_member("f", "Dr. F", status=AccountStatus.PENDING, user_type=UserType.FACULTY, branch="ME", join_year=None)

    assert approvals.approve(actor=admin, uid="f") == "SAEFACME001"


def test_approving_twice_is_rejected(approvals, make_member, admin):
    make_member("m", "Meera", status=AccountStatus.PENDING)
    approvals.approve(actor=admin, uid="m")

    with pytest.raises(NotPendingError):
        approvals.approve(actor=admin, uid="m")


def test_unknown_branch_fails_approval(store, approvals, make_member, admin, members):
    make_member("m", "Meera", status=AccountStatus.PENDING, branch="Underwater Basket Weaving")

    with pytest.raises(UnknownCategoryError):
        approvals.approve(actor=admin, uid="m")
    assert members.get_by_id("m").is_pending
    assert store.query("counters") == []


def test_members_cannot_approve(approvals, make_member):
    actor = make_member("x", "Plain Member")
    make_member("m", "Meera", status=AccountStatus.PENDING)

    with pytest.raises(AuthorizationError):
        approvals.approve(actor=actor, uid="m")


def test_concurrent_approvals_get_distinct_serials(make_member, admin):
    store = InMemoryDocumentStore(max_attempts=200)
    members = DocumentMemberRepository(store)
    service = ApprovalService(store, members, id_prefix="SAE")
    uids = [f"m{i}" for i in range(8)]
    for uid in uids:
        members.create(make_member(uid, uid, status=AccountStatus.PENDING))

    issued = []
    lock = threading.Lock()
    barrier = threading.Barrier(len(uids))

    def approve(uid):
        barrier.wait()
        sae_id = service.approve(actor=admin, uid=uid)
        with lock:
            issued.append(sae_id)

    threads = [threading.Thread(target=approve, args=(uid,)) for uid in uids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(issued) == [f"SAECS25{n:03d}" for n in range(1, len(uids) + 1)]
    assert store.get("counters", "CS25").data == {"count": len(uids)}


class RacingStore(InMemoryDocumentStore):
    """Lets another approval bump a counter between this transaction's read and commit."""

    def __init__(self, competing_count: int):
        super().__init__(max_attempts=5)
        self.competing_count = competing_count
        self.raced = False

    def _commit(self, writes, reads=None):
        if reads and not self.raced:
            self.raced = True
            for collection, key in list(reads):
                super()._commit([("set", collection, key, {"count": self.competing_count})])
        return super()._commit(writes, reads)


def test_counter_conflict_is_retried_with_fresh_value():
    store = RacingStore(competing_count=7)
    service = ApprovalService(store, DocumentMemberRepository(store))

    assert service.allocate_serial(IdCategory("CS25")) == 8
    assert store.get("counters", "CS25").data == {"count": 8}


class FlakyUsersStore(InMemoryDocumentStore):
    """Fails the next write to ``users`` once armed."""

    def __init__(self):
        super().__init__(max_attempts=5)
        self.fail_user_writes = 0

    def _commit(self, writes, reads=None):
        if self.fail_user_writes and any(collection == "users" for _, collection, _, _ in writes):
            self.fail_user_writes -= 1
            raise StoreUnavailableError("network down")
        return super()._commit(writes, reads)


def test_failed_member_update_leaks_serial_without_reuse(make_member, admin):
    store = FlakyUsersStore()
    members = DocumentMemberRepository(store)
    service = ApprovalService(store, members)
    members.create(make_member("m", "Meera", status=AccountStatus.PENDING))
    store.fail_user_writes = 1

    with pytest.raises(StoreUnavailableError):
        service.approve(actor=admin, uid="m")
    assert store.get("counters", "CS25").data == {"count": 1}
    assert members.get_by_id("m").is_pending

    assert service.approve(actor=admin, uid="m") == "SAECS25002"


class InterleavedApprovals(ApprovalService):
    """A second admin approves the same registration right after this call's pending check."""

    def __init__(self, store, members, other_admin):
        super().__init__(store, members)
        self.other_admin = other_admin
        self.interleaved = []

    def allocate_serial(self, category):
        if not self.interleaved:
            self.interleaved.append(None)
            competitor = ApprovalService(self._store, self._members)
            self.interleaved[0] = competitor.approve(actor=self.other_admin, uid="m")
        return super().allocate_serial(category)


def test_same_registration_is_approved_only_once(store, members, make_member, admin):
    other_admin = make_member("admin2", "Second Admin", role=PermissionRole.ADMIN, user_type=UserType.FACULTY)
    make_member("m", "Meera", status=AccountStatus.PENDING)
    service = InterleavedApprovals(store, members, other_admin)

    with pytest.raises(NotPendingError):
        service.approve(actor=admin, uid="m")

    assert service.interleaved == ["SAECS25001"]
    assert members.get_by_id("m").sae_id == "SAECS25001"
    # The losing call's serial is spent, not reissued.
    assert store.get("counters", "CS25").data == {"count": 2}


def test_approval_after_concurrent_reject_fails(store, members, make_member, admin):
    make_member("m", "Meera", status=AccountStatus.PENDING)
    service = ApprovalService(store, members)

    class RejectFirst(ApprovalService):
        def allocate_serial(self, category):
            service.reject(actor=admin, uid="m")
            return super().allocate_serial(category)

    with pytest.raises(MemberNotFoundError):
        RejectFirst(store, members).approve(actor=admin, uid="m")
    assert members.get_by_id("m") is None


def test_reject_deletes_pending_registration(approvals, make_member, admin, members):
    make_member("m", "Meera", status=AccountStatus.PENDING)

    approvals.reject(actor=admin, uid="m")

    assert members.get_by_id("m") is None
