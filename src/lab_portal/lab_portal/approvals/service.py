from __future__ import annotations

import logging

from ..core.constants import COUNTERS, DEFAULT_ID_PREFIX, USERS
from ..core.enums import AccountStatus, PermissionRole
from ..core.exceptions import MemberNotFoundError, NotPendingError
from ..members.guard import require_role
from ..members.model import Member
from ..members.repository import MemberRepository
from ..store.base import DocumentStore
from .category import IdCategory, category_for

_logger = logging.getLogger(__name__)


class ApprovalService:
    """Use case: turn a pending registration into an approved member with a unique ID.

    Serial numbers come from ``counters/<category key>`` inside a store
    transaction, so concurrent approvals in one category never share a serial.
    The member update runs after the commit; if it fails the serial is lost,
    never reissued.
    """

    def __init__(self, store: DocumentStore, members: MemberRepository, *, id_prefix: str = DEFAULT_ID_PREFIX):
        self._store = store
        self._members = members
        self._id_prefix = id_prefix

    def allocate_serial(self, category: IdCategory) -> int:
        def txn(tx) -> int:
            counter = tx.get(COUNTERS, category.counter_key)
            serial = int(counter.get("count", 0) if counter else 0) + 1
            tx.set(COUNTERS, category.counter_key, {"count": serial}, merge=True)
            return serial

        return self._store.run_transaction(txn)

    def _get_pending(self, uid: str) -> Member:
        member = self._members.get_by_id(uid)
        if not member:
            raise MemberNotFoundError("Registration not found.")
        if not member.is_pending:
            raise NotPendingError(f"{member.name} is already {member.account_status.value}.")
        return member

    def _mark_approved(self, uid: str, sae_id: str) -> None:
        # Another admin may have approved or rejected since the pending check; the serial is then lost.
        def txn(tx) -> None:
            doc = tx.get(USERS, uid)
            if doc is None:
                raise MemberNotFoundError("Registration not found.")
            status = doc.get("accountStatus") or AccountStatus.PENDING.value
            if status != AccountStatus.PENDING.value:
                raise NotPendingError(f"{doc.get('name') or uid} is already {status}.")
            tx.update(USERS, uid, {"accountStatus": AccountStatus.APPROVED.value, "saeId": sae_id})

        self._store.run_transaction(txn)

    def approve(self, *, actor: Member, uid: str) -> str:
        require_role(actor, PermissionRole.ADMIN)
        member = self._get_pending(uid)
        category = category_for(member)

        serial = self.allocate_serial(category)
        sae_id = category.format_id(self._id_prefix, serial)

        self._mark_approved(uid, sae_id)
        _logger.info("Approved %s as %s (by %s)", uid, sae_id, actor.uid)
        return sae_id

    def reject(self, *, actor: Member, uid: str) -> None:
        """Delete the pending registration. The login identity is left for manual cleanup."""

        require_role(actor, PermissionRole.ADMIN)
        member = self._get_pending(uid)
        self._members.delete_by_id(member.uid)
        _logger.info("Rejected registration %s (by %s); auth account must be removed manually", uid, actor.uid)
