from __future__ import annotations

import logging
from typing import Optional

from ..core.constants import CREDENTIALS, DEFAULT_CLUB_NAME
from ..core.enums import AccountStatus, PermissionRole, UserType
from ..store.base import DocumentStore
from .model import Member
from .repository import MemberRepository

_logger = logging.getLogger(__name__)


def ensure_super_admin(
    store: DocumentStore,
    members: MemberRepository,
    auth,
    *,
    email: str,
    password: str,
    name: str = "Lab Administrator",
    sae_id: Optional[str] = None,
    club_name: str = DEFAULT_CLUB_NAME,
) -> str:
    """Create an approved super-admin account if the email is not registered yet.

    Returns the uid of the (new or existing) account. Existing accounts are
    promoted to super-admin and approved but keep their password.
    """

    email = email.strip().lower()
    existing = store.get(CREDENTIALS, email)
    if existing:
        uid = str(existing.get("uid"))
        member = members.get_by_id(uid)
        if member:
            members.update_fields(
                uid,
                {
                    "permissionRole": PermissionRole.SUPER_ADMIN.value,
                    "accountStatus": AccountStatus.APPROVED.value,
                },
            )
            return uid
    else:
        uid = auth.create_account(email, password)

    members.create(
        Member(
            uid=uid,
            name=name,
            email=email,
            user_type=UserType.FACULTY,
            permission_role=PermissionRole.SUPER_ADMIN,
            account_status=AccountStatus.APPROVED,
            sae_id=sae_id,
            club=club_name,
            display_title="Super Admin",
            photo_url="",
        )
    )
    _logger.info("Seeded super-admin %s (%s)", email, uid)
    return uid
