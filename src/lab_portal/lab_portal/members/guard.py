from __future__ import annotations

import logging

from ..auth.provider import SessionProvider
from ..core.enums import PermissionRole
from ..core.exceptions import AuthenticationError, AuthorizationError, MemberNotFoundError
from .model import Member
from .repository import MemberRepository

_logger = logging.getLogger(__name__)


def resolve_role(member: Member) -> PermissionRole:
    """The one place a member's permission level is derived."""

    return PermissionRole(member.permission_role)


def require_role(member: Member, minimum: PermissionRole) -> PermissionRole:
    role = resolve_role(member)
    if not role.at_least(minimum):
        raise AuthorizationError(f"Access denied. This action requires {minimum.value} privileges.")
    return role


def require_approved(member: Member) -> Member:
    if not member.is_approved:
        raise AuthenticationError("Your account has not been approved yet or does not exist.")
    return member


class SessionGuard:
    """Resolves the signed-in identity into a member and gates access by role."""

    def __init__(self, auth: SessionProvider, members: MemberRepository):
        self._auth = auth
        self._members = members

    def sign_in(self, email: str, password: str) -> Member:
        uid = self._auth.sign_in(email, password)
        member = self._members.get_by_id(uid)
        if not member or not member.is_approved:
            # Do not keep a session for unapproved registrations.
            self._auth.sign_out()
            raise AuthenticationError("Your account has not been approved yet or does not exist.")
        _logger.info("Signed in %s (%s)", member.uid, resolve_role(member).value)
        return member

    def sign_out(self) -> None:
        self._auth.sign_out()

    def current_uid(self) -> str:
        uid = self._auth.current_uid()
        if not uid:
            raise AuthenticationError("Please sign in to continue.")
        return uid

    def current_member(self) -> Member:
        member = self._members.get_by_id(self.current_uid())
        if not member:
            raise MemberNotFoundError("Your profile data is missing. Please contact an admin.")
        return member

    def require(self, minimum: PermissionRole = PermissionRole.MEMBER) -> Member:
        member = require_approved(self.current_member())
        require_role(member, minimum)
        return member
