from __future__ import annotations

from enum import Enum


class PermissionRole(str, Enum):
    """Closed set of roles used for every authorization check."""

    MEMBER = "member"
    ADMIN = "admin"
    SUPER_ADMIN = "super-admin"

    @classmethod
    def _missing_(cls, value):
        # Registrations created before the rename stored students as "student".
        if isinstance(value, str) and value.strip().lower() == "student":
            return cls.MEMBER
        return None

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: "PermissionRole") -> bool:
        return self.rank >= other.rank


_ROLE_RANK = {
    PermissionRole.MEMBER: 0,
    PermissionRole.ADMIN: 1,
    PermissionRole.SUPER_ADMIN: 2,
}


class AccountStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserType(str, Enum):
    STUDENT = "student"
    FACULTY = "faculty"


class CheckOutOutcome(str, Enum):
    """Result of a successful check-out."""

    CHECKED_OUT = "CHECKED_OUT"
    LAST_PERSON_OUT = "LAST_PERSON_OUT"
