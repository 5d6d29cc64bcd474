from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.enums import AccountStatus, PermissionRole, UserType


@dataclass(frozen=True)
class Member:
    """Domain entity: a registered portal user (``users/<uid>``).

    Note: Plain data object; document (de)serialization lives here, store access does not.
    """

    uid: str
    name: str
    email: str
    user_type: UserType
    permission_role: PermissionRole
    account_status: AccountStatus
    sae_id: Optional[str] = None
    is_checked_in: bool = False
    club: Optional[str] = None
    branch: Optional[str] = None
    semester: Optional[str] = None
    team: Optional[str] = None
    teams: Optional[List[str]] = None
    join_year: Optional[str] = None
    join_year_full: Optional[str] = None
    blood_group: Optional[str] = None
    mobile_number: Optional[str] = None
    guardian_number: Optional[str] = None
    photo_url: Optional[str] = None
    display_title: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_pending(self) -> bool:
        return self.account_status == AccountStatus.PENDING

    @property
    def is_approved(self) -> bool:
        return self.account_status == AccountStatus.APPROVED

    @classmethod
    def from_document(cls, uid: str, data: Dict[str, Any]) -> "Member":
        known = set(_FIELD_NAMES.values())
        return cls(
            uid=uid,
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            user_type=UserType(data.get("userType") or UserType.STUDENT.value),
            permission_role=PermissionRole(data.get("permissionRole") or PermissionRole.MEMBER.value),
            account_status=AccountStatus(data.get("accountStatus") or AccountStatus.PENDING.value),
            sae_id=data.get("saeId"),
            is_checked_in=bool(data.get("isCheckedIn", False)),
            club=data.get("club"),
            branch=data.get("branch"),
            semester=data.get("semester"),
            team=data.get("team"),
            teams=list(data["teams"]) if data.get("teams") else None,
            join_year=data.get("joinYear"),
            join_year_full=data.get("joinYearFull"),
            blood_group=data.get("bloodGroup"),
            mobile_number=data.get("mobileNumber"),
            guardian_number=data.get("guardianNumber"),
            photo_url=data.get("photoUrl"),
            display_title=data.get("displayTitle"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = dict(self.extra)
        for attr, key in _FIELD_NAMES.items():
            value = getattr(self, attr)
            if hasattr(value, "value"):
                value = value.value
            doc[key] = value
        return doc


_FIELD_NAMES = {
    "name": "name",
    "email": "email",
    "user_type": "userType",
    "permission_role": "permissionRole",
    "account_status": "accountStatus",
    "sae_id": "saeId",
    "is_checked_in": "isCheckedIn",
    "club": "club",
    "branch": "branch",
    "semester": "semester",
    "team": "team",
    "teams": "teams",
    "join_year": "joinYear",
    "join_year_full": "joinYearFull",
    "blood_group": "bloodGroup",
    "mobile_number": "mobileNumber",
    "guardian_number": "guardianNumber",
    "photo_url": "photoUrl",
    "display_title": "displayTitle",
}
