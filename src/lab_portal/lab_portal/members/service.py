from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..approvals.category import Branch
from ..auth.provider import SessionProvider
from ..common.validators import require_choice, require_email, require_min_length, require_non_empty
from ..core.constants import BLOOD_GROUP_OPTIONS, DEFAULT_CLUB_NAME, MIN_PASSWORD_LENGTH, TEAM_OPTIONS
from ..core.enums import AccountStatus, PermissionRole, UserType
from ..core.exceptions import DomainError, MemberNotFoundError, ValidationError
from .guard import require_role
from .model import Member
from .repository import MemberRepository

_logger = logging.getLogger(__name__)

# Profile fields a member may edit on their own document.
EDITABLE_PROFILE_FIELDS = {
    "name": "name",
    "mobile_number": "mobileNumber",
    "guardian_number": "guardianNumber",
    "blood_group": "bloodGroup",
    "photo_url": "photoUrl",
    "team": "team",
}


@dataclass
class Registration:
    """Sign-up form data."""

    name: str
    email: str
    password: str
    confirm_password: str
    user_type: UserType = UserType.STUDENT
    branch: str = "ME"
    semester: Optional[str] = None
    teams: List[str] = field(default_factory=list)
    join_year: Optional[str] = None
    blood_group: Optional[str] = None
    mobile_number: Optional[str] = None
    guardian_number: Optional[str] = None
    photo_url: Optional[str] = None


class MemberService:
    """Use cases: registration, own profile, admin directory and role management."""

    def __init__(
        self,
        members: MemberRepository,
        auth: SessionProvider,
        *,
        club_name: str = DEFAULT_CLUB_NAME,
        on_rename: Optional[Callable[[str, str], None]] = None,
    ):
        self._members = members
        self._auth = auth
        self._club_name = club_name
        self._on_rename = on_rename

    def register(self, form: Registration) -> str:
        name = require_non_empty(form.name, "Name")
        email = require_email(form.email)
        if form.password != form.confirm_password:
            raise ValidationError("Passwords do not match.")
        require_min_length(form.password, "Password", MIN_PASSWORD_LENGTH)
        try:
            branch = Branch.parse(form.branch).value
        except DomainError:
            raise ValidationError("Branch/department is not a valid option")
        if form.blood_group:
            require_choice(form.blood_group, "Blood group", BLOOD_GROUP_OPTIONS)
        for team in form.teams:
            require_choice(team, "Team", TEAM_OPTIONS)

        is_student = form.user_type == UserType.STUDENT
        join_year_full = None
        if is_student:
            join_year_full = (form.join_year or str(date.today().year)).strip()
            if not (join_year_full.isdigit() and len(join_year_full) == 4):
                raise ValidationError("Join year must be a four-digit year")

        uid = self._auth.create_account(email, form.password)
        member = Member(
            uid=uid,
            name=name,
            email=email,
            user_type=form.user_type,
            permission_role=PermissionRole.MEMBER if is_student else PermissionRole.ADMIN,
            account_status=AccountStatus.PENDING,
            sae_id=None,
            is_checked_in=False,
            club=self._club_name,
            branch=branch,
            semester=form.semester if is_student else None,
            team=(form.teams[0] if form.teams else None) if is_student else None,
            teams=list(form.teams) if (is_student and form.teams) else None,
            join_year=join_year_full[-2:] if join_year_full else None,
            join_year_full=join_year_full,
            blood_group=form.blood_group,
            mobile_number=form.mobile_number,
            guardian_number=form.guardian_number or None,
            photo_url=form.photo_url or "",
            display_title="Student" if is_student else "Faculty",
        )
        self._members.create(member)
        _logger.info("Registration pending approval: %s (%s)", uid, form.user_type.value)
        return uid

    def get_profile(self, uid: str) -> Member:
        member = self._members.get_by_id(uid)
        if not member:
            raise MemberNotFoundError("Your profile data is missing. Please contact an admin.")
        return member

    def update_profile(self, uid: str, changes: Dict[str, Any]) -> Member:
        member = self.get_profile(uid)

        unknown = set(changes) - set(EDITABLE_PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"These fields cannot be edited: {', '.join(sorted(unknown))}")

        fields: Dict[str, Any] = {}
        for attr, value in changes.items():
            if attr == "name":
                value = require_non_empty(value, "Name")
            elif attr == "blood_group" and value:
                value = require_choice(value, "Blood group", BLOOD_GROUP_OPTIONS)
            elif attr == "team" and value:
                value = require_choice(value, "Team", TEAM_OPTIONS)
            fields[EDITABLE_PROFILE_FIELDS[attr]] = value

        if fields:
            self._members.update_fields(uid, fields)
        if "name" in fields and fields["name"] != member.name and self._on_rename:
            self._on_rename(uid, fields["name"])
        return self.get_profile(uid)

    def update_role(
        self,
        *,
        actor: Member,
        uid: str,
        role: PermissionRole,
        display_title: Optional[str] = None,
    ) -> Member:
        require_role(actor, PermissionRole.SUPER_ADMIN)
        target = self.get_profile(uid)
        fields: Dict[str, Any] = {"permissionRole": PermissionRole(role).value}
        if display_title is not None:
            fields["displayTitle"] = display_title.strip()
        self._members.update_fields(target.uid, fields)
        _logger.info("Role of %s set to %s by %s", uid, fields["permissionRole"], actor.uid)
        return self.get_profile(uid)

    def list_pending(self, *, actor: Member) -> Sequence[Member]:
        require_role(actor, PermissionRole.ADMIN)
        return self._members.list_by_status(AccountStatus.PENDING)

    def list_members(self, *, actor: Member) -> Sequence[Member]:
        require_role(actor, PermissionRole.ADMIN)
        return self._members.list_all()

    def subscribe_pending(self, callback: Callable[[List[Member]], None]) -> Callable[[], None]:
        return self._members.subscribe_by_status(AccountStatus.PENDING, callback)
