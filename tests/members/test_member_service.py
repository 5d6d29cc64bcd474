from __future__ import annotations

import pytest

from src.lab_portal.lab_portal.core.enums import AccountStatus, PermissionRole, UserType
from src.lab_portal.lab_portal.core.exceptions import AuthorizationError, ValidationError
from src.lab_portal.lab_portal.members.service import Registration


def _form(**overrides) -> Registration:
    data = dict(
        name="Meera",
        email="Meera@Example.com",
        password="secret123",
        confirm_password="secret123",
        branch="CS",
        join_year="2025",
        teams=["YETI"],
        blood_group="O+",
        mobile_number="9999999999",
    )
    data.update(overrides)
    return Registration(**data)


def test_student_registration_is_pending(member_service, members, store):
    uid = member_service.register(_form())

    member = members.get_by_id(uid)
    assert member.account_status == AccountStatus.PENDING
    assert member.permission_role == PermissionRole.MEMBER
    assert member.email == "meera@example.com"
    assert member.join_year == "25"
    assert member.join_year_full == "2025"
    assert member.team == "YETI"
    assert member.sae_id is None
    assert member.club == "SAE CUSAT"
    assert store.get("users", uid).get("displayTitle") == "Student"


def test_faculty_registration_gets_admin_role(member_service, members):
    uid = member_service.register(_form(user_type=UserType.FACULTY, branch="Mechanical", teams=[], join_year=None))

    member = members.get_by_id(uid)
    assert member.permission_role == PermissionRole.ADMIN
    assert member.branch == "ME"
    assert member.join_year is None
    assert member.display_title == "Faculty"


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "  "},
        {"email": "not-an-email"},
        {"confirm_password": "different"},
        {"password": "123", "confirm_password": "123"},
        {"branch": "Biology"},
        {"teams": ["NOT A TEAM"]},
        {"blood_group": "C+"},
        {"join_year": "25"},
    ],
)
def test_invalid_registrations(member_service, auth, overrides):
    with pytest.raises(ValidationError):
        member_service.register(_form(**overrides))
    assert auth.accounts == {}


def test_duplicate_email_is_rejected(member_service):
    member_service.register(_form())
    with pytest.raises(ValidationError):
        member_service.register(_form(name="Other"))


def test_update_profile_only_touches_editable_fields(member_service, make_member):
    make_member("u1", "Asha")

    updated = member_service.update_profile("u1", {"mobile_number": "12345", "blood_group": "B+"})
    assert updated.mobile_number == "12345"
    assert updated.blood_group == "B+"

    with pytest.raises(ValidationError):
        member_service.update_profile("u1", {"permission_role": "admin"})


def test_update_role_requires_super_admin(member_service, make_member):
    admin = make_member("a", "Admin", role=PermissionRole.ADMIN)
    boss = make_member("s", "Boss", role=PermissionRole.SUPER_ADMIN)
    make_member("u", "User")

    with pytest.raises(AuthorizationError):
        member_service.update_role(actor=admin, uid="u", role=PermissionRole.ADMIN)

    updated = member_service.update_role(actor=boss, uid="u", role=PermissionRole.ADMIN, display_title="Team Lead")
    assert updated.permission_role == PermissionRole.ADMIN
    assert updated.display_title == "Team Lead"


def test_directory_listings(member_service, make_member):
    admin = make_member("a", "Admin", role=PermissionRole.ADMIN)
    make_member("p2", "Zed", status=AccountStatus.PENDING)
    make_member("p1", "Ann", status=AccountStatus.PENDING)

    assert [m.name for m in member_service.list_pending(actor=admin)] == ["Ann", "Zed"]
    assert [m.name for m in member_service.list_members(actor=admin)] == ["Admin", "Ann", "Zed"]
    with pytest.raises(AuthorizationError):
        member_service.list_pending(actor=member_service.get_profile("p1"))


def test_pending_subscription(member_service, make_member):
    seen = []
    unsubscribe = member_service.subscribe_pending(lambda pending: seen.append(sorted(m.uid for m in pending)))
    make_member("p1", "Ann", status=AccountStatus.PENDING)
    unsubscribe()

    assert seen == [[], ["p1"]]
