from __future__ import annotations

from flask import Flask, g, request

from ..common.http import error_response, guarded, ok
from ..container import Container
from ..core.enums import PermissionRole, UserType
from ..core.exceptions import DomainError, StoreError, ValidationError
from .model import Member
from .service import EDITABLE_PROFILE_FIELDS, Registration


def member_view(member: Member) -> dict:
    return {"id": member.uid, **member.to_document()}


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


def register(app: Flask, container: Container) -> None:
    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        data = _payload()
        try:
            member = container.session_guard.sign_in(data.get("email", ""), data.get("password", ""))
            return ok(message="Signed in successfully.", member=member_view(member))
        except Exception as e:
            return error_response(e)

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        container.session_guard.sign_out()
        return ok(message="Signed out.")

    @app.route("/register", methods=["POST"], endpoint="register")
    def register_member():
        data = _payload()
        try:
            try:
                user_type = UserType(data.get("userType", UserType.STUDENT.value))
            except ValueError:
                raise ValidationError("User type is not valid")

            teams = data.get("teams") or []
            if isinstance(teams, str):
                teams = [t.strip() for t in teams.split(",") if t.strip()]

            branch_key = "branch" if user_type == UserType.STUDENT else "department"
            uid = container.member_service.register(
                Registration(
                    name=data.get("name", ""),
                    email=data.get("email", ""),
                    password=data.get("password", ""),
                    confirm_password=data.get("confirmPassword", ""),
                    user_type=user_type,
                    branch=data.get(branch_key) or data.get("branch", ""),
                    semester=data.get("semester"),
                    teams=list(teams),
                    join_year=data.get("joinYear"),
                    blood_group=data.get("bloodGroup"),
                    mobile_number=data.get("mobileNumber"),
                    guardian_number=data.get("guardianNumber"),
                    photo_url=data.get("photoUrl"),
                )
            )
            return ok(
                id=uid,
                message="Registration successful! Your account is now awaiting approval from an admin.",
            )
        except Exception as e:
            return error_response(e)

    @app.route("/profile", methods=["GET"], endpoint="profile")
    @guarded(container)
    def profile():
        return ok(member=member_view(g.member))

    @app.route("/profile", methods=["POST"], endpoint="update_profile")
    @guarded(container)
    def update_profile():
        data = _payload()
        reverse = {v: k for k, v in EDITABLE_PROFILE_FIELDS.items()}
        try:
            changes = {reverse.get(k, k): v for k, v in data.items()}
            member = container.member_service.update_profile(g.member.uid, changes)
            return ok(message="Profile updated successfully!", member=member_view(member))
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/admin/users", endpoint="admin_users")
    @guarded(container, PermissionRole.ADMIN)
    def admin_users():
        try:
            members = container.member_service.list_members(actor=g.member)
        except (DomainError, StoreError) as e:
            return error_response(e)
        return ok(users=[member_view(m) for m in members])

    @app.route("/admin/pending", endpoint="admin_pending")
    @guarded(container, PermissionRole.ADMIN)
    def admin_pending():
        try:
            members = container.member_service.list_pending(actor=g.member)
        except (DomainError, StoreError) as e:
            return error_response(e)
        return ok(users=[member_view(m) for m in members])

    @app.route("/admin/users/<uid>/role", methods=["POST"], endpoint="update_role")
    @guarded(container, PermissionRole.SUPER_ADMIN)
    def update_role(uid: str):
        data = _payload()
        try:
            try:
                role = PermissionRole(data.get("permissionRole", ""))
            except ValueError:
                raise ValidationError("Role is not valid")
            member = container.member_service.update_role(
                actor=g.member,
                uid=uid,
                role=role,
                display_title=data.get("displayTitle"),
            )
            return ok(message="User updated successfully.", member=member_view(member))
        except (DomainError, StoreError) as e:
            return error_response(e)
