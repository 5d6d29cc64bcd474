from __future__ import annotations

from flask import Flask, g

from ..common.http import error_response, guarded, ok
from ..container import Container
from ..core.enums import PermissionRole
from ..core.exceptions import DomainError, StoreError


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/users/<uid>/approve", methods=["POST"], endpoint="approve_user")
    @guarded(container, PermissionRole.ADMIN)
    def approve_user(uid: str):
        try:
            sae_id = container.approval_service.approve(actor=g.member, uid=uid)
            return ok(sae_id=sae_id, message=f"User approved! Their new SAE ID is: {sae_id}")
        except Exception as e:
            return error_response(e)

    @app.route("/admin/users/<uid>/reject", methods=["POST"], endpoint="reject_user")
    @guarded(container, PermissionRole.ADMIN)
    def reject_user(uid: str):
        try:
            container.approval_service.reject(actor=g.member, uid=uid)
            return ok(
                message="User rejected and data deleted. Their login account must be deleted from the authentication console manually."
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
