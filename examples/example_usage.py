"""Example: drive the services directly, without Flask.

Controllers stay thin; the lab workflow lives in the services. This walks a
registration through approval, a check-in and the last-person-out closure on
the in-memory store.
"""

from datetime import datetime

from src.lab_portal.lab_portal.container import build_container, build_store
from src.lab_portal.lab_portal.members.seed import ensure_super_admin
from src.lab_portal.lab_portal.members.service import Registration


def main():
    container = build_container(store=build_store("memory"))
    admin_uid = ensure_super_admin(
        container.store, container.members_repo, container.auth, email="admin@example.com", password="secret123"
    )
    admin = container.members_repo.get_by_id(admin_uid)

    uid = container.member_service.register(
        Registration(
            name="Asha",
            email="asha@example.com",
            password="secret123",
            confirm_password="secret123",
            branch="CS",
            join_year="2025",
        )
    )
    print("approved as", container.approval_service.approve(actor=admin, uid=uid))

    now = datetime(2025, 8, 1, 9, 30)
    container.attendance_register.check_in(uid, now=now)
    print("lab:", container.attendance_register.lab_status())

    result = container.attendance_register.check_out(uid, now=now.replace(hour=17))
    print("outcome:", result.outcome.value)
    if result.last_person_out:
        container.attendance_register.confirm_closure(closed_by=uid)
    print("lab:", container.attendance_register.lab_status())


if __name__ == "__main__":
    main()
