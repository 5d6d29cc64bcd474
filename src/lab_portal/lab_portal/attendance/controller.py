from __future__ import annotations

from flask import Flask, g, request

from ..common.datetime_utils import day_key, now_local, parse_iso_date
from ..common.http import error_response, guarded, ok
from ..container import Container
from ..core.enums import PermissionRole
from ..core.exceptions import DomainError, StoreError, ValidationError
from .model import LabOccupancy


def lab_view(status: LabOccupancy) -> dict:
    return {
        "isLabOpen": status.is_open,
        "count": status.count,
        "currentlyCheckedIn": [{"id": uid, "name": name} for uid, name in sorted(status.present.items(), key=lambda kv: kv[1])],
        "lastActivityTimestamp": status.last_activity.isoformat() if status.last_activity else None,
    }


def _requested_day() -> str:
    raw = (request.args.get("date") or "").strip()
    if not raw:
        return day_key(now_local())
    try:
        return day_key(parse_iso_date(raw))
    except ValueError:
        raise ValidationError("Date must be YYYY-MM-DD")


def register(app: Flask, container: Container) -> None:
    @app.route("/checkin", methods=["POST"], endpoint="checkin")
    @guarded(container)
    def checkin():
        try:
            container.attendance_register.check_in(g.member.uid)
            return ok(message="Checked in successfully!")
        except Exception as e:
            return error_response(e)

    @app.route("/checkout", methods=["POST"], endpoint="checkout")
    @guarded(container)
    def checkout():
        try:
            result = container.attendance_register.check_out(g.member.uid)
        except Exception as e:
            return error_response(e)

        if result.last_person_out:
            return ok(
                outcome=result.outcome.value,
                remaining=0,
                message="You are the last one out. Please complete the closing checklist and confirm closure.",
            )
        return ok(outcome=result.outcome.value, remaining=result.remaining, message="Checked out successfully!")

    @app.route("/lab/close", methods=["POST"], endpoint="confirm_closure")
    @guarded(container)
    def confirm_closure():
        try:
            status = container.attendance_register.confirm_closure(closed_by=g.member.uid)
            return ok(message="Lab status updated to CLOSED. Thank you!", lab=lab_view(status))
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/lab/status", endpoint="lab_status")
    @guarded(container)
    def lab_status():
        try:
            return ok(lab=lab_view(container.attendance_register.lab_status()))
        except StoreError as e:
            return error_response(e)

    @app.route("/attendance/history", endpoint="attendance_history")
    @guarded(container)
    def attendance_history():
        try:
            day = _requested_day()
            records = container.attendance_register.history_for_member(g.member.uid, day)
            return ok(date=day, records=container.attendance_register.history_ui(records))
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/admin/attendance", endpoint="admin_attendance")
    @guarded(container, PermissionRole.ADMIN)
    def admin_attendance():
        try:
            day = _requested_day()
            records = container.attendance_register.history_for_day(day)
            return ok(date=day, records=container.attendance_register.history_ui(records))
        except (DomainError, StoreError) as e:
            return error_response(e)
