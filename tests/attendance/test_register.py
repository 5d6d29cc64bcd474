from __future__ import annotations

from datetime import timedelta

import pytest

from src.lab_portal.lab_portal.core.enums import CheckOutOutcome
from src.lab_portal.lab_portal.core.exceptions import AlreadyCheckedInError, LabOccupiedError, NoOpenRecordError


def _lab(store):
    return store.get("labStatus", "current").data


def test_check_in_then_out_round_trip(store, register, make_member, fixed_now):
    make_member("u1", "Asha", sae_id="SAECS25001")

    record = register.check_in("u1", now=fixed_now)
    assert record.day == "2025-08-01"
    assert store.get("users", "u1").get("isCheckedIn") is True
    assert _lab(store)["isLabOpen"] is True
    assert _lab(store)["currentlyCheckedIn"] == {"u1": "Asha"}

    result = register.check_out("u1", now=fixed_now + timedelta(hours=2))
    assert result.record.record_id == record.record_id
    assert result.record.check_out_time == fixed_now + timedelta(hours=2)

    stored = store.get("attendance", record.record_id).data
    assert stored["checkOutTime"] == fixed_now + timedelta(hours=2)
    assert stored["saeId"] == "SAECS25001"
    assert store.get("users", "u1").get("isCheckedIn") is False
    assert _lab(store)["currentlyCheckedIn"] == {}


def test_second_check_in_is_rejected(register, make_member, fixed_now):
    make_member("u1", "Asha")
    register.check_in("u1", now=fixed_now)

    with pytest.raises(AlreadyCheckedInError):
        register.check_in("u1", now=fixed_now + timedelta(minutes=5))


def test_checkout_with_others_present_does_not_signal_closure(store, register, make_member, fixed_now):
    for uid, name in (("a", "Asha"), ("b", "Binu"), ("x", "Xavier")):
        make_member(uid, name)
        register.check_in(uid, now=fixed_now)

    result = register.check_out("x", now=fixed_now + timedelta(hours=1))

    assert result.outcome == CheckOutOutcome.CHECKED_OUT
    assert result.remaining == 2
    assert set(_lab(store)["currentlyCheckedIn"]) == {"a", "b"}
    assert _lab(store)["isLabOpen"] is True


def test_last_person_out_keeps_lab_open_until_confirmed(store, register, make_member, fixed_now):
    make_member("u1", "Asha")
    register.check_in("u1", now=fixed_now)

    result = register.check_out("u1", now=fixed_now + timedelta(hours=1))

    assert result.outcome == CheckOutOutcome.LAST_PERSON_OUT
    assert result.last_person_out
    assert _lab(store)["isLabOpen"] is True
    assert _lab(store)["currentlyCheckedIn"] == {}

    status = register.confirm_closure(closed_by="u1", now=fixed_now + timedelta(hours=1, minutes=5))
    assert status.is_open is False
    assert _lab(store)["isLabOpen"] is False
    assert _lab(store)["lastClosedBy"] == "u1"


def test_closure_is_refused_while_members_are_present(store, register, make_member, fixed_now):
    make_member("u1", "Asha")
    register.check_in("u1", now=fixed_now)

    with pytest.raises(LabOccupiedError):
        register.confirm_closure(closed_by="u1")
    assert _lab(store)["isLabOpen"] is True


def test_checkout_without_open_record_heals_flag(store, register, make_member):
    make_member("u1", "Asha")
    store.update("users", "u1", {"isCheckedIn": True})

    with pytest.raises(NoOpenRecordError):
        register.check_out("u1")

    assert store.get("users", "u1").get("isCheckedIn") is False
    assert store.query("attendance") == []
    assert store.get("labStatus", "current") is None


def test_checkout_without_open_record_when_flag_already_false(store, register, make_member):
    make_member("u1", "Asha")

    with pytest.raises(NoOpenRecordError):
        register.check_out("u1")
    assert store.get("users", "u1").get("isCheckedIn") is False


def test_stale_checked_in_flag_does_not_block_check_in(store, register, make_member, fixed_now):
    make_member("u1", "Asha")
    store.update("users", "u1", {"isCheckedIn": True})

    register.check_in("u1", now=fixed_now)

    assert len(store.query("attendance")) == 1
    assert _lab(store)["currentlyCheckedIn"] == {"u1": "Asha"}


def test_all_open_records_are_closed_on_checkout(store, register, make_member, fixed_now):
    make_member("u1", "Asha")
    for key, hour in (("old", 8), ("new", 9)):
        store.set(
            "attendance",
            key,
            {"userId": "u1", "userName": "Asha", "saeId": None, "checkInTime": fixed_now.replace(hour=hour), "checkOutTime": None, "date": "2025-08-01"},
        )

    result = register.check_out("u1", now=fixed_now.replace(hour=12))

    assert result.record.record_id == "new"
    assert all(d.get("checkOutTime") is not None for d in store.query("attendance"))


def test_rename_while_present_leaves_no_ghost(store, register, member_service, make_member, fixed_now):
    make_member("u1", "Asha")
    make_member("u2", "Binu")
    register.check_in("u1", now=fixed_now)
    register.check_in("u2", now=fixed_now)

    member_service.update_profile("u1", {"name": "Asha K"})
    assert _lab(store)["currentlyCheckedIn"]["u1"] == "Asha K"

    register.check_out("u1", now=fixed_now + timedelta(hours=1))
    assert _lab(store)["currentlyCheckedIn"] == {"u2": "Binu"}


def test_legacy_present_list_is_understood(store, register, make_member, fixed_now):
    make_member("u1", "Asha")
    store.set("labStatus", "current", {"isLabOpen": True, "currentlyCheckedIn": [{"id": "old", "name": "Old Timer"}]})

    register.check_in("u1", now=fixed_now)

    assert _lab(store)["currentlyCheckedIn"] == {"old": "Old Timer", "u1": "Asha"}
    assert register.lab_status().count == 2


def test_history_views(register, make_member, fixed_now):
    make_member("u1", "Asha")
    make_member("u2", "Binu")
    register.check_in("u1", now=fixed_now)
    register.check_out("u1", now=fixed_now + timedelta(hours=1))
    register.check_in("u2", now=fixed_now + timedelta(minutes=10))

    mine = register.history_for_member("u1", "2025-08-01")
    assert [r.user_id for r in mine] == ["u1"]

    rows = register.history_ui(register.history_for_day("2025-08-01"))
    assert [r["name"] for r in rows] == ["Asha", "Binu"]
    assert rows[0]["check_in"] == "09:30 AM"
    assert rows[1]["check_out"] == "In Lab"

    assert register.history_for_day("2025-08-02") == []


def test_lab_status_subscription_sees_transitions(register, make_member, fixed_now):
    make_member("u1", "Asha")
    seen = []
    unsubscribe = register.subscribe_lab_status(lambda status: seen.append((status.is_open, status.count)))

    register.check_in("u1", now=fixed_now)
    register.check_out("u1", now=fixed_now + timedelta(hours=1))
    register.confirm_closure(closed_by="u1")
    unsubscribe()

    assert seen == [(False, 0), (True, 1), (True, 0), (False, 0)]
