from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..common.datetime_utils import day_key, now_local
from ..core.constants import ATTENDANCE, LAB_STATUS, LAB_STATUS_KEY, USERS
from ..core.enums import CheckOutOutcome
from ..core.exceptions import AlreadyCheckedInError, LabOccupiedError, MemberNotFoundError, NoOpenRecordError
from ..members.repository import MemberRepository
from ..store.base import DocumentStore
from .model import AttendanceRecord, CheckOutResult, LabOccupancy, present_map
from .repository import AttendanceRepository

_logger = logging.getLogger(__name__)


def _write_lab(tx, lab, fields: Dict[str, object]) -> None:
    # update() replaces the whole present map; a merging set() would keep removed ids.
    if lab is None:
        tx.set(LAB_STATUS, LAB_STATUS_KEY, fields)
    else:
        tx.update(LAB_STATUS, LAB_STATUS_KEY, fields)


class AttendanceRegister:
    """Check-in/check-out state machine and the shared lab occupancy.

    Each transition writes the attendance record, ``labStatus/current`` and the
    member's ``isCheckedIn`` flag in one store transaction. The present set is
    keyed by member id, so renaming a member never strands an entry.
    """

    def __init__(self, store: DocumentStore, attendance: AttendanceRepository, members: MemberRepository):
        self._store = store
        self._attendance = attendance
        self._members = members

    def _get_member(self, uid: str):
        member = self._members.get_by_id(uid)
        if not member:
            raise MemberNotFoundError("Your profile data is missing. Please contact an admin.")
        return member

    def check_in(self, uid: str, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or now_local()
        member = self._get_member(uid)

        if self._attendance.find_open_for_member(uid):
            raise AlreadyCheckedInError("You are already checked in.")

        # No open record exists, so a set flag seen here is stale and may be overwritten.
        flag_was_stale = member.is_checked_in
        record = AttendanceRecord(
            record_id=self._store.new_key(ATTENDANCE),
            user_id=uid,
            user_name=member.name,
            sae_id=member.sae_id,
            check_in_time=now,
            check_out_time=None,
            day=day_key(now),
        )

        def txn(tx) -> None:
            user_doc = tx.get(USERS, uid)
            if user_doc is None:
                raise MemberNotFoundError("Your profile data is missing. Please contact an admin.")
            if user_doc.get("isCheckedIn") and not flag_was_stale:
                raise AlreadyCheckedInError("You are already checked in.")
            lab = tx.get(LAB_STATUS, LAB_STATUS_KEY)

            present = present_map(lab.get("currentlyCheckedIn") if lab else None)
            present[uid] = member.name
            tx.set(ATTENDANCE, record.record_id, record.to_document())
            _write_lab(tx, lab, {"isLabOpen": True, "currentlyCheckedIn": present, "lastActivityTimestamp": now})
            tx.update(USERS, uid, {"isCheckedIn": True})

        if flag_was_stale:
            _logger.warning("Member %s was flagged as checked in without an open record", uid)
        self._store.run_transaction(txn)
        _logger.info("Check-in: %s at %s", uid, now.isoformat())
        return record

    def check_out(self, uid: str, *, now: Optional[datetime] = None) -> CheckOutResult:
        now = now or now_local()
        self._get_member(uid)

        open_records = self._attendance.find_open_for_member(uid)
        if not open_records:
            self._heal_flag(uid)
            raise NoOpenRecordError("No open check-in record found.")
        if len(open_records) > 1:
            _logger.warning("Member %s has %d open records; closing all of them", uid, len(open_records))

        def txn(tx):
            docs = [tx.get(ATTENDANCE, r.record_id) for r in open_records]
            lab = tx.get(LAB_STATUS, LAB_STATUS_KEY)

            still_open = [d for d in docs if d is not None and d.get("checkOutTime") is None]
            if not still_open:
                return None

            present = present_map(lab.get("currentlyCheckedIn") if lab else None)
            present.pop(uid, None)
            for d in still_open:
                tx.update(ATTENDANCE, d.key, {"checkOutTime": now})
            _write_lab(tx, lab, {"currentlyCheckedIn": present, "lastActivityTimestamp": now})
            tx.update(USERS, uid, {"isCheckedIn": False})
            return still_open, len(present)

        outcome = self._store.run_transaction(txn)
        if outcome is None:
            # Closed concurrently (e.g. a second tab) between the query and the transaction.
            self._heal_flag(uid)
            raise NoOpenRecordError("No open check-in record found.")

        closed_docs, remaining = outcome
        latest = max(
            (AttendanceRecord.from_document(d.key, d.data) for d in closed_docs),
            key=lambda r: r.check_in_time,
        )
        record = AttendanceRecord(
            record_id=latest.record_id,
            user_id=latest.user_id,
            user_name=latest.user_name,
            sae_id=latest.sae_id,
            check_in_time=latest.check_in_time,
            check_out_time=now,
            day=latest.day,
        )

        if remaining == 0:
            _logger.info("Check-out: %s was the last person out; closure pending confirmation", uid)
            return CheckOutResult(record=record, outcome=CheckOutOutcome.LAST_PERSON_OUT, remaining=0)

        _logger.info("Check-out: %s (%d still in the lab)", uid, remaining)
        return CheckOutResult(record=record, outcome=CheckOutOutcome.CHECKED_OUT, remaining=remaining)

    def _heal_flag(self, uid: str) -> None:
        _logger.warning("No open attendance record for %s; forcing isCheckedIn=false", uid)
        self._members.update_fields(uid, {"isCheckedIn": False})

    def confirm_closure(self, *, closed_by: Optional[str] = None, now: Optional[datetime] = None) -> LabOccupancy:
        """Second phase after a last-person-out check-out: mark the lab closed."""

        now = now or now_local()

        def txn(tx) -> LabOccupancy:
            lab = tx.get(LAB_STATUS, LAB_STATUS_KEY)
            present = present_map(lab.get("currentlyCheckedIn") if lab else None)
            if present:
                raise LabOccupiedError(
                    f"The lab cannot be closed: {len(present)} member(s) are still checked in."
                )
            fields: Dict[str, object] = {"isLabOpen": False, "lastClosedAt": now}
            if closed_by:
                fields["lastClosedBy"] = closed_by
            _write_lab(tx, lab, fields)
            return LabOccupancy(is_open=False, present={}, last_activity=lab.get("lastActivityTimestamp") if lab else None)

        status = self._store.run_transaction(txn)
        _logger.info("Lab closed (confirmed by %s)", closed_by or "unknown")
        return status

    def refresh_display_name(self, uid: str, name: str) -> None:
        """Keep the present-set name in sync after a profile rename."""

        def txn(tx) -> None:
            lab = tx.get(LAB_STATUS, LAB_STATUS_KEY)
            present = present_map(lab.get("currentlyCheckedIn") if lab else None)
            if uid in present and present[uid] != name:
                present[uid] = name
                tx.update(LAB_STATUS, LAB_STATUS_KEY, {"currentlyCheckedIn": present})

        self._store.run_transaction(txn)

    def lab_status(self) -> LabOccupancy:
        return self._attendance.get_lab_status()

    def subscribe_lab_status(self, callback: Callable[[LabOccupancy], None]) -> Callable[[], None]:
        return self._attendance.subscribe_lab_status(callback)

    def history_for_member(self, uid: str, day: str):
        return self._attendance.list_for_member_and_day(uid, day)

    def history_for_day(self, day: str):
        return self._attendance.list_for_day(day)

    def history_ui(self, records) -> List[dict]:
        return [self._to_ui(r) for r in records]

    def _to_ui(self, r: AttendanceRecord) -> dict:
        return {
            "id": r.record_id,
            "name": r.user_name,
            "sae_id": r.sae_id,
            "date": r.day,
            "check_in": r.check_in_time.strftime("%I:%M %p") if r.check_in_time else "-",
            "check_out": r.check_out_time.strftime("%I:%M %p") if r.check_out_time else "In Lab",
        }
