from __future__ import annotations

from typing import Callable, List, Sequence

from ..core.constants import ATTENDANCE, LAB_STATUS, LAB_STATUS_KEY
from ..store.base import DocumentStore, OrderBy, Where
from .model import AttendanceRecord, LabOccupancy
from .repository import AttendanceRepository


def _records(docs) -> List[AttendanceRecord]:
    return [AttendanceRecord.from_document(d.key, d.data) for d in docs]


class DocumentAttendanceRepository(AttendanceRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def find_open_for_member(self, user_id: str) -> Sequence[AttendanceRecord]:
        docs = self._store.query(
            ATTENDANCE,
            [Where("userId", "==", user_id), Where("checkOutTime", "==", None)],
        )
        return sorted(_records(docs), key=lambda r: r.check_in_time, reverse=True)

    def list_for_member_and_day(self, user_id: str, day: str) -> Sequence[AttendanceRecord]:
        docs = self._store.query(
            ATTENDANCE,
            [Where("userId", "==", user_id), Where("date", "==", day)],
            order_by=[OrderBy("checkInTime")],
        )
        return _records(docs)

    def list_for_day(self, day: str) -> Sequence[AttendanceRecord]:
        docs = self._store.query(ATTENDANCE, [Where("date", "==", day)], order_by=[OrderBy("checkInTime")])
        return _records(docs)

    def get_lab_status(self) -> LabOccupancy:
        doc = self._store.get(LAB_STATUS, LAB_STATUS_KEY)
        return LabOccupancy.from_document(doc.data if doc else None)

    def subscribe_lab_status(self, callback: Callable[[LabOccupancy], None]) -> Callable[[], None]:
        return self._store.subscribe(
            LAB_STATUS,
            lambda docs: callback(LabOccupancy.from_document(docs[0].data if docs else None)),
            key=LAB_STATUS_KEY,
        )
