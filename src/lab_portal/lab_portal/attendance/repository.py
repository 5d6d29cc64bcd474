from __future__ import annotations

from typing import Callable, Protocol, Sequence

from .model import AttendanceRecord, LabOccupancy


class AttendanceRepository(Protocol):
    def find_open_for_member(self, user_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_member_and_day(self, user_id: str, day: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_day(self, day: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_lab_status(self) -> LabOccupancy:
        raise NotImplementedError

    def subscribe_lab_status(self, callback: Callable[[LabOccupancy], None]) -> Callable[[], None]:
        raise NotImplementedError
