from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.enums import CheckOutOutcome


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one check-in (``attendance/<key>``)."""

    record_id: str
    user_id: str
    user_name: str
    sae_id: Optional[str]
    check_in_time: datetime
    check_out_time: Optional[datetime]
    day: str

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None

    @classmethod
    def from_document(cls, key: str, data: Dict[str, Any]) -> "AttendanceRecord":
        return cls(
            record_id=key,
            user_id=str(data.get("userId")),
            user_name=str(data.get("userName") or ""),
            sae_id=data.get("saeId"),
            check_in_time=data.get("checkInTime"),
            check_out_time=data.get("checkOutTime"),
            day=str(data.get("date") or ""),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "userName": self.user_name,
            "saeId": self.sae_id,
            "checkInTime": self.check_in_time,
            "checkOutTime": self.check_out_time,
            "date": self.day,
        }


def present_map(raw: Any) -> Dict[str, str]:
    """Normalize the stored present set into ``{member id: display name}``.

    Older documents stored a list of ``{"id", "name"}`` entries.
    """

    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    if isinstance(raw, list):
        return {str(e["id"]): str(e.get("name") or "") for e in raw if isinstance(e, dict) and e.get("id")}
    return {}


@dataclass(frozen=True)
class LabOccupancy:
    """Read-model of ``labStatus/current``."""

    is_open: bool = False
    present: Dict[str, str] = field(default_factory=dict)
    last_activity: Optional[datetime] = None

    @property
    def count(self) -> int:
        return len(self.present)

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> "LabOccupancy":
        if not data:
            return cls()
        return cls(
            is_open=bool(data.get("isLabOpen", False)),
            present=present_map(data.get("currentlyCheckedIn")),
            last_activity=data.get("lastActivityTimestamp"),
        )


@dataclass(frozen=True)
class CheckOutResult:
    record: AttendanceRecord
    outcome: CheckOutOutcome
    remaining: int

    @property
    def last_person_out(self) -> bool:
        return self.outcome == CheckOutOutcome.LAST_PERSON_OUT
