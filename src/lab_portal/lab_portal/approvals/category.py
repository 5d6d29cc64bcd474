"""Member-ID categories.

A category key buckets the sequence counter and is embedded in the issued
ID: ``SAE`` + ``CS25`` + ``001``. Students are bucketed by branch and join
year, faculty by department under the ``FAC`` bucket.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.constants import FACULTY_BUCKET, SERIAL_WIDTH
from ..core.enums import UserType
from ..core.exceptions import UnknownCategoryError


class Branch(str, Enum):
    ME = "ME"
    EEE = "EEE"
    ECE = "ECE"
    SF = "SF"
    CS = "CS"
    IT = "IT"
    CE = "CE"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Branch":
        key = re.sub(r"[^A-Z]", "", (raw or "").upper())
        if key in cls.__members__:
            return cls[key]
        if key in _ALIASES:
            return _ALIASES[key]
        raise UnknownCategoryError(f"Unknown branch/department: {raw!r}")


_ALIASES = {
    "MECH": Branch.ME,
    "MECHANICAL": Branch.ME,
    "MECHANICALENGINEERING": Branch.ME,
    "EE": Branch.EEE,
    "ELECTRICAL": Branch.EEE,
    "ELECTRICALANDELECTRONICS": Branch.EEE,
    "ELECTRICALANDELECTRONICSENGINEERING": Branch.EEE,
    "EC": Branch.ECE,
    "ELECTRONICS": Branch.ECE,
    "ELECTRONICSANDCOMMUNICATION": Branch.ECE,
    "ELECTRONICSANDCOMMUNICATIONENGINEERING": Branch.ECE,
    "FS": Branch.SF,
    "SAFETY": Branch.SF,
    "SAFETYANDFIRE": Branch.SF,
    "FIREANDSAFETY": Branch.SF,
    "SAFETYANDFIREENGINEERING": Branch.SF,
    "CSE": Branch.CS,
    "COMPUTERSCIENCE": Branch.CS,
    "COMPUTERSCIENCEANDENGINEERING": Branch.CS,
    "INFORMATIONTECHNOLOGY": Branch.IT,
    "CIVIL": Branch.CE,
    "CIVILENGINEERING": Branch.CE,
}


@dataclass(frozen=True)
class IdCategory:
    counter_key: str

    def format_id(self, prefix: str, serial: int) -> str:
        if serial < 1:
            raise ValueError("serial numbers start at 1")
        return f"{prefix}{self.counter_key}{serial:0{SERIAL_WIDTH}d}"


def short_year(raw: Optional[str]) -> str:
    year = (raw or "").strip()
    if re.fullmatch(r"\d{4}", year):
        year = year[-2:]
    if not re.fullmatch(r"\d{2}", year):
        raise UnknownCategoryError(f"Join year must be YY or YYYY, got {raw!r}")
    return year


def category_for(member) -> IdCategory:
    """Category of a member (anything with ``user_type``, ``branch`` and ``join_year``)."""

    branch = Branch.parse(member.branch)
    if member.user_type == UserType.FACULTY:
        return IdCategory(f"{FACULTY_BUCKET}{branch.value}")
    return IdCategory(f"{branch.value}{short_year(member.join_year)}")
