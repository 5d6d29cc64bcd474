from __future__ import annotations

from types import SimpleNamespace

import pytest

from src.lab_portal.lab_portal.approvals.category import Branch, IdCategory, category_for, short_year
from src.lab_portal.lab_portal.core.enums import UserType
from src.lab_portal.lab_portal.core.exceptions import UnknownCategoryError


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("CS", Branch.CS),
        ("cse", Branch.CS),
        ("Computer Science", Branch.CS),
        ("Mechanical Engineering", Branch.ME),
        ("E.E.E", Branch.EEE),
        ("Fire and Safety", Branch.SF),
        ("civil", Branch.CE),
    ],
)
def test_branch_parse_accepts_codes_and_names(raw, expected):
    assert Branch.parse(raw) is expected


@pytest.mark.parametrize("raw", [None, "", "Biology", "XX"])
def test_branch_parse_rejects_unknown(raw):
    with pytest.raises(UnknownCategoryError):
        Branch.parse(raw)


def test_short_year():
    assert short_year("2025") == "25"
    assert short_year("25") == "25"
    with pytest.raises(UnknownCategoryError):
        short_year("25th")


def test_category_for_student_and_faculty():
    student = SimpleNamespace(user_type=UserType.STUDENT, branch="IT", join_year="2023")
    faculty = SimpleNamespace(user_type=UserType.FACULTY, branch="Civil", join_year=None)

    assert category_for(student) == IdCategory("IT23")
    assert category_for(faculty) == IdCategory("FACCE")


def test_format_id_pads_serial():
    assert IdCategory("CS25").format_id("SAE", 1) == "SAECS25001"
    assert IdCategory("CS25").format_id("SAE", 1234) == "SAECS251234"
    with pytest.raises(ValueError):
        IdCategory("CS25").format_id("SAE", 0)
