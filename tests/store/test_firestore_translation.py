from __future__ import annotations

import pytest
from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from src.lab_portal.lab_portal.core.exceptions import (
    DocumentNotFoundError,
    StoreError,
    StorePermissionError,
    StoreUnavailableError,
    TransactionAbortedError,
)
from src.lab_portal.lab_portal.store.base import DELETE_FIELD, ArrayRemove, ArrayUnion, Increment
from src.lab_portal.lab_portal.store.firestore_store import _to_native, _transaction_failure, _translate


def test_field_transforms_become_firestore_sentinels():
    native = _to_native(
        {
            "presentMembers": ArrayUnion(["m1", "m2"]),
            "gone": ArrayRemove(["m3"]),
            "count": Increment(2),
            "legacy": DELETE_FIELD,
            "name": "Asha",
        }
    )

    assert isinstance(native["presentMembers"], firestore.ArrayUnion)
    assert list(native["presentMembers"].values) == ["m1", "m2"]
    assert isinstance(native["gone"], firestore.ArrayRemove)
    assert list(native["gone"].values) == ["m3"]
    assert isinstance(native["count"], firestore.Increment)
    assert native["count"].value == 2
    assert native["legacy"] is firestore.DELETE_FIELD
    assert native["name"] == "Asha"


def test_nested_maps_are_converted():
    native = _to_native({"currentlyCheckedIn": {"m1": DELETE_FIELD, "m2": "Binu"}})

    assert native["currentlyCheckedIn"]["m1"] is firestore.DELETE_FIELD
    assert native["currentlyCheckedIn"]["m2"] == "Binu"


@pytest.mark.parametrize(
    "error, expected",
    [
        (google_exceptions.PermissionDenied("missing rules"), StorePermissionError),
        (google_exceptions.NotFound("no such doc"), DocumentNotFoundError),
        (google_exceptions.ServiceUnavailable("offline"), StoreUnavailableError),
        (google_exceptions.DeadlineExceeded("slow"), StoreUnavailableError),
    ],
)
def test_api_errors_map_to_store_errors(error, expected):
    translated = _translate(error)

    assert type(translated) is expected
    assert str(translated)


def test_other_api_errors_become_plain_store_error():
    translated = _translate(google_exceptions.InternalServerError("boom"))

    assert type(translated) is StoreError


def test_aborted_transaction_maps_to_transaction_aborted():
    assert isinstance(_transaction_failure(google_exceptions.Aborted("contention")), TransactionAbortedError)


def test_exhausted_attempts_map_to_transaction_aborted():
    mapped = _transaction_failure(ValueError("Failed to commit transaction in 5 attempts."))

    assert isinstance(mapped, TransactionAbortedError)
    assert "5 attempts" in str(mapped)


def test_transaction_api_errors_are_translated():
    assert isinstance(_transaction_failure(google_exceptions.PermissionDenied("denied")), StorePermissionError)


def test_unrelated_value_error_is_not_mapped():
    assert _transaction_failure(ValueError("bad input")) is None
