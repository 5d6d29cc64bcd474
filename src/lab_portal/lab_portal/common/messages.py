"""Human-readable messages for every failure the core can raise."""

from __future__ import annotations

from ..core.exceptions import (
    AlreadyCheckedInError,
    AuthenticationError,
    AuthorizationError,
    DocumentNotFoundError,
    DomainError,
    LabOccupiedError,
    MemberNotFoundError,
    NoOpenRecordError,
    NotPendingError,
    StorePermissionError,
    StoreUnavailableError,
    TransactionAbortedError,
    UnknownCategoryError,
    ValidationError,
)

_DEFAULTS = (
    (NoOpenRecordError, "No open check-in record was found. If you believe this is an error, please contact an admin."),
    (AlreadyCheckedInError, "You are already checked in."),
    (NotPendingError, "This registration has already been processed."),
    (LabOccupiedError, "The lab cannot be closed while members are still checked in."),
    (UnknownCategoryError, "The member's branch does not map to an ID category."),
    (MemberNotFoundError, "Your profile data is missing. Please contact an admin."),
    (AuthenticationError, "Please sign in to continue."),
    (AuthorizationError, "You do not have permission to do that."),
    (ValidationError, "The submitted data is not valid."),
    (StoreUnavailableError, "Network problem: the database could not be reached. Please try again."),
    (StorePermissionError, "Permission problem: the database refused the request."),
    (TransactionAbortedError, "The database was busy and the change was not saved. Please try again."),
    (DocumentNotFoundError, "The record no longer exists."),
)


def describe_error(exc: BaseException) -> str:
    """Return the message shown to the member for a failure.

    Domain errors raised with an explicit message keep it; store errors always
    get the generic wording so backend details never leak into the UI.
    """

    if isinstance(exc, DomainError) and str(exc):
        return str(exc)
    for exc_type, message in _DEFAULTS:
        if isinstance(exc, exc_type):
            return message
    return "An unexpected error occurred."
