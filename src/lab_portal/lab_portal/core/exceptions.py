class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when there is no valid session or credentials are wrong."""


class AuthorizationError(DomainError):
    """Raised when a member lacks permission for an action."""


class MemberNotFoundError(DomainError):
    """Raised when a session uid has no member profile."""


class NoOpenRecordError(DomainError):
    """Raised on check-out when the member has no open attendance record."""


class AlreadyCheckedInError(DomainError):
    """Raised on check-in when the member already has an open record."""


class NotPendingError(DomainError):
    """Raised when approving/rejecting a member whose registration is not pending."""


class LabOccupiedError(DomainError):
    """Raised when closing the lab while members are still present."""


class UnknownCategoryError(DomainError):
    """Raised when a member's affiliation does not map to an ID category."""


class StoreError(Exception):
    """Base exception for document-store failures (surfaced verbatim)."""


class StoreUnavailableError(StoreError):
    """The backend could not be reached."""


class StorePermissionError(StoreError):
    """The backend refused the operation."""


class TransactionAbortedError(StoreError):
    """A transaction kept conflicting and gave up after its retry budget."""


class DocumentNotFoundError(StoreError):
    """An update targeted a document that does not exist."""
