from __future__ import annotations

import logging
from functools import wraps

from flask import current_app, g, jsonify

from ..core.enums import PermissionRole
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
    StoreError,
    StorePermissionError,
)
from .messages import describe_error

_logger = logging.getLogger(__name__)

_STATUS = (
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (StorePermissionError, 403),
    (MemberNotFoundError, 404),
    (NoOpenRecordError, 404),
    (DocumentNotFoundError, 404),
    (AlreadyCheckedInError, 409),
    (NotPendingError, 409),
    (LabOccupiedError, 409),
    (DomainError, 400),
    (StoreError, 503),
)


def ok(**payload):
    return jsonify({"success": True, **payload}), 200


def error_response(exc: Exception):
    """JSON error body with a human-readable message and a matching status code."""

    for exc_type, status in _STATUS:
        if isinstance(exc, exc_type):
            if isinstance(exc, StoreError):
                _logger.warning("Store error: %s", exc)
            return jsonify({"success": False, "error": type(exc).__name__, "message": describe_error(exc)}), status

    _logger.exception("Unexpected error")
    message = f"Unexpected error: {exc}" if current_app.config.get("DEBUG") else describe_error(exc)
    return jsonify({"success": False, "error": "InternalError", "message": message}), 500


def guarded(container, minimum: PermissionRole = PermissionRole.MEMBER):
    """Decorator: require an approved member with at least ``minimum`` role.

    The resolved member is available as ``g.member`` inside the view.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                g.member = container.session_guard.require(minimum)
            except (DomainError, StoreError) as e:
                return error_response(e)
            return view(*args, **kwargs)

        return wrapper

    return decorator
