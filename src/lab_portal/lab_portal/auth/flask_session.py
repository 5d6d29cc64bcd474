from __future__ import annotations

import logging
from typing import Callable, List, Optional

from flask import has_request_context, session
from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import require_email, require_min_length
from ..core.constants import CREDENTIALS, MIN_PASSWORD_LENGTH, USERS
from ..core.exceptions import AuthenticationError, ValidationError
from ..store.base import DocumentStore
from .provider import SessionCallback, SessionProvider

_logger = logging.getLogger(__name__)

SESSION_UID = "uid"


class FlaskSessionProvider(SessionProvider):
    """Email/password accounts stored in ``credentials/<email>``, session kept by Flask."""

    def __init__(self, store: DocumentStore):
        self._store = store
        self._callbacks: List[SessionCallback] = []

    def _emit(self, uid: Optional[str]) -> None:
        for callback in list(self._callbacks):
            callback(uid)

    def create_account(self, email: str, password: str) -> str:
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        uid = self._store.new_key(USERS)
        password_hash = generate_password_hash(password)

        def txn(tx) -> None:
            if tx.get(CREDENTIALS, email) is not None:
                raise ValidationError("This email address is already registered.")
            tx.set(CREDENTIALS, email, {"uid": uid, "passwordHash": password_hash, "createdAt": now_local()})

        self._store.run_transaction(txn)
        return uid

    def verify(self, email: str, password: str) -> str:
        doc = self._store.get(CREDENTIALS, (email or "").strip().lower())
        if not doc:
            raise AuthenticationError("Invalid email or password.")
        try:
            ok = check_password_hash(doc.get("passwordHash", ""), password or "")
        except (TypeError, ValueError):
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False
        if not ok:
            raise AuthenticationError("Invalid email or password.")
        return str(doc.get("uid"))

    def sign_in(self, email: str, password: str) -> str:
        uid = self.verify(email, password)
        session[SESSION_UID] = uid
        self._emit(uid)
        return uid

    def sign_out(self) -> None:
        uid = session.pop(SESSION_UID, None)
        session.clear()
        if uid:
            _logger.info("Signed out %s", uid)
        self._emit(None)

    def current_uid(self) -> Optional[str]:
        if not has_request_context():
            return None
        return session.get(SESSION_UID)

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe
