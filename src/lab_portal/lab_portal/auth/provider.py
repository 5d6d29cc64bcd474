from __future__ import annotations

from typing import Callable, Optional, Protocol

SessionCallback = Callable[[Optional[str]], None]


class SessionProvider(Protocol):
    """Authentication/session capabilities the portal consumes.

    Identities are opaque uids; the member profile lives in ``users/<uid>``.
    """

    def create_account(self, email: str, password: str) -> str:
        raise NotImplementedError

    def sign_in(self, email: str, password: str) -> str:
        raise NotImplementedError

    def sign_out(self) -> None:
        raise NotImplementedError

    def current_uid(self) -> Optional[str]:
        raise NotImplementedError

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        raise NotImplementedError
