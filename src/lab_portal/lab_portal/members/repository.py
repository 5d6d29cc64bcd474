from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from ..core.enums import AccountStatus
from .model import Member


class MemberRepository(Protocol):
    """Repository interface for members.

    Note (DIP): the service layer depends on this interface, not on a concrete store.
    """

    def get_by_id(self, uid: str) -> Optional[Member]:
        raise NotImplementedError

    def create(self, member: Member) -> None:
        raise NotImplementedError

    def update_fields(self, uid: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete_by_id(self, uid: str) -> None:
        raise NotImplementedError

    def list_by_status(self, status: AccountStatus) -> Sequence[Member]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Member]:
        raise NotImplementedError

    def subscribe_by_status(self, status: AccountStatus, callback: Callable[[List[Member]], None]) -> Callable[[], None]:
        raise NotImplementedError
