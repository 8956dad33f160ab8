from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from typing import TYPE_CHECKING

from django.utils import timezone

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Iterator

    from chatterbox.users.identity import Identity


@dataclass(eq=False)
class Connection:
    """An admitted Socket.IO session bound to a verified identity."""

    sid: str
    identity: Identity
    connected_at: datetime = field(default_factory=timezone.now)
    is_open: bool = True

    @property
    def user_id(self) -> int:
        return self.identity.user_id


class ConnectionRegistry:
    def __init__(self) -> None:
        self._by_sid: dict[str, Connection] = {}

    def add(self, connection: Connection) -> None:
        self._by_sid[connection.sid] = connection

    def get(self, sid: str) -> Connection | None:
        return self._by_sid.get(sid)

    def remove(self, sid: str) -> Connection | None:
        connection = self._by_sid.pop(sid, None)
        if connection is not None:
            connection.is_open = False
        return connection

    def online_user_ids(self) -> frozenset[int]:
        return frozenset(c.user_id for c in self._by_sid.values())

    def clear(self) -> None:
        for connection in self._by_sid.values():
            connection.is_open = False
        self._by_sid.clear()

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._by_sid.values()))

    def __len__(self) -> int:
        return len(self._by_sid)

    def __contains__(self, sid: object) -> bool:
        return sid in self._by_sid
