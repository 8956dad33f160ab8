"""Chat rooms and the connections subscribed to them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any

from django.db import DatabaseError

if TYPE_CHECKING:  # import for type checking only
    import socketio

    from chatterbox.realtime.connections import Connection
    from chatterbox.realtime.store import ChatStore

logger = logging.getLogger(__name__)

ROOM_NAME = re.compile(r"chat_([1-9]\d*)")


@dataclass(frozen=True, order=True)
class ChatRoom:
    chat_id: int

    def __str__(self) -> str:
        return f"chat_{self.chat_id}"

    @classmethod
    def from_name(cls, name: str) -> ChatRoom | None:
        """Parse a Socket.IO room name; ``None`` for rooms that are not chats."""
        match = ROOM_NAME.fullmatch(name) if isinstance(name, str) else None
        return cls(int(match.group(1))) if match else None


def room_for_chat(chat_id: Any) -> ChatRoom:
    """Build the room of a chat from an event argument.

    Accepts ints and digit strings; anything else raises ``ValueError``.
    """

    if isinstance(chat_id, bool):
        msg = f"Invalid chat id: {chat_id!r}"
        raise ValueError(msg)
    if isinstance(chat_id, str):
        chat_id = chat_id.strip()
        if not chat_id.isdigit():
            msg = f"Invalid chat id: {chat_id!r}"
            raise ValueError(msg)
    try:
        value = int(chat_id)
    except (TypeError, ValueError) as exc:
        msg = f"Invalid chat id: {chat_id!r}"
        raise ValueError(msg) from exc
    if value <= 0:
        msg = f"Invalid chat id: {chat_id!r}"
        raise ValueError(msg)
    return ChatRoom(value)


class RoomMembershipManager:
    """Join and leave chat rooms on behalf of a connection.

    Room membership lives in the Socket.IO server's client manager, which
    also forgets a connection's rooms when it disconnects. Joining checks that
    the chat exists and that the connection's user is a participant. Requests
    that fail either check are dropped without a reply.
    """

    def __init__(
        self,
        server: socketio.AsyncServer,
        store: ChatStore,
        namespace: str = "/",
    ):
        self.server = server
        self.store = store
        self.namespace = namespace

    def rooms_of(self, sid: str) -> frozenset[ChatRoom]:
        names = self.server.rooms(sid, namespace=self.namespace) or ()
        return frozenset(
            room for room in map(ChatRoom.from_name, names) if room is not None
        )

    def is_subscribed(self, sid: str, room: ChatRoom) -> bool:
        return room in self.rooms_of(sid)

    async def _may_join(self, connection: Connection, room: ChatRoom) -> bool:
        try:
            chat = await self.store.get_chat(room.chat_id)
            if chat is None:
                logger.info(
                    "User %s tried to join unknown chat %s",
                    connection.user_id,
                    room.chat_id,
                )
                return False
            if not await self.store.is_participant(chat, connection.user_id):
                logger.info(
                    "User %s is not a participant of chat %s",
                    connection.user_id,
                    room.chat_id,
                )
                return False
        except DatabaseError:
            logger.exception(
                "Error joining chat %s for user %s",
                room.chat_id,
                connection.user_id,
            )
            return False
        return True

    async def join(self, connection: Connection, chat_id: Any) -> bool:
        try:
            room = room_for_chat(chat_id)
        except ValueError:
            logger.debug("Ignoring joinChat with invalid chat id %r", chat_id)
            return False

        if not await self._may_join(connection, room):
            return False

        # The connection may have gone away while the store was queried.
        if not connection.is_open:
            return False

        if not self.is_subscribed(connection.sid, room):
            await self.server.enter_room(
                connection.sid,
                str(room),
                namespace=self.namespace,
            )
            logger.info("User %s joined chat %s", connection.user_id, room.chat_id)
        return True

    async def leave(self, connection: Connection, chat_id: Any) -> bool:
        try:
            room = room_for_chat(chat_id)
        except ValueError:
            logger.debug("Ignoring leaveChat with invalid chat id %r", chat_id)
            return False
        if not self.is_subscribed(connection.sid, room):
            return False
        await self.server.leave_room(
            connection.sid,
            str(room),
            namespace=self.namespace,
        )
        logger.info("User %s left chat %s", connection.user_id, room.chat_id)
        return True
