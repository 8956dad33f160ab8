from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:  # import for type checking only
    import socketio

    from chatterbox.realtime.rooms import ChatRoom

logger = logging.getLogger(__name__)

MESSAGE_EVENT = "message"
MESSAGE_SENT_EVENT = "messageSent"
ERROR_EVENT = "error"


class Broadcaster:
    """Emit events to connections through the Socket.IO server.

    Rooms are addressed by name, so the server's client manager resolves
    recipients and a connection subscribed to a room gets exactly one copy.
    """

    def __init__(self, server: socketio.AsyncServer, namespace: str = "/"):
        self.server = server
        self.namespace = namespace

    async def to_connection(self, sid: str, event: str, payload: Any) -> None:
        await self.server.emit(event, payload, to=sid, namespace=self.namespace)

    async def to_room(
        self,
        room: ChatRoom,
        event: str,
        payload: Any,
        skip_sid: str | None = None,
    ) -> None:
        await self.server.emit(
            event,
            payload,
            room=str(room),
            skip_sid=skip_sid,
            namespace=self.namespace,
        )

    async def to_everyone_except(self, sid: str, event: str, payload: Any) -> None:
        await self.server.emit(
            event,
            payload,
            skip_sid=sid,
            namespace=self.namespace,
        )

    async def deliver_message(
        self,
        room: ChatRoom,
        payload: dict,
        origin_sid: str,
    ) -> None:
        """Send a stored message to its room and acknowledge the sender."""

        await self.to_room(room, MESSAGE_EVENT, payload)
        await self.to_connection(origin_sid, MESSAGE_SENT_EVENT, payload)
        logger.debug("Message %s delivered to %s", payload.get("id"), room)

    async def error(self, sid: str, message: str) -> None:
        await self.to_connection(sid, ERROR_EVENT, {"message": message})
