"""Socket.IO server construction and event wiring.

Event vocabulary (client to server):

- ``joinChat(chatId)`` / ``leaveChat(chatId)``
- ``sendMessage({chatId, content, sender})``
- ``typing({chatId, isTyping})``

Server to client: ``message``, ``messageSent``, ``typing``, ``userOnline``,
``userOffline`` and ``error``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

import socketio
from django.conf import settings

from chatterbox.realtime.connections import Connection
from chatterbox.realtime.connections import ConnectionRegistry
from chatterbox.realtime.errors import RealtimeError
from chatterbox.realtime.fanout import Broadcaster
from chatterbox.realtime.gatekeeper import Gatekeeper
from chatterbox.realtime.ingestion import MessageIngestion
from chatterbox.realtime.presence import PresenceTracker
from chatterbox.realtime.rooms import RoomMembershipManager
from chatterbox.realtime.rooms import room_for_chat
from chatterbox.realtime.sequencing import ChatSequencer
from chatterbox.realtime.serializers import TypingSerializer
from chatterbox.realtime.store import DatabaseChatStore

if TYPE_CHECKING:  # import for type checking only
    from chatterbox.realtime.store import ChatStore
    from chatterbox.users.identity import IdentityVerifier

logger = logging.getLogger(__name__)


def create_socketio_server(**options: Any) -> socketio.AsyncServer:
    defaults = {
        "async_mode": "asgi",
        "cors_allowed_origins": settings.SOCKETIO_CORS_ALLOWED_ORIGINS,
        "ping_interval": settings.SOCKETIO_PING_INTERVAL,
        "ping_timeout": settings.SOCKETIO_PING_TIMEOUT,
        "logger": False,
        "engineio_logger": False,
    }
    defaults.update(options)
    return socketio.AsyncServer(**defaults)


class ChatRealtimeService:
    """All realtime state of one server process.

    Construct it with a Socket.IO server (or anything with the same ``emit``,
    ``on`` and room methods), call :meth:`attach` to register the event
    handlers and :meth:`close` to disconnect everyone.
    """

    def __init__(
        self,
        server: socketio.AsyncServer,
        store: ChatStore | None = None,
        verifier: IdentityVerifier | None = None,
        namespace: str = "/",
    ):
        self.server = server
        self.namespace = namespace
        self.store = store or DatabaseChatStore()
        self.connections = ConnectionRegistry()
        self.gatekeeper = Gatekeeper(verifier)
        self.broadcaster = Broadcaster(server, namespace=namespace)
        self.membership = RoomMembershipManager(server, self.store, namespace=namespace)
        self.ingestion = MessageIngestion(self.store, self.broadcaster, ChatSequencer())
        self.presence = PresenceTracker(
            self.broadcaster,
            self.connections,
            self.membership,
        )
        self._attached = False

    def attach(self) -> ChatRealtimeService:
        if self._attached:
            return self
        handlers = {
            "connect": self.on_connect,
            "disconnect": self.on_disconnect,
            "joinChat": self.on_join_chat,
            "leaveChat": self.on_leave_chat,
            "sendMessage": self.on_send_message,
            "typing": self.on_typing,
        }
        for event, handler in handlers.items():
            self.server.on(event, handler, namespace=self.namespace)
        self._attached = True
        return self

    async def close(self) -> None:
        for connection in self.connections:
            await self.server.disconnect(connection.sid, namespace=self.namespace)
        self.connections.clear()

    async def on_connect(self, sid: str, environ: dict[str, Any], auth: Any | None = None):
        identity = await self.gatekeeper.admit(environ, auth)
        connection = Connection(sid=sid, identity=identity)
        self.connections.add(connection)
        logger.info("User connected: %s (%s)", identity.display_name, identity.user_id)
        await self.presence.announce_online(connection)

    async def on_disconnect(self, sid: str, reason: Any | None = None):
        connection = self.connections.remove(sid)
        if connection is None:
            return
        # The server's client manager leaves the rooms after this handler.
        logger.info(
            "User disconnected: %s (%s) %s",
            connection.identity.display_name,
            connection.user_id,
            reason or "",
        )
        await self.presence.announce_offline(connection)

    async def on_join_chat(self, sid: str, chat_id: Any = None):
        connection = self.connections.get(sid)
        if connection is None:
            return
        await self.membership.join(connection, chat_id)

    async def on_leave_chat(self, sid: str, chat_id: Any = None):
        connection = self.connections.get(sid)
        if connection is None:
            return
        await self.membership.leave(connection, chat_id)

    async def on_send_message(self, sid: str, data: Any = None):
        connection = self.connections.get(sid)
        if connection is None:
            return
        try:
            await self.ingestion.ingest(connection, data)
        except RealtimeError as exc:
            logger.info(
                "sendMessage from user %s rejected: %s",
                connection.user_id,
                exc.message,
            )
            await self.broadcaster.error(sid, exc.message)

    async def on_typing(self, sid: str, data: Any = None):
        connection = self.connections.get(sid)
        if connection is None:
            return
        serializer = TypingSerializer(data=data if isinstance(data, dict) else {})
        if not serializer.is_valid():
            return
        room = room_for_chat(serializer.validated_data["chatId"])
        await self.presence.relay_typing(
            connection,
            room,
            serializer.validated_data["isTyping"],
        )
