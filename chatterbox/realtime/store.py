"""Async access to the chat store for the Socket.IO handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol

from channels.db import database_sync_to_async
from django.contrib.auth import get_user_model

from chatterbox.chats import services
from chatterbox.chats.api.serializers import MessageSerializer

if TYPE_CHECKING:  # import for type checking only
    from chatterbox.chats.models import Chat
    from chatterbox.chats.models import Message


def message_payload(message: Message) -> dict:
    """Serialize a stored message the way the REST history does."""
    return dict(MessageSerializer(message).data)


class ChatStore(Protocol):
    async def get_chat(self, chat_id: int) -> Any | None: ...

    async def is_participant(self, chat: Any, user_id: int) -> bool: ...

    async def record_message(self, chat: Any, sender_id: int, content: str) -> dict: ...


class DatabaseChatStore:
    """ORM-backed :class:`ChatStore`.

    ``record_message`` returns the serialized message, so nothing touches the
    ORM from the event loop after it returns.
    """

    @database_sync_to_async
    def get_chat(self, chat_id: int) -> Chat | None:
        return services.get_chat(chat_id)

    @database_sync_to_async
    def is_participant(self, chat: Chat, user_id: int) -> bool:
        return services.is_participant(chat, user_id)

    @database_sync_to_async
    def record_message(self, chat: Chat, sender_id: int, content: str) -> dict:
        sender = get_user_model().objects.get(pk=sender_id)
        message = services.record_message(chat, sender, content)
        return message_payload(message)
