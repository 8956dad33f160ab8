from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError

from chatterbox.realtime.errors import AuthorizationDenied
from chatterbox.realtime.errors import ChatNotFound
from chatterbox.realtime.errors import InvalidPayload
from chatterbox.realtime.errors import PersistenceFailure
from chatterbox.realtime.rooms import ChatRoom
from chatterbox.realtime.serializers import SendMessageSerializer

if TYPE_CHECKING:  # import for type checking only
    from chatterbox.realtime.connections import Connection
    from chatterbox.realtime.fanout import Broadcaster
    from chatterbox.realtime.sequencing import ChatSequencer
    from chatterbox.realtime.store import ChatStore

logger = logging.getLogger(__name__)

NOT_A_PARTICIPANT = "Not authorized to send messages in this chat"


class MessageIngestion:
    """Accept a ``sendMessage`` event, persist it and fan it out.

    Checks run in order: payload shape, claimed sender, chat existence,
    participation. The first failure raises a
    :class:`~chatterbox.realtime.errors.RealtimeError` and nothing is stored
    or broadcast. Persistence and fanout for one chat happen under that
    chat's sequencer lock, so every subscriber sees messages in commit order.
    """

    def __init__(
        self,
        store: ChatStore,
        broadcaster: Broadcaster,
        sequencer: ChatSequencer,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.sequencer = sequencer

    async def ingest(self, connection: Connection, data: Any) -> dict:
        serializer = SendMessageSerializer(data=data if isinstance(data, dict) else {})
        if not serializer.is_valid():
            logger.debug("Invalid sendMessage payload: %s", serializer.errors)
            raise InvalidPayload
        validated = serializer.validated_data

        if validated["sender"] != str(connection.user_id):
            logger.warning(
                "Connection %s of user %s claimed sender %s",
                connection.sid,
                connection.user_id,
                validated["sender"],
            )
            raise AuthorizationDenied

        chat_id = validated["chatId"]
        async with self.sequencer.hold(chat_id):
            try:
                chat = await self.store.get_chat(chat_id)
                allowed = chat is not None and await self.store.is_participant(
                    chat,
                    connection.user_id,
                )
            except DatabaseError as exc:
                logger.exception("Failed to load chat %s", chat_id)
                raise PersistenceFailure from exc
            if chat is None:
                raise ChatNotFound
            if not allowed:
                raise AuthorizationDenied(NOT_A_PARTICIPANT)

            try:
                payload = await self.store.record_message(
                    chat,
                    connection.user_id,
                    validated["content"],
                )
            except (DatabaseError, ObjectDoesNotExist) as exc:
                logger.exception("Failed to store message in chat %s", chat_id)
                raise PersistenceFailure from exc

            await self.broadcaster.deliver_message(
                ChatRoom(chat_id),
                payload,
                connection.sid,
            )

        logger.info(
            "Message %s sent in chat %s by user %s",
            payload.get("id"),
            chat_id,
            connection.user_id,
        )
        return payload
