from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # import for type checking only
    from chatterbox.realtime.connections import Connection
    from chatterbox.realtime.connections import ConnectionRegistry
    from chatterbox.realtime.fanout import Broadcaster
    from chatterbox.realtime.rooms import ChatRoom
    from chatterbox.realtime.rooms import RoomMembershipManager

logger = logging.getLogger(__name__)

USER_ONLINE_EVENT = "userOnline"
USER_OFFLINE_EVENT = "userOffline"
TYPING_EVENT = "typing"


class PresenceTracker:
    """Announce connection lifecycle and typing state.

    Presence is per connection: a user with two tabs open produces two
    ``userOnline`` events and two ``userOffline`` events.
    """

    def __init__(
        self,
        broadcaster: Broadcaster,
        connections: ConnectionRegistry,
        membership: RoomMembershipManager,
    ):
        self.broadcaster = broadcaster
        self.connections = connections
        self.membership = membership

    async def announce_online(self, connection: Connection) -> None:
        await self.broadcaster.to_everyone_except(
            connection.sid,
            USER_ONLINE_EVENT,
            str(connection.user_id),
        )

    async def announce_offline(self, connection: Connection) -> None:
        await self.broadcaster.to_everyone_except(
            connection.sid,
            USER_OFFLINE_EVENT,
            str(connection.user_id),
        )

    async def relay_typing(
        self,
        connection: Connection,
        room: ChatRoom,
        is_typing: bool,
    ) -> bool:
        """Forward a typing indicator to the other subscribers of ``room``.

        Only connections subscribed to the room may signal typing in it.
        """

        if not self.membership.is_subscribed(connection.sid, room):
            logger.debug(
                "Ignoring typing from %s for unsubscribed %s",
                connection.sid,
                room,
            )
            return False
        await self.broadcaster.to_room(
            room,
            TYPING_EVENT,
            {"userId": str(connection.user_id), "isTyping": is_typing},
            skip_sid=connection.sid,
        )
        return True

    def online_user_ids(self) -> frozenset[int]:
        return self.connections.online_user_ids()
