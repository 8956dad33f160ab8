"""Chat store operations.

Synchronous ORM helpers shared by the REST views and, through
``chatterbox.realtime.store``, by the Socket.IO handlers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q

from chatterbox.chats.models import Chat
from chatterbox.chats.models import Message

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Iterable

    from django.db.models import QuerySet

    from chatterbox.users.models import User

logger = logging.getLogger(__name__)

USER_CHATS_LIMIT = 50
CHAT_HISTORY_LIMIT = 100


class ChatServiceError(Exception):
    """A chat operation violated a business rule."""


class ParticipantNotFound(ChatServiceError):
    pass


class InvalidChatOperation(ChatServiceError):
    pass


def get_chat(chat_id: int) -> Chat | None:
    return Chat.objects.filter(pk=chat_id).first()


def participant_ids(chat: Chat) -> frozenset[int]:
    return frozenset(chat.participants.values_list("id", flat=True))


def is_participant(chat: Chat, user_id: int) -> bool:
    return chat.has_participant(user_id)


def append_message(chat: Chat, sender: User, content: str) -> Message:
    return Message.objects.create(chat=chat, sender=sender, content=content)


def update_last_message(chat: Chat, message: Message) -> bool:
    """Point ``chat.last_message`` at ``message``.

    Never moves the pointer backwards: the update only applies when the chat
    has no last message yet or the current one is not newer. Returns whether a
    row was updated.
    """
    newer_or_equal = Q(last_message__isnull=True) | Q(
        last_message__created_at__lte=message.created_at,
    )
    updated = (
        Chat.objects.filter(pk=chat.pk)
        .filter(newer_or_equal)
        .update(last_message=message, updated_at=message.created_at)
    )
    if updated:
        chat.last_message = message
        chat.updated_at = message.created_at
    return bool(updated)


def record_message(chat: Chat, sender: User, content: str) -> Message:
    """Persist a message and move the chat summary to it in one transaction."""
    with transaction.atomic():
        message = append_message(chat, sender, content)
        if not update_last_message(chat, message):
            logger.info(
                "Chat %s already points at a newer message than %s",
                chat.pk,
                message.pk,
            )
    return message


def chats_for_user(user: User) -> QuerySet[Chat]:
    return (
        Chat.objects.filter(participants=user)
        .select_related("admin", "last_message", "last_message__sender")
        .prefetch_related("participants")
        .order_by("-updated_at")[:USER_CHATS_LIMIT]
    )


def recent_messages(chat: Chat, limit: int = CHAT_HISTORY_LIMIT) -> list[Message]:
    """Return the latest ``limit`` messages, oldest first."""
    latest = (
        chat.messages.select_related("sender")
        .order_by("-created_at", "-id")[:limit]
    )
    return list(reversed(latest))


def _existing_user_ids(user_ids: Iterable[int]) -> set[int]:
    user_model = get_user_model()
    return set(user_model.objects.filter(pk__in=user_ids).values_list("id", flat=True))


def find_direct_chat(user_id: int, other_id: int) -> Chat | None:
    return (
        Chat.objects.filter(is_group=False, participants=user_id)
        .filter(participants=other_id)
        .order_by("created_at")
        .first()
    )


def get_or_create_direct_chat(user: User, participant_id: int) -> tuple[Chat, bool]:
    if participant_id == user.pk:
        msg = "Cannot create chat with yourself"
        raise InvalidChatOperation(msg)

    user_model = get_user_model()
    with transaction.atomic():
        # Lock both users so two concurrent requests cannot create the pair twice.
        locked = list(
            user_model.objects.select_for_update()
            .filter(pk__in=[user.pk, participant_id])
            .order_by("pk")
            .values_list("id", flat=True),
        )
        if participant_id not in locked:
            msg = "Participant not found"
            raise ParticipantNotFound(msg)

        chat = find_direct_chat(user.pk, participant_id)
        if chat is not None:
            return chat, False

        chat = Chat.objects.create(is_group=False)
        chat.participants.set([user.pk, participant_id])
    logger.info("Created direct chat %s for %s and %s", chat.pk, user.pk, participant_id)
    return chat, True


def create_group_chat(
    creator: User,
    group_name: str,
    participant_ids: Iterable[int],
    group_picture: str = "",
) -> Chat:
    name = (group_name or "").strip()
    if not name:
        msg = "Group name is required"
        raise InvalidChatOperation(msg)

    requested = list(dict.fromkeys(int(pid) for pid in participant_ids))
    if not requested:
        msg = "At least one participant is required"
        raise InvalidChatOperation(msg)

    members = {creator.pk, *requested}
    if _existing_user_ids(members) != members:
        msg = "One or more participants not found"
        raise ParticipantNotFound(msg)

    with transaction.atomic():
        chat = Chat.objects.create(
            is_group=True,
            group_name=name,
            group_picture=group_picture or "",
            admin=creator,
        )
        chat.participants.set(members)
    logger.info("Created group chat %s (%s members)", chat.pk, len(members))
    return chat


def admin_groups(user: User) -> QuerySet[Chat]:
    return (
        Chat.objects.filter(is_group=True, admin=user)
        .select_related("admin")
        .prefetch_related("participants")
        .order_by("-updated_at")
    )


def _require_group(chat: Chat) -> None:
    if not chat.is_group:
        msg = "This is not a group chat"
        raise InvalidChatOperation(msg)


def rename_group(chat: Chat, group_name: str) -> Chat:
    _require_group(chat)
    name = (group_name or "").strip()
    if not name:
        msg = "Group name is required"
        raise InvalidChatOperation(msg)
    chat.group_name = name
    chat.save(update_fields=["group_name", "updated_at"])
    return chat


def add_participants(chat: Chat, user_ids: Iterable[int]) -> list[int]:
    """Add users to a group; returns the ids that were not members before."""
    _require_group(chat)
    requested = list(dict.fromkeys(int(uid) for uid in user_ids))
    if not requested:
        msg = "At least one participant is required"
        raise InvalidChatOperation(msg)
    if _existing_user_ids(requested) != set(requested):
        msg = "One or more participants not found"
        raise ParticipantNotFound(msg)

    current = participant_ids(chat)
    added = [uid for uid in requested if uid not in current]
    if added:
        chat.participants.add(*added)
        chat.save(update_fields=["updated_at"])
    return added


def remove_participant(chat: Chat, user_id: int) -> Chat:
    """Remove a member from a group.

    Live Socket.IO subscriptions of the removed user are left untouched; they
    lapse on disconnect or leaveChat, and sends are re-checked against the
    current participant set.
    """
    _require_group(chat)
    current = participant_ids(chat)
    if user_id in current and len(current) <= 1:
        msg = "Cannot remove the last participant"
        raise InvalidChatOperation(msg)
    chat.participants.remove(user_id)
    chat.save(update_fields=["updated_at"])
    return chat
