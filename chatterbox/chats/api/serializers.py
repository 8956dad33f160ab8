from __future__ import annotations

from rest_framework import serializers

from chatterbox.chats.models import Chat
from chatterbox.chats.models import Message
from chatterbox.users.models import User


class MessageSerializer(serializers.ModelSerializer[Message]):
    """Wire format of a message, shared by the REST history and Socket.IO.

    Keys are camelCase to match the realtime event vocabulary; ids are strings.
    """

    id = serializers.CharField(read_only=True)
    chatId = serializers.CharField(source="chat_id", read_only=True)  # noqa: N815
    sender = serializers.CharField(source="sender_id", read_only=True)
    senderName = serializers.CharField(  # noqa: N815
        source="sender.display_name",
        read_only=True,
    )
    senderEmail = serializers.EmailField(source="sender.email", read_only=True)  # noqa: N815
    timestamp = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Message
        fields = (
            "id",
            "chatId",
            "sender",
            "senderName",
            "senderEmail",
            "content",
            "timestamp",
        )
        read_only_fields = fields


class LastMessageSerializer(serializers.ModelSerializer[Message]):
    """Preview of ``Chat.last_message`` for chat lists."""

    id = serializers.CharField(read_only=True)
    sender = serializers.CharField(source="sender_id", read_only=True)
    senderName = serializers.CharField(  # noqa: N815
        source="sender.display_name",
        read_only=True,
    )
    timestamp = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Message
        fields = ("id", "sender", "senderName", "content", "timestamp")
        read_only_fields = fields


class ParticipantSerializer(serializers.ModelSerializer[User]):
    full_name = serializers.CharField(source="name", read_only=True)

    class Meta:
        model = User
        fields = ("id", "first_name", "last_name", "full_name", "email")
        read_only_fields = fields


class ChatSerializer(serializers.ModelSerializer[Chat]):
    participants = ParticipantSerializer(many=True, read_only=True)
    admin = ParticipantSerializer(read_only=True, allow_null=True)
    last_message = LastMessageSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Chat
        fields = (
            "id",
            "is_group",
            "group_name",
            "group_picture",
            "admin",
            "participants",
            "last_message",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class DirectChatCreateSerializer(serializers.Serializer):
    participant_id = serializers.IntegerField()


class GroupChatCreateSerializer(serializers.Serializer):
    group_name = serializers.CharField(max_length=255)
    participant_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
    )
    group_picture = serializers.URLField(
        max_length=500,
        required=False,
        allow_blank=True,
        default="",
    )


class GroupRenameSerializer(serializers.Serializer):
    group_name = serializers.CharField(max_length=255)


class GroupParticipantsSerializer(serializers.Serializer):
    participant_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
    )
