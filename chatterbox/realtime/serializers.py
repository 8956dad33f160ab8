"""Validation of inbound Socket.IO event payloads."""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers


class SendMessageSerializer(serializers.Serializer):
    chatId = serializers.IntegerField(min_value=1)  # noqa: N815
    content = serializers.CharField(trim_whitespace=False)
    sender = serializers.CharField(trim_whitespace=False)

    def validate_content(self, value: str) -> str:
        if not value.strip():
            msg = "Message content cannot be empty"
            raise serializers.ValidationError(msg)
        limit = settings.CHAT_MESSAGE_MAX_LENGTH
        if len(value) > limit:
            msg = f"Message content is limited to {limit} characters"
            raise serializers.ValidationError(msg)
        return value


class TypingSerializer(serializers.Serializer):
    chatId = serializers.IntegerField(min_value=1)  # noqa: N815
    isTyping = serializers.BooleanField(default=True)  # noqa: N815
