from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Chat(models.Model):
    """A one-to-one conversation or a named group.

    ``last_message`` is a weak pointer maintained by message ingestion; it is
    nulled rather than cascaded if the message ever disappears.
    """

    participants = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="chats",
    )
    is_group = models.BooleanField(_("Group chat"), default=False)
    group_name = models.CharField(_("Group name"), max_length=255, blank=True)
    group_picture = models.URLField(_("Group picture"), max_length=500, blank=True)
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="administered_chats",
    )
    last_message = models.ForeignKey(
        "chats.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self):
        if self.is_group:
            return self.group_name or f"Group {self.pk}"
        return f"Chat {self.pk}"

    def has_participant(self, user_id: int) -> bool:
        return self.participants.filter(pk=user_id).exists()


class Message(models.Model):
    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name="messages")
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="messages",
    )
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.sender_id} -> {self.chat_id}: {self.content[:30]}"
