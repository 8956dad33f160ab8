from django.contrib import admin

from chatterbox.chats import models


@admin.register(models.Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ["id", "is_group", "group_name", "admin", "updated_at"]
    search_fields = ["group_name"]
    list_filter = ["is_group", "updated_at"]
    raw_id_fields = ["admin", "last_message"]
    filter_horizontal = ["participants"]


@admin.register(models.Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ["id", "chat", "sender", "created_at"]
    search_fields = ["content"]
    list_filter = ["created_at"]
    raw_id_fields = ["chat", "sender"]
