import pytest
from django.urls import reverse
from rest_framework import status

from chatterbox.chats import services
from tests.factories import create_direct_chat
from tests.factories import create_user

pytestmark = pytest.mark.django_db


def test_create_direct_chat_then_reuse(auth_client, user, other_user):
    url = reverse("api_v1:chats-list")

    response = auth_client.post(url, {"participant_id": other_user.pk}, format="json")
    assert response.status_code == status.HTTP_201_CREATED, response.content
    chat_id = response.data["id"]
    assert {p["id"] for p in response.data["participants"]} == {
        other_user.pk,
        user.pk,
    }

    response = auth_client.post(url, {"participant_id": other_user.pk}, format="json")
    assert response.status_code == status.HTTP_200_OK
    assert response.data["id"] == chat_id


def test_create_direct_chat_with_unknown_user(auth_client):
    response = auth_client.post(
        reverse("api_v1:chats-list"),
        {"participant_id": 999_999},
        format="json",
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_create_direct_chat_with_self(auth_client, user):
    response = auth_client.post(
        reverse("api_v1:chats-list"),
        {"participant_id": user.pk},
        format="json",
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["detail"] == "Cannot create chat with yourself"


def test_list_includes_last_message_preview(auth_client, user, other_user):
    chat = create_direct_chat(user, other_user)
    message = services.record_message(chat, other_user, "latest news")

    response = auth_client.get(reverse("api_v1:chats-list"))
    assert response.status_code == status.HTTP_200_OK
    [row] = response.data
    assert row["id"] == chat.pk
    assert row["last_message"]["id"] == str(message.pk)
    assert row["last_message"]["content"] == "latest news"
    assert row["last_message"]["senderName"] == "Other User"


def test_message_history(auth_client, user, other_user):
    chat = create_direct_chat(user, other_user)
    services.record_message(chat, user, "one")
    services.record_message(chat, other_user, "two")

    response = auth_client.get(
        reverse("api_v1:chats-messages", kwargs={"pk": chat.pk}),
    )
    assert response.status_code == status.HTTP_200_OK
    assert [m["content"] for m in response.data] == ["one", "two"]
    assert response.data[0]["chatId"] == str(chat.pk)


def test_message_history_of_foreign_chat(auth_client, other_user):
    stranger = create_user("stranger")
    chat = create_direct_chat(other_user, stranger)

    response = auth_client.get(
        reverse("api_v1:chats-messages", kwargs={"pk": chat.pk}),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.data["detail"] == "Not authorized to access this chat"


def test_message_history_of_missing_chat(auth_client):
    response = auth_client.get(
        reverse("api_v1:chats-messages", kwargs={"pk": 999_999}),
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_anonymous_cannot_list_chats(api_client):
    response = api_client.get(reverse("api_v1:chats-list"))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
