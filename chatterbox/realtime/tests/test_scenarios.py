"""Socket.IO flows against the real chat store and JWT verification."""

import pytest
from asgiref.sync import async_to_sync

from chatterbox.chats.models import Chat
from chatterbox.chats.models import Message
from chatterbox.realtime.server import ChatRealtimeService
from tests.factories import access_token_for
from tests.factories import create_direct_chat
from tests.factories import create_user

from .fakes import RecordingServer
from .fakes import environ_with_query

pytestmark = pytest.mark.django_db(transaction=True)


@pytest.fixture
def server():
    return RecordingServer()


@pytest.fixture
def service(server):
    return ChatRealtimeService(server).attach()


@pytest.fixture
def people():
    return {
        "a": create_user("ann", first_name="Ann", last_name="Lee"),
        "b": create_user("ben", first_name="Ben", last_name="Ode"),
        "c": create_user("cat", first_name="Cat", last_name="Roy"),
    }


def fire(server, event, sid, *args):
    return async_to_sync(server.handlers[event])(sid, *args)


def connect(server, sid, user):
    fire(server, "connect", sid, environ_with_query(f"token={access_token_for(user)}"))


def test_message_from_unjoined_participant_reaches_room(server, service, people):
    a, b = people["a"], people["b"]
    chat = create_direct_chat(a, b)
    connect(server, "sid-a", a)
    connect(server, "sid-b", b)
    fire(server, "joinChat", "sid-a", str(chat.pk))
    server.reset()

    fire(
        server,
        "sendMessage",
        "sid-b",
        {"chatId": str(chat.pk), "content": "hi", "sender": str(b.pk)},
    )

    message = Message.objects.get(chat=chat)
    assert message.sender == b
    assert message.content == "hi"

    [delivered] = server.received("sid-a", "message")
    [echo] = server.received("sid-b", "messageSent")
    assert delivered == echo
    assert delivered["id"] == str(message.pk)
    assert delivered["chatId"] == str(chat.pk)
    assert delivered["sender"] == str(b.pk)
    assert delivered["senderName"] == "Ben Ode"
    assert delivered["senderEmail"] == "ben@example.com"
    assert delivered["content"] == "hi"
    assert server.received("sid-b", "message") == []

    chat.refresh_from_db()
    assert chat.last_message_id == message.pk


def test_non_participant_send_is_rejected(server, service, people):
    a, b, c = people["a"], people["b"], people["c"]
    chat = create_direct_chat(a, b)
    connect(server, "sid-a", a)
    connect(server, "sid-c", c)
    fire(server, "joinChat", "sid-a", str(chat.pk))
    server.reset()

    fire(
        server,
        "sendMessage",
        "sid-c",
        {"chatId": str(chat.pk), "content": "x", "sender": str(c.pk)},
    )

    assert not Message.objects.exists()
    assert server.received("sid-c", "error") == [
        {"message": "Not authorized to send messages in this chat"},
    ]
    assert server.events("message") == []
    assert Chat.objects.get(pk=chat.pk).last_message_id is None


def test_send_to_missing_chat(server, service, people):
    a = people["a"]
    connect(server, "sid-a", a)
    fire(
        server,
        "sendMessage",
        "sid-a",
        {"chatId": "424242", "content": "x", "sender": str(a.pk)},
    )
    assert server.received("sid-a", "error") == [{"message": "Chat not found"}]


def test_join_checks_participation_in_the_database(server, service, people):
    a, b, c = people["a"], people["b"], people["c"]
    chat = create_direct_chat(a, b)
    connect(server, "sid-c", c)
    connect(server, "sid-b", b)

    fire(server, "joinChat", "sid-c", str(chat.pk))
    fire(server, "joinChat", "sid-b", str(chat.pk))
    fire(server, "joinChat", "sid-b", "999999")

    assert service.membership.rooms_of("sid-c") == frozenset()
    assert [room.chat_id for room in service.membership.rooms_of("sid-b")] == [chat.pk]


def test_consecutive_sends_keep_order_and_summary(server, service, people):
    a, b = people["a"], people["b"]
    chat = create_direct_chat(a, b)
    connect(server, "sid-a", a)
    connect(server, "sid-b", b)
    fire(server, "joinChat", "sid-a", chat.pk)

    for text in ("one", "two", "three"):
        fire(
            server,
            "sendMessage",
            "sid-b",
            {"chatId": chat.pk, "content": text, "sender": b.pk},
        )

    delivered = [m["content"] for m in server.received("sid-a", "message")]
    assert delivered == ["one", "two", "three"]
    chat.refresh_from_db()
    assert chat.last_message.content == "three"


def test_joined_connections_are_in_the_server_room(server, service, people):
    a, b = people["a"], people["b"]
    chat = create_direct_chat(a, b)
    connect(server, "sid-a", a)
    fire(server, "joinChat", "sid-a", chat.pk)
    server.reset()

    payload = {"chatId": str(chat.pk)}
    async_to_sync(server.emit)("refresh", payload, room=f"chat_{chat.pk}")

    assert server.received("sid-a", "refresh") == [payload]
