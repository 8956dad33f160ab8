from asgiref.sync import async_to_sync

from chatterbox.realtime.fanout import Broadcaster
from chatterbox.realtime.rooms import ChatRoom

from .fakes import RecordingServer


def setup_broadcaster(*members):
    server = RecordingServer()
    for sid in members:
        async_to_sync(server.enter_room)(sid, str(ChatRoom(1)))
    return server, Broadcaster(server)


def test_to_room_is_a_single_room_emit():
    server, broadcaster = setup_broadcaster("s1", "s2")
    async_to_sync(broadcaster.to_room)(ChatRoom(1), "ping", {"n": 1})

    [emission] = server.emissions
    assert emission.to == "chat_1"
    assert emission.skip_sid is None
    assert emission.recipients == {"s1", "s2"}


def test_to_room_skips_origin():
    server, broadcaster = setup_broadcaster("s1", "s2")
    async_to_sync(broadcaster.to_room)(ChatRoom(1), "typing", {}, skip_sid="s1")

    [emission] = server.emissions
    assert emission.skip_sid == "s1"
    assert server.received("s1") == []
    assert server.received("s2") == [{}]


def test_empty_room_reaches_nobody():
    server, broadcaster = setup_broadcaster()
    async_to_sync(broadcaster.to_room)(ChatRoom(1), "ping", {})
    [emission] = server.emissions
    assert emission.recipients == frozenset()


def test_deliver_message_echoes_to_unsubscribed_sender():
    server, broadcaster = setup_broadcaster("s1")
    payload = {"id": "9", "content": "hi"}
    async_to_sync(broadcaster.deliver_message)(ChatRoom(1), payload, "s2")

    assert server.received("s1") == [payload]
    assert server.received("s2") == [payload]
    assert [(e.event, e.to) for e in server.emissions] == [
        ("message", "chat_1"),
        ("messageSent", "s2"),
    ]


def test_to_everyone_except_is_a_single_broadcast():
    server, broadcaster = setup_broadcaster()
    async_to_sync(broadcaster.to_everyone_except)("s1", "userOnline", "7")
    [emission] = server.emissions
    assert emission.to is None
    assert emission.skip_sid == "s1"
    assert emission.recipients is None
