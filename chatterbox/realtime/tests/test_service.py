import pytest
from asgiref.sync import async_to_sync
from socketio.exceptions import ConnectionRefusedError  # noqa: A004

from chatterbox.realtime.server import ChatRealtimeService

from .fakes import InMemoryChatStore
from .fakes import RecordingServer
from .fakes import StaticVerifier
from .fakes import environ_with_query
from .fakes import identity

# The gatekeeper runs the verifier through database_sync_to_async.
pytestmark = pytest.mark.django_db

ALICE, BOB, CAROL = 1, 2, 3


class TestChatRealtimeService:
    def setup_method(self):
        self.server = RecordingServer()
        self.store = InMemoryChatStore()
        self.store.add_chat(100, ALICE, BOB)
        verifier = StaticVerifier(
            {
                "alice": identity(ALICE, "Alice"),
                "bob": identity(BOB, "Bob"),
                "carol": identity(CAROL, "Carol"),
            },
        )
        self.service = ChatRealtimeService(
            self.server,
            store=self.store,
            verifier=verifier,
        ).attach()

    def emit(self, event, sid, *args):
        return async_to_sync(self.server.handlers[event])(sid, *args)

    def connect(self, sid, token):
        self.emit("connect", sid, environ_with_query(), {"token": token})

    def disconnect(self, sid):
        async_to_sync(self.server.client_disconnect)(sid)

    def test_attach_registers_the_event_vocabulary(self):
        assert set(self.server.handlers) == {
            "connect",
            "disconnect",
            "joinChat",
            "leaveChat",
            "sendMessage",
            "typing",
        }
        assert self.service.attach() is self.service

    def test_rejected_handshake_registers_nothing(self):
        with pytest.raises(ConnectionRefusedError):
            self.connect("s1", "nope")
        assert len(self.service.connections) == 0
        assert self.server.emissions == []

    def test_presence_is_announced_once_per_connection(self):
        self.connect("a1", "alice")
        self.connect("b1", "bob")

        online = self.server.events("userOnline")
        assert [(e.data, e.skip_sid) for e in online] == [("1", "a1"), ("2", "b1")]
        assert self.server.received("a1", "userOnline") == ["2"]

        self.disconnect("b1")
        self.disconnect("b1")
        offline = self.server.events("userOffline")
        assert [(e.data, e.skip_sid) for e in offline] == [("2", "b1")]
        assert self.service.presence.online_user_ids() == {ALICE}

    def test_two_tabs_are_two_connections(self):
        self.connect("a1", "alice")
        self.connect("a2", "alice")
        self.disconnect("a1")

        assert len(self.service.connections) == 1
        assert self.service.presence.online_user_ids() == {ALICE}
        assert [e.data for e in self.server.events("userOnline")] == ["1", "1"]

    def test_join_send_and_leave(self):
        self.connect("a1", "alice")
        self.connect("b1", "bob")
        self.emit("joinChat", "a1", "100")
        self.server.reset()

        self.emit("sendMessage", "b1", {"chatId": "100", "content": "hi", "sender": "2"})

        [stored] = self.store.messages
        assert self.server.received("a1", "message") == [stored]
        assert self.server.received("b1", "messageSent") == [stored]
        assert self.server.received("b1", "message") == []

        self.emit("leaveChat", "a1", "100")
        self.server.reset()
        self.emit("sendMessage", "b1", {"chatId": 100, "content": "again", "sender": "2"})
        assert self.server.received("a1", "message") == []

    def test_outsider_cannot_join(self):
        self.connect("c1", "carol")
        self.emit("joinChat", "c1", "100")
        assert self.service.membership.rooms_of("c1") == frozenset()
        assert self.server.received("c1", "error") == []

    def test_rejected_send_reports_error_to_sender_only(self):
        self.connect("a1", "alice")
        self.connect("c1", "carol")
        self.emit("joinChat", "a1", "100")
        self.server.reset()

        self.emit("sendMessage", "c1", {"chatId": "100", "content": "x", "sender": "3"})

        assert self.store.messages == []
        assert [e.event for e in self.server.emissions] == ["error"]
        assert self.server.received("c1", "error") == [
            {"message": "Not authorized to send messages in this chat"},
        ]

    def test_spoofed_sender_reports_unauthorized(self):
        self.connect("c1", "carol")
        self.emit("sendMessage", "c1", {"chatId": "100", "content": "x", "sender": "1"})
        assert self.server.received("c1", "error") == [{"message": "Unauthorized"}]

    def test_store_failure_reports_error(self):
        self.connect("a1", "alice")
        self.store.fail_writes = True
        self.emit("sendMessage", "a1", {"chatId": "100", "content": "x", "sender": "1"})
        assert self.server.received("a1", "error") == [
            {"message": "Failed to send message"},
        ]
        assert self.server.events("messageSent") == []

    @pytest.mark.parametrize("failing", ["get_chat", "is_participant"])
    def test_store_read_failure_reports_error(self, failing):
        self.connect("a1", "alice")
        self.store.fail_reads = frozenset({failing})
        self.emit("sendMessage", "a1", {"chatId": "100", "content": "x", "sender": "1"})
        assert self.server.received("a1", "error") == [
            {"message": "Failed to send message"},
        ]
        assert self.store.messages == []

    def test_store_failure_on_join_is_silent(self):
        self.connect("a1", "alice")
        self.server.reset()
        self.store.fail_reads = frozenset({"get_chat"})

        self.emit("joinChat", "a1", "100")

        assert self.server.room_members == {}
        assert self.server.emissions == []

    def test_typing_goes_to_other_room_members(self):
        self.connect("a1", "alice")
        self.connect("a2", "alice")
        self.connect("b1", "bob")
        for sid in ("a1", "a2", "b1"):
            self.emit("joinChat", sid, "100")
        self.server.reset()

        self.emit("typing", "a1", {"chatId": "100", "isTyping": True})

        expected = {"userId": "1", "isTyping": True}
        assert self.server.received("b1", "typing") == [expected]
        assert self.server.received("a2", "typing") == [expected]
        assert self.server.received("a1", "typing") == []

    def test_typing_requires_subscription(self):
        self.connect("a1", "alice")
        self.connect("b1", "bob")
        self.emit("joinChat", "b1", "100")
        self.server.reset()

        self.emit("typing", "a1", {"chatId": "100", "isTyping": True})
        self.emit("typing", "b1", {"chatId": "oops"})
        assert self.server.emissions == []

    def test_disconnect_drops_subscriptions(self):
        self.connect("a1", "alice")
        self.connect("b1", "bob")
        self.emit("joinChat", "a1", "100")
        self.disconnect("a1")

        assert "chat_100" not in self.server.room_members
        self.server.reset()
        self.emit("sendMessage", "b1", {"chatId": "100", "content": "hi", "sender": "2"})
        assert self.server.received("a1", "message") == []

    def test_events_from_unknown_connections_are_ignored(self):
        self.emit("joinChat", "ghost", "100")
        self.emit("sendMessage", "ghost", {"chatId": "100", "content": "x", "sender": "1"})
        self.emit("typing", "ghost", {"chatId": "100", "isTyping": True})
        assert self.server.emissions == []
        assert self.store.messages == []

    def test_close_disconnects_everyone(self):
        self.connect("a1", "alice")
        self.connect("b1", "bob")
        self.emit("joinChat", "a1", "100")

        async_to_sync(self.service.close)()

        assert len(self.service.connections) == 0
        assert self.server.room_members == {}
        assert len(self.server.events("userOffline")) == 2
