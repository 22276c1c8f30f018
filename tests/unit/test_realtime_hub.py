"""Unit tests for the real-time hub."""

import asyncio

import pytest

from utils.realtime_hub import Connection, RealtimeHub, quiz_room, school_room, user_room


class FakeSocket:
    def __init__(self, closed: bool = False):
        self.sent = []
        self.closed = closed

    async def send_json(self, data):
        if self.closed:
            raise RuntimeError("Cannot call send once a close message has been sent.")
        self.sent.append(data)

    def events(self):
        return [frame["event"] for frame in self.sent]


def make_conn(user_id="u1", full_name="Budi", role="murid", school_id="s1", closed=False):
    return Connection(
        websocket=FakeSocket(closed),
        user_id=user_id,
        full_name=full_name,
        role=role,
        school_id=school_id,
    )


NAMES = {"u1": "Budi", "u2": "Sari", "u3": "Rina"}


async def lookup(user_id):
    return NAMES.get(user_id)


@pytest.fixture
def hub():
    return RealtimeHub()


class TestRooms:
    """Tests for room membership."""

    def test_connect_joins_personal_and_school_rooms(self, hub):
        conn = make_conn()
        hub.connect(conn)

        assert conn.rooms == {user_room("u1"), school_room("s1")}
        assert conn in hub.members(school_room("s1"))

    def test_community_members_do_not_join_school_rooms(self, hub):
        conn = make_conn(role="masyarakat", school_id=None)
        hub.connect(conn)

        assert conn.rooms == {user_room("u1")}

    def test_disconnect_leaves_every_room(self, hub):
        conn = make_conn()
        hub.connect(conn)
        asyncio.run(hub.handle_event(conn, "join_community", None, lookup))
        hub.disconnect(conn)

        assert conn.rooms == set()
        assert hub.members("community") == set()
        assert hub.members(user_room("u1")) == set()

    def test_join_and_leave_quiz_room(self, hub):
        conn = make_conn()
        hub.connect(conn)

        asyncio.run(hub.handle_event(conn, "join_quiz_room", "q1", lookup))
        assert conn in hub.members(quiz_room("q1"))

        asyncio.run(hub.handle_event(conn, "leave_quiz_room", {"quiz_id": "q1"}, lookup))
        assert conn not in hub.members(quiz_room("q1"))

    def test_join_quiz_room_without_id_reports_error(self, hub):
        conn = make_conn()
        hub.connect(conn)

        asyncio.run(hub.handle_event(conn, "join_quiz_room", None, lookup))

        assert conn.websocket.events() == ["error"]


class TestEmit:
    """Tests for server-side emits."""

    def test_emit_helpers_target_their_rooms(self, hub):
        student = make_conn("u1")
        teacher = make_conn("u2", "Sari", "guru")
        other_school = make_conn("u3", "Rina", "murid", school_id="s2")
        for conn in (student, teacher, other_school):
            hub.connect(conn)
        asyncio.run(hub.handle_event(student, "join_community", None, lookup))
        asyncio.run(hub.handle_event(teacher, "join_quiz_room", "q1", lookup))

        assert asyncio.run(hub.emit_to_school("s1", "new_quiz", {"quiz_id": "q1"})) == 2
        assert asyncio.run(hub.emit_to_community("new_post", {})) == 1
        assert asyncio.run(hub.emit_to_quiz_room("q1", "quiz_update", {})) == 1
        assert asyncio.run(hub.emit_to_user("u3", "ping", {})) == 1

        assert student.websocket.events() == ["new_quiz", "new_post"]
        assert teacher.websocket.events() == ["new_quiz", "quiz_update"]
        assert other_school.websocket.events() == ["ping"]

    def test_emit_to_empty_room(self, hub):
        assert asyncio.run(hub.emit_to_user("nobody", "ping", {})) == 0

    def test_broken_socket_is_dropped(self, hub):
        conn = make_conn(closed=True)
        hub.connect(conn)

        assert asyncio.run(hub.emit_to_user("u1", "ping", {})) == 0
        assert hub.members(user_room("u1")) == set()


class TestClientEvents:
    """Tests for events sent by clients."""

    def test_private_message_reaches_recipient_and_confirms_to_sender(self, hub):
        sender = make_conn("u1", "Budi")
        recipient = make_conn("u2", "Sari", "guru")
        hub.connect(sender)
        hub.connect(recipient)

        data = {"recipient_id": "u2", "message": "Selamat pagi, Bu!"}
        asyncio.run(hub.handle_event(sender, "private_message", data, lookup))

        [received] = recipient.websocket.sent
        [confirmation] = sender.websocket.sent
        assert received["event"] == "private_message"
        assert confirmation["event"] == "message_sent"
        assert received["data"] == confirmation["data"]
        payload = received["data"]
        assert payload["sender_id"] == "u1"
        assert payload["sender_name"] == "Budi"
        assert payload["recipient_name"] == "Sari"
        assert payload["message_type"] == "text"

    def test_private_message_to_unknown_user(self, hub):
        sender = make_conn("u1")
        hub.connect(sender)

        data = {"recipient_id": "ghost", "message": "Halo"}
        asyncio.run(hub.handle_event(sender, "private_message", data, lookup))

        assert sender.websocket.sent == [
            {"event": "error", "data": {"message": "Recipient not found"}}
        ]

    def test_private_message_without_text(self, hub):
        sender = make_conn("u1")
        hub.connect(sender)

        asyncio.run(hub.handle_event(sender, "private_message", {"recipient_id": "u2"}, lookup))

        assert sender.websocket.events() == ["error"]

    def test_typing_indicators(self, hub):
        sender = make_conn("u1", "Budi")
        recipient = make_conn("u2", "Sari", "guru")
        hub.connect(sender)
        hub.connect(recipient)

        asyncio.run(hub.handle_event(sender, "typing_start", {"recipient_id": "u2"}, lookup))
        asyncio.run(hub.handle_event(sender, "typing_stop", {"recipient_id": "u2"}, lookup))

        assert [f["data"]["is_typing"] for f in recipient.websocket.sent] == [True, False]
        assert recipient.websocket.sent[0] == {
            "event": "user_typing",
            "data": {"user_id": "u1", "user_name": "Budi", "is_typing": True},
        }
        assert sender.websocket.sent == []

    def test_unknown_event_is_ignored(self, hub):
        conn = make_conn()
        hub.connect(conn)

        asyncio.run(hub.handle_event(conn, "dance", {}, lookup))

        assert conn.websocket.sent == []
