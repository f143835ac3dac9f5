"""
Unit tests for core.pubsub module.
Tests room membership bookkeeping and room-scoped / global delivery.
"""
import asyncio
import json

from teamboard.core.pubsub import RoomEvent, RoomRouter, project_room, team_room


class MockWebSocket:
    """Mock WebSocket for testing."""

    def __init__(self, fail: bool = False):
        self.sent_texts = []
        self.fail = fail

    async def send_text(self, text: str):
        if self.fail:
            raise RuntimeError("closed")
        self.sent_texts.append(text)


class TestRoomNames:
    def test_room_families(self):
        assert team_room("abc") == "team-abc"
        assert project_room(42) == "project-42"


class TestMembership:
    """Tests for connect, join, leave and disconnect."""

    def test_connect_assigns_unique_ids(self):
        router = RoomRouter()
        a = router.connect(MockWebSocket())
        b = router.connect(MockWebSocket())
        assert a != b
        assert router.connection_count == 2
        assert router.is_connected(a)

    def test_join_and_leave(self):
        router = RoomRouter()
        sid = router.connect(MockWebSocket())
        router.join(sid, "team-1")
        router.join(sid, "project-1")
        assert router.rooms_of(sid) == {"team-1", "project-1"}

        router.leave(sid, "team-1")
        assert router.rooms_of(sid) == {"project-1"}
        assert router.members_of("team-1") == set()

    def test_leave_unknown_room_is_noop(self):
        router = RoomRouter()
        sid = router.connect(MockWebSocket())
        router.leave(sid, "team-404")
        assert router.rooms_of(sid) == set()

    def test_join_ignored_for_unknown_connection(self):
        router = RoomRouter()
        router.join("ghost", "team-1")
        assert router.members_of("team-1") == set()

    def test_disconnect_removes_from_every_room(self):
        router = RoomRouter()
        sid = router.connect(MockWebSocket())
        other = router.connect(MockWebSocket())
        router.join(sid, "team-1")
        router.join(other, "team-1")
        router.join(sid, "project-9")

        router.disconnect(sid)
        assert not router.is_connected(sid)
        assert router.members_of("team-1") == {other}
        assert router.members_of("project-9") == set()


class TestDelivery:
    """Tests for room-scoped and global publishing."""

    def test_to_room_reaches_only_members(self):
        router = RoomRouter()
        inside, outside = MockWebSocket(), MockWebSocket()
        sid = router.connect(inside)
        router.connect(outside)
        router.join(sid, "project-1")

        delivered = asyncio.run(router.to_room("project-1", "taskMoved", {"task": {"id": "t1"}}))
        assert delivered == 1
        assert json.loads(inside.sent_texts[0]) == {"type": "taskMoved", "data": {"task": {"id": "t1"}}}
        assert outside.sent_texts == []

    def test_broadcast_reaches_everyone(self):
        router = RoomRouter()
        sockets = [MockWebSocket() for _ in range(3)]
        for ws in sockets:
            router.connect(ws)
        delivered = asyncio.run(router.broadcast("userStatusChanged", {"userId": "u1", "isOnline": True}))
        assert delivered == 3
        assert all(len(ws.sent_texts) == 1 for ws in sockets)

    def test_empty_room_is_not_an_error(self):
        router = RoomRouter()
        assert asyncio.run(router.to_room("team-nobody", "newMessage", {})) == 0

    def test_failing_socket_is_skipped(self):
        router = RoomRouter()
        good, bad = MockWebSocket(), MockWebSocket(fail=True)
        router.join(router.connect(good), "team-1")
        router.join(router.connect(bad), "team-1")

        delivered = asyncio.run(router.to_room("team-1", "newMessage", {"message": "hi"}))
        assert delivered == 1
        assert len(good.sent_texts) == 1

    def test_deliver_uses_event_scope(self):
        router = RoomRouter()
        member, other = MockWebSocket(), MockWebSocket()
        router.join(router.connect(member), "team-1")
        router.connect(other)

        asyncio.run(router.deliver(RoomEvent("newMessage", {"m": 1}, "team-1")))
        assert len(member.sent_texts) == 1
        assert other.sent_texts == []

        asyncio.run(router.deliver(RoomEvent("messagesRead", {"m": 2})))
        assert len(member.sent_texts) == 2
        assert len(other.sent_texts) == 1
