"""
Tests for core.presence: announce / disconnect lifecycle against a real DB.
"""
import json

import pytest

from teamboard.core.bootstrap import reset_presence
from teamboard.core.presence import PresenceTracker
from teamboard.core.pubsub import RoomRouter
from teamboard.models.user import User


pytestmark = pytest.mark.asyncio


class MockWebSocket:
    def __init__(self):
        self.sent_texts = []

    async def send_text(self, text: str):
        self.sent_texts.append(text)


async def _user(name="alice"):
    return await User.create(username=name, password_hash="x")


async def test_announce_marks_online_and_broadcasts(db):
    rooms = RoomRouter()
    presence = PresenceTracker(rooms)
    watcher = MockWebSocket()
    rooms.connect(watcher)
    sid = rooms.connect(MockWebSocket())
    user = await _user()

    payload = await presence.announce(sid, user)

    fresh = await User.get(id=user.id)
    assert fresh.is_online is True
    assert fresh.socket_id == sid
    assert fresh.last_seen is not None
    assert presence.is_online(user.id)
    assert presence.user_for(sid) == str(user.id)
    assert payload["isOnline"] is True
    frame = json.loads(watcher.sent_texts[-1])
    assert frame["type"] == "userStatusChanged"
    assert frame["data"]["userId"] == str(user.id)


async def test_disconnect_marks_offline(db):
    rooms = RoomRouter()
    presence = PresenceTracker(rooms)
    watcher = MockWebSocket()
    rooms.connect(watcher)
    sid = rooms.connect(MockWebSocket())
    user = await _user()
    await presence.announce(sid, user)

    payload = await presence.disconnect(sid)

    fresh = await User.get(id=user.id)
    assert fresh.is_online is False
    assert fresh.socket_id is None
    assert payload == {
        "userId": str(user.id),
        "username": "alice",
        "isOnline": False,
        "lastSeen": payload["lastSeen"],
    }
    assert payload["lastSeen"] is not None
    assert not presence.is_online(user.id)
    assert json.loads(watcher.sent_texts[-1])["data"]["isOnline"] is False


async def test_unannounced_disconnect_changes_nothing(db):
    rooms = RoomRouter()
    presence = PresenceTracker(rooms)
    watcher = MockWebSocket()
    rooms.connect(watcher)

    assert await presence.disconnect("never-announced") is None
    assert watcher.sent_texts == []


async def test_stale_connection_does_not_clear_newer_one(db):
    rooms = RoomRouter()
    presence = PresenceTracker(rooms)
    old_sid = rooms.connect(MockWebSocket())
    new_sid = rooms.connect(MockWebSocket())
    user = await _user()
    await presence.announce(old_sid, user)
    await presence.announce(new_sid, await User.get(id=user.id))

    assert await presence.disconnect(old_sid) is None

    fresh = await User.get(id=user.id)
    assert fresh.is_online is True
    assert fresh.socket_id == new_sid
    assert presence.user_for(new_sid) == str(user.id)


async def test_shutdown_marks_tracked_users_offline(db):
    rooms = RoomRouter()
    presence = PresenceTracker(rooms)
    user = await _user()
    await presence.announce(rooms.connect(MockWebSocket()), user)

    await presence.shutdown()

    fresh = await User.get(id=user.id)
    assert fresh.is_online is False
    assert fresh.socket_id is None
    assert presence.online_user_ids() == set()


async def test_reset_presence_clears_stale_state(db):
    await User.create(username="ghost", password_hash="x", is_online=True, socket_id="old")
    await reset_presence()
    ghost = await User.get(username="ghost")
    assert ghost.is_online is False
    assert ghost.socket_id is None


async def test_reannounce_as_other_user_releases_first(db):
    rooms = RoomRouter()
    presence = PresenceTracker(rooms)
    watcher = MockWebSocket()
    rooms.connect(watcher)
    sid = rooms.connect(MockWebSocket())
    first = await _user("alice")
    second = await _user("bob")

    await presence.announce(sid, first)
    await presence.announce(sid, second)

    fresh_first = await User.get(id=first.id)
    assert fresh_first.is_online is False
    assert fresh_first.socket_id is None
    assert presence.user_for(sid) == str(second.id)
    frames = [json.loads(t)["data"] for t in watcher.sent_texts]
    assert [(f["username"], f["isOnline"]) for f in frames] == [
        ("alice", True),
        ("alice", False),
        ("bob", True),
    ]

    payload = await presence.disconnect(sid)
    assert payload["userId"] == str(second.id)
    fresh_second = await User.get(id=second.id)
    assert fresh_second.is_online is False
    assert fresh_second.socket_id is None


async def test_reannounce_as_same_user_stays_online(db):
    rooms = RoomRouter()
    presence = PresenceTracker(rooms)
    sid = rooms.connect(MockWebSocket())
    user = await _user()

    await presence.announce(sid, user)
    await presence.announce(sid, await User.get(id=user.id))

    fresh = await User.get(id=user.id)
    assert fresh.is_online is True
    assert fresh.socket_id == sid


async def test_disconnect_ignores_other_rows_with_same_socket_id(db):
    rooms = RoomRouter()
    presence = PresenceTracker(rooms)
    sid = rooms.connect(MockWebSocket())
    user = await _user("alice")
    await presence.announce(sid, user)
    # A row left behind by an older process with the same connection id
    await User.create(username="leftover", password_hash="x", is_online=True, socket_id=sid)

    payload = await presence.disconnect(sid)
    assert payload["userId"] == str(user.id)
    assert payload["isOnline"] is False
    assert (await User.get(id=user.id)).socket_id is None
