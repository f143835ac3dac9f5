# teamboard/core/presence.py
"""
Presence tracking for realtime connections.

A connection has no identity until the client announces it (`userOnline`).
Announcing marks the user online; closing an announced connection marks the
user offline. Every change is broadcast globally as `userStatusChanged`.
"""
import logging
from typing import Dict, Set

from teamboard.core.pubsub import RoomRouter
from teamboard.core.timeutil import iso, utc_now
from teamboard.models.user import User

logger = logging.getLogger("uvicorn.error")


class PresenceTracker:
    """
    Online/offline state keyed by realtime connection.

    Created with the application and torn down on shutdown.

    Data structure:
    - _conn_users: Dict[connection_id, user_id]
    - _user_conns: Dict[user_id, connection_id] (latest announce wins)
    """
    def __init__(self, rooms: RoomRouter):
        self.rooms = rooms
        self._conn_users: Dict[str, str] = {}
        self._user_conns: Dict[str, str] = {}

    def user_for(self, sid: str) -> str | None:
        return self._conn_users.get(sid)

    def is_online(self, user_id) -> bool:
        return str(user_id) in self._user_conns

    def online_user_ids(self) -> Set[str]:
        return set(self._user_conns)

    async def announce(self, sid: str, user: User) -> dict:
        """
        Bind a connection to a user and mark the user online.

        Returns:
            The broadcast `userStatusChanged` payload
        """
        user_id = str(user.id)
        previous = self._conn_users.get(sid)
        if previous is not None and previous != user_id:
            # One connection speaks for one user at a time
            prev_user = await User.get_or_none(id=previous)
            if prev_user and prev_user.socket_id == sid:
                await self.mark_offline(prev_user)
            else:
                self._conn_users.pop(sid, None)
                if self._user_conns.get(previous) == sid:
                    del self._user_conns[previous]

        now = utc_now()
        user.is_online = True
        user.last_seen = now
        user.socket_id = sid
        await user.save(update_fields=["is_online", "last_seen", "socket_id"])

        self._conn_users[sid] = user_id
        self._user_conns[user_id] = sid
        logger.info("[presence] %s online (conn=%s)", user.username, sid)

        payload = {"userId": user_id, "username": user.username, "isOnline": True, "lastSeen": iso(now)}
        await self.rooms.broadcast("userStatusChanged", payload)
        return payload

    async def disconnect(self, sid: str) -> dict | None:
        """
        Handle a closed connection.

        Connections that never announced cause no state change. Otherwise the
        user record is looked up by id and stored connection id; a record that
        has since been re-bound to a newer connection is left alone.

        Returns:
            The broadcast payload, or None when nothing changed
        """
        user_id = self._conn_users.pop(sid, None)
        if user_id is None:
            return None
        if self._user_conns.get(user_id) == sid:
            del self._user_conns[user_id]

        user = await User.get_or_none(id=user_id, socket_id=sid)
        if not user:
            return None
        return await self.mark_offline(user)

    async def mark_offline(self, user: User, broadcast: bool = True) -> dict:
        """
        Mark a user offline, clear the stored connection id and broadcast.

        HTTP callers pass broadcast=False and schedule delivery themselves so
        the response does not wait on subscribers.
        """
        now = utc_now()
        user.is_online = False
        user.last_seen = now
        user.socket_id = None
        await user.save(update_fields=["is_online", "last_seen", "socket_id"])

        sid = self._user_conns.pop(str(user.id), None)
        if sid:
            self._conn_users.pop(sid, None)
        logger.info("[presence] %s offline", user.username)

        payload = {"userId": str(user.id), "username": user.username, "isOnline": False, "lastSeen": iso(now)}
        if broadcast:
            await self.rooms.broadcast("userStatusChanged", payload)
        return payload

    async def shutdown(self) -> None:
        """
        Mark every tracked user offline and forget all connections.
        """
        if self._user_conns:
            await User.filter(id__in=list(self._user_conns)).update(
                is_online=False, socket_id=None, last_seen=utc_now()
            )
        self._conn_users.clear()
        self._user_conns.clear()
